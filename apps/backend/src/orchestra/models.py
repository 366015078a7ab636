"""API models for the orchestration console."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, TypeAdapter

from .health import MachineEvent, ModuleState
from .simulator import Message

_EVENT_ADAPTER: TypeAdapter = TypeAdapter(MachineEvent)


class SessionCreateRequest(BaseModel):
    """Request to start a simulator session. Unset fields use service defaults."""

    seed: Optional[int] = Field(None, description="Seed for deterministic replay; defaults to the clock")
    base_delay_min: Optional[int] = Field(None, ge=0, description="Minimum resolution latency (ms)")
    base_delay_max: Optional[int] = Field(None, ge=0, description="Maximum resolution latency (ms)")
    warning_pct: Optional[float] = Field(None, ge=0, lt=1)
    error_pct: Optional[float] = Field(None, ge=0, lt=1)
    long_running_delay_ms: Optional[int] = Field(None, ge=0)


class SessionSummary(BaseModel):
    session_id: str
    seed: int
    chaos_mode: bool
    console_status: Literal["Online", "Executing", "Degraded"]
    message_count: int
    pending_resolutions: int


class MessageRequest(BaseModel):
    """A user prompt or a system notice to append."""

    content: str = Field(..., description="Message text; not trimmed or validated")


class ReplayRequest(BaseModel):
    """Replay a prompt sequence deterministically on virtual time."""

    seed: int
    prompts: list[str] = Field(default_factory=list)
    chaos: bool = False
    base_delay_min: Optional[int] = Field(None, ge=0)
    base_delay_max: Optional[int] = Field(None, ge=0)
    warning_pct: Optional[float] = Field(None, ge=0, lt=1)
    error_pct: Optional[float] = Field(None, ge=0, lt=1)


class ReplayResponse(BaseModel):
    session_id: str
    messages: list[Message]


class ModuleEventRequest(BaseModel):
    """A health event for one monitored module."""

    type: Literal["DEGRADE", "RECOVER", "CRITICAL_FAULT"]

    def to_event(self) -> MachineEvent:
        return _EVENT_ADAPTER.validate_python({"type": self.type})


class ModuleStatusResponse(BaseModel):
    module_id: str
    state: ModuleState


class StreamEvent(BaseModel):
    """A single server-sent event on a session stream."""

    type: str = Field(..., description="Event type: message, idle")
    content: Any = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str = "Orchestration Console"
