"""Message log and configuration models for the simulator."""

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]
Status = Literal["idle", "executing", "success", "warning", "error"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"success", "warning", "error"})


class Message(BaseModel):
    """A single entry in the simulated conversation log."""

    id: str
    role: Role
    content: str  # rendered as light markdown by consumers
    status: Status
    started_at: int
    finished_at: int | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class SimulatorOptions(BaseModel):
    """Construction-time configuration. Only chaos mode changes afterwards."""

    seed: int | None = None
    base_delay_min: int = Field(800, ge=0, description="Lower bound of resolution latency (ms)")
    base_delay_max: int = Field(2500, ge=0, description="Upper bound of resolution latency (ms)")
    warning_pct: float = Field(0.10, ge=0, lt=1)
    error_pct: float = Field(0.05, ge=0, lt=1)
    long_running_delay_ms: int = Field(10_000, ge=0)
