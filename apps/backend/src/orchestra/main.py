import asyncio
import json
import logging
from typing import Literal

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, StreamingResponse

from .config import get_settings
from .health import MODULE_IDS, HealthBoard
from .models import (
    HealthResponse,
    MessageRequest,
    ModuleEventRequest,
    ModuleStatusResponse,
    ReplayRequest,
    ReplayResponse,
    SessionCreateRequest,
    SessionSummary,
    StreamEvent,
)
from .session import (
    SessionExistsError,
    SessionRegistry,
    SessionReport,
    TranscriptStore,
    UnknownCommandError,
    derive_console_status,
    filter_commands,
    replay,
    run_command,
)
from .simulator import AsyncioScheduler, InvalidRangeError, Simulator, SimulatorOptions, session_id_for

load_dotenv()

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Orchestration Console API",
    description="Deterministic message-orchestration simulator with module health controls",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

registry = SessionRegistry()
health_board = HealthBoard()
transcript_store = TranscriptStore(settings.transcripts_dir)


def _or(value, default):
    return default if value is None else value


def _options_from_request(request: SessionCreateRequest | ReplayRequest) -> SimulatorOptions:
    return SimulatorOptions(
        seed=request.seed,
        base_delay_min=_or(request.base_delay_min, settings.default_base_delay_min_ms),
        base_delay_max=_or(request.base_delay_max, settings.default_base_delay_max_ms),
        warning_pct=_or(request.warning_pct, settings.default_warning_pct),
        error_pct=_or(request.error_pct, settings.default_error_pct),
        long_running_delay_ms=_or(
            getattr(request, "long_running_delay_ms", None), settings.long_running_delay_ms
        ),
    )


def _summary(simulator: Simulator) -> SessionSummary:
    messages = simulator.get_messages()
    return SessionSummary(
        session_id=simulator.session_id,
        seed=simulator.seed,
        chaos_mode=simulator.chaos_mode,
        console_status=derive_console_status(messages),
        message_count=len(messages),
        pending_resolutions=simulator.pending_resolutions,
    )


def _require_session(session_id: str) -> Simulator:
    simulator = registry.get(session_id)
    if simulator is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return simulator


def _messages_payload(simulator: Simulator) -> list[dict]:
    return [m.model_dump(mode="json") for m in simulator.get_messages()]


def _sse(event: StreamEvent) -> str:
    return f"data: {json.dumps(event.model_dump(mode='json'))}\n\n"


@app.get("/api/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


# --- Sessions ---

@app.post("/api/sessions", response_model=SessionSummary)
async def create_session(request: SessionCreateRequest | None = None):
    options = _options_from_request(request or SessionCreateRequest())
    try:
        simulator = registry.create(options, AsyncioScheduler())
    except SessionExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _summary(simulator)


@app.get("/api/sessions")
async def list_sessions():
    return [_summary(registry.get(sid)).model_dump() for sid in registry.list_ids()]


@app.get("/api/sessions/{session_id}", response_model=SessionSummary)
async def get_session(session_id: str):
    return _summary(_require_session(session_id))


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    if not registry.remove(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}


@app.get("/api/sessions/{session_id}/messages")
async def get_messages(session_id: str):
    return _messages_payload(_require_session(session_id))


@app.post("/api/sessions/{session_id}/messages")
async def send_message(session_id: str, request: MessageRequest):
    simulator = _require_session(session_id)
    try:
        assistant = simulator.send_user(request.content)
    except InvalidRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return assistant.model_dump(mode="json")


@app.post("/api/sessions/{session_id}/system")
async def push_system(session_id: str, request: MessageRequest):
    return _require_session(session_id).push_system(request.content).model_dump(mode="json")


@app.post("/api/sessions/{session_id}/clear")
async def clear_session(session_id: str):
    simulator = _require_session(session_id)
    simulator.clear()
    return _messages_payload(simulator)


@app.post("/api/sessions/{session_id}/chaos")
async def toggle_chaos(session_id: str):
    simulator = _require_session(session_id)
    return {"session_id": session_id, "chaos_mode": simulator.toggle_chaos_mode()}


@app.post("/api/sessions/{session_id}/inject-error")
async def inject_error(session_id: str):
    return _require_session(session_id).inject_error().model_dump(mode="json")


@app.post("/api/sessions/{session_id}/long-running")
async def simulate_long_running(session_id: str):
    return _require_session(session_id).simulate_long_running().model_dump(mode="json")


@app.get("/api/sessions/{session_id}/stream")
async def stream_session(session_id: str, until_idle: bool = True):
    """Push new or changed messages as server-sent events."""
    _require_session(session_id)
    interval = settings.poll_interval_ms / 1000.0

    async def event_stream():
        seen: dict[str, tuple] = {}
        while True:
            simulator = registry.get(session_id)
            if simulator is None:
                break
            messages = simulator.get_messages()
            for message in messages:
                fingerprint = (message.status, message.content, message.finished_at)
                if seen.get(message.id) != fingerprint:
                    seen[message.id] = fingerprint
                    yield _sse(StreamEvent(type="message", content=message.model_dump(mode="json")))
            if until_idle and not any(m.status == "executing" for m in messages):
                yield _sse(StreamEvent(type="idle", content={"session_id": session_id}))
                break
            await asyncio.sleep(interval)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


# --- Command palette ---

@app.get("/api/commands")
def list_commands(q: str = ""):
    return [command.model_dump() for command in filter_commands(q)]


@app.post("/api/sessions/{session_id}/commands/{command_id}")
async def execute_command(session_id: str, command_id: str):
    simulator = _require_session(session_id)
    try:
        run_command(simulator, command_id)
    except UnknownCommandError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _summary(simulator).model_dump()


# --- Reports and transcripts ---

@app.get("/api/sessions/{session_id}/report")
async def get_report(
    session_id: str,
    fmt: Literal["json", "markdown"] = Query("json", alias="format"),
):
    report = SessionReport.from_simulator(_require_session(session_id))
    if fmt == "markdown":
        return PlainTextResponse(report.to_markdown(), media_type="text/markdown")
    return report.to_dict()


@app.post("/api/sessions/{session_id}/export")
async def export_transcript(session_id: str):
    report = SessionReport.from_simulator(_require_session(session_id))
    transcript_store.save(report)
    logger.info("Exported transcript for %s", session_id)
    return {"status": "saved", "session_id": session_id}


@app.get("/api/transcripts")
def list_transcripts():
    return transcript_store.list_ids()


@app.get("/api/transcripts/{session_id}")
def get_transcript(session_id: str):
    report = transcript_store.load(session_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Transcript not found")
    return report.to_dict()


# --- Replay ---

@app.post("/api/replay", response_model=ReplayResponse)
def replay_session(request: ReplayRequest):
    try:
        messages = replay(request.prompts, _options_from_request(request), chaos=request.chaos)
    except InvalidRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ReplayResponse(session_id=session_id_for(request.seed), messages=messages)


# --- Module health ---

@app.get("/api/modules")
def list_modules():
    return [
        ModuleStatusResponse(module_id=module_id, state=state).model_dump()
        for module_id, state in health_board.snapshot().items()
    ]


@app.get("/api/modules/{module_id}", response_model=ModuleStatusResponse)
def get_module(module_id: str):
    state = health_board.get(module_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Unknown module; expected one of {', '.join(MODULE_IDS)}")
    return ModuleStatusResponse(module_id=module_id, state=state)


@app.post("/api/modules/{module_id}/events", response_model=ModuleStatusResponse)
def dispatch_module_event(module_id: str, request: ModuleEventRequest):
    if health_board.get(module_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown module; expected one of {', '.join(MODULE_IDS)}")
    state = health_board.dispatch(module_id, request.to_event())
    return ModuleStatusResponse(module_id=module_id, state=state)
