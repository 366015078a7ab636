"""Fixed text used for system notices and resolved assistant replies."""

from .state import Status

ASSISTANT_PLACEHOLDER = "…"
INJECTED_ERROR = "ERROR: injected error via control"
LONG_TASK_STARTED = "Long running task started"
LONG_TASK_FINISHED = "Long task finished (simulated)"


def session_started(session_id: str) -> str:
    return f"Session started: {session_id}"


def session_restarted(session_id: str) -> str:
    return f"Session restarted: {session_id}"


def chaos_toggled(enabled: bool) -> str:
    return f"Chaos mode {'enabled' if enabled else 'disabled'}"


def trace_id(sample: float) -> str:
    """Hex diagnostic trace derived from the outcome sample."""
    return format(int(sample * 1e9), "x")


def assistant_reply(status: Status, prompt: str, *, seed: int, sample: float) -> str:
    """Render the resolved assistant content for an outcome."""
    if status == "success":
        return "\n".join(
            [
                f'Result: simulated OK for: "{prompt}"',
                "",
                "- exec: completed",
                "- duration: simulated",
                "",
                f"(Deterministic seed: {seed})",
            ]
        )
    if status == "warning":
        return "\n".join(
            [
                f'Warning: non-fatal issue while processing: "{prompt}"',
                "",
                "- code: WARN_42",
                "- note: degraded performance expected; retry recommended",
            ]
        )
    return "\n".join(
        [
            f'ERROR: failed to execute orchestration step for: "{prompt}"',
            "",
            "--- DIAGNOSTIC ---",
            "- stage: runtime.dispatch",
            f"- trace: 0x{trace_id(sample)}",
            "- suggestion: inspect upstream connector and retry",
            "--- END ---",
        ]
    )
