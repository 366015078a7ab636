"""Session management: registry, reporting, transcripts, palette commands and replay."""

from .commands import COMMANDS, Command, UnknownCommandError, filter_commands, run_command
from .registry import SessionExistsError, SessionRegistry
from .replay import replay
from .report import SessionReport, derive_console_status
from .store import TranscriptStore

__all__ = [
    "COMMANDS",
    "Command",
    "SessionExistsError",
    "SessionRegistry",
    "SessionReport",
    "TranscriptStore",
    "UnknownCommandError",
    "derive_console_status",
    "filter_commands",
    "replay",
    "run_command",
]
