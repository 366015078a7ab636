"""Command palette actions that can be run against a session."""

from __future__ import annotations

from pydantic import BaseModel

from ..simulator import Simulator

INJECTED_SYSTEM_MESSAGE = "Injected system message via palette"


class Command(BaseModel):
    id: str
    label: str


COMMANDS: list[Command] = [
    Command(id="clear", label="Clear session"),
    Command(id="inject", label="Inject system message"),
    Command(id="chaos", label="Toggle chaos mode"),
]


class UnknownCommandError(Exception):
    def __init__(self, command_id: str):
        self.command_id = command_id
        super().__init__(f"Unknown command: {command_id}")


def filter_commands(query: str = "") -> list[Command]:
    """Commands whose label contains ``query``, ignoring case."""
    needle = query.lower()
    return [command for command in COMMANDS if needle in command.label.lower()]


def run_command(simulator: Simulator, command_id: str) -> None:
    if command_id == "clear":
        simulator.clear()
    elif command_id == "inject":
        simulator.push_system(INJECTED_SYSTEM_MESSAGE)
    elif command_id == "chaos":
        simulator.toggle_chaos_mode()
    else:
        raise UnknownCommandError(command_id)
