"""Session summary model with markdown rendering."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from ..simulator import Message, Simulator

ConsoleStatus = Literal["Online", "Executing", "Degraded"]


def derive_console_status(messages: list[Message]) -> ConsoleStatus:
    """Coarse console status: any executing wins, then any error."""
    if any(m.status == "executing" for m in messages):
        return "Executing"
    if any(m.status == "error" for m in messages):
        return "Degraded"
    return "Online"


class SessionReport(BaseModel):
    """Point-in-time summary of a simulator session."""

    session_id: str
    seed: int
    chaos_mode: bool
    console_status: ConsoleStatus
    status_counts: dict[str, int] = {}
    role_counts: dict[str, int] = {}
    messages: list[Message] = []
    generated_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def from_simulator(cls, simulator: Simulator) -> "SessionReport":
        messages = simulator.get_messages()
        status_counts: dict[str, int] = {}
        role_counts: dict[str, int] = {}
        for message in messages:
            status_counts[message.status] = status_counts.get(message.status, 0) + 1
            role_counts[message.role] = role_counts.get(message.role, 0) + 1

        return cls(
            session_id=simulator.session_id,
            seed=simulator.seed,
            chaos_mode=simulator.chaos_mode,
            console_status=derive_console_status(messages),
            status_counts=status_counts,
            role_counts=role_counts,
            messages=messages,
        )

    def to_markdown(self) -> str:
        lines = [
            f"# Session Report: {self.session_id}",
            "",
            f"**Seed:** `{self.seed}`",
            f"**Status:** {self.console_status}",
            f"**Chaos mode:** {'on' if self.chaos_mode else 'off'}",
            f"**Messages:** {len(self.messages)}",
            "",
        ]

        if self.status_counts:
            lines.append("## Outcomes")
            for status, count in sorted(self.status_counts.items()):
                lines.append(f"- {status}: {count}")
            lines.append("")

        lines.append("## Transcript")
        lines.append("")
        lines.append("| # | Role | Status | Started | Finished | Content |")
        lines.append("|---|------|--------|---------|----------|---------|")

        for i, message in enumerate(self.messages, 1):
            # keep each row on one line
            first_line = message.content.splitlines()[0] if message.content else ""
            first_line = first_line.replace("|", "\\|")
            finished = message.finished_at if message.finished_at is not None else "-"
            lines.append(
                f"| {i} | {message.role} | {message.status} | {message.started_at} | {finished} | {first_line} |"
            )

        return "\n".join(lines)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
