"""Deterministic replay of a prompt sequence on virtual time."""

from __future__ import annotations

from collections.abc import Iterable

from ..simulator import ManualScheduler, Message, SimulatorOptions, create_simulator


def replay(
    prompts: Iterable[str],
    options: SimulatorOptions | None = None,
    *,
    chaos: bool = False,
) -> list[Message]:
    """Send every prompt, let all timers fire, and return the final log.

    All prompts are sent at virtual time 0, so two replays with the same seed,
    prompts and options return identical snapshots.
    """
    scheduler = ManualScheduler()
    simulator = create_simulator(options, scheduler)
    if chaos:
        simulator.toggle_chaos_mode()
    for prompt in prompts:
        simulator.send_user(prompt)
    scheduler.run_all()
    return simulator.get_messages()
