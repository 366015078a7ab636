"""Deterministic orchestration simulator: seeded RNG, scheduling and message log."""

from .clock import AsyncioScheduler, ManualScheduler, Scheduler
from .engine import Simulator, session_id_for
from .rng import InvalidRangeError, Mulberry32, random_int
from .state import Message, SimulatorOptions


def create_simulator(
    options: SimulatorOptions | None = None,
    scheduler: Scheduler | None = None,
) -> Simulator:
    """Create a fresh simulator, seeded from the options or from the clock."""
    return Simulator(options=options, scheduler=scheduler)


__all__ = [
    "AsyncioScheduler",
    "InvalidRangeError",
    "ManualScheduler",
    "Message",
    "Mulberry32",
    "Scheduler",
    "Simulator",
    "SimulatorOptions",
    "create_simulator",
    "random_int",
    "session_id_for",
]
