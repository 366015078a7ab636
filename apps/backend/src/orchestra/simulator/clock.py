"""Clocks and timer scheduling for simulated latency.

Resolution timers go through a small ``Scheduler`` interface instead of the
event loop directly. Production code uses :class:`AsyncioScheduler`; tests and
deterministic replays use :class:`ManualScheduler`, which only moves time when
told to.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from typing import Callable, Optional, Protocol

SEED_MODULUS = 2**31

Callback = Callable[[], None]


def now_ms() -> int:
    """Wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def default_seed() -> int:
    """Time-derived seed truncated to the 31-bit unsigned range."""
    return now_ms() % SEED_MODULUS


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Source of time plus a fire-and-forget ``sleep then run`` primitive."""

    def now(self) -> int: ...

    def schedule(self, delay_ms: int, callback: Callback) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop.

    When no loop is given, the loop running at scheduling time is used, so
    ``schedule`` must be called from inside a coroutine or loop callback.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def now(self) -> int:
        return now_ms()

    def schedule(self, delay_ms: int, callback: Callback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000.0, callback)


class ManualTimer:
    """Handle returned by :class:`ManualScheduler`."""

    def __init__(self, due: int, callback: Callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler; nothing runs until ``advance`` or ``run_all``."""

    def __init__(self, start: int = 0):
        self._now = start
        self._queue: list[tuple[int, int, ManualTimer]] = []
        self._counter = itertools.count()

    def now(self) -> int:
        return self._now

    def schedule(self, delay_ms: int, callback: Callback) -> ManualTimer:
        timer = ManualTimer(self._now + max(0, delay_ms), callback)
        heapq.heappush(self._queue, (timer.due, next(self._counter), timer))
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def advance(self, delay_ms: int) -> int:
        """Move the clock forward, running every timer that falls due.

        Timers run in due-time order (ties in scheduling order) with the clock
        set to each timer's due time. Returns the number of callbacks run.
        """
        target = self._now + delay_ms
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = due
            timer.fired = True
            timer.callback()
            ran += 1
        self._now = target
        return ran

    def run_all(self) -> int:
        """Drain every pending timer, including ones scheduled while draining."""
        ran = 0
        while self._queue:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = max(self._now, due)
            timer.fired = True
            timer.callback()
            ran += 1
        return ran
