"""Deterministic message-orchestration simulator.

The simulator owns an append-only log of conversation messages. Every user
prompt spawns one assistant message in the ``executing`` state whose latency
and outcome are drawn from the seeded generator up front, then resolved later
by a scheduler timer. Replaying the same seed against the same prompts gives
the same delays and the same outcomes.
"""

from __future__ import annotations

import itertools
import logging
from functools import partial

from . import content
from .clock import AsyncioScheduler, Scheduler, TimerHandle, default_seed
from .failures import OutcomePolicy
from .rng import MASK_32, Mulberry32, random_int
from .state import Message, Role, SimulatorOptions, Status

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def session_id_for(seed: int) -> str:
    """Human-readable session identifier derived only from the seed."""
    return f"sess-{_to_base36(seed & MASK_32)}"


class Simulator:
    """Session-scoped message log with simulated asynchronous resolution."""

    def __init__(
        self,
        options: SimulatorOptions | None = None,
        scheduler: Scheduler | None = None,
    ):
        options = options or SimulatorOptions()
        seed = options.seed if options.seed is not None else default_seed()
        self.options = options.model_copy(update={"seed": seed})
        self.scheduler = scheduler or AsyncioScheduler()
        self.session_id = session_id_for(seed)

        self._rng = Mulberry32(seed)
        self._policy = OutcomePolicy(warning_pct=options.warning_pct, error_pct=options.error_pct)
        self._messages: list[Message] = []
        self._chaos_mode = False
        self._sequence = itertools.count(1)
        # message id -> timer that will resolve it
        self._timers: dict[str, TimerHandle] = {}

        self.push_system(content.session_started(self.session_id))
        logger.debug("Simulator %s created (seed=%d)", self.session_id, seed)

    @property
    def seed(self) -> int:
        return self.options.seed

    @property
    def chaos_mode(self) -> bool:
        return self._chaos_mode

    @property
    def pending_resolutions(self) -> int:
        return len(self._timers)

    def get_session_id(self) -> str:
        return self.session_id

    def get_messages(self) -> list[Message]:
        """Snapshot of the log in insertion order; callers may mutate it freely."""
        return [message.model_copy() for message in self._messages]

    # ------------------------------------------------------------------
    # Appends
    # ------------------------------------------------------------------

    def push_system(self, text: str) -> Message:
        """Append an already-terminal system message."""
        now = self.scheduler.now()
        return self._append(self._next_id("m", now), "system", text, "success", now, now)

    def send_user(self, text: str) -> Message:
        """Append a user prompt and an executing assistant reply.

        The reply's delay and outcome sample are drawn and its timer is set
        before anything is appended, so an invalid delay range
        (``InvalidRangeError``) or a scheduler error leaves the log untouched.
        Returns a copy of the assistant message.
        """
        delay = random_int(self._rng, self.options.base_delay_min, self.options.base_delay_max)
        sample = self._rng.next()

        now = self.scheduler.now()
        user_id = self._next_id("u", now)
        assistant_id = self._next_id("a", now)

        # a scheduler failure must not leave an executing message without a timer
        self._schedule(assistant_id, delay, partial(self._resolve, assistant_id, text, sample))
        self._append(user_id, "user", text, "success", now, now)
        assistant = self._append(assistant_id, "assistant", content.ASSISTANT_PLACEHOLDER, "executing", now)
        logger.debug("Scheduled resolution of %s in %dms", assistant_id, delay)
        return assistant

    def inject_error(self) -> Message:
        """Append an assistant message that is already in the error state."""
        now = self.scheduler.now()
        return self._append(self._next_id("a", now), "assistant", content.INJECTED_ERROR, "error", now, now)

    def simulate_long_running(self) -> Message:
        """Append an executing assistant message that succeeds after a long fixed delay."""
        now = self.scheduler.now()
        message_id = self._next_id("a", now)
        self._schedule(
            message_id,
            self.options.long_running_delay_ms,
            partial(self._finish_long_running, message_id),
        )
        return self._append(message_id, "assistant", content.LONG_TASK_STARTED, "executing", now)

    # ------------------------------------------------------------------
    # Session controls
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Drop the whole log and start over with a restart notice.

        The generator, session id and chaos flag are kept.
        """
        self.cancel_pending()
        self._messages = []
        self.push_system(content.session_restarted(self.session_id))
        logger.info("Session %s cleared", self.session_id)

    def cancel_pending(self) -> int:
        """Cancel every outstanding timer without touching the log."""
        cancelled = len(self._timers)
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        return cancelled

    def toggle_chaos_mode(self) -> bool:
        self._chaos_mode = not self._chaos_mode
        self.push_system(content.chaos_toggled(self._chaos_mode))
        logger.info(
            "Chaos mode %s for %s",
            "enabled" if self._chaos_mode else "disabled",
            self.session_id,
        )
        return self._chaos_mode

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_id(self, prefix: str, started_at: int) -> str:
        return f"{prefix}-{started_at}-{next(self._sequence)}"

    def _append(
        self,
        message_id: str,
        role: Role,
        text: str,
        status: Status,
        started_at: int,
        finished_at: int | None = None,
    ) -> Message:
        message = Message(
            id=message_id,
            role=role,
            content=text,
            status=status,
            started_at=started_at,
            finished_at=finished_at,
        )
        self._messages.append(message)
        return message.model_copy()

    def _schedule(self, message_id: str, delay_ms: int, callback) -> None:
        self._timers[message_id] = self.scheduler.schedule(delay_ms, callback)

    def _index_of(self, message_id: str) -> int | None:
        for idx, message in enumerate(self._messages):
            if message.id == message_id:
                return idx
        return None

    def _complete(self, message_id: str, text: str, status: Status) -> bool:
        self._timers.pop(message_id, None)
        idx = self._index_of(message_id)
        if idx is None:
            # cleared while the timer was pending
            logger.debug("Dropping stale resolution for %s", message_id)
            return False
        self._messages[idx] = self._messages[idx].model_copy(
            update={"content": text, "status": status, "finished_at": self.scheduler.now()}
        )
        return True

    def _resolve(self, message_id: str, prompt: str, sample: float) -> None:
        # chaos is read now, not when the timer was set
        status = self._policy.classify(sample, self._chaos_mode)
        text = content.assistant_reply(status, prompt, seed=self.seed, sample=sample)
        if self._complete(message_id, text, status):
            logger.debug("Resolved %s as %s", message_id, status)

    def _finish_long_running(self, message_id: str) -> None:
        self._complete(message_id, content.LONG_TASK_FINISHED, "success")
