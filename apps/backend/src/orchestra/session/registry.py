"""In-memory registry of live simulator sessions."""

from __future__ import annotations

import logging

from ..simulator import Scheduler, Simulator, SimulatorOptions, create_simulator, session_id_for

logger = logging.getLogger(__name__)


class SessionExistsError(Exception):
    """Raised when a session id derived from a seed is already live."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} already exists")


class SessionRegistry:
    """Maps session ids to their simulator for the lifetime of the process."""

    def __init__(self) -> None:
        self._sessions: dict[str, Simulator] = {}

    def create(
        self,
        options: SimulatorOptions | None = None,
        scheduler: Scheduler | None = None,
    ) -> Simulator:
        options = options or SimulatorOptions()
        if options.seed is not None and session_id_for(options.seed) in self._sessions:
            raise SessionExistsError(session_id_for(options.seed))

        simulator = create_simulator(options, scheduler)
        if simulator.session_id in self._sessions:
            raise SessionExistsError(simulator.session_id)

        self._sessions[simulator.session_id] = simulator
        logger.info("Session %s started (seed=%d)", simulator.session_id, simulator.seed)
        return simulator

    def get(self, session_id: str) -> Simulator | None:
        return self._sessions.get(session_id)

    def list_ids(self) -> list[str]:
        return list(self._sessions)

    def remove(self, session_id: str) -> bool:
        simulator = self._sessions.pop(session_id, None)
        if simulator is None:
            return False
        simulator.cancel_pending()
        logger.info("Session %s removed", session_id)
        return True
