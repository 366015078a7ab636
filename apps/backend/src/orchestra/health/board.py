"""Health state for the console's monitored kernel modules."""

from __future__ import annotations

import logging
from typing import Literal, get_args

from .machine import MachineEvent, ModuleState, module_reducer

logger = logging.getLogger(__name__)

ModuleId = Literal["EXECUTION_KERNEL", "COMPLIANCE_ENGINE", "FORENSICS_SERVICE"]
MODULE_IDS: tuple[str, ...] = get_args(ModuleId)


class HealthBoard:
    """Keeps one ``ModuleState`` per module, all starting at OK."""

    def __init__(self) -> None:
        self._states: dict[str, ModuleState] = {module_id: ModuleState() for module_id in MODULE_IDS}

    def get(self, module_id: str) -> ModuleState | None:
        return self._states.get(module_id)

    def snapshot(self) -> dict[str, ModuleState]:
        return dict(self._states)

    def dispatch(self, module_id: str, event: MachineEvent) -> ModuleState:
        """Run ``event`` through the reducer for ``module_id`` and store the result."""
        if module_id not in self._states:
            raise KeyError(module_id)

        previous = self._states[module_id]
        current = module_reducer(previous, event)
        self._states[module_id] = current

        if current.status != previous.status:
            level = logging.WARNING if current.status == "ERROR" else logging.INFO
            logger.log(level, "%s: %s -> %s (%s)", module_id, previous.status, current.status, event.type)
        return current
