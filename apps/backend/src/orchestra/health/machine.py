"""Finite-state reducer for a monitored module's coarse health."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

ModuleStatus = Literal["OK", "DEGRADED", "ERROR"]


class ModuleState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ModuleStatus = "OK"


class Degrade(BaseModel):
    type: Literal["DEGRADE"] = "DEGRADE"


class Recover(BaseModel):
    type: Literal["RECOVER"] = "RECOVER"


class CriticalFault(BaseModel):
    type: Literal["CRITICAL_FAULT"] = "CRITICAL_FAULT"


MachineEvent = Annotated[Union[Degrade, Recover, CriticalFault], Field(discriminator="type")]


def module_reducer(state: ModuleState, event: MachineEvent) -> ModuleState:
    """Apply one event. Total and side-effect free.

    DEGRADE never overrides an ERROR; RECOVER and CRITICAL_FAULT apply from
    any state. Anything else returns ``state`` unchanged.
    """
    event_type = getattr(event, "type", None)
    if event_type == "DEGRADE":
        if state.status == "ERROR":
            return state
        return ModuleState(status="DEGRADED")
    if event_type == "RECOVER":
        return ModuleState(status="OK")
    if event_type == "CRITICAL_FAULT":
        return ModuleState(status="ERROR")
    return state
