from .board import MODULE_IDS, HealthBoard, ModuleId
from .machine import CriticalFault, Degrade, MachineEvent, ModuleState, Recover, module_reducer

__all__ = [
    "MODULE_IDS",
    "CriticalFault",
    "Degrade",
    "HealthBoard",
    "MachineEvent",
    "ModuleId",
    "ModuleState",
    "Recover",
    "module_reducer",
]
