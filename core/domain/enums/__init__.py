"""Domain enums."""

from .catalog import ItemAvailability, RemainingCapacity, ReorderMode, UserAction
from .run_status import (
    PHASE_ORDER,
    CartStep,
    RunPhase,
    RunStatus,
    SlotsStep,
    SubstitutionStep,
)

__all__ = [
    "PHASE_ORDER",
    "CartStep",
    "ItemAvailability",
    "RemainingCapacity",
    "ReorderMode",
    "RunPhase",
    "RunStatus",
    "SlotsStep",
    "SubstitutionStep",
    "UserAction",
]
