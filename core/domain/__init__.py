"""Domain layer - pure domain models and services."""

from .entities import CartItem, DeliverySlot, OrderItem, OrderSummary, ReviewPack
from .enums import RunPhase, RunStatus
from .value_objects import RunID

__all__ = [
    "CartItem",
    "DeliverySlot",
    "OrderItem",
    "OrderSummary",
    "ReviewPack",
    "RunID",
    "RunPhase",
    "RunStatus",
]
