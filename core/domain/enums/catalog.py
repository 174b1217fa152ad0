"""
Catalog Enums.

Availability, reorder and proposal values shared by cart, order and slot
entities.
"""
from enum import Enum


class ItemAvailability(str, Enum):
    """Live availability of a product or cart line."""

    AVAILABLE = "available"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"
    UNKNOWN = "unknown"


class ReorderMode(str, Enum):
    """How a past order is replayed onto the live cart."""

    REPLACE = "replace"  # clear the cart, then add
    MERGE = "merge"      # add without clearing


class UserAction(str, Enum):
    """Human decision on a substitution proposal."""

    PENDING = "pending"
    ACCEPT = "accept"
    REJECT = "reject"


class RemainingCapacity(str, Enum):
    """Capacity tier reported for a delivery slot."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
