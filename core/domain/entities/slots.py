"""
Delivery slot entities.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- redis
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..enums import RemainingCapacity

MAX_ACCEPTABLE_FEE = 7.99


@dataclass
class DeliverySlot:
    """A delivery window offered by the shop."""
    slot_id: str
    date: str          # YYYY-MM-DD
    day_of_week: str   # lowercase english day name
    time_start: str    # HH:MM
    time_end: str      # HH:MM
    fee: float
    available: bool
    is_free: bool = False
    remaining_capacity: Optional[RemainingCapacity] = None


@dataclass(frozen=True)
class SlotPreferences:
    """Shopper's delivery preferences (read from the preference store)."""
    preferred_days: Tuple[str, ...] = ("saturday", "sunday")
    preferred_time_start: str = "10:00"
    preferred_time_end: str = "14:00"
    max_fee: float = MAX_ACCEPTABLE_FEE


@dataclass(frozen=True)
class SlotScoreBreakdown:
    """Points awarded per criterion (sum is the 0-100 composite)."""
    day_score: float
    time_score: float
    fee_score: float
    availability_score: float


@dataclass
class ScoredSlot:
    slot: DeliverySlot
    score: float
    score_breakdown: SlotScoreBreakdown
    reason: str


@dataclass
class SlotRecommendation:
    """Ranked slots plus independently chosen picks."""
    recommended: List[ScoredSlot] = field(default_factory=list)
    all_slots: List[ScoredSlot] = field(default_factory=list)
    best_free_slot: Optional[ScoredSlot] = None
    cheapest_slot: Optional[ScoredSlot] = None
    soonest_slot: Optional[ScoredSlot] = None
