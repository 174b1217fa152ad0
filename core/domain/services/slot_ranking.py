"""
Slot ranking.

Pure scoring of delivery slots against shopper preferences on a 0-100
scale: day 40, time 30, fee 20, remaining capacity 10.
"""
from typing import Dict, List, Optional, Sequence

from ..entities import (
    DeliverySlot,
    ScoredSlot,
    SlotPreferences,
    SlotRecommendation,
    SlotScoreBreakdown,
)
from ..enums import RemainingCapacity

DAY_POINTS = 40
TIME_POINTS = 30
FEE_POINTS = 20
CAPACITY_POINTS = 10

NON_PREFERRED_DAY_RATIO = 0.5
TIME_DECAY_HOURS = 6
RECOMMENDED_COUNT = 3

CAPACITY_RATIOS: Dict[Optional[RemainingCapacity], float] = {
    RemainingCapacity.HIGH: 1.0,
    RemainingCapacity.MEDIUM: 0.7,
    RemainingCapacity.LOW: 0.4,
    None: 0.8,
}


def time_to_minutes(value: str) -> int:
    """Convert ``HH:MM`` to minutes since midnight (missing parts count as 0)."""
    parts = (value or "").split(":")
    try:
        hours = int(parts[0]) if parts[0] else 0
        minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError:
        return 0
    return hours * 60 + minutes


def _day_ratio(slot: DeliverySlot, prefs: SlotPreferences) -> float:
    preferred = {day.lower() for day in prefs.preferred_days}
    return 1.0 if slot.day_of_week.lower() in preferred else NON_PREFERRED_DAY_RATIO


def _time_ratio(slot: DeliverySlot, prefs: SlotPreferences) -> float:
    start = time_to_minutes(slot.time_start)
    end = time_to_minutes(slot.time_end)
    slot_mid = start + (end - start) / 2
    pref_mid = (
        time_to_minutes(prefs.preferred_time_start) + time_to_minutes(prefs.preferred_time_end)
    ) / 2
    hours_apart = abs(slot_mid - pref_mid) / 60
    return max(0.0, 1.0 - hours_apart / TIME_DECAY_HOURS)


def _fee_ratio(slot: DeliverySlot, prefs: SlotPreferences) -> float:
    if slot.is_free:
        return 1.0
    if prefs.max_fee <= 0:
        return 0.0
    return max(0.0, 1.0 - slot.fee / prefs.max_fee)


def score_slot(slot: DeliverySlot, prefs: SlotPreferences) -> ScoredSlot:
    """Score one slot."""
    day = _day_ratio(slot, prefs)
    time_ratio = _time_ratio(slot, prefs)
    fee = _fee_ratio(slot, prefs)
    capacity = CAPACITY_RATIOS.get(slot.remaining_capacity, CAPACITY_RATIOS[None])

    breakdown = SlotScoreBreakdown(
        day_score=day * DAY_POINTS,
        time_score=time_ratio * TIME_POINTS,
        fee_score=fee * FEE_POINTS,
        availability_score=capacity * CAPACITY_POINTS,
    )

    reasons: List[str] = []
    if day == 1.0:
        reasons.append(f"Preferred day ({slot.day_of_week})")
    if time_ratio > 0.8:
        reasons.append("Preferred time")
    if slot.is_free:
        reasons.append("Free delivery")
    elif fee > 0.8:
        reasons.append(f"Low fee ({slot.fee:.2f} EUR)")

    return ScoredSlot(
        slot=slot,
        score=(
            breakdown.day_score
            + breakdown.time_score
            + breakdown.fee_score
            + breakdown.availability_score
        ),
        score_breakdown=breakdown,
        reason=", ".join(reasons) or "Available slot",
    )


def rank_slots(slots: Sequence[DeliverySlot], prefs: SlotPreferences) -> SlotRecommendation:
    """
    Rank available slots and pick the cheapest, soonest and best free ones.

    The distinguished picks are chosen by direct comparison, not by score.
    """
    scored = [score_slot(slot, prefs) for slot in slots if slot.available]
    scored.sort(key=lambda s: s.score, reverse=True)

    if not scored:
        return SlotRecommendation()

    cheapest = min(scored, key=lambda s: s.slot.fee)
    soonest = min(scored, key=lambda s: (s.slot.date, time_to_minutes(s.slot.time_start)))
    best_free = next((s for s in scored if s.slot.is_free), None)

    return SlotRecommendation(
        recommended=scored[:RECOMMENDED_COUNT],
        all_slots=scored,
        best_free_slot=best_free,
        cheapest_slot=cheapest,
        soonest_slot=soonest,
    )
