"""
Tests for delivery slot ranking.

Scores are points out of 100: day 40, time 30, fee 20, remaining capacity 10.
"""
import pytest

from core.domain.entities import DeliverySlot, SlotPreferences
from core.domain.enums import RemainingCapacity
from core.domain.services import rank_slots, score_slot, time_to_minutes


def _slot(slot_id: str, day: str = "saturday", start: str = "11:00", end: str = "13:00",
          fee: float = 0.0, date: str = "2026-10-24", **kwargs) -> DeliverySlot:
    return DeliverySlot(
        slot_id=slot_id,
        date=date,
        day_of_week=day,
        time_start=start,
        time_end=end,
        fee=fee,
        available=kwargs.pop("available", True),
        is_free=kwargs.pop("is_free", fee == 0),
        **kwargs,
    )


class TestScoreSlot:
    """Test single-slot scoring."""

    def test_ideal_slot_scores_full_marks(self):
        slot = _slot("s-1", remaining_capacity=RemainingCapacity.HIGH)

        scored = score_slot(slot, SlotPreferences())

        assert scored.score == pytest.approx(100.0)
        assert scored.reason == "Preferred day (saturday), Preferred time, Free delivery"

    def test_non_preferred_day_gets_half(self):
        scored = score_slot(_slot("s-1", day="tuesday"), SlotPreferences())

        assert scored.score_breakdown.day_score == pytest.approx(20.0)
        assert "Preferred day" not in scored.reason

    def test_day_match_ignores_case(self):
        scored = score_slot(_slot("s-1", day="Saturday"), SlotPreferences())

        assert scored.score_breakdown.day_score == pytest.approx(40.0)

    def test_time_decays_over_six_hours(self):
        prefs = SlotPreferences()

        two_hours = score_slot(_slot("s-1", start="09:00", end="11:00"), prefs)
        far_away = score_slot(_slot("s-2", start="19:00", end="21:00"), prefs)

        assert two_hours.score_breakdown.time_score == pytest.approx(20.0)
        assert far_away.score_breakdown.time_score == 0.0

    def test_fee_relative_to_max(self):
        scored = score_slot(_slot("s-1", fee=4.00), SlotPreferences(max_fee=8.00))

        assert scored.score_breakdown.fee_score == pytest.approx(10.0)
        assert "Free delivery" not in scored.reason

    def test_cheap_fee_is_mentioned(self):
        scored = score_slot(_slot("s-1", fee=0.99), SlotPreferences(max_fee=7.99))

        assert "Low fee (0.99 EUR)" in scored.reason

    def test_fee_above_max_scores_zero(self):
        scored = score_slot(_slot("s-1", fee=9.99), SlotPreferences(max_fee=7.99))

        assert scored.score_breakdown.fee_score == 0.0

    def test_zero_max_fee(self):
        scored = score_slot(_slot("s-1", fee=1.00), SlotPreferences(max_fee=0.0))

        assert scored.score_breakdown.fee_score == 0.0

    @pytest.mark.parametrize(
        "capacity,points",
        [
            (RemainingCapacity.HIGH, 10.0),
            (RemainingCapacity.MEDIUM, 7.0),
            (RemainingCapacity.LOW, 4.0),
            (None, 8.0),
        ],
    )
    def test_capacity_points(self, capacity, points):
        scored = score_slot(_slot("s-1", remaining_capacity=capacity), SlotPreferences())

        assert scored.score_breakdown.availability_score == pytest.approx(points)


class TestRankSlots:
    """Test ranking and the distinguished picks."""

    def test_unavailable_slots_are_dropped(self):
        slots = [_slot("s-1", available=False), _slot("s-2")]

        recommendation = rank_slots(slots, SlotPreferences())

        assert [s.slot.slot_id for s in recommendation.all_slots] == ["s-2"]

    def test_no_available_slots(self):
        recommendation = rank_slots([_slot("s-1", available=False)], SlotPreferences())

        assert recommendation.recommended == []
        assert recommendation.cheapest_slot is None
        assert recommendation.soonest_slot is None
        assert recommendation.best_free_slot is None

    def test_top_three_recommended(self):
        slots = [
            _slot("s-1", day="monday", fee=5.0),
            _slot("s-2"),
            _slot("s-3", day="sunday", fee=1.0),
            _slot("s-4", day="tuesday", start="19:00", end="21:00", fee=6.0),
        ]

        recommendation = rank_slots(slots, SlotPreferences())

        assert [s.slot.slot_id for s in recommendation.recommended] == ["s-2", "s-3", "s-1"]
        assert len(recommendation.all_slots) == 4

    def test_picks_are_chosen_directly(self):
        slots = [
            _slot("late-cheap", day="monday", date="2026-10-26", fee=0.5, is_free=False),
            _slot("early", day="friday", date="2026-10-23", start="18:00", end="20:00", fee=4.0),
            _slot("earlier-same-day", day="friday", date="2026-10-23", start="08:00", end="10:00", fee=6.0),
            _slot("free", day="sunday", date="2026-10-25", fee=0.0),
        ]

        recommendation = rank_slots(slots, SlotPreferences())

        assert recommendation.cheapest_slot.slot.slot_id == "free"
        assert recommendation.soonest_slot.slot.slot_id == "earlier-same-day"
        assert recommendation.best_free_slot.slot.slot_id == "free"

    def test_no_free_slot(self):
        recommendation = rank_slots([_slot("s-1", fee=2.0)], SlotPreferences())

        assert recommendation.best_free_slot is None
        assert recommendation.cheapest_slot.slot.slot_id == "s-1"

    def test_custom_preferences_change_order(self):
        slots = [_slot("weekend"), _slot("weekday", day="wednesday", start="18:00", end="20:00")]
        prefs = SlotPreferences(preferred_days=("wednesday",), preferred_time_start="18:00",
                                preferred_time_end="20:00")

        recommendation = rank_slots(slots, prefs)

        assert recommendation.recommended[0].slot.slot_id == "weekday"


class TestTimeToMinutes:
    """Test time parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [("00:00", 0), ("09:30", 570), ("18:00", 1080), ("7", 420), ("", 0), ("ab:cd", 0)],
    )
    def test_parse(self, value, expected):
        assert time_to_minutes(value) == expected
