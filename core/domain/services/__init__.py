"""Pure domain services: ranking heuristics and cart diff."""

from .cart_diff import (
    calculate_cart_diff,
    generate_diff_summary,
    has_changes,
    requires_user_attention,
)
from .slot_ranking import rank_slots, score_slot, time_to_minutes
from .substitute_ranking import RankedSubstitute, rank_substitutes, score_substitute

__all__ = [
    "RankedSubstitute",
    "calculate_cart_diff",
    "generate_diff_summary",
    "has_changes",
    "rank_slots",
    "rank_substitutes",
    "requires_user_attention",
    "score_slot",
    "score_substitute",
    "time_to_minutes",
]
