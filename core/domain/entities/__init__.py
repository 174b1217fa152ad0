"""Domain entities."""

from .cart import (
    CartDiff,
    CartDiffSummary,
    CartItem,
    PriceChange,
    ProductInfo,
    QuantityChange,
    SubstituteScoreBreakdown,
    SubstitutionProposal,
)
from .orders import OrderDetail, OrderItem, OrderSummary
from .review_pack import ReviewPack, ReviewStats
from .session import LoginState, TargetInfo
from .slots import (
    MAX_ACCEPTABLE_FEE,
    DeliverySlot,
    ScoredSlot,
    SlotPreferences,
    SlotRecommendation,
    SlotScoreBreakdown,
)

__all__ = [
    "MAX_ACCEPTABLE_FEE",
    "CartDiff",
    "CartDiffSummary",
    "CartItem",
    "DeliverySlot",
    "LoginState",
    "OrderDetail",
    "OrderItem",
    "OrderSummary",
    "PriceChange",
    "ProductInfo",
    "QuantityChange",
    "ReviewPack",
    "ReviewStats",
    "ScoredSlot",
    "SlotPreferences",
    "SlotRecommendation",
    "SlotScoreBreakdown",
    "SubstituteScoreBreakdown",
    "SubstitutionProposal",
    "TargetInfo",
]
