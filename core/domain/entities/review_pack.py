"""
Review pack entity.

The durable, human-reviewable summary produced by a successful run.
Checkout is always completed manually by the shopper.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .cart import CartDiff, CartItem, SubstitutionProposal
from .orders import OrderSummary
from .slots import SlotRecommendation


@dataclass
class ReviewStats:
    total_items: int = 0
    unavailable_items: int = 0
    substitutes_proposed: int = 0
    slots_found: int = 0
    execution_time_ms: int = 0


@dataclass
class ReviewPack:
    run_id: str
    generated_at: datetime
    original_order: Optional[OrderSummary] = None
    cart_items: List[CartItem] = field(default_factory=list)
    cart_diff: Optional[CartDiff] = None
    diff_summary: str = ""
    substitutions: List[SubstitutionProposal] = field(default_factory=list)
    slot_recommendation: Optional[SlotRecommendation] = None
    stats: ReviewStats = field(default_factory=ReviewStats)
