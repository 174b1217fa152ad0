"""
Cart entities.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- redis
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..enums import ItemAvailability, UserAction


@dataclass
class CartItem:
    """A line in the live cart, as last scanned by the page agent."""
    product_id: str
    name: str
    price: float
    quantity: int
    availability: ItemAvailability = ItemAvailability.UNKNOWN
    brand: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def is_unavailable(self) -> bool:
        return self.availability == ItemAvailability.OUT_OF_STOCK

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


@dataclass
class ProductInfo:
    """A product returned by a catalog search."""
    product_id: str
    name: str
    price: float
    availability: ItemAvailability = ItemAvailability.UNKNOWN
    brand: Optional[str] = None
    category_path: List[str] = field(default_factory=list)
    rating: Optional[float] = None
    url: Optional[str] = None
    unit: Optional[str] = None

    @property
    def is_purchasable(self) -> bool:
        return self.availability in (ItemAvailability.AVAILABLE, ItemAvailability.LOW_STOCK)


@dataclass(frozen=True)
class SubstituteScoreBreakdown:
    """Sub-scores (each 0..1) behind a substitute's composite score."""
    price_score: float
    brand_score: float
    category_score: float
    rating_score: float


@dataclass
class SubstitutionProposal:
    """A proposed replacement for an unavailable cart item."""
    original_item: CartItem
    substitute: ProductInfo
    score: float
    score_breakdown: SubstituteScoreBreakdown
    reason: str
    user_action: UserAction = UserAction.PENDING
    # Free-text note from the advisory service; never affects ranking.
    rationale: Optional[str] = None


@dataclass
class QuantityChange:
    item: CartItem
    original_quantity: int
    new_quantity: int


@dataclass
class PriceChange:
    item: CartItem
    original_price: float
    new_price: float


@dataclass
class CartDiffSummary:
    added_count: int = 0
    removed_count: int = 0
    quantity_changed_count: int = 0
    price_changed_count: int = 0
    unavailable_count: int = 0
    price_difference: float = 0.0


@dataclass
class CartDiff:
    """Differences between the expected (replayed) items and the scanned cart."""
    added: List[CartItem] = field(default_factory=list)
    removed: List[CartItem] = field(default_factory=list)
    quantity_changed: List[QuantityChange] = field(default_factory=list)
    price_changed: List[PriceChange] = field(default_factory=list)
    now_unavailable: List[CartItem] = field(default_factory=list)
    summary: CartDiffSummary = field(default_factory=CartDiffSummary)
