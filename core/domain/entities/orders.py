"""
Order history entities.

CRITICAL: This file must contain ZERO imports from:
- sqlalchemy
- pydantic
- redis
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class OrderSummary:
    """One row of the shopper's order history."""
    order_id: str
    date: str
    total: float = 0.0
    item_count: int = 0
    status: str = "unknown"
    detail_url: Optional[str] = None

    @property
    def placed_at(self) -> datetime:
        """
        Parse ``date`` for ordering.

        Accepts ISO dates and datetimes; anything unparseable sorts first.
        """
        try:
            return datetime.fromisoformat(self.date).replace(tzinfo=None)
        except (TypeError, ValueError):
            return datetime.min


@dataclass
class OrderItem:
    """A line of a past order."""
    product_id: str
    name: str
    unit_price: float
    quantity: int
    brand: Optional[str] = None
    category: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass
class OrderDetail:
    """A past order with its lines."""
    summary: OrderSummary
    items: List[OrderItem] = field(default_factory=list)
