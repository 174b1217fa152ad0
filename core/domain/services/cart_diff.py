"""
Cart diff.

Compares the items a replayed order was expected to put in the cart with
what the page agent actually scanned. Items are matched by product id.
"""
from typing import Dict, List, Sequence

from ..entities import (
    CartDiff,
    CartDiffSummary,
    CartItem,
    OrderItem,
    PriceChange,
    QuantityChange,
)
from ..enums import ItemAvailability

PRICE_TOLERANCE = 0.001
ATTENTION_PRICE_THRESHOLD = 5.0


def _prices_differ(first: float, second: float) -> bool:
    return abs(first - second) > PRICE_TOLERANCE


def _is_unavailable(item: CartItem) -> bool:
    return item.availability == ItemAvailability.OUT_OF_STOCK or item.quantity == 0


def _as_cart_item(item: OrderItem) -> CartItem:
    return CartItem(
        product_id=item.product_id,
        name=item.name,
        price=item.unit_price,
        quantity=item.quantity,
        availability=ItemAvailability.UNKNOWN,
        brand=item.brand,
        category=item.category,
    )


def calculate_cart_diff(
    expected_items: Sequence[OrderItem], cart_items: Sequence[CartItem]
) -> CartDiff:
    """
    Diff expected order lines against scanned cart lines.

    Items present on both sides may appear in more than one list: an
    out-of-stock line whose price also moved is reported as unavailable
    and as a price change.
    """
    expected: Dict[str, OrderItem] = {item.product_id: item for item in expected_items}
    scanned: Dict[str, CartItem] = {item.product_id: item for item in cart_items}

    diff = CartDiff()

    for product_id, cart_item in scanned.items():
        original = expected.get(product_id)
        if original is None:
            diff.added.append(cart_item)
            continue

        if _is_unavailable(cart_item):
            diff.now_unavailable.append(cart_item)
        if original.quantity != cart_item.quantity:
            diff.quantity_changed.append(
                QuantityChange(
                    item=cart_item,
                    original_quantity=original.quantity,
                    new_quantity=cart_item.quantity,
                )
            )
        if _prices_differ(original.unit_price, cart_item.price):
            diff.price_changed.append(
                PriceChange(
                    item=cart_item,
                    original_price=original.unit_price,
                    new_price=cart_item.price,
                )
            )

    for product_id, original in expected.items():
        if product_id not in scanned:
            diff.removed.append(_as_cart_item(original))

    expected_total = sum(item.line_total for item in expected_items)
    cart_total = sum(item.line_total for item in cart_items)

    diff.summary = CartDiffSummary(
        added_count=len(diff.added),
        removed_count=len(diff.removed),
        quantity_changed_count=len(diff.quantity_changed),
        price_changed_count=len(diff.price_changed),
        unavailable_count=len(diff.now_unavailable),
        price_difference=round(cart_total - expected_total, 2),
    )
    return diff


def has_changes(diff: CartDiff) -> bool:
    summary = diff.summary
    return any(
        (
            summary.added_count,
            summary.removed_count,
            summary.quantity_changed_count,
            summary.price_changed_count,
            summary.unavailable_count,
        )
    )


def requires_user_attention(
    diff: CartDiff, price_threshold: float = ATTENTION_PRICE_THRESHOLD
) -> bool:
    """True when items went missing or the cart got noticeably pricier."""
    return (
        diff.summary.unavailable_count > 0
        or diff.summary.removed_count > 0
        or diff.summary.price_difference > price_threshold
    )


def generate_diff_summary(diff: CartDiff) -> str:
    """Render a diff as one human-readable line."""
    summary = diff.summary
    parts: List[str] = []

    if summary.added_count:
        parts.append(f"{summary.added_count} item(s) added")
    if summary.removed_count:
        parts.append(f"{summary.removed_count} item(s) removed")
    if summary.quantity_changed_count:
        parts.append(f"{summary.quantity_changed_count} quantity change(s)")
    if summary.price_changed_count:
        parts.append(f"{summary.price_changed_count} price change(s)")
    if summary.unavailable_count:
        parts.append(f"{summary.unavailable_count} unavailable")

    if not parts:
        return "No changes detected"

    price_part = ""
    if summary.price_difference:
        price_part = f" ({summary.price_difference:+.2f} total)"
    return ", ".join(parts) + price_part
