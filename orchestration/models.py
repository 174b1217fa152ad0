"""Orchestration models - RunContext and RecoveryDecision."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from cartpilot_sdk.utils.datetime import utc_now
from core.domain.entities import (
    CartDiff,
    CartItem,
    DeliverySlot,
    LoginState,
    OrderItem,
    OrderSummary,
    SlotRecommendation,
    SubstitutionProposal,
)


@dataclass
class RunContext:
    """Working data of the active run. Never persisted."""

    target_id: str
    order_id: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    login_state: LoginState | None = None
    order_history: list[OrderSummary] = field(default_factory=list)
    selected_order: OrderSummary | None = None
    replayed_orders: list[OrderSummary] = field(default_factory=list)
    # None when any replayed order's detail could not be read
    expected_items: list[OrderItem] | None = None
    cart_items: list[CartItem] = field(default_factory=list)
    available_items: list[CartItem] = field(default_factory=list)
    unavailable_items: list[CartItem] = field(default_factory=list)
    cart_diff: CartDiff | None = None
    substitutions: list[SubstitutionProposal] = field(default_factory=list)
    slots: list[DeliverySlot] = field(default_factory=list)
    slot_recommendation: SlotRecommendation | None = None


class RecoveryOutcome(str, Enum):
    """What recover_interrupted_run did."""

    NOTHING_TO_RECOVER = "nothing-to-recover"
    DISCARDED = "discarded"
    REVIEW_READY = "review-ready"


@dataclass(frozen=True)
class RecoveryDecision:
    outcome: RecoveryOutcome
    run_id: str | None
    reason: str
