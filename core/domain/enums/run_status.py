"""
Run Status Enums.

Top-level statuses and phases of a shopping run.

SAFETY: there is deliberately no checkout, payment or order-submission
status. 'review' is the last state automation can reach.
"""
from enum import Enum


class RunStatus(str, Enum):
    """Run status values."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    REVIEW = "review"
    COMPLETE = "complete"


class RunPhase(str, Enum):
    """Ordered phases of a running run."""

    INITIALIZING = "initializing"
    CART = "cart"
    SUBSTITUTION = "substitution"
    SLOTS = "slots"
    FINALIZING = "finalizing"


PHASE_ORDER: tuple[RunPhase, ...] = (
    RunPhase.INITIALIZING,
    RunPhase.CART,
    RunPhase.SUBSTITUTION,
    RunPhase.SLOTS,
    RunPhase.FINALIZING,
)


class CartStep(str, Enum):
    """Display steps of the cart phase."""

    LOADING_ORDERS = "loading-orders"
    SELECTING_ORDER = "selecting-order"
    REORDERING = "reordering"
    SCANNING_CART = "scanning-cart"
    COMPARING = "comparing"


class SubstitutionStep(str, Enum):
    """Display steps of the substitution phase."""

    IDENTIFYING = "identifying"
    SEARCHING = "searching"
    SCORING = "scoring"
    PROPOSING = "proposing"


class SlotsStep(str, Enum):
    """Display steps of the slots phase."""

    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    SCORING = "scoring"
