"""Run state model - RunState, RunProgress, RunError and the transition table."""

from dataclasses import dataclass, field
from datetime import datetime

from cartpilot_sdk.utils.datetime import utc_now
from core.domain.enums import RunPhase, RunStatus

# Store keys
RUN_STATE_KEY = "runState"
REVIEW_PACK_KEY = "reviewPack"
LOGIN_STATE_KEY = "loginState"
USER_PREFERENCES_KEY = "userPreferences"

DEFAULT_MAX_ERROR_COUNT = 3


@dataclass(frozen=True)
class RunProgress:
    """Progress counters shown while a run is active."""

    orders_loaded: int = 0
    orders_total: int = 0
    items_processed: int = 0
    items_total: int = 0
    unavailable_items: int = 0
    substitutes_proposed: int = 0
    slots_found: int = 0


@dataclass(frozen=True)
class RunError:
    """The failure that paused a run."""

    code: str
    message: str
    phase: RunPhase | None
    recoverable: bool
    retry_count: int = 0
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class RunState:
    """Persisted state of the (single) shopping run.

    Invariants:
        running implies phase and run_id are set;
        idle and complete imply phase and run_id are None;
        review is only entered by completing the finalizing phase.
    """

    status: RunStatus = RunStatus.IDLE
    phase: RunPhase | None = None
    step: str | None = None
    run_id: str | None = None
    target_id: str | None = None
    order_id: str | None = None
    progress: RunProgress = field(default_factory=RunProgress)
    error: RunError | None = None
    error_count: int = 0
    started_at: datetime | None = None
    updated_at: datetime | None = None
    recovery_needed: bool = False

    @property
    def is_active(self) -> bool:
        return self.status in (RunStatus.RUNNING, RunStatus.PAUSED)


DEFAULT_RUN_STATE = RunState()

# No checkout, payment or submission status exists; review is as far as automation goes.
VALID_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.IDLE: frozenset({RunStatus.RUNNING}),
    RunStatus.RUNNING: frozenset({RunStatus.PAUSED, RunStatus.REVIEW, RunStatus.IDLE}),
    RunStatus.PAUSED: frozenset({RunStatus.RUNNING, RunStatus.IDLE}),
    RunStatus.REVIEW: frozenset({RunStatus.IDLE, RunStatus.COMPLETE}),
    RunStatus.COMPLETE: frozenset({RunStatus.IDLE}),
}
