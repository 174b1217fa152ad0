"""Pure reducer and guards for the run state machine.

Every function here is side-effect free. The reducer is total: an action
that does not apply to the current state returns the very same object,
which the state machine uses to detect no-ops.
"""

from dataclasses import fields, replace
from datetime import datetime
from enum import Enum

from cartpilot_sdk.utils.datetime import utc_now
from core.domain.entities import LoginState
from core.domain.enums import PHASE_ORDER, CartStep, RunPhase, RunStatus, SlotsStep, SubstitutionStep

from .actions import (
    ApproveCart,
    CancelRun,
    ErrorOccurred,
    PauseRun,
    PhaseComplete,
    ProgressUpdate,
    RecoveryComplete,
    ResumeRun,
    RunAction,
    StartRun,
    StepUpdate,
)
from .state import (
    DEFAULT_MAX_ERROR_COUNT,
    DEFAULT_RUN_STATE,
    VALID_TRANSITIONS,
    RunProgress,
    RunState,
)

_PROGRESS_FIELDS = frozenset(f.name for f in fields(RunProgress))

_INITIAL_STEPS: dict[RunPhase, str | None] = {
    RunPhase.INITIALIZING: None,
    RunPhase.CART: CartStep.LOADING_ORDERS.value,
    RunPhase.SUBSTITUTION: SubstitutionStep.IDENTIFYING.value,
    RunPhase.SLOTS: SlotsStep.NAVIGATING.value,
    RunPhase.FINALIZING: None,
}

_TARGET_STATUS: dict[str, RunStatus | None] = {
    StartRun.type: RunStatus.RUNNING,
    PauseRun.type: RunStatus.PAUSED,
    ResumeRun.type: RunStatus.RUNNING,
    CancelRun.type: RunStatus.IDLE,
    ApproveCart.type: RunStatus.COMPLETE,
    ErrorOccurred.type: RunStatus.PAUSED,
}


# =============================================================================
# Guards
# =============================================================================


def valid_transition(from_status: RunStatus, to_status: RunStatus) -> bool:
    """Check a status change against the transition table."""
    return to_status in VALID_TRANSITIONS.get(from_status, frozenset())


def can_retry(state: RunState, max_error_count: int = DEFAULT_MAX_ERROR_COUNT) -> bool:
    """A paused run may be retried while its error is recoverable and under budget."""
    return (
        state.error is not None
        and state.error.recoverable
        and state.error_count < max_error_count
    )


def is_logged_in(login_state: LoginState | None) -> bool:
    return login_state is not None and login_state.is_logged_in is True


def pack_ready(state: RunState) -> bool:
    """The review pack exists once finalizing completed."""
    return state.status == RunStatus.REVIEW and state.run_id is not None


def get_next_phase(phase: RunPhase | None) -> RunPhase | None:
    if phase not in PHASE_ORDER:
        return None
    index = PHASE_ORDER.index(phase)
    if index >= len(PHASE_ORDER) - 1:
        return None
    return PHASE_ORDER[index + 1]


def get_initial_step(phase: RunPhase) -> str | None:
    return _INITIAL_STEPS.get(phase)


def get_target_status(action_type: str) -> RunStatus | None:
    """Status an action moves to, or None when it depends on state or keeps status."""
    return _TARGET_STATUS.get(action_type)


def is_action_valid(state: RunState, action: RunAction) -> bool:
    target = get_target_status(action.type)
    if target is None:
        if isinstance(action, (PhaseComplete, StepUpdate, ProgressUpdate)):
            return state.status == RunStatus.RUNNING
        return isinstance(action, RecoveryComplete)
    return valid_transition(state.status, target)


# =============================================================================
# Reducer
# =============================================================================


def run_reducer(
    state: RunState,
    action: RunAction,
    *,
    max_error_count: int = DEFAULT_MAX_ERROR_COUNT,
    now: datetime | None = None,
) -> RunState:
    """Compute the next state.

    Args:
        state: Current state
        action: Action to apply
        max_error_count: Errors after which a run can no longer be retried
        now: Timestamp for ``updated_at`` (current UTC time if None)

    Returns:
        The next state, or ``state`` itself when the action does not apply
    """
    now = now or utc_now()

    if isinstance(action, StartRun):
        if state.status != RunStatus.IDLE:
            return state
        return RunState(
            status=RunStatus.RUNNING,
            phase=RunPhase.INITIALIZING,
            step=None,
            run_id=action.run_id,
            target_id=action.target_id,
            order_id=action.order_id,
            progress=RunProgress(),
            error=None,
            error_count=0,
            started_at=now,
            updated_at=now,
            recovery_needed=False,
        )

    if isinstance(action, PhaseComplete):
        if state.status != RunStatus.RUNNING or action.phase != state.phase:
            return state
        if state.phase == RunPhase.FINALIZING:
            return replace(state, status=RunStatus.REVIEW, phase=None, step=None, updated_at=now)
        next_phase = get_next_phase(state.phase)
        if next_phase is None:
            return state
        return replace(
            state,
            phase=next_phase,
            step=get_initial_step(next_phase),
            updated_at=now,
        )

    if isinstance(action, StepUpdate):
        if state.status != RunStatus.RUNNING:
            return state
        step = action.step.value if isinstance(action.step, Enum) else action.step
        return replace(state, step=step, updated_at=now)

    if isinstance(action, ProgressUpdate):
        if state.status != RunStatus.RUNNING:
            return state
        changes = {k: v for k, v in action.changes.items() if k in _PROGRESS_FIELDS}
        if not changes:
            return state
        return replace(state, progress=replace(state.progress, **changes), updated_at=now)

    if isinstance(action, ErrorOccurred):
        if state.status != RunStatus.RUNNING:
            return state
        error_count = state.error_count + 1
        recoverable = action.error.recoverable and error_count < max_error_count
        return replace(
            state,
            status=RunStatus.PAUSED,
            error=replace(action.error, recoverable=recoverable),
            error_count=error_count,
            updated_at=now,
        )

    if isinstance(action, PauseRun):
        if state.status != RunStatus.RUNNING:
            return state
        return replace(state, status=RunStatus.PAUSED, updated_at=now)

    if isinstance(action, ResumeRun):
        if state.status != RunStatus.PAUSED:
            return state
        if state.error is not None and not can_retry(state, max_error_count):
            return state
        return replace(
            state,
            status=RunStatus.RUNNING,
            error=None,
            recovery_needed=False,
            updated_at=now,
        )

    if isinstance(action, CancelRun):
        if state.status == RunStatus.IDLE:
            return state
        return replace(DEFAULT_RUN_STATE, updated_at=now)

    if isinstance(action, ApproveCart):
        if state.status != RunStatus.REVIEW:
            return state
        return replace(state, status=RunStatus.COMPLETE, run_id=None, updated_at=now)

    if isinstance(action, RecoveryComplete):
        if not state.recovery_needed:
            return state
        return replace(state, recovery_needed=False, updated_at=now)

    return state
