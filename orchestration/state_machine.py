"""State machine - owns RunState, persists it, and notifies listeners."""

import asyncio
from collections import deque
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from pydantic import ValidationError

from cartpilot_sdk.logging import get_logger
from cartpilot_sdk.utils.datetime import utc_now
from core.application.interfaces import IStoragePort
from core.application.serialization import dump_entity, load_entity
from core.domain.enums import RunPhase, RunStatus

from .actions import RunAction
from .bus import StateListener, StateListenerRegistry
from .events import TransitionLogEntry
from .state import (
    DEFAULT_MAX_ERROR_COUNT,
    DEFAULT_RUN_STATE,
    RUN_STATE_KEY,
    RunState,
)
from .transitions import run_reducer, valid_transition

TRANSITION_LOG_LIMIT = 100
DEFAULT_STALENESS_SECONDS = 30.0


class StateMachine:
    """Single writer of RunState.

    ``dispatch`` is synchronous. Persistence is scheduled in the background
    and chained so writes land in dispatch order; ``flush`` waits for them.
    """

    def __init__(
        self,
        storage: IStoragePort,
        *,
        max_error_count: int = DEFAULT_MAX_ERROR_COUNT,
        on_state_change: StateListener | None = None,
        initial_state: RunState | None = None,
    ) -> None:
        """Initialize state machine.

        Args:
            storage: Store the state is persisted to under ``runState``
            max_error_count: Errors after which a run can no longer be retried
            on_state_change: Optional listener subscribed up front
            initial_state: Starting state (default idle state if None)
        """
        self._storage = storage
        self._max_error_count = max_error_count
        self._state = initial_state or DEFAULT_RUN_STATE
        self._listeners = StateListenerRegistry()
        self._transition_log: deque[TransitionLogEntry] = deque(maxlen=TRANSITION_LOG_LIMIT)
        self._persist_task: asyncio.Task | None = None
        self._pending_snapshot: RunState | None = None
        self._logger = get_logger("orchestration.state_machine")

        if on_state_change is not None:
            self._listeners.subscribe(on_state_change)

    @property
    def max_error_count(self) -> int:
        return self._max_error_count

    def get_state(self) -> RunState:
        return self._state

    def get_current_phase(self) -> RunPhase | None:
        if self._state.status != RunStatus.RUNNING:
            return None
        return self._state.phase

    def can_transition(self, to_status: RunStatus) -> bool:
        return valid_transition(self._state.status, to_status)

    def get_transition_log(self) -> list[TransitionLogEntry]:
        return list(self._transition_log)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._listeners.subscribe(listener)

    def dispatch(self, action: RunAction) -> RunState:
        """Apply an action.

        Args:
            action: Action to apply

        Returns:
            The resulting state (unchanged object when the action was a no-op)
        """
        previous = self._state
        state = run_reducer(previous, action, max_error_count=self._max_error_count)

        if state is previous:
            self._logger.debug(f"Ignored {action.type} in status {previous.status.value}")
            return previous

        self._state = state
        self._record_transition(previous, state, action)
        self._schedule_persist(state)
        self._listeners.notify(state, previous)
        return state

    async def flush(self) -> None:
        """Wait until every scheduled write has been attempted."""
        while self._persist_task is not None and not self._persist_task.done():
            await asyncio.wait({self._persist_task})

        if self._pending_snapshot is not None:
            snapshot, self._pending_snapshot = self._pending_snapshot, None
            await self._persist(snapshot)

    def _record_transition(self, previous: RunState, state: RunState, action: RunAction) -> None:
        entry = TransitionLogEntry(
            timestamp=state.updated_at or utc_now(),
            from_status=previous.status,
            to_status=state.status,
            from_phase=previous.phase,
            to_phase=state.phase,
            action=action.type,
            run_id=state.run_id or previous.run_id,
        )
        self._transition_log.append(entry)

        if previous.status != state.status or previous.phase != state.phase:
            self._logger.info(
                f"{action.type}: {previous.status.value}/{_phase(previous)} -> "
                f"{state.status.value}/{_phase(state)} (run={entry.run_id})"
            )

    def _schedule_persist(self, state: RunState) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Held until flush(); only the newest snapshot matters
            self._pending_snapshot = state
            return

        self._pending_snapshot = None
        self._persist_task = loop.create_task(self._persist_after(self._persist_task, state))

    async def _persist_after(self, previous: asyncio.Task | None, state: RunState) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait({previous})
        await self._persist(state)

    async def _persist(self, state: RunState) -> None:
        try:
            await self._storage.set({RUN_STATE_KEY: dump_entity(state)})
        except Exception as exc:
            self._logger.error(f"Failed to persist run state: {exc}", exc_info=True)


def _phase(state: RunState) -> str:
    return state.phase.value if state.phase else "-"


async def load_persisted_state(
    storage: IStoragePort,
    *,
    staleness_seconds: float = DEFAULT_STALENESS_SECONDS,
    now: datetime | None = None,
) -> RunState:
    """Load ``runState``, flagging a stale running run for recovery.

    Args:
        storage: Store to read from
        staleness_seconds: Age after which a persisted running run is considered interrupted
        now: Reference time (current UTC time if None)

    Returns:
        The persisted state, or the default state when nothing usable is stored
    """
    logger = get_logger("orchestration.state_machine")

    try:
        stored = await storage.get(RUN_STATE_KEY)
    except Exception as exc:
        logger.error(f"Failed to load run state, starting fresh: {exc}", exc_info=True)
        return DEFAULT_RUN_STATE

    raw = stored.get(RUN_STATE_KEY)
    if raw is None:
        return DEFAULT_RUN_STATE

    try:
        state = load_entity(RunState, raw)
    except ValidationError as exc:
        logger.error(f"Discarding corrupt run state: {exc}")
        return DEFAULT_RUN_STATE

    if state.status == RunStatus.RUNNING and state.updated_at is not None:
        updated_at = state.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        age = ((now or utc_now()) - updated_at).total_seconds()
        if age > staleness_seconds:
            logger.warning(
                f"Run {state.run_id} was interrupted {age:.0f}s ago in phase "
                f"{_phase(state)}; recovery needed"
            )
            state = replace(state, recovery_needed=True)

    return state


async def create_state_machine_with_recovery(
    storage: IStoragePort,
    *,
    max_error_count: int = DEFAULT_MAX_ERROR_COUNT,
    staleness_seconds: float = DEFAULT_STALENESS_SECONDS,
    on_state_change: StateListener | None = None,
    now: datetime | None = None,
) -> StateMachine:
    """Build a StateMachine seeded from the persisted state.

    Args:
        storage: Store holding ``runState``
        max_error_count: Errors after which a run can no longer be retried
        staleness_seconds: Age after which a persisted running run needs recovery
        on_state_change: Optional listener subscribed up front
        now: Reference time (current UTC time if None)

    Returns:
        StateMachine instance
    """
    state = await load_persisted_state(storage, staleness_seconds=staleness_seconds, now=now)
    return StateMachine(
        storage,
        max_error_count=max_error_count,
        on_state_change=on_state_change,
        initial_state=state,
    )
