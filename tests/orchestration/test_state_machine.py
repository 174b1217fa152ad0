"""Tests for StateMachine - dispatch, persistence, listeners and recovery."""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from core.application.serialization import dump_entity
from core.domain.enums import RunPhase, RunStatus
from core.infrastructure.storage import InMemoryStore, StorageError
from orchestration.actions import CancelRun, PauseRun, PhaseComplete, StartRun, StepUpdate
from orchestration.state import DEFAULT_RUN_STATE, RUN_STATE_KEY, RunState
from orchestration.state_machine import (
    TRANSITION_LOG_LIMIT,
    StateMachine,
    create_state_machine_with_recovery,
    load_persisted_state,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class RecordingStore(InMemoryStore):
    """Store that records writes; the first write is slow."""

    def __init__(self, first_write_delay: float = 0.0):
        super().__init__()
        self.writes: list[dict] = []
        self.first_write_delay = first_write_delay

    async def set(self, items):
        if not self.writes and self.first_write_delay:
            self.writes.append({})
            await asyncio.sleep(self.first_write_delay)
            self.writes[0] = dict(items)
        else:
            self.writes.append(dict(items))
        await super().set(items)


class FailingStore(InMemoryStore):
    """Store whose reads and writes always fail."""

    async def get(self, keys):
        raise StorageError("disk gone")

    async def set(self, items):
        raise StorageError("disk gone")


def _running_state(updated_at: datetime) -> RunState:
    return RunState(
        status=RunStatus.RUNNING,
        phase=RunPhase.CART,
        run_id="run-1",
        target_id="tab-1",
        started_at=updated_at,
        updated_at=updated_at,
    )


class TestDispatch:
    @pytest.mark.asyncio
    async def test_dispatch_applies_action(self):
        machine = StateMachine(InMemoryStore())

        state = machine.dispatch(StartRun(target_id="tab-1", run_id="run-1"))

        assert state is machine.get_state()
        assert state.status == RunStatus.RUNNING
        assert machine.get_current_phase() == RunPhase.INITIALIZING

    @pytest.mark.asyncio
    async def test_noop_dispatch_has_no_side_effects(self):
        store = RecordingStore()
        calls = []
        machine = StateMachine(store, on_state_change=lambda s, p: calls.append(s))

        before = machine.get_state()
        result = machine.dispatch(PauseRun())
        await machine.flush()

        assert result is before
        assert machine.get_transition_log() == []
        assert calls == []
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_repeated_noop_returns_identical_object(self):
        machine = StateMachine(InMemoryStore())
        machine.dispatch(StartRun(target_id="tab-1"))
        state = machine.get_state()

        assert machine.dispatch(StartRun(target_id="tab-1")) is state
        assert machine.dispatch(PhaseComplete(phase=RunPhase.SLOTS)) is state

    def test_can_transition(self):
        machine = StateMachine(InMemoryStore())
        assert machine.can_transition(RunStatus.RUNNING)
        assert not machine.can_transition(RunStatus.REVIEW)

    @pytest.mark.asyncio
    async def test_current_phase_is_none_unless_running(self):
        machine = StateMachine(InMemoryStore())
        assert machine.get_current_phase() is None

        machine.dispatch(StartRun(target_id="tab-1"))
        machine.dispatch(PauseRun())

        assert machine.get_state().phase == RunPhase.INITIALIZING
        assert machine.get_current_phase() is None


class TestTransitionLog:
    @pytest.mark.asyncio
    async def test_entries_describe_the_transition(self):
        machine = StateMachine(InMemoryStore())
        machine.dispatch(StartRun(target_id="tab-1", run_id="run-1"))
        machine.dispatch(PhaseComplete(phase=RunPhase.INITIALIZING))

        entries = machine.get_transition_log()
        assert [e.action for e in entries] == ["START_RUN", "PHASE_COMPLETE"]
        assert entries[0].from_status == RunStatus.IDLE
        assert entries[0].to_status == RunStatus.RUNNING
        assert entries[1].from_phase == RunPhase.INITIALIZING
        assert entries[1].to_phase == RunPhase.CART
        assert all(e.run_id == "run-1" for e in entries)

    @pytest.mark.asyncio
    async def test_log_is_bounded(self):
        machine = StateMachine(InMemoryStore())
        machine.dispatch(StartRun(target_id="tab-1"))
        for i in range(TRANSITION_LOG_LIMIT + 50):
            machine.dispatch(StepUpdate(step=f"step-{i}"))

        entries = machine.get_transition_log()
        assert len(entries) == TRANSITION_LOG_LIMIT
        assert entries[0].action == "STEP_UPDATE"

    @pytest.mark.asyncio
    async def test_cancel_entry_keeps_run_id(self):
        machine = StateMachine(InMemoryStore())
        machine.dispatch(StartRun(target_id="tab-1", run_id="run-9"))
        machine.dispatch(CancelRun())

        assert machine.get_transition_log()[-1].run_id == "run-9"


class TestPersistence:
    @pytest.mark.asyncio
    async def test_writes_land_in_dispatch_order(self):
        store = RecordingStore(first_write_delay=0.05)
        machine = StateMachine(store)

        machine.dispatch(StartRun(target_id="tab-1", run_id="run-1"))
        machine.dispatch(StepUpdate(step="one"))
        machine.dispatch(StepUpdate(step="two"))
        await machine.flush()

        steps = [write[RUN_STATE_KEY]["step"] for write in store.writes]
        assert steps == [None, "one", "two"]
        assert store.snapshot()[RUN_STATE_KEY]["step"] == "two"

    @pytest.mark.asyncio
    async def test_persisted_state_is_full_state(self):
        store = InMemoryStore()
        machine = StateMachine(store)
        machine.dispatch(StartRun(target_id="tab-1", order_id="A-1", run_id="run-1"))
        await machine.flush()

        stored = store.snapshot()[RUN_STATE_KEY]
        assert stored["status"] == "running"
        assert stored["phase"] == "initializing"
        assert stored["run_id"] == "run-1"
        assert stored["order_id"] == "A-1"
        assert stored["progress"]["orders_total"] == 0

    @pytest.mark.asyncio
    async def test_write_failure_keeps_memory_state(self):
        machine = StateMachine(FailingStore())

        state = machine.dispatch(StartRun(target_id="tab-1"))
        await machine.flush()

        assert machine.get_state() is state
        assert state.status == RunStatus.RUNNING

    def test_dispatch_without_loop_is_flushed_later(self):
        store = InMemoryStore()
        machine = StateMachine(store)

        machine.dispatch(StartRun(target_id="tab-1", run_id="run-1"))
        machine.dispatch(StepUpdate(step="late"))
        assert store.snapshot() == {}

        asyncio.run(machine.flush())

        assert store.snapshot()[RUN_STATE_KEY]["step"] == "late"


class TestListeners:
    @pytest.mark.asyncio
    async def test_listener_gets_state_and_previous(self):
        seen = []
        machine = StateMachine(InMemoryStore())
        machine.subscribe(lambda state, previous: seen.append((previous.status, state.status)))

        machine.dispatch(StartRun(target_id="tab-1"))

        assert seen == [(RunStatus.IDLE, RunStatus.RUNNING)]

    @pytest.mark.asyncio
    async def test_failing_listener_is_isolated(self):
        seen = []

        def broken(state, previous):
            raise RuntimeError("boom")

        machine = StateMachine(InMemoryStore())
        machine.subscribe(broken)
        machine.subscribe(lambda state, previous: seen.append(state.status))

        state = machine.dispatch(StartRun(target_id="tab-1"))

        assert state.status == RunStatus.RUNNING
        assert seen == [RunStatus.RUNNING]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        seen = []
        machine = StateMachine(InMemoryStore())
        unsubscribe = machine.subscribe(lambda state, previous: seen.append(state))

        unsubscribe()
        unsubscribe()
        machine.dispatch(StartRun(target_id="tab-1"))

        assert seen == []


class TestRecovery:
    @pytest.mark.asyncio
    async def test_stale_running_state_needs_recovery(self):
        store = InMemoryStore({RUN_STATE_KEY: dump_entity(_running_state(NOW - timedelta(seconds=31)))})

        machine = await create_state_machine_with_recovery(store, now=NOW)

        state = machine.get_state()
        assert state.status == RunStatus.RUNNING
        assert state.recovery_needed is True
        assert state.run_id == "run-1"

    @pytest.mark.asyncio
    async def test_fresh_running_state_is_kept(self):
        store = InMemoryStore({RUN_STATE_KEY: dump_entity(_running_state(NOW - timedelta(seconds=5)))})

        machine = await create_state_machine_with_recovery(store, now=NOW)

        assert machine.get_state().recovery_needed is False
        assert machine.get_state().phase == RunPhase.CART

    @pytest.mark.asyncio
    async def test_old_paused_state_is_not_flagged(self):
        paused = replace(_running_state(NOW - timedelta(hours=2)), status=RunStatus.PAUSED)
        store = InMemoryStore({RUN_STATE_KEY: dump_entity(paused)})

        state = await load_persisted_state(store, now=NOW)

        assert state.status == RunStatus.PAUSED
        assert state.recovery_needed is False

    @pytest.mark.asyncio
    async def test_naive_timestamp_is_treated_as_utc(self):
        raw = dump_entity(_running_state(NOW - timedelta(seconds=60)))
        raw["updated_at"] = (NOW - timedelta(seconds=60)).replace(tzinfo=None).isoformat()
        store = InMemoryStore({RUN_STATE_KEY: raw})

        state = await load_persisted_state(store, now=NOW)

        assert state.recovery_needed is True

    @pytest.mark.asyncio
    async def test_missing_state_is_default(self):
        state = await load_persisted_state(InMemoryStore(), now=NOW)
        assert state == DEFAULT_RUN_STATE

    @pytest.mark.asyncio
    async def test_corrupt_state_is_default(self):
        store = InMemoryStore({RUN_STATE_KEY: {"status": "checkout", "phase": 7}})
        state = await load_persisted_state(store, now=NOW)
        assert state == DEFAULT_RUN_STATE

    @pytest.mark.asyncio
    async def test_load_failure_is_default(self):
        machine = await create_state_machine_with_recovery(FailingStore(), now=NOW)
        assert machine.get_state() == DEFAULT_RUN_STATE

    @pytest.mark.asyncio
    async def test_custom_staleness(self):
        store = InMemoryStore({RUN_STATE_KEY: dump_entity(_running_state(NOW - timedelta(seconds=10)))})
        state = await load_persisted_state(store, staleness_seconds=5, now=NOW)
        assert state.recovery_needed is True
