"""Orchestration layer - run state machine and run orchestrator."""

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
from .bus import StateListener, StateListenerRegistry
from .cancellation import CancellationToken
from .dependencies import build_orchestrator
from .errors import InvalidRunCommandError, RunCancelledError, RunFailure
from .events import TransitionLogEntry
from .messaging import AgentClient
from .models import RecoveryDecision, RecoveryOutcome, RunContext
from .orchestrator import RunOrchestrator, build_search_query
from .state import DEFAULT_RUN_STATE, RunError, RunProgress, RunState
from .state_machine import (
    StateMachine,
    create_state_machine_with_recovery,
    load_persisted_state,
)
from .transitions import run_reducer, valid_transition
from .workflow import PhaseHandler, RetryPolicy

__all__ = [
    "DEFAULT_RUN_STATE",
    "AgentClient",
    "ApproveCart",
    "CancelRun",
    "CancellationToken",
    "ErrorOccurred",
    "InvalidRunCommandError",
    "PauseRun",
    "PhaseComplete",
    "PhaseHandler",
    "ProgressUpdate",
    "RecoveryComplete",
    "RecoveryDecision",
    "RecoveryOutcome",
    "ResumeRun",
    "RetryPolicy",
    "RunAction",
    "RunCancelledError",
    "RunContext",
    "RunError",
    "RunFailure",
    "RunOrchestrator",
    "RunProgress",
    "RunState",
    "StartRun",
    "StateListener",
    "StateListenerRegistry",
    "StateMachine",
    "StepUpdate",
    "TransitionLogEntry",
    "build_orchestrator",
    "build_search_query",
    "create_state_machine_with_recovery",
    "load_persisted_state",
    "run_reducer",
    "valid_transition",
]
