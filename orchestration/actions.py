"""Run actions - the only inputs the reducer accepts."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import ClassVar, Union

from core.domain.enums import RunPhase
from core.domain.value_objects import RunID

from .state import RunError


def _new_run_id() -> str:
    return RunID.generate().value


@dataclass(frozen=True)
class StartRun:
    target_id: str
    order_id: str | None = None
    run_id: str = field(default_factory=_new_run_id)
    type: ClassVar[str] = "START_RUN"


@dataclass(frozen=True)
class PhaseComplete:
    phase: RunPhase
    type: ClassVar[str] = "PHASE_COMPLETE"


@dataclass(frozen=True)
class StepUpdate:
    step: str | None
    type: ClassVar[str] = "STEP_UPDATE"


@dataclass(frozen=True)
class ProgressUpdate:
    changes: Mapping[str, int]
    type: ClassVar[str] = "PROGRESS_UPDATE"


@dataclass(frozen=True)
class ErrorOccurred:
    error: RunError
    type: ClassVar[str] = "ERROR_OCCURRED"


@dataclass(frozen=True)
class PauseRun:
    type: ClassVar[str] = "PAUSE_RUN"


@dataclass(frozen=True)
class ResumeRun:
    type: ClassVar[str] = "RESUME_RUN"


@dataclass(frozen=True)
class CancelRun:
    type: ClassVar[str] = "CANCEL_RUN"


@dataclass(frozen=True)
class ApproveCart:
    """The human approved the review pack. Nothing is submitted."""

    type: ClassVar[str] = "APPROVE_CART"


@dataclass(frozen=True)
class RecoveryComplete:
    type: ClassVar[str] = "RECOVERY_COMPLETE"


RunAction = Union[
    StartRun,
    PhaseComplete,
    StepUpdate,
    ProgressUpdate,
    ErrorOccurred,
    PauseRun,
    ResumeRun,
    CancelRun,
    ApproveCart,
    RecoveryComplete,
]
