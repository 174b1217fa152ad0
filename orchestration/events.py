"""Orchestration events - TransitionLogEntry."""

from dataclasses import dataclass
from datetime import datetime

from core.domain.enums import RunPhase, RunStatus


@dataclass(frozen=True)
class TransitionLogEntry:
    """One accepted state transition (diagnostics only)."""

    timestamp: datetime
    from_status: RunStatus
    to_status: RunStatus
    from_phase: RunPhase | None
    to_phase: RunPhase | None
    action: str
    run_id: str | None
