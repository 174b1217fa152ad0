"""Workflow definitions - PhaseHandler and RetryPolicy."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime

from cartpilot_sdk.utils.datetime import utc_now
from core.domain.enums import RunPhase

from .cancellation import CancellationToken
from .errors import classify_exception
from .models import RunContext
from .state import RunError

# Type alias for phase handlers
PhaseHandler = Callable[[RunContext, CancellationToken], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for transient failures."""

    max_attempts: int = 3

    def allows_retry(self, transient: bool, retry_count: int) -> bool:
        return transient and retry_count < self.max_attempts

    def build_error(
        self,
        exc: BaseException,
        *,
        phase: RunPhase | None,
        error_count: int,
        now: datetime | None = None,
    ) -> RunError:
        """Turn a phase failure into the RunError recorded on the state.

        Args:
            exc: The failure
            phase: Phase the failure happened in
            error_count: Errors recorded on the run so far
            now: Error timestamp (current UTC time if None)

        Returns:
            RunError; only transient failures under the retry budget are recoverable
        """
        code, transient = classify_exception(exc)
        retry_count = error_count + 1
        return RunError(
            code=code,
            message=str(exc) or exc.__class__.__name__,
            phase=phase,
            recoverable=self.allows_retry(transient, retry_count),
            retry_count=retry_count,
            timestamp=now or utc_now(),
        )
