"""Typed run failures and their classification."""

import asyncio

from pydantic import ValidationError

from core.application.dtos import TRANSIENT_ERROR_CODES, ErrorCode


class RunFailure(Exception):
    """Base for failures raised while executing a phase."""

    code: str = ErrorCode.UNKNOWN
    transient: bool = False

    def __init__(self, message: str, *, code: str | None = None, transient: bool | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        if transient is not None:
            self.transient = transient


class AgentTimeoutError(RunFailure):
    code = ErrorCode.TIMEOUT
    transient = True


class AgentTransportError(RunFailure):
    code = ErrorCode.NETWORK_ERROR
    transient = True


class AgentResponseError(RunFailure):
    """The page agent answered with ``success: false``."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message, code=code, transient=code in TRANSIENT_ERROR_CODES)


class MalformedResponseError(RunFailure):
    code = ErrorCode.MALFORMED_RESPONSE


class NotLoggedInError(RunFailure):
    code = ErrorCode.NOT_LOGGED_IN


class WrongPageError(RunFailure):
    code = ErrorCode.WRONG_PAGE


class TargetNotFoundError(RunFailure):
    code = ErrorCode.TARGET_NOT_FOUND


class UnknownPhaseError(RunFailure):
    code = ErrorCode.UNKNOWN_PHASE


class ContextLostError(RunFailure):
    """The in-memory run context is gone (e.g. after a restart)."""

    code = ErrorCode.CONTEXT_LOST


class PhaseTimeoutError(RunFailure):
    code = ErrorCode.TIMEOUT
    transient = True


class RunCancelledError(Exception):
    """Raised inside a phase when the run was paused or cancelled."""


class InvalidRunCommandError(Exception):
    """A public run command was called in a status that does not allow it."""


def classify_exception(exc: BaseException) -> tuple[str, bool]:
    """Map an exception to ``(code, transient)``."""
    if isinstance(exc, RunFailure):
        return exc.code, exc.transient
    # TimeoutError is an OSError subclass, so it must be checked first
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return ErrorCode.TIMEOUT, True
    if isinstance(exc, (ConnectionError, OSError)):
        return ErrorCode.NETWORK_ERROR, True
    if isinstance(exc, ValidationError):
        return ErrorCode.MALFORMED_RESPONSE, False
    return ErrorCode.UNKNOWN, False
