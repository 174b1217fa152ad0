"""State listener bus - StateListener protocol and StateListenerRegistry."""

from collections.abc import Callable
from typing import Protocol

from cartpilot_sdk.logging import get_logger

from .state import RunState


class StateListener(Protocol):
    """Protocol for state change listeners."""

    def __call__(self, state: RunState, previous: RunState) -> None:
        """Handle a state change.

        Args:
            state: State after the transition
            previous: State before the transition
        """
        ...


class StateListenerRegistry:
    """Synchronous fan-out of state changes to subscribed listeners."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._listeners: list[StateListener] = []
        self._logger = get_logger("orchestration.listeners")

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Subscribe a listener.

        Args:
            listener: Called with ``(state, previous)`` after every accepted transition

        Returns:
            Callable that unsubscribes the listener (safe to call twice)
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, state: RunState, previous: RunState) -> None:
        """Call every listener; a listener that raises is logged and skipped.

        Args:
            state: State after the transition
            previous: State before the transition
        """
        for listener in list(self._listeners):
            try:
                listener(state, previous)
            except Exception as exc:
                self._logger.error(
                    f"State listener {listener!r} failed: {exc}",
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._listeners)
