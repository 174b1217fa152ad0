"""Application layer interfaces."""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from core.domain.entities import TargetInfo

from ..dtos.advisory_dto import AdvisoryCompletion, AdvisoryMessage, AdvisoryOptions
from ..dtos.agent_dto import AgentRequest, AgentResponse

StorageChange = Dict[str, Dict[str, Any]]
StorageChangeListener = Callable[[StorageChange, str], None]
Unsubscribe = Callable[[], None]


class IStoragePort(ABC):
    """
    Interface for the durable key/value store.

    Values are JSON-compatible. Keys are scoped to a storage area
    (``local`` by default) chosen when the store is constructed.
    """

    @abstractmethod
    async def get(self, keys: Union[str, Iterable[str]]) -> Dict[str, Any]:
        """
        Read one or more keys.

        Args:
            keys: A single key or an iterable of keys

        Returns:
            Mapping of the keys that exist to their values; missing keys are omitted
        """
        pass

    @abstractmethod
    async def set(self, items: Mapping[str, Any]) -> None:
        """
        Write (upsert) every key in ``items``.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, keys: Union[str, Iterable[str]]) -> None:
        """Delete keys. Missing keys are ignored."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every key in this store's area."""
        pass

    @abstractmethod
    def add_change_listener(self, listener: StorageChangeListener) -> Unsubscribe:
        """
        Register a listener called with ``({key: {"old_value", "new_value"}}, area)``.

        Returns:
            A callable that removes the listener
        """
        pass


class IAgentTransport(ABC):
    """
    Interface for talking to the page agent living inside a target.

    Implementations correlate the response to the request id and must
    return an ``AgentResponse`` even when the agent reports a failure.
    Transport-level failures raise ``ConnectionError``.
    """

    @abstractmethod
    async def send(self, target_id: str, request: AgentRequest) -> AgentResponse:
        """
        Deliver ``request`` to the agent in ``target_id`` and await its reply.

        Callers bound this call with their own timeout.
        """
        pass


class ITargetSessionPort(ABC):
    """Interface for the page session being driven (lookup, navigation, load waits)."""

    @abstractmethod
    async def get(self, target_id: str) -> Optional[TargetInfo]:
        """Return the target or ``None`` if it no longer exists."""
        pass

    @abstractmethod
    async def navigate(self, target_id: str, url: str) -> None:
        """Point the target at ``url``. Does not wait for the load to finish."""
        pass

    @abstractmethod
    async def wait_for_load(self, target_id: str, timeout: float) -> None:
        """
        Wait until the target has finished loading.

        Raises:
            asyncio.TimeoutError: If loading does not finish within ``timeout`` seconds
        """
        pass


class IAdvisoryService(ABC):
    """
    Interface for the optional LLM advisory service.

    Advisory output is annotation only. Callers must work without it.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """True when the service is configured and enabled."""
        pass

    @abstractmethod
    async def complete(
        self,
        messages: List[AdvisoryMessage],
        options: Optional[AdvisoryOptions] = None,
    ) -> AdvisoryCompletion:
        """
        Request a completion.

        Raises:
            AdvisoryServiceError: On any API or transport failure
        """
        pass


AsyncHandler = Callable[[AgentRequest], Awaitable[AgentResponse]]

__all__ = [
    "AsyncHandler",
    "IAdvisoryService",
    "IAgentTransport",
    "IStoragePort",
    "ITargetSessionPort",
    "StorageChange",
    "StorageChangeListener",
    "Unsubscribe",
]
