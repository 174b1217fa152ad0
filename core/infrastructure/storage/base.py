"""Shared pieces of the key/value store adapters."""
import copy
import logging
from typing import Any, Dict, Iterable, List, Union

from core.application.interfaces import (
    IStoragePort,
    StorageChange,
    StorageChangeListener,
    Unsubscribe,
)


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the underlying store cannot be read or written."""
    pass


def normalize_keys(keys: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(keys, str):
        return [keys]
    return list(keys)


class ChangeNotifyingStore(IStoragePort):
    """
    Base store that fans change notifications out to listeners.

    A listener that raises is logged and skipped; the others still run.
    """

    def __init__(self, area: str = "local"):
        self.area = area
        self._listeners: List[StorageChangeListener] = []

    def add_change_listener(self, listener: StorageChangeListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, changes: StorageChange) -> None:
        if not changes:
            return
        for listener in list(self._listeners):
            try:
                listener(changes, self.area)
            except Exception as e:
                logger.error(f"Storage change listener failed: {e}", exc_info=True)

    @staticmethod
    def _change(old_value: Any, new_value: Any) -> Dict[str, Any]:
        return {
            "old_value": copy.deepcopy(old_value),
            "new_value": copy.deepcopy(new_value),
        }
