"""
In-memory key/value store.

Used by tests and the demo. Values are deep-copied on the way in and out
so callers never share mutable state with the store.
"""
import copy
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .base import ChangeNotifyingStore, StorageChange, normalize_keys


class InMemoryStore(ChangeNotifyingStore):
    """Dict-backed implementation of ``IStoragePort``."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None, area: str = "local"):
        super().__init__(area=area)
        self._data: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    async def get(self, keys: Union[str, Iterable[str]]) -> Dict[str, Any]:
        return {
            key: copy.deepcopy(self._data[key])
            for key in normalize_keys(keys)
            if key in self._data
        }

    async def set(self, items: Mapping[str, Any]) -> None:
        changes: StorageChange = {}
        for key, value in items.items():
            changes[key] = self._change(self._data.get(key), value)
            self._data[key] = copy.deepcopy(value)
        self._notify(changes)

    async def remove(self, keys: Union[str, Iterable[str]]) -> None:
        changes: StorageChange = {}
        for key in normalize_keys(keys):
            if key in self._data:
                changes[key] = self._change(self._data.pop(key), None)
        self._notify(changes)

    async def clear(self) -> None:
        changes = {key: self._change(value, None) for key, value in self._data.items()}
        self._data.clear()
        self._notify(changes)

    def snapshot(self) -> Dict[str, Any]:
        """Copy of everything currently stored (for assertions)."""
        return copy.deepcopy(self._data)
