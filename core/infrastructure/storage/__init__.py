"""Key/value store adapters."""

from .base import StorageError
from .memory_store import InMemoryStore
from .sql_store import SqlKeyValueStore

__all__ = ["InMemoryStore", "SqlKeyValueStore", "StorageError"]
