"""
Entity (de)serialization for the key/value store.

Domain entities are plain dataclasses; pydantic TypeAdapters turn them
into JSON-compatible dicts and back without the domain importing pydantic.
"""
from functools import lru_cache
from typing import Any, Type, TypeVar

from pydantic import TypeAdapter

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(cls: Type[Any]) -> TypeAdapter:
    return TypeAdapter(cls)


def dump_entity(entity: Any) -> Any:
    """Convert a dataclass instance into JSON-compatible python data."""
    return _adapter(type(entity)).dump_python(entity, mode="json")


def load_entity(cls: Type[T], data: Any) -> T:
    """
    Rebuild an instance of ``cls`` from stored data.

    Raises:
        pydantic.ValidationError: If ``data`` does not fit ``cls``
    """
    return _adapter(cls).validate_python(data)
