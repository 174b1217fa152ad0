"""Domain value objects."""

from .run_id import RunID

__all__ = ["RunID"]
