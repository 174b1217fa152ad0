"""Database engine, session factory and ORM models."""

from .config import close_database, create_engine, get_engine, get_session_factory, init_database
from .models import Base, KeyValueModel

__all__ = [
    "Base",
    "KeyValueModel",
    "close_database",
    "create_engine",
    "get_engine",
    "get_session_factory",
    "init_database",
]
