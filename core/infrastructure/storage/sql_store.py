"""
SQL key/value store.

Durable ``IStoragePort`` on SQLAlchemy async sessions. Entries live in the
``kv_entries`` table, one row per (area, key), with a JSON value column.
"""
import logging
from typing import Any, Dict, Iterable, Mapping, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.infrastructure.database.models import KeyValueModel

from .base import ChangeNotifyingStore, StorageChange, StorageError, normalize_keys


logger = logging.getLogger(__name__)


class SqlKeyValueStore(ChangeNotifyingStore):
    """
    Key/value store backed by a relational database.

    Each public call runs in its own transaction.

    Usage:
        engine = create_engine(DatabaseSettings())
        await init_database(engine)
        store = SqlKeyValueStore(get_session_factory(engine))
        await store.set({"runState": {...}})
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        area: str = "local",
    ):
        """
        Initialize the store.

        Args:
            session_factory: Factory producing async sessions
            area: Storage area (namespace) for every key
        """
        super().__init__(area=area)
        self._session_factory = session_factory

    async def get(self, keys: Union[str, Iterable[str]]) -> Dict[str, Any]:
        key_list = normalize_keys(keys)
        if not key_list:
            return {}

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(KeyValueModel.key, KeyValueModel.value).where(
                        KeyValueModel.area == self.area,
                        KeyValueModel.key.in_(key_list),
                    )
                )
                return {row.key: row.value for row in result}
        except SQLAlchemyError as e:
            logger.error(f"Failed to read keys {key_list}: {e}", exc_info=True)
            raise StorageError(f"Failed to read keys {key_list}: {e}") from e

    async def set(self, items: Mapping[str, Any]) -> None:
        if not items:
            return

        changes: StorageChange = {}
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        select(KeyValueModel).where(
                            KeyValueModel.area == self.area,
                            KeyValueModel.key.in_(list(items)),
                        )
                    )
                    existing = {row.key: row for row in result.scalars()}

                    for key, value in items.items():
                        row = existing.get(key)
                        if row is None:
                            changes[key] = self._change(None, value)
                            session.add(KeyValueModel(area=self.area, key=key, value=value))
                        else:
                            changes[key] = self._change(row.value, value)
                            row.value = value
        except SQLAlchemyError as e:
            logger.error(f"Failed to write keys {list(items)}: {e}", exc_info=True)
            raise StorageError(f"Failed to write keys {list(items)}: {e}") from e

        self._notify(changes)

    async def remove(self, keys: Union[str, Iterable[str]]) -> None:
        key_list = normalize_keys(keys)
        if not key_list:
            return

        changes: StorageChange = {}
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        select(KeyValueModel).where(
                            KeyValueModel.area == self.area,
                            KeyValueModel.key.in_(key_list),
                        )
                    )
                    for row in result.scalars():
                        changes[row.key] = self._change(row.value, None)
                        await session.delete(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to remove keys {key_list}: {e}", exc_info=True)
            raise StorageError(f"Failed to remove keys {key_list}: {e}") from e

        self._notify(changes)

    async def clear(self) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        select(KeyValueModel.key, KeyValueModel.value).where(
                            KeyValueModel.area == self.area
                        )
                    )
                    changes = {row.key: self._change(row.value, None) for row in result}
                    await session.execute(
                        delete(KeyValueModel).where(KeyValueModel.area == self.area)
                    )
        except SQLAlchemyError as e:
            logger.error(f"Failed to clear area '{self.area}': {e}", exc_info=True)
            raise StorageError(f"Failed to clear area '{self.area}': {e}") from e

        logger.info(f"Cleared {len(changes)} keys from area '{self.area}'")
        self._notify(changes)
