"""
Relational storage: one CollectionRow per collection element.

List values are written as ordered rows under a CollectionHead; scalar values
(such as the active dataset version id) live on the head row itself. A save
replaces all rows of its key inside one database transaction.
"""
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional
import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hcp.config import Settings
from hcp.core.errors import StorageError
from hcp.database import build_engine, build_session_factory, init_db
from hcp.models.collection import CollectionHead, CollectionRow
from hcp.storage.base import StorageAdapter


logger = logging.getLogger(__name__)


def _record_id(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        value = item.get("id", item.get("code"))
        if value is not None:
            return str(value)[:100]
    return None


class SQLStorage(StorageAdapter):
    """Storage adapter backed by SQLAlchemy (PostgreSQL or SQLite)."""

    name = "sql"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_factory = session_factory
        self._engine = engine
        self._active: ContextVar[Optional[AsyncSession]] = ContextVar(
            f"hcp_sql_session_{id(self)}", default=None
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "SQLStorage":
        engine = build_engine(config)
        return cls(build_session_factory(engine), engine)

    async def initialize(self) -> None:
        if self._engine is None:
            return
        try:
            await init_db(self._engine)
        except SQLAlchemyError as e:
            logger.error(f"SQLStorage: table creation failed: {e}")
            raise StorageError("Database is unavailable")

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        active = self._active.get()
        if active is not None:
            yield active
            return
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"SQLStorage: database error: {e}")
            raise StorageError("Database is unavailable")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._active.get() is not None:
            yield
            return
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    token = self._active.set(session)
                    try:
                        yield
                    finally:
                        self._active.reset(token)
        except SQLAlchemyError as e:
            logger.error(f"SQLStorage: transaction rolled back: {e}")
            raise StorageError("Database write failed")

    async def _read(self, key: str) -> Any:
        async with self._session() as session:
            head = await session.get(CollectionHead, key)
            if head is None:
                return None
            if head.kind == "value":
                return head.value
            result = await session.execute(
                select(CollectionRow.data)
                .where(CollectionRow.key == key)
                .order_by(CollectionRow.position)
            )
            return list(result.scalars().all())

    async def _write(self, key: str, value: Any) -> None:
        is_list = isinstance(value, list)
        async with self._session() as session:
            head = await session.get(CollectionHead, key)
            if head is None:
                head = CollectionHead(key=key, kind="list")
                session.add(head)
            head.kind = "list" if is_list else "value"
            head.value = None if is_list else value
            head.updated_at = datetime.now(timezone.utc)
            await session.flush()

            await session.execute(
                delete(CollectionRow)
                .where(CollectionRow.key == key)
                .execution_options(synchronize_session=False)
            )
            if is_list and value:
                await session.execute(
                    insert(CollectionRow),
                    [
                        {
                            "key": key,
                            "position": position,
                            "record_id": _record_id(item),
                            "data": item,
                        }
                        for position, item in enumerate(value)
                    ],
                )

    async def _delete(self, key: str) -> None:
        async with self._session() as session:
            await session.execute(
                delete(CollectionRow)
                .where(CollectionRow.key == key)
                .execution_options(synchronize_session=False)
            )
            await session.execute(
                delete(CollectionHead)
                .where(CollectionHead.key == key)
                .execution_options(synchronize_session=False)
            )
