"""
Storage adapter contract.

An adapter maps a named key to one JSON value (a collection key holds an array
of records). Subclasses implement the raw `_read`/`_write`/`_delete` primitives
and a transaction boundary; this base class adds serialization checks,
revisions and the fallback/explicit-result read paths shared by every backend.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, date
from decimal import Decimal
from typing import Any, AsyncIterator, NamedTuple, Optional
from uuid import UUID
import hashlib
import json
import logging

from hcp.core.errors import Conflict, StorageError
from hcp.core.result import Err, Ok, Result


logger = logging.getLogger(__name__)


class CustomJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal, datetime, UUID and other types."""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, UUID):
            return str(obj)
        return super().default(obj)


def dumps(value: Any) -> str:
    return json.dumps(value, cls=CustomJSONEncoder, ensure_ascii=False)


def compute_revision(value: Any) -> Optional[str]:
    """Content hash identifying one stored state of a key; None when absent."""
    if value is None:
        return None
    canonical = json.dumps(value, cls=CustomJSONEncoder, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


class Snapshot(NamedTuple):
    value: Any
    revision: Optional[str]


class StorageAdapter(ABC):
    """Async key/value persistence with whole-value writes."""

    name: str = "abstract"

    async def initialize(self) -> None:
        """Prepare the backing medium (create directories, tables)."""

    async def close(self) -> None:
        """Release connections or handles."""

    @abstractmethod
    async def _read(self, key: str) -> Any:
        """Return the stored value, None if absent. May raise on corrupt data."""

    @abstractmethod
    async def _write(self, key: str, value: Any) -> None:
        """Persist `value` (already checked to be JSON-serializable)."""

    @abstractmethod
    async def _delete(self, key: str) -> None:
        ...

    @abstractmethod
    def transaction(self):
        """
        Async context manager grouping writes: all commit or none do.

        Entering while a transaction is already open joins it.
        """

    async def load_result(self, key: str) -> Result[Snapshot]:
        """
        Read `key`, reporting failure explicitly.

        Returns:
            Ok(Snapshot(value, revision)) with value None if the key is absent,
            or Err(StorageError) if the stored data is unreadable.
        """
        try:
            value = await self._read(key)
        except StorageError as e:
            return Err(e)
        except (ValueError, TypeError, OSError) as e:
            logger.warning(f"Storage: unreadable data under {key}: {e}")
            return Err(StorageError(f"Stored data for {key} is unreadable"))
        return Ok(Snapshot(value, compute_revision(value)))

    async def load(self, key: str, fallback: Any = None) -> Any:
        """Read `key`; missing or corrupt data yields `fallback`."""
        result = await self.load_result(key)
        if not result.ok:
            logger.error(f"Storage: error loading {key}, using fallback: {result.error.message}")
            return fallback
        value = result.value.value
        return fallback if value is None else value

    async def revision(self, key: str) -> Optional[str]:
        result = await self.load_result(key)
        return result.value.revision if result.ok else None

    async def save(self, key: str, value: Any, expected_revision: Optional[str] = None) -> str:
        """
        Serialize and persist `value` under `key`.

        Args:
            expected_revision: when given, the write only happens if the stored
                revision still equals it.

        Returns:
            The new revision.

        Raises:
            Conflict: the stored revision differs from `expected_revision`
            StorageError: the value cannot be serialized or the medium rejects it
        """
        try:
            encoded = dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not serializable: {e}")
        plain = json.loads(encoded)

        async with self.transaction():
            if expected_revision is not None:
                current = await self.load_result(key)
                current_revision = current.value.revision if current.ok else None
                if current_revision != expected_revision:
                    raise Conflict(f"{key} was modified by another writer")
            try:
                await self._write(key, plain)
            except StorageError:
                raise
            except OSError as e:
                logger.error(f"Storage: error saving to {key}: {e}")
                raise StorageError(f"Storage quota exceeded or unavailable for {key}")
        return compute_revision(plain)

    async def delete(self, key: str) -> None:
        async with self.transaction():
            await self._delete(key)


class InMemoryTransactionMixin:
    """
    Snapshot-and-restore transactions for adapters whose whole state is a dict.

    Subclasses expose that dict as `self._data`.
    """

    _depth: int = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = dict(self._data)
        self._depth = 1
        try:
            yield
        except BaseException:
            self._data.clear()
            self._data.update(snapshot)
            raise
        finally:
            self._depth = 0
