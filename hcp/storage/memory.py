"""In-process key/value storage, the browser local-storage analogue."""
from typing import Any, Optional
import json

from hcp.core.errors import StorageError
from hcp.storage.base import InMemoryTransactionMixin, StorageAdapter, dumps


class MemoryStorage(InMemoryTransactionMixin, StorageAdapter):
    """
    Keeps each key as serialized JSON text, like a browser's local storage.

    Args:
        quota_bytes: optional cap on the total stored size; a write that would
            exceed it is rejected with StorageError and nothing changes.
    """

    name = "memory"

    def __init__(self, quota_bytes: Optional[int] = None):
        self._data: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    async def _read(self, key: str) -> Any:
        text = self._data.get(key)
        if text is None:
            return None
        return json.loads(text)

    async def _write(self, key: str, value: Any) -> None:
        text = dumps(value)
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            if used + len(text.encode("utf-8")) > self.quota_bytes:
                raise StorageError(f"Storage quota exceeded or unavailable for {key}")
        self._data[key] = text

    async def _delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def put_raw(self, key: str, text: str) -> None:
        """Store `text` verbatim (used to seed or simulate damaged data)."""
        self._data[key] = text
