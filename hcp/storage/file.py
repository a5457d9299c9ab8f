"""JSON-file storage: one `<key>.json` document per key in a directory."""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional
import asyncio
import json
import logging
import os
import re
import tempfile

from hcp.core.errors import StorageError
from hcp.storage.base import StorageAdapter, dumps


logger = logging.getLogger(__name__)

_DELETED = object()
_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage(StorageAdapter):
    """
    Persists each key as a JSON file.

    Writes inside a transaction are staged in memory and only reach disk when
    the outermost transaction exits cleanly; each file is replaced atomically.
    Disk I/O runs in a worker thread. A commit touching several keys is not
    atomic across them: if one file fails to write, files already replaced
    stay replaced.
    """

    name = "file"

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._pending: Optional[dict[str, Any]] = None
        self._depth = 0

    async def initialize(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.directory}: {e}")

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    async def _read(self, key: str) -> Any:
        if self._pending is not None and key in self._pending:
            staged = self._pending[key]
            return None if staged is _DELETED else staged
        return await asyncio.to_thread(self._read_file, self._path(key))

    @staticmethod
    def _read_file(path: Path) -> Any:
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    async def _write(self, key: str, value: Any) -> None:
        self._path(key)
        if self._pending is None:
            await asyncio.to_thread(self._flush, {key: value})
        else:
            self._pending[key] = value

    async def _delete(self, key: str) -> None:
        if self._pending is None:
            await asyncio.to_thread(self._flush, {key: _DELETED})
        else:
            self._pending[key] = _DELETED

    def _flush(self, changes: dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        for key, value in changes.items():
            path = self._path(key)
            if value is _DELETED:
                path.unlink(missing_ok=True)
                continue
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(dumps(value))
                os.replace(tmp_name, path)
            except OSError as e:
                Path(tmp_name).unlink(missing_ok=True)
                logger.error(f"FileStorage: error writing {path}: {e}")
                raise StorageError(f"Storage quota exceeded or unavailable for {key}")

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._pending = {}
        self._depth = 1
        try:
            yield
            staged = self._pending
            self._pending = None
            await asyncio.to_thread(self._flush, staged)
        finally:
            self._pending = None
            self._depth = 0
