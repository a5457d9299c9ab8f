from hcp.config import Settings
from hcp.storage.base import Snapshot, StorageAdapter, compute_revision
from hcp.storage.file import FileStorage
from hcp.storage.memory import MemoryStorage


def build_storage(config: Settings) -> StorageAdapter:
    """Create the storage adapter selected by `STORAGE_BACKEND`."""
    if config.STORAGE_BACKEND == "memory":
        return MemoryStorage(quota_bytes=config.STORAGE_QUOTA_BYTES)
    if config.STORAGE_BACKEND == "file":
        return FileStorage(config.STORAGE_PATH)

    # Imported lazily so the key/value backends don't need a database driver
    from hcp.storage.sql import SQLStorage
    return SQLStorage.from_settings(config)


__all__ = [
    "FileStorage",
    "MemoryStorage",
    "Snapshot",
    "StorageAdapter",
    "build_storage",
    "compute_revision",
]
