import asyncio

import pytest

from hcp.core.errors import Conflict, StorageError
from hcp.storage import FileStorage, MemoryStorage, build_storage, compute_revision
from hcp.storage.sql import SQLStorage

from conftest import make_settings


@pytest.fixture(params=["memory", "file", "sql"])
async def adapter(request, tmp_path):
    if request.param == "memory":
        yield MemoryStorage()
    elif request.param == "file":
        store = FileStorage(tmp_path / "store")
        await store.initialize()
        yield store
    else:
        config = make_settings(
            STORAGE_BACKEND="sql",
            DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'hcp.db'}",
        )
        store = SQLStorage.from_settings(config)
        await store.initialize()
        yield store
        await store.close()


INVOICES = [
    {"id": "i1", "partnerCode": "P1", "totalAmount": 100, "items": []},
    {"id": "i2", "partnerCode": "P2", "totalAmount": 250.5, "notes": "ünïcode"},
]


async def test_round_trip_non_empty(adapter):
    await adapter.save("hcp_invoices", INVOICES)
    assert await adapter.load("hcp_invoices", []) == INVOICES


async def test_round_trip_empty_collection(adapter):
    await adapter.save("hcp_invoices", [])
    assert await adapter.load("hcp_invoices", None) == []


async def test_round_trip_scalar_value(adapter):
    await adapter.save("hcp_active_version_id", "v1")
    assert await adapter.load("hcp_active_version_id") == "v1"


async def test_missing_key_returns_fallback(adapter):
    assert await adapter.load("hcp_missing", ["fallback"]) == ["fallback"]
    result = await adapter.load_result("hcp_missing")
    assert result.ok
    assert result.value.value is None
    assert result.value.revision is None


async def test_save_returns_content_revision(adapter):
    revision = await adapter.save("hcp_invoices", INVOICES)
    assert revision == compute_revision(INVOICES)
    assert await adapter.revision("hcp_invoices") == revision


async def test_stale_revision_conflicts_and_writes_nothing(adapter):
    first = await adapter.save("hcp_invoices", INVOICES)
    await adapter.save("hcp_invoices", INVOICES[:1], expected_revision=first)

    with pytest.raises(Conflict):
        await adapter.save("hcp_invoices", [], expected_revision=first)
    assert await adapter.load("hcp_invoices") == INVOICES[:1]


async def test_transaction_rolls_back_every_write(adapter):
    await adapter.save("hcp_invoices", INVOICES)

    with pytest.raises(RuntimeError):
        async with adapter.transaction():
            await adapter.save("hcp_invoices", [])
            await adapter.save("hcp_events", [{"id": "e1"}])
            raise RuntimeError("boom")

    assert await adapter.load("hcp_invoices") == INVOICES
    assert await adapter.load("hcp_events") is None


async def test_nested_transaction_joins_outer(adapter):
    async with adapter.transaction():
        async with adapter.transaction():
            await adapter.save("hcp_events", [{"id": "e1"}])
        assert await adapter.load("hcp_events") == [{"id": "e1"}]
    assert await adapter.load("hcp_events") == [{"id": "e1"}]


async def test_delete_removes_key(adapter):
    await adapter.save("hcp_events", [{"id": "e1"}])
    await adapter.delete("hcp_events")
    assert await adapter.load("hcp_events", []) == []


async def test_unserializable_value_raises_storage_error(adapter):
    with pytest.raises(StorageError):
        await adapter.save("hcp_events", [{"id": object()}])


async def test_memory_corrupt_data_falls_back():
    store = MemoryStorage()
    store.put_raw("hcp_invoices", "{not json")

    assert await store.load("hcp_invoices", []) == []
    result = await store.load_result("hcp_invoices")
    assert not result.ok
    assert isinstance(result.error, StorageError)


async def test_file_corrupt_data_falls_back(tmp_path):
    store = FileStorage(tmp_path)
    await store.initialize()
    (tmp_path / "hcp_invoices.json").write_text("[{", encoding="utf-8")

    assert await store.load("hcp_invoices", []) == []
    assert not (await store.load_result("hcp_invoices")).ok


async def test_memory_quota_exceeded_raises_and_keeps_data():
    store = MemoryStorage(quota_bytes=64)
    await store.save("hcp_events", [{"id": "e1"}])

    with pytest.raises(StorageError, match="quota"):
        await store.save("hcp_invoices", [{"id": "x" * 100}])
    assert await store.load("hcp_events") == [{"id": "e1"}]
    assert await store.load("hcp_invoices") is None


async def test_file_storage_rejects_path_like_keys(tmp_path):
    store = FileStorage(tmp_path)
    with pytest.raises(StorageError):
        await store.save("../escape", [])


async def test_file_storage_persists_across_instances(tmp_path):
    await FileStorage(tmp_path).save("hcp_registry", [{"code": "P1"}])
    assert await FileStorage(tmp_path).load("hcp_registry") == [{"code": "P1"}]


async def test_file_storage_does_disk_io_in_worker_threads(tmp_path, monkeypatch):
    calls = []
    real_to_thread = asyncio.to_thread

    async def recording_to_thread(func, *args):
        calls.append(func.__name__)
        return await real_to_thread(func, *args)

    monkeypatch.setattr("hcp.storage.file.asyncio.to_thread", recording_to_thread)
    store = FileStorage(tmp_path)

    async with store.transaction():
        await store.save("hcp_events", [{"id": "e1"}])
        await store.save("hcp_campaigns", [{"id": "c1"}])
    assert await store.load("hcp_events") == [{"id": "e1"}]

    assert calls.count("_flush") == 1
    assert "_read_file" in calls


async def test_sql_storage_persists_across_engines(tmp_path):
    config = make_settings(
        STORAGE_BACKEND="sql",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'persist.db'}",
    )
    first = SQLStorage.from_settings(config)
    await first.initialize()
    await first.save("hcp_registry", [{"code": "P1"}, {"code": "P2"}])
    await first.close()

    second = SQLStorage.from_settings(config)
    await second.initialize()
    try:
        assert await second.load("hcp_registry") == [{"code": "P1"}, {"code": "P2"}]
    finally:
        await second.close()


def test_build_storage_selects_backend(tmp_path):
    assert isinstance(build_storage(make_settings(STORAGE_BACKEND="memory")), MemoryStorage)
    file_store = build_storage(make_settings(STORAGE_BACKEND="file", STORAGE_PATH=str(tmp_path)))
    assert isinstance(file_store, FileStorage)
