"""Tests for the SQLite blob store."""

import pytest

from gencache.cache.disk import SQLiteBlobStore
from gencache.cache.store import CacheStore
from gencache.types import ContentKind


@pytest.fixture
def disk_store(tmp_path):
    store = SQLiteBlobStore(db_path=tmp_path / "cache.db")
    yield store
    store.close()


class TestSQLiteBlobStore:
    async def test_get_put(self, disk_store):
        await disk_store.put("k1", b"hello", "text/plain; charset=utf-8", {"a": "b"})
        blob = await disk_store.get("k1")
        assert blob is not None
        assert blob.data == b"hello"
        assert blob.content_type == "text/plain; charset=utf-8"
        assert blob.metadata == {"a": "b"}

    async def test_get_miss(self, disk_store):
        assert await disk_store.get("nonexistent") is None

    async def test_empty_blob_is_present(self, disk_store):
        await disk_store.put("k1", b"", "application/octet-stream")
        blob = await disk_store.get("k1")
        assert blob is not None
        assert blob.data == b""

    async def test_binary_bytes_exact(self, disk_store):
        payload = bytes(range(256)) + b"\x00" * 32
        await disk_store.put("k1", payload, "image/png")
        blob = await disk_store.get("k1")
        assert blob.data == payload

    async def test_entry_count_and_size(self, disk_store):
        assert disk_store.entry_count == 0
        await disk_store.put("k1", b"a" * 1024, "application/octet-stream")
        await disk_store.put("k2", b"b" * 1024, "application/octet-stream")
        assert disk_store.entry_count == 2
        assert disk_store.size_mb == pytest.approx(2048 / (1024 * 1024))

    async def test_clear(self, disk_store):
        await disk_store.put("k1", b"x", "application/octet-stream")
        disk_store.clear()
        assert disk_store.entry_count == 0

    async def test_persists_across_instances(self, tmp_path):
        db_path = tmp_path / "cache.db"
        first = SQLiteBlobStore(db_path=db_path)
        try:
            await first.put("k1", b"durable", "application/octet-stream")
        finally:
            first.close()

        second = SQLiteBlobStore(db_path=db_path)
        try:
            blob = await second.get("k1")
            assert blob is not None
            assert blob.data == b"durable"
        finally:
            second.close()

    async def test_creates_parent_dirs(self, tmp_path):
        store = SQLiteBlobStore(db_path=tmp_path / "nested" / "dir" / "cache.db")
        try:
            assert store.db_path.parent.exists()
        finally:
            store.close()


class TestCacheStoreOverSQLite:
    async def test_text_round_trip(self, disk_store):
        store = CacheStore(disk_store)
        await store.put("k", "héllo\x00wörld", ContentKind.TEXT)
        entry = await store.get("k")
        assert entry.value == "héllo\x00wörld"

    async def test_binary_round_trip(self, disk_store, png_bytes):
        store = CacheStore(disk_store)
        await store.put("k", png_bytes, ContentKind.BINARY, content_type="image/png")
        entry = await store.get("k")
        assert entry.value == png_bytes
        assert entry.content_type == "image/png"
