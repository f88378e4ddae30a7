"""In-memory blob store."""

from __future__ import annotations

from gencache.types import StoredBlob


class MemoryBlobStore:
    """Dict-backed blob store. Nothing survives the process."""

    def __init__(self) -> None:
        self._store: dict[str, StoredBlob] = {}
        self.reads = 0
        self.writes = 0

    async def get(self, key: str) -> StoredBlob | None:
        self.reads += 1
        return self._store.get(key)

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        self.writes += 1
        self._store[key] = StoredBlob(
            data=bytes(data),
            content_type=content_type,
            metadata=dict(metadata or {}),
        )

    def clear(self) -> None:
        self._store.clear()

    @property
    def size_mb(self) -> float:
        return sum(len(b.data) for b in self._store.values()) / (1024 * 1024)

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)
