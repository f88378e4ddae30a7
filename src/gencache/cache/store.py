"""Cache store adapter — content-type aware get/put over an opaque blob store."""

from __future__ import annotations

import logging
import time
from typing import Protocol

from pydantic import BaseModel, Field

from gencache.cache.stats import CacheStats
from gencache.errors.exceptions import StoreError
from gencache.types import ContentKind, StoredBlob

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
BINARY_CONTENT_TYPE = "application/octet-stream"

_KIND_METADATA_KEY = "content-kind"


class BlobStore(Protocol):
    """Opaque key-value blob store (R2, KV, SQLite, memory...)."""

    async def get(self, key: str) -> StoredBlob | None: ...

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None: ...


class CacheEntry(BaseModel):
    """A cached generation result."""

    storage_key: str
    data: bytes
    content_type: str
    content_kind: ContentKind
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: float = Field(default_factory=time.time)

    @property
    def value(self) -> str | bytes:
        """Decoded text for text entries, raw bytes for binary ones."""
        if self.content_kind == ContentKind.TEXT:
            return self.data.decode("utf-8")
        return self.data

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def text_content_type(content_type: str | None = None) -> str:
    """Ensure a text content type declares UTF-8 explicitly."""
    if not content_type:
        return TEXT_CONTENT_TYPE
    if "charset" in content_type.lower():
        return content_type
    return f"{content_type}; charset=utf-8"


def kind_from_content_type(content_type: str) -> ContentKind:
    """Anything with a charset parameter is text, everything else binary."""
    params = content_type.lower().split(";")[1:]
    if any(p.strip().startswith("charset=") for p in params):
        return ContentKind.TEXT
    return ContentKind.BINARY


class CacheStore:
    """Uniform get/put over a BlobStore with text/binary encoding."""

    def __init__(self, blob_store: BlobStore) -> None:
        self._blobs = blob_store
        self._stats = CacheStats()

    @property
    def blob_store(self) -> BlobStore:
        return self._blobs

    async def get(self, storage_key: str) -> CacheEntry | None:
        """Return the entry, or None when absent. Store failures raise StoreError."""
        try:
            blob = await self._blobs.get(storage_key)
        except Exception as exc:
            self._stats.errors += 1
            raise StoreError(
                f"Cache read failed for key {storage_key}: {exc}",
                operation="get",
                storage_key=storage_key,
            ) from exc

        if blob is None:
            self._stats.misses += 1
            return None

        self._stats.hits += 1
        kind_tag = blob.metadata.get(_KIND_METADATA_KEY)
        kind = ContentKind(kind_tag) if kind_tag else kind_from_content_type(blob.content_type)
        return CacheEntry(
            storage_key=storage_key,
            data=blob.data,
            content_type=blob.content_type,
            content_kind=kind,
            metadata=blob.metadata,
            created_at=blob.created_at,
        )

    async def put(
        self,
        storage_key: str,
        value: str | bytes,
        content_kind: ContentKind,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> CacheEntry:
        """Encode and write a value. Store failures raise StoreError."""
        if content_kind == ContentKind.TEXT:
            if not isinstance(value, str):
                raise TypeError(f"Text entries take str, got {type(value).__name__}")
            data = value.encode("utf-8")
            content_type = text_content_type(content_type)
        else:
            if not isinstance(value, (bytes, bytearray, memoryview)):
                raise TypeError(f"Binary entries take bytes, got {type(value).__name__}")
            data = bytes(value)
            content_type = content_type or BINARY_CONTENT_TYPE

        meta = {**(metadata or {}), _KIND_METADATA_KEY: content_kind.value}
        try:
            await self._blobs.put(storage_key, data, content_type, meta)
        except Exception as exc:
            self._stats.errors += 1
            raise StoreError(
                f"Cache write failed for key {storage_key}: {exc}",
                operation="put",
                storage_key=storage_key,
            ) from exc

        self._stats.writes += 1
        logger.debug("Stored %d bytes (%s) under %s", len(data), content_type, storage_key)
        return CacheEntry(
            storage_key=storage_key,
            data=data,
            content_type=content_type,
            content_kind=content_kind,
            metadata=meta,
        )

    def stats(self) -> CacheStats:
        return self._stats.model_copy()
