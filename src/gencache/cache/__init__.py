"""Cache subsystem — content-addressed keys over a durable blob store."""

from gencache.cache.disk import SQLiteBlobStore
from gencache.cache.keys import fingerprint, scoped_key, storage_key
from gencache.cache.memory import MemoryBlobStore
from gencache.cache.stats import CacheStats
from gencache.cache.store import BlobStore, CacheEntry, CacheStore

__all__ = [
    "BlobStore",
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "MemoryBlobStore",
    "SQLiteBlobStore",
    "fingerprint",
    "scoped_key",
    "storage_key",
]
