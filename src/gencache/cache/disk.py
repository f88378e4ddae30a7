"""Durable blob store backed by SQLite."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import threading
import time
from pathlib import Path

from gencache.types import StoredBlob

logger = logging.getLogger(__name__)

_DEFAULT_DB_PATH = Path.home() / ".gencache" / "cache.db"


class SQLiteBlobStore:
    """SQLite-backed persistent blob store.

    Entries are never evicted. Blocking sqlite calls run in a worker thread,
    serialised by a lock so one connection can be shared.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or _DEFAULT_DB_PATH
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._create_table()

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def get(self, key: str) -> StoredBlob | None:
        return await asyncio.to_thread(self._get, key)

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        await asyncio.to_thread(self._put, key, bytes(data), content_type, metadata or {})

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM blobs")
            self._conn.commit()

    @property
    def entry_count(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) FROM blobs").fetchone()
        return row[0]

    @property
    def size_mb(self) -> float:
        with self._lock:
            row = self._conn.execute(
                "SELECT COALESCE(SUM(LENGTH(data)), 0) FROM blobs"
            ).fetchone()
        return row[0] / (1024 * 1024)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _get(self, key: str) -> StoredBlob | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM blobs WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_blob(row)

    def _put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str],
    ) -> None:
        with self._lock:
            self._conn.execute(
                """INSERT OR REPLACE INTO blobs
                   (key, data, content_type, metadata, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (key, sqlite3.Binary(data), content_type, json.dumps(metadata), time.time()),
            )
            self._conn.commit()
        logger.debug("Wrote %d bytes to %s", len(data), self._db_path)

    def _create_table(self) -> None:
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    data BLOB NOT NULL,
                    content_type TEXT NOT NULL,
                    metadata TEXT,
                    created_at REAL
                )
            """)
            self._conn.commit()

    @staticmethod
    def _row_to_blob(row: sqlite3.Row) -> StoredBlob:
        metadata: dict[str, str] = {}
        if row["metadata"]:
            try:
                metadata = json.loads(row["metadata"])
            except json.JSONDecodeError:
                logger.warning("Corrupt metadata for key %s, ignoring", row["key"])

        return StoredBlob(
            data=bytes(row["data"]),
            content_type=row["content_type"],
            metadata=metadata,
            created_at=row["created_at"] or 0.0,
        )
