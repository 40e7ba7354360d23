# src/cache/sqlite_store.py — v2
"""SQLite-based cache store (TASKCACHE_CACHE_BACKEND=sqlite).

Uses stdlib sqlite3 — no external dependency.
Better than one-file-per-entry when a namespace holds many results.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from taskcache.cache.base_cache_store import BaseCacheStore
from taskcache.cache.models import CachedRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    name TEXT NOT NULL,
    key TEXT NOT NULL,
    contents TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (name, key)
);
CREATE INDEX IF NOT EXISTS idx_cache_name ON cache_entries(name);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get_cached(self, name: str, key: str) -> CachedRecord | None:
        """Retrieve cache entry by namespace and key."""
        cursor = self._conn.execute(
            "SELECT contents, created_at FROM cache_entries WHERE name = ? AND key = ?",
            (name, key),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return CachedRecord(
            name=name,
            key=key,
            contents=row[0],
            created_at=datetime.fromisoformat(row[1]),
        )

    async def add_cached(self, name: str, key: str, contents: str) -> None:
        """Store a cache entry (upsert)."""
        record = CachedRecord(name=name, key=key, contents=contents)
        self._conn.execute(
            """INSERT OR REPLACE INTO cache_entries
               (name, key, contents, created_at)
               VALUES (?, ?, ?, ?)""",
            (name, key, contents, record.created_at.isoformat()),
        )
        self._conn.commit()

    async def remove_cached(self, name: str, key: str) -> None:
        """Remove a cache entry."""
        self._conn.execute(
            "DELETE FROM cache_entries WHERE name = ? AND key = ?", (name, key)
        )
        self._conn.commit()

    async def clear(self, name: str | None = None) -> None:
        """Remove one namespace, or all entries."""
        if name is None:
            self._conn.execute("DELETE FROM cache_entries")
        else:
            self._conn.execute("DELETE FROM cache_entries WHERE name = ?", (name,))
        self._conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
