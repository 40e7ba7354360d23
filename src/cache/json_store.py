# src/cache/json_store.py — v2
"""JSON file-based cache store (default TASKCACHE_CACHE_BACKEND=json).

Stores each entry as an individual JSON file: ``<root>/<name>/<key>.json``.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from pydantic import ValidationError

from taskcache.cache.base_cache_store import BaseCacheStore
from taskcache.cache.models import CachedRecord

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    async def get_cached(self, name: str, key: str) -> CachedRecord | None:
        """Retrieve cache entry by namespace and key."""
        path = self._entry_path(name, key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CachedRecord(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to read cache entry %s/%s: %s", name, key, e)
            return None

    async def add_cached(self, name: str, key: str, contents: str) -> None:
        """Store a cache entry."""
        path = self._entry_path(name, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        record = CachedRecord(name=name, key=key, contents=contents)
        path.write_text(record.model_dump_json(indent=2), encoding="utf-8")

    async def remove_cached(self, name: str, key: str) -> None:
        """Remove a cache entry."""
        path = self._entry_path(name, key)
        if path.exists():
            path.unlink()

    async def clear(self, name: str | None = None) -> None:
        """Remove one namespace directory, or every one."""
        if name is not None:
            target = self._root / _safe(name)
            if target.is_dir():
                shutil.rmtree(target)
            return

        for child in self._root.iterdir():
            if child.is_dir():
                shutil.rmtree(child)
            else:
                child.unlink()

    def _entry_path(self, name: str, key: str) -> Path:
        """Return file path for a namespaced cache key."""
        return self._root / _safe(name) / f"{_safe(key)}.json"


def _safe(part: str) -> str:
    return part.replace("/", "_").replace("\\", "_")
