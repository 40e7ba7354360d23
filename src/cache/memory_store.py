# src/cache/memory_store.py — v1
"""In-process cache store (TASKCACHE_CACHE_BACKEND=memory).

Nothing survives the process. Handy for tests and one-shot runs.
"""

from __future__ import annotations

from taskcache.cache.base_cache_store import BaseCacheStore
from taskcache.cache.models import CachedRecord


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed cache store."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, CachedRecord]] = {}

    async def get_cached(self, name: str, key: str) -> CachedRecord | None:
        return self._entries.get(name, {}).get(key)

    async def add_cached(self, name: str, key: str, contents: str) -> None:
        self._entries.setdefault(name, {})[key] = CachedRecord(
            name=name, key=key, contents=contents
        )

    async def remove_cached(self, name: str, key: str) -> None:
        self._entries.get(name, {}).pop(key, None)

    async def clear(self, name: str | None = None) -> None:
        if name is None:
            self._entries.clear()
        else:
            self._entries.pop(name, None)

    def __len__(self) -> int:
        return sum(len(ns) for ns in self._entries.values())
