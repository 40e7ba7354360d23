# src/cache/base_cache_store.py — v2
"""Abstract cache store interface.

Entries are addressed by ``(name, key)``: ``name`` is a namespace so
independent usages never collide, ``key`` is the fingerprint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from taskcache.cache.models import CachedRecord


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get_cached(self, name: str, key: str) -> CachedRecord | None:
        """Retrieve the entry stored under ``(name, key)``."""

    @abstractmethod
    async def add_cached(self, name: str, key: str, contents: str) -> None:
        """Store ``contents`` under ``(name, key)``, replacing any previous entry."""

    @abstractmethod
    async def remove_cached(self, name: str, key: str) -> None:
        """Remove a single entry. Missing entries are ignored."""

    @abstractmethod
    async def clear(self, name: str | None = None) -> None:
        """Remove every entry of one namespace, or of all namespaces when None."""
