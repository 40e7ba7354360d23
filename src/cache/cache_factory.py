# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation, plus the process-wide default store.

The default store is built lazily on first use from the environment
settings, or installed explicitly with ``set_default_store``. Every cached
invocation receives its store through its options; nothing else reads the
module-level slot.
"""

from __future__ import annotations

import logging

from taskcache.cache.base_cache_store import BaseCacheStore
from taskcache.config.settings import Settings

logger = logging.getLogger(__name__)

_default_store: BaseCacheStore | None = None


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to loading the environment.

    Returns:
        Configured BaseCacheStore implementation.
    """
    if settings is None:
        settings = Settings()
    backend = settings.cache_backend

    if backend == "json":
        from taskcache.cache.json_store import JsonCacheStore
        return JsonCacheStore(cache_root=settings.cache_dir)

    if backend == "sqlite":
        from taskcache.cache.sqlite_store import SqliteCacheStore
        db_path = settings.cache_dir / "taskcache.db"
        return SqliteCacheStore(db_path=db_path)

    if backend == "redis":
        from taskcache.cache.redis_store import RedisCacheStore
        if not settings.cache_redis_url:
            raise ValueError(
                "TASKCACHE_CACHE_REDIS_URL must be set when TASKCACHE_CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    if backend == "memory":
        from taskcache.cache.memory_store import MemoryCacheStore
        return MemoryCacheStore()

    raise ValueError(f"Unsupported cache backend: {backend!r}")


def get_default_store() -> BaseCacheStore:
    """Return the process-wide store, creating it from settings on first use."""
    global _default_store
    if _default_store is None:
        _default_store = create_cache_store()
        logger.debug("Initialized default cache store: %s", type(_default_store).__name__)
    return _default_store


def set_default_store(store: BaseCacheStore | None) -> None:
    """Install (or with None, drop) the process-wide store."""
    global _default_store
    _default_store = store


def reset_default_store() -> None:
    set_default_store(None)
