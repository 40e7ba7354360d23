# src/cache/redis_store.py — v2
"""Redis-based cache store (TASKCACHE_CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable when several machines share one build cache.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from taskcache.cache.base_cache_store import BaseCacheStore
from taskcache.cache.models import CachedRecord

logger = logging.getLogger(__name__)

_KEY_PREFIX = "taskcache:cache:"
_NAMESPACES_KEY = "taskcache:cache:__namespaces__"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store for shared deployments."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get_cached(self, name: str, key: str) -> CachedRecord | None:
        """Retrieve cache entry by namespace and key."""
        data = self._client.get(_entry_key(name, key))
        if data is None:
            return None
        try:
            return CachedRecord(**json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to deserialize cache entry %s/%s: %s", name, key, e)
            return None

    async def add_cached(self, name: str, key: str, contents: str) -> None:
        """Store a cache entry."""
        record = CachedRecord(name=name, key=key, contents=contents)
        self._client.set(_entry_key(name, key), record.model_dump_json())
        # Index sets back clear(); Redis has no cheap prefix delete
        self._client.sadd(_index_key(name), key)
        self._client.sadd(_NAMESPACES_KEY, name)

    async def remove_cached(self, name: str, key: str) -> None:
        """Remove a cache entry."""
        self._client.delete(_entry_key(name, key))
        self._client.srem(_index_key(name), key)

    async def clear(self, name: str | None = None) -> None:
        """Remove one namespace, or every namespace ever written."""
        names = [name] if name is not None else list(self._client.smembers(_NAMESPACES_KEY))
        for ns in names:
            for key in self._client.smembers(_index_key(ns)):
                self._client.delete(_entry_key(ns, key))
            self._client.delete(_index_key(ns))
            self._client.srem(_NAMESPACES_KEY, ns)

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()


def _entry_key(name: str, key: str) -> str:
    return f"{_KEY_PREFIX}{name}:{key}"


def _index_key(name: str) -> str:
    return f"{_KEY_PREFIX}{name}:__index__"
