# tests/unit/cache/test_unit_cache_factory.py — v4
"""Tests for cache/cache_factory.py."""

from __future__ import annotations

import pytest

from taskcache.cache.cache_factory import (
    create_cache_store,
    get_default_store,
    reset_default_store,
    set_default_store,
)
from taskcache.cache.json_store import JsonCacheStore
from taskcache.cache.memory_store import MemoryCacheStore
from taskcache.cache.sqlite_store import SqliteCacheStore
from taskcache.config.settings import Settings


class TestCreateCacheStore:
    def test_default_json(self, tmp_path):
        s = Settings(_env_file=None, cache_root=tmp_path)
        store = create_cache_store(s)
        assert isinstance(store, JsonCacheStore)
        assert store.root == tmp_path / "taskcache"

    def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="sqlite", cache_root=tmp_path)
        store = create_cache_store(s)
        assert isinstance(store, SqliteCacheStore)
        assert (tmp_path / "taskcache" / "taskcache.db").exists()

    def test_memory_backend(self):
        s = Settings(_env_file=None, cache_backend="memory")
        assert isinstance(create_cache_store(s), MemoryCacheStore)

    def test_unsupported_backend(self):
        """Settings validation rejects invalid backends before factory is reached."""
        with pytest.raises((ValueError, Exception)):
            s = Settings(_env_file=None, cache_backend="nonexistent")
            create_cache_store(s)


class TestDefaultStore:
    def test_created_once(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TASKCACHE_CACHE_BACKEND", "memory")
        first = get_default_store()
        assert isinstance(first, MemoryCacheStore)
        assert get_default_store() is first

    def test_set_and_reset(self):
        store = MemoryCacheStore()
        set_default_store(store)
        assert get_default_store() is store
        reset_default_store()
        set_default_store(MemoryCacheStore())
        assert get_default_store() is not store
