# tests/conftest.py — v2
"""Shared test fixtures for unit and integration tests.

Provides sample artifacts, counting tasks and in-memory / temp-dir stores.
No external services — Redis is mocked.
"""

from __future__ import annotations

import logging
from typing import Any

import pytest

from taskcache.cache.cache_factory import reset_default_store
from taskcache.cache.json_store import JsonCacheStore
from taskcache.cache.memory_store import MemoryCacheStore
from taskcache.core.models import Artifact
from taskcache.logging.context import clear_context
from taskcache.pipeline.task import BatchTask, TransformTask


class CountingTransform(TransformTask):
    """TransformTask that records how many artifacts it processed."""

    def __init__(self, fn: Any, cacheable: dict[str, Any] | None = None) -> None:
        self.calls = 0

        def counted(artifact: Artifact) -> Any:
            self.calls += 1
            return fn(artifact)

        super().__init__(counted, cacheable=cacheable)


def uppercase(artifact: Artifact) -> Artifact:
    out = artifact.clone()
    out.contents = artifact.contents.upper()
    return out


def rename_to_upper(artifact: Artifact) -> Artifact:
    out = uppercase(artifact)
    out.rename(artifact.path.replace(".txt", ".upper.txt"))
    return out


@pytest.fixture(autouse=True)
def _isolate_globals():
    reset_default_store()
    clear_context()
    yield
    reset_default_store()
    clear_context()
    pkg_logger = logging.getLogger("taskcache")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()
    pkg_logger.setLevel(logging.NOTSET)


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_artifact() -> Artifact:
    """Artifact with text contents 'abc'."""
    return Artifact(cwd="/work", base="/work/src", path="/work/src/a.txt", contents=b"abc")


@pytest.fixture
def sample_batch() -> list[Artifact]:
    """Three artifacts in a fixed order."""
    return [
        Artifact(cwd="/work", base="/work/src", path=f"/work/src/{name}.txt", contents=body)
        for name, body in (("one", b"first"), ("two", b"second"), ("three", b"third"))
    ]


# === FIXTURES: Stores ===


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def json_store(tmp_path) -> JsonCacheStore:
    return JsonCacheStore(cache_root=tmp_path / "cache")


# === FIXTURES: Tasks ===


@pytest.fixture
def upper_task() -> CountingTransform:
    """One-to-one task uppercasing contents."""
    return CountingTransform(uppercase)


@pytest.fixture
def rename_task() -> CountingTransform:
    """One-to-one task uppercasing contents and renaming x.txt to x.upper.txt."""
    return CountingTransform(rename_to_upper)


@pytest.fixture
def concat_task() -> BatchTask:
    """Many-to-many task joining every input into one bundle plus an index."""

    def bundle(batch: list[Artifact]) -> list[Artifact]:
        bundle_task.calls += 1
        joined = b"\n".join(a.contents for a in batch)
        index = "\n".join(a.path for a in batch)
        return [
            Artifact(cwd="/work", base="/work/dist", path="/work/dist/bundle.txt", contents=joined),
            Artifact(cwd="/work", base="/work/dist", path="/work/dist/index.txt", contents=index),
        ]

    bundle_task = BatchTask(bundle)
    bundle_task.calls = 0  # type: ignore[attr-defined]
    return bundle_task
