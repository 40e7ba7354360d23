# src/api/facade.py — v2
"""Public API facade — wrap a task so its results are cached.

Usage:
    from taskcache.api.facade import cache_task
    cached = cache_task(minify_task, name="minify")
    outputs = await cached.run(artifacts)

Invalidation and bulk clear:
    await clear_results(artifacts, name="minify")
    await clear_all()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Iterable
from typing import Any, AsyncIterator, Callable

from taskcache.cache.base_cache_store import BaseCacheStore
from taskcache.config.options import CacheOptions, resolve_options
from taskcache.core.errors import ConfigurationError, StoreError, UnsupportedInputError
from taskcache.core.models import Artifact
from taskcache.pipeline.task import BaseTask
from taskcache.pipeline.task_proxy import TaskProxy

logger = logging.getLogger(__name__)

Artifacts = Iterable[Artifact] | AsyncIterable[Artifact]


def default_options() -> dict[str, Any]:
    """System-level option defaults (the lowest precedence tier)."""
    return CacheOptions().model_dump()


class CachedTask:
    """A task wrapped with the result cache.

    One-to-one mode runs every input through the task on its own.
    Many-to-many mode gathers the inputs and runs them as one batch once
    the input is exhausted. Null artifacts pass straight through.
    """

    def __init__(self, task: BaseTask, options: CacheOptions) -> None:
        self._task = task
        self._options = options

    @property
    def task(self) -> BaseTask:
        return self._task

    @property
    def options(self) -> CacheOptions:
        return self._options

    async def process(self, artifacts: Artifacts) -> AsyncIterator[Artifact]:
        """Yield output artifacts for ``artifacts`` as they become available."""
        batch: list[Artifact] = []
        async for artifact in _iterate(artifacts):
            if artifact.is_null():
                yield artifact
                continue
            _reject_stream(artifact)

            if self._options.many_to_many:
                batch.append(artifact)
                continue

            for output in await TaskProxy(self._task, [artifact], self._options).process_files():
                yield output

        if self._options.many_to_many and batch:
            for output in await TaskProxy(self._task, batch, self._options).process_files():
                yield output

    async def run(self, artifacts: Artifacts) -> list[Artifact]:
        """Collect every output of ``process`` into a list."""
        return [output async for output in self.process(artifacts)]


def cache_task(task: BaseTask | None, **overrides: Any) -> CachedTask:
    """Wrap ``task`` so repeated runs over unchanged inputs hit the cache.

    Options are resolved once: ``overrides`` beat ``task.cacheable``, which
    beats the defaults on CacheOptions.

    Raises:
        ConfigurationError: If no task is given or an option is invalid.
    """
    if not task:
        raise ConfigurationError("Must pass a task to cache_task()")
    options = resolve_options(task, overrides)
    logger.debug(
        "Caching %s in namespace %r (%s)",
        type(task).__name__,
        options.name,
        "many-to-many" if options.many_to_many else "one-to-one",
    )
    return CachedTask(task, options)


async def clear(artifacts: Artifacts, **overrides: Any) -> AsyncIterator[Artifact]:
    """Remove the cached results for ``artifacts``, yielding them back.

    The inputs are yielded once their entry is gone, so a consumer can use
    them as a completion signal.
    """
    options = resolve_options(None, overrides)
    batch: list[Artifact] = []
    async for artifact in _iterate(artifacts):
        if artifact.is_null():
            yield artifact
            continue
        _reject_stream(artifact)

        if options.many_to_many:
            batch.append(artifact)
            continue

        await TaskProxy(None, [artifact], options).remove_cached_result()
        yield artifact

    if options.many_to_many and batch:
        await TaskProxy(None, batch, options).remove_cached_result()
        for artifact in batch:
            yield artifact


async def clear_results(artifacts: Artifacts, **overrides: Any) -> list[Artifact]:
    """Eager form of ``clear``."""
    return [artifact async for artifact in clear(artifacts, **overrides)]


async def clear_all(
    store: BaseCacheStore | None = None,
    callback: Callable[[StoreError | None], Any] | None = None,
) -> None:
    """Empty every namespace of the cache store.

    With ``callback`` the outcome is reported as ``callback(error_or_None)``;
    without one a failure is raised.

    Raises:
        StoreError: If clearing fails and no callback is given.
    """
    if store is None:
        store = CacheOptions().resolved_store()
    try:
        await store.clear(None)
    except Exception as exc:
        error = StoreError(f"Problem clearing the cache: {exc}")
        error.__cause__ = exc
        if callback is not None:
            callback(error)
            return
        raise error from exc

    logger.info("Cleared all cached results")
    if callback is not None:
        callback(None)


async def _iterate(artifacts: Artifacts) -> AsyncIterator[Artifact]:
    if isinstance(artifacts, AsyncIterable):
        async for artifact in artifacts:
            yield artifact
    else:
        for artifact in artifacts:
            yield artifact


def _reject_stream(artifact: Artifact) -> None:
    if artifact.is_stream():
        raise UnsupportedInputError("Cannot operate on stream sources")
