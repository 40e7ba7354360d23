# src/pipeline/task_proxy.py — v1
"""Task proxy: check the cache, else run the task and store its result.

Per invocation:

  1. compute the key (no key: run uncached, never touch the store)
  2. look the key up; on a usable hit rebuild the output(s) and stop
  3. run the task through the execution bridge
  4. if the success predicate passes, extract, encode and store the value
  5. return the task's real output(s)

Errors from the key hook and from the task propagate unchanged; store
failures are wrapped in StoreError.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, TypeVar

from taskcache.cache.codec import decode_stored, encode_value, extract_value, merge_onto
from taskcache.cache.fingerprint import compute_key
from taskcache.cache.models import CacheLookup
from taskcache.config.options import CacheOptions
from taskcache.core.callables import call_hook
from taskcache.core.errors import ConfigurationError, StoreError
from taskcache.core.models import Artifact
from taskcache.logging.context import clear_context, set_invocation_context
from taskcache.pipeline.bridge import run_task
from taskcache.pipeline.task import BaseTask

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskProxy:
    """One cached invocation of ``task`` over ``artifacts``.

    Args:
        task: Wrapped task; may be None for invalidation only.
        artifacts: The single input (one-to-one) or the whole batch.
        options: Resolved cache options.
    """

    def __init__(
        self,
        task: BaseTask | None,
        artifacts: list[Artifact],
        options: CacheOptions,
    ) -> None:
        self._task = task
        self._artifacts = artifacts
        self._options = options
        self._original_paths = [a.path for a in artifacts]

    @property
    def _subject(self) -> Artifact | list[Artifact]:
        return self._artifacts if self._options.many_to_many else self._artifacts[0]

    async def process_files(self) -> list[Artifact]:
        """Return cached or freshly computed output artifacts."""
        try:
            return await self._process_files()
        finally:
            clear_context()

    async def remove_cached_result(self) -> None:
        """Drop the cached result for these inputs. Needs no task."""
        try:
            await self._remove_cached_result()
        finally:
            clear_context()

    # --- Steps ---

    async def _process_files(self) -> list[Artifact]:
        lookup = await self._check_for_cached_value()
        result = lookup.result

        if lookup.hit and result is not None:
            if self._options.many_to_many:
                logger.debug("Cache hit for batch of %d", len(self._artifacts))
                value = lookup.value
                return list(value) if isinstance(value, list) else [value]

            current = self._artifacts[0]
            if result.is_applicable_to(current.path):
                artifact = merge_onto(current, lookup.value)
                if result.path_changed_inside_task and result.path:
                    artifact.rename(result.path)
                logger.debug("Cache hit for %s", current.path)
                return [artifact]

            logger.warning(
                "Cached result for %s was produced from %s; re-running task",
                current.path,
                result.original_path,
            )

        return await self._run_proxied_task_and_cache(lookup.key)

    async def _remove_cached_result(self) -> None:
        key = await compute_key(self._subject, self._options)
        if not key:
            return
        set_invocation_context(self._options.name, key, self._options.many_to_many)
        store = self._options.resolved_store()
        await self._store_call("remove", store.remove_cached(self._options.name, key))
        logger.debug("Removed cached result %s/%s", self._options.name, key)

    async def _check_for_cached_value(self) -> CacheLookup:
        key = await compute_key(self._subject, self._options)
        if not key:
            logger.debug("Key hook returned nothing; caching bypassed")
            return CacheLookup(key=None)

        set_invocation_context(self._options.name, key, self._options.many_to_many)
        store = self._options.resolved_store()
        record = await self._store_call("get", store.get_cached(self._options.name, key))
        if record is None:
            logger.debug("Cache miss")
            return CacheLookup(key=key)

        result = decode_stored(record.contents)
        value: Any = result.value
        if self._options.restore is not None:
            value = self._options.restore(value)
        return CacheLookup(key=key, result=result, value=value)

    async def _run_proxied_task_and_cache(self, key: str | None) -> list[Artifact]:
        if self._task is None:
            raise ConfigurationError("Must pass a task to cache_task()")
        outputs = await run_task(self._task, self._artifacts, self._options.many_to_many)

        if not outputs:
            logger.debug("Task produced no output; nothing cached")
            return outputs

        if not await self._succeeded(outputs):
            logger.debug("Success predicate rejected output; not caching")
            return outputs

        await self._store_cached_result(key, outputs)
        return outputs

    async def _succeeded(self, outputs: list[Artifact]) -> bool:
        success = self._options.success
        if success is True:
            return True
        if success is False:
            return False
        subject = outputs if self._options.many_to_many else outputs[0]
        return bool(await call_hook(success, subject))

    async def _store_cached_result(self, key: str | None, outputs: list[Artifact]) -> None:
        if not key:
            return

        value = await extract_value(outputs, self._options)
        if value is None:
            logger.debug("No value configured; nothing cached")
            return

        raw = encode_value(value, self._original_paths, [o.path for o in outputs])
        store = self._options.resolved_store()
        await self._store_call("add", store.add_cached(self._options.name, key, raw))
        logger.debug("Stored result under %s/%s", self._options.name, key)

    async def _store_call(self, op: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except Exception as exc:
            raise StoreError(f"Cache store {op} failed: {exc}") from exc

