# src/pipeline/task.py — v1
"""Wrapped-task protocol: a push-style producer of artifacts.

A task accepts artifacts through ``write()``, is told no more input is
coming through ``end()``, and reports back by emitting events:

  - ``data``  one output artifact
  - ``error`` the task failed (emitted at most once)
  - ``end``   no more output

Tasks may declare default cache options in a ``cacheable`` mapping; callers
can still override each of them.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar, Coroutine, Iterable

from taskcache.core.callables import call_hook
from taskcache.core.models import Artifact

logger = logging.getLogger(__name__)

DEFAULT_MAX_LISTENERS = 10

Listener = Callable[..., Any]
TransformFn = Callable[[Artifact], "Artifact | list[Artifact] | None | Awaitable[Any]"]
BatchFn = Callable[[list[Artifact]], "Iterable[Artifact] | Awaitable[Any]"]


class BaseTask(ABC):
    """Event-emitting task that the cache proxy can drive."""

    cacheable: ClassVar[dict[str, Any] | None] = None

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}
        self._max_listeners = DEFAULT_MAX_LISTENERS
        self._warned: set[str] = set()
        self._background: set[asyncio.Task[None]] = set()

    # --- Listener registry ---

    @property
    def max_listeners(self) -> int:
        return self._max_listeners

    def set_max_listeners(self, n: int) -> None:
        if n < 0:
            raise ValueError("max listeners must be >= 0")
        self._max_listeners = n

    def on(self, event: str, listener: Listener) -> None:
        self._add(event, listener, once=False)

    def once(self, event: str, listener: Listener) -> None:
        self._add(event, listener, once=True)

    def remove_listener(self, event: str, listener: Listener) -> None:
        entries = self._listeners.get(event, [])
        for i, (fn, _) in enumerate(entries):
            if fn == listener:
                del entries[i]
                break
        if not entries:
            self._listeners.pop(event, None)

    def listener_count(self, event: str | None = None) -> int:
        if event is None:
            return sum(len(v) for v in self._listeners.values())
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of ``event``; False when nobody was listening."""
        entries = list(self._listeners.get(event, []))
        if not entries:
            if event == "error":
                logger.error("Unhandled error from %s: %s", type(self).__name__, args[0] if args else None)
            return False
        for fn, once in entries:
            if once:
                self.remove_listener(event, fn)
            fn(*args)
        return True

    def _add(self, event: str, listener: Listener, once: bool) -> None:
        entries = self._listeners.setdefault(event, [])
        entries.append((listener, once))
        if self._max_listeners and len(entries) > self._max_listeners and event not in self._warned:
            self._warned.add(event)
            logger.warning(
                "Possible listener leak on %s: %d '%s' listeners (max %d)",
                type(self).__name__, len(entries), event, self._max_listeners,
            )

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        """Schedule ``coro``, holding a reference until it finishes."""
        job = asyncio.get_running_loop().create_task(coro)
        self._background.add(job)
        job.add_done_callback(self._background.discard)
        return job

    # --- Input channel ---

    @abstractmethod
    def write(self, artifact: Artifact) -> None:
        """Feed one input artifact."""

    @abstractmethod
    def end(self) -> None:
        """Signal that no more input will be written."""


class TransformTask(BaseTask):
    """Applies ``fn`` to every written artifact, one result per input.

    ``fn`` may be sync or async and may return an artifact, a list of
    artifacts, or None to drop the input.
    """

    def __init__(self, fn: TransformFn, cacheable: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._fn = fn
        self._pending: set[asyncio.Task[None]] = set()
        if cacheable is not None:
            self.cacheable = cacheable  # type: ignore[misc]

    def write(self, artifact: Artifact) -> None:
        job = self._spawn(self._transform(artifact))
        self._pending.add(job)
        job.add_done_callback(self._pending.discard)

    def end(self) -> None:
        self._spawn(self._finish())

    async def _transform(self, artifact: Artifact) -> None:
        try:
            result = await call_hook(self._fn, artifact)
        except Exception as exc:
            self.emit("error", exc)
            return
        for output in _as_list(result):
            self.emit("data", output)

    async def _finish(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending)
        self.emit("end")


class BatchTask(BaseTask):
    """Buffers every written artifact and runs ``fn`` over the whole batch on end()."""

    def __init__(self, fn: BatchFn, cacheable: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._fn = fn
        self._buffer: list[Artifact] = []
        if cacheable is not None:
            self.cacheable = cacheable  # type: ignore[misc]

    def write(self, artifact: Artifact) -> None:
        self._buffer.append(artifact)

    def end(self) -> None:
        batch, self._buffer = self._buffer, []
        self._spawn(self._run(batch))

    async def _run(self, batch: list[Artifact]) -> None:
        try:
            result = await call_hook(self._fn, batch)
        except Exception as exc:
            self.emit("error", exc)
            return
        for output in _as_list(result):
            self.emit("data", output)
        self.emit("end")


def _as_list(result: Any) -> list[Artifact]:
    if result is None:
        return []
    if isinstance(result, Artifact):
        return [result]
    return [r for r in result if r is not None]
