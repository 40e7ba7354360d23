# src/logging/context.py — v2
"""Contextual logging support — attach namespace, cache key and mode to log records.

The proxy sets the context once the cache key is known and clears it when
the invocation ends, so a later invocation never logs a stale key. Tasks
spawned while it is set (the wrapped task's own work) inherit a copy.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_namespace: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "namespace", default=None
)
_cache_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_key", default=None
)
_mode: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "mode", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    namespace: str | None = None
    cache_key: str | None = None
    mode: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        namespace=_namespace.get(),
        cache_key=_cache_key.get(),
        mode=_mode.get(),
    )


def set_invocation_context(namespace: str, cache_key: str, many_to_many: bool) -> None:
    """Set per-invocation context (called once the cache key is known)."""
    _namespace.set(namespace)
    _cache_key.set(cache_key)
    _mode.set("many-to-many" if many_to_many else "one-to-one")


def clear_context() -> None:
    """Reset all context variables."""
    _namespace.set(None)
    _cache_key.set(None)
    _mode.set(None)
