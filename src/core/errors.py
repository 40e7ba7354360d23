# src/core/errors.py — v1
"""Error taxonomy shared by every layer of the task cache.

Task execution errors are never wrapped: whatever the wrapped task raises or
emits reaches the caller unchanged.
"""

from __future__ import annotations

PLUGIN_NAME = "taskcache"


class TaskCacheError(Exception):
    """Base error with a stable plugin-level identity."""

    plugin_name = PLUGIN_NAME

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.plugin_name}] {message}" if message else f"[{self.plugin_name}]"


class ConfigurationError(TaskCacheError):
    """Raised for a missing task or an invalid option set."""


class UnsupportedInputError(TaskCacheError):
    """Raised when an artifact carries streamed contents instead of bytes."""


class StoreError(TaskCacheError):
    """Raised when the cache store fails on get/add/remove/clear."""
