# src/__init__.py — v1
"""taskcache — cache the results of build pipeline tasks.

Wrap a task with ``cache_task`` and re-running it over unchanged inputs
returns the stored result instead of executing the task again.
"""

from taskcache.api.facade import CachedTask, cache_task, clear, clear_all, clear_results
from taskcache.config.options import CacheOptions
from taskcache.core.errors import (
    ConfigurationError,
    StoreError,
    TaskCacheError,
    UnsupportedInputError,
)
from taskcache.core.models import Artifact
from taskcache.pipeline.task import BaseTask, BatchTask, TransformTask
from taskcache.version import __version__

__all__ = [
    "Artifact",
    "BaseTask",
    "BatchTask",
    "CacheOptions",
    "CachedTask",
    "ConfigurationError",
    "StoreError",
    "TaskCacheError",
    "TransformTask",
    "UnsupportedInputError",
    "__version__",
    "cache_task",
    "clear",
    "clear_all",
    "clear_results",
]
