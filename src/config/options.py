# src/config/options.py — v1
"""Per-invocation cache options and their three-tier resolution.

Precedence, applied field by field: caller overrides beat the task's
``cacheable`` defaults, which beat the system defaults declared on
``CacheOptions``.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskcache.cache.base_cache_store import BaseCacheStore
from taskcache.cache.codec import default_restore, default_value
from taskcache.config.settings import load_settings
from taskcache.core.errors import ConfigurationError
from taskcache.version import __version__


def default_namespace() -> str:
    """Namespace used when none is given: TASKCACHE_DEFAULT_NAMESPACE."""
    return load_settings().default_namespace


class CacheOptions(BaseModel):
    """Validated cache policy for one cached task.

    Attributes:
        name: Namespace the entries are stored under. Defaults to the
            configured default namespace.
        key: Key hook; None selects the content-based default key.
        success: True, or a predicate over the output(s) gating caching.
        value: Property name or hook projecting the cacheable value; None
            disables storing.
        restore: Hook rebuilding output(s) from a stored value; None hands
            back the decoded value as-is.
        many_to_many: Process the whole batch as one invocation.
        store: Cache store; None means the process-wide default store.
        version: Version tag mixed into the default key.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    name: str = Field(default_factory=default_namespace)
    key: Callable[..., Any] | None = None
    success: bool | Callable[..., Any] = True
    value: str | Callable[..., Any] | None = default_value
    restore: Callable[..., Any] | None = default_restore
    many_to_many: bool = False
    store: BaseCacheStore | None = None
    version: str = Field(default=__version__, min_length=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise ValueError("name must not be empty")
        return v

    def resolved_store(self) -> BaseCacheStore:
        """The configured store, falling back to the process-wide one."""
        if self.store is not None:
            return self.store
        from taskcache.cache.cache_factory import get_default_store
        return get_default_store()


def resolve_options(
    task: object | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> CacheOptions:
    """Merge caller overrides over task defaults over system defaults.

    Raises:
        ConfigurationError: On unknown option names or invalid values.
    """
    merged: dict[str, Any] = {}
    task_defaults = getattr(task, "cacheable", None) if task is not None else None
    if task_defaults:
        merged.update(task_defaults)
    if overrides:
        merged.update(overrides)

    try:
        return CacheOptions(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid cache options: {e}") from e
