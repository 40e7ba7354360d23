# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Deployment-level settings only: which store backend to use, where it lives,
and how to log. Per-invocation cache policy lives in config/options.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskcache.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from .env file and TASKCACHE_* variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TASKCACHE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_backend: Literal["json", "sqlite", "redis", "memory"] = "json"
    cache_root: Path = Path("~/.taskcache/cache")
    cache_dir_name: str = "taskcache"
    cache_redis_url: str = ""
    default_namespace: str = "default"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("cache_dir_name")
    @classmethod
    def validate_cache_dir_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v:
            raise ValueError("cache_dir_name must be a single path segment")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append(
                "TASKCACHE_CACHE_REDIS_URL must be set when TASKCACHE_CACHE_BACKEND=redis"
            )

        if not self.default_namespace:
            errors.append("TASKCACHE_DEFAULT_NAMESPACE must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_dir(self) -> Path:
        """Directory holding this tool's cache files."""
        return self.cache_root.expanduser() / self.cache_dir_name


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or scripted runs).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
