# src/cache/models.py — v2
"""Cache domain models: CachedRecord, CachedResult, CacheLookup."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class CachedRecord(BaseModel):
    """Raw entry as kept by a store backend."""

    name: str
    key: str
    contents: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CachedResult(BaseModel):
    """Decoded stored value plus its path bookkeeping.

    For batch payloads ``value`` is a list and ``items`` holds the decoded
    result for every element.
    """

    value: Any = None
    path: str | None = None
    original_path: str | None = None
    path_changed_inside_task: bool = False
    items: list[CachedResult] | None = None

    @property
    def is_batch(self) -> bool:
        return self.items is not None

    def is_applicable_to(self, input_path: str | None) -> bool:
        """Whether a one-to-one hit may be reused for an input at ``input_path``.

        A result whose path was changed by the task only applies to the input
        it was produced from (or to an input already at the produced path).
        """
        if not self.path_changed_inside_task or self.path == input_path:
            return True
        return self.original_path == input_path


class CacheLookup(BaseModel):
    """Outcome of a cache check for one invocation."""

    key: str | None = None
    result: CachedResult | None = None
    value: Any = None

    @property
    def hit(self) -> bool:
        return self.result is not None and self.value is not None
