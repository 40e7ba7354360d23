# src/core/models.py — v1
"""Artifact model: the unit of work flowing through a cached task.

An artifact carries a content blob, a path and arbitrary named properties.
The structural fields are declared; anything a task sets on top of them is
kept as an extra property and survives a cache round trip.
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

STRUCTURAL_FIELDS: tuple[str, ...] = ("cwd", "base", "path", "stat", "history", "contents")

# Fields never copied from a cached value onto the current input.
PROTECTED_FIELDS: tuple[str, ...] = ("cwd", "path", "base", "stat", "history")


class Artifact(BaseModel):
    """File-like unit of work: contents plus path metadata."""

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    cwd: str = Field(default_factory=os.getcwd)
    base: str | None = None
    path: str | None = None
    stat: dict[str, Any] | None = None
    history: list[str] = Field(default_factory=list)
    contents: Any = None

    @field_validator("contents", mode="before")
    @classmethod
    def coerce_contents(cls, v: Any) -> Any:
        """Text becomes UTF-8 bytes; bytearray/memoryview become bytes."""
        if isinstance(v, str):
            return v.encode("utf-8")
        if isinstance(v, (bytearray, memoryview)):
            return bytes(v)
        return v

    @model_validator(mode="after")
    def seed_history(self) -> Artifact:
        if self.path and not self.history:
            self.history.append(self.path)
        elif self.history and self.path is None:
            self.path = self.history[-1]
        return self

    # --- Content kind ---

    def is_null(self) -> bool:
        return self.contents is None

    def is_buffer(self) -> bool:
        return isinstance(self.contents, bytes)

    def is_stream(self) -> bool:
        """True for file-like objects and (async) iterators of chunks."""
        c = self.contents
        if c is None or isinstance(c, bytes):
            return False
        return (
            hasattr(c, "read")
            or hasattr(c, "__aiter__")
            or hasattr(c, "__next__")
        )

    # --- Helpers ---

    def rename(self, new_path: str) -> None:
        """Move the artifact to a new path, recording it in history."""
        if new_path != self.path:
            self.path = new_path
            self.history.append(new_path)

    def extra_properties(self) -> dict[str, Any]:
        """Task-added properties (everything outside the structural fields)."""
        return dict(self.model_extra or {})

    def text(self, encoding: str = "utf-8") -> str:
        if not self.is_buffer():
            raise TypeError("Artifact contents are not an in-memory buffer")
        return self.contents.decode(encoding)

    def clone(self) -> Artifact:
        return self.model_copy(deep=True)
