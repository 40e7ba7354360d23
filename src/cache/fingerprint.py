# src/cache/fingerprint.py — v3
"""Cache key derivation.

Default key material is the version tag followed by the base64 text of every
input's contents, in order. The material is then reduced to a fixed-length
MD5 hex digest. A key hook returning a falsy value opts the invocation out
of caching altogether.
"""

from __future__ import annotations

import base64
import hashlib
from typing import TYPE_CHECKING, Any

from taskcache.core.callables import call_hook
from taskcache.core.errors import UnsupportedInputError
from taskcache.core.models import Artifact
from taskcache.version import __version__

if TYPE_CHECKING:
    from taskcache.config.options import CacheOptions


def default_key(inputs: Artifact | list[Artifact], version: str = __version__) -> str:
    """Build the raw key material for one artifact or an ordered batch."""
    artifacts = inputs if isinstance(inputs, list) else [inputs]
    parts = [version]
    for artifact in artifacts:
        if not artifact.is_buffer():
            raise UnsupportedInputError(
                f"Cannot fingerprint non-buffer contents of {artifact.path!r}"
            )
        parts.append(base64.b64encode(artifact.contents).decode("ascii"))
    return "".join(parts)


def make_hash(material: str | bytes) -> str:
    """MD5 hex digest of the key material."""
    if isinstance(material, str):
        material = material.encode("utf-8")
    return hashlib.md5(material).hexdigest()  # noqa: S324


async def compute_key(inputs: Artifact | list[Artifact], options: CacheOptions) -> str | None:
    """Compute the cache key for ``inputs`` under ``options``.

    Returns:
        Hex digest, or None when the key hook asked not to cache.
    """
    if options.key is None:
        material: Any = default_key(inputs, options.version)
    else:
        material = await call_hook(options.key, inputs)

    if not material:
        return None
    if not isinstance(material, (str, bytes)):
        material = str(material)
    return make_hash(material)
