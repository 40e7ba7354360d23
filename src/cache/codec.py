# src/cache/codec.py — v1
"""Stored-value codec: extract, encode, decode and restore task results.

On disk a stored value is JSON text. Binary ``contents`` are written as
base64; older payloads holding a list of byte values or a
``{"type": "Buffer", "data": [...]}`` object are still accepted when
decoding. A value that is already a string is stored verbatim, and a payload
that is not JSON comes back wrapped as ``{"cached": <text>}``.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import TYPE_CHECKING, Any, Mapping

from taskcache.cache.models import CachedResult
from taskcache.core.callables import call_hook
from taskcache.core.models import PROTECTED_FIELDS, STRUCTURAL_FIELDS, Artifact

if TYPE_CHECKING:
    from taskcache.config.options import CacheOptions

logger = logging.getLogger(__name__)

ORIGINAL_PATH_FIELD = "originalPath"
PATH_CHANGED_FIELD = "pathChangedInsideTask"
RAW_PAYLOAD_FIELD = "cached"


# === Extraction ===


def artifact_to_obj(artifact: Artifact) -> dict[str, Any]:
    """Default projection: the structural fields plus any task-added properties."""
    obj = {name: getattr(artifact, name) for name in STRUCTURAL_FIELDS}
    obj.update(artifact.extra_properties())
    return obj


def default_value(outputs: Artifact | list[Artifact]) -> Any:
    if isinstance(outputs, list):
        return [artifact_to_obj(a) for a in outputs]
    return artifact_to_obj(outputs)


async def extract_value(outputs: list[Artifact], options: CacheOptions) -> Any:
    """Project the cacheable value out of the task outputs.

    Returns:
        The value to store, or None when no value rule is configured.
    """
    rule = options.value
    subject: Any = outputs if options.many_to_many else outputs[0]

    if rule is None:
        return None
    if isinstance(rule, str):
        if options.many_to_many:
            return [{rule: getattr(a, rule, None)} for a in outputs]
        return {rule: getattr(subject, rule, None)}
    return await call_hook(rule, subject)


# === Encoding ===


def encode_value(
    value: Any,
    input_paths: list[str | None],
    output_paths: list[str | None] | None = None,
) -> str:
    """Serialize an extracted value to stored text.

    Mappings (or artifacts) get ``originalPath`` stamped from the input at
    the same position, and ``pathChangedInsideTask`` when the produced path
    (the value's own ``path``, else the output artifact's) differs from it.
    Lists are handled element by element.
    """
    output_paths = output_paths or []
    if isinstance(value, str):
        return value

    if isinstance(value, list):
        payload: Any = [
            _encode_item(item, _input_path(input_paths, i), _nth(output_paths, i))
            for i, item in enumerate(value)
        ]
    else:
        payload = _encode_item(value, _input_path(input_paths, 0), _nth(output_paths, 0))

    return json.dumps(payload, indent=2, default=_json_default)


def _input_path(input_paths: list[str | None], index: int) -> str | None:
    if not input_paths:
        return None
    if index < len(input_paths):
        return input_paths[index]
    return input_paths[0]


def _nth(paths: list[str | None], index: int) -> str | None:
    return paths[index] if index < len(paths) else None


def _encode_item(item: Any, input_path: str | None, output_path: str | None) -> Any:
    if isinstance(item, Artifact):
        item = artifact_to_obj(item)
    if not isinstance(item, Mapping):
        return item

    # Shallow copy: the caller's value must not change
    obj = dict(item)
    contents = obj.get("contents")
    if isinstance(contents, (bytes, bytearray, memoryview)):
        obj["contents"] = base64.b64encode(bytes(contents)).decode("ascii")

    produced = obj["path"] if "path" in obj else output_path
    if produced is not None and produced != input_path:
        obj[PATH_CHANGED_FIELD] = True
    obj[ORIGINAL_PATH_FIELD] = input_path
    return obj


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(obj)).decode("ascii")
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    return str(obj)


# === Decoding ===


def decode_stored(raw: str) -> CachedResult:
    """Parse stored text into a CachedResult, tolerating non-JSON payloads."""
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.debug("Stored payload is not JSON; wrapping it verbatim")
        parsed = {RAW_PAYLOAD_FIELD: raw}

    if isinstance(parsed, list):
        items = [_decode_item(item) for item in parsed]
        return CachedResult(value=[item.value for item in items], items=items)
    return _decode_item(parsed)


def _decode_item(item: Any) -> CachedResult:
    if not isinstance(item, dict):
        return CachedResult(value=item)

    obj = dict(item)
    original_path = obj.pop(ORIGINAL_PATH_FIELD, None)
    changed = bool(obj.pop(PATH_CHANGED_FIELD, False))
    if "contents" in obj:
        obj["contents"] = decode_contents(obj["contents"])
    return CachedResult(
        value=obj,
        path=obj.get("path"),
        original_path=original_path,
        path_changed_inside_task=changed,
    )


def decode_contents(value: Any) -> Any:
    """Turn any accepted stored form of ``contents`` back into bytes.

    Accepts raw bytes, a list of byte values, a ``{"type": "Buffer",
    "data": [...]}`` object, or base64 text. Anything else (including None)
    is returned unchanged.
    """
    if value is None or isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, dict) and isinstance(value.get("data"), list):
        return bytes(value["data"])
    if isinstance(value, list):
        return bytes(value)
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            logger.debug("contents is not base64; keeping it as UTF-8 text")
            return value.encode("utf-8")
    return value


# === Restoration ===


def restore_artifact(obj: Mapping[str, Any]) -> Artifact:
    """Build a fresh Artifact, overlaying every non-structural key."""
    structural = {k: obj[k] for k in STRUCTURAL_FIELDS if k in obj and obj[k] is not None}
    if "contents" in structural:
        structural["contents"] = decode_contents(structural["contents"])
    artifact = Artifact(**structural)
    for name, val in obj.items():
        if name not in STRUCTURAL_FIELDS:
            setattr(artifact, name, val)
    return artifact


def default_restore(value: Any) -> Any:
    if isinstance(value, list):
        return [restore_artifact(v) if isinstance(v, Mapping) else v for v in value]
    if isinstance(value, Mapping):
        return restore_artifact(value)
    return value


def merge_onto(artifact: Artifact, restored: Any) -> Artifact:
    """Copy a cached value onto the current input, keeping its path info."""
    if isinstance(restored, Artifact):
        fields: Mapping[str, Any] = restored.extra_properties()
        if restored.contents is not None:
            fields = {"contents": restored.contents, **fields}
    elif isinstance(restored, Mapping):
        fields = restored
    else:
        return artifact

    for name, val in fields.items():
        if name in PROTECTED_FIELDS:
            continue
        setattr(artifact, name, val)
    return artifact
