# src/core/callables.py — v1
"""Normalise user-supplied hooks to a single awaitable calling convention.

Option hooks (key, value, success) may be plain functions, coroutine
functions, functions returning an awaitable, or two-argument callback-style
functions ``fn(arg, callback)`` where ``callback(err, result)`` reports the
outcome.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def is_callback_style(fn: Callable[..., Any]) -> bool:
    """True when ``fn`` takes exactly two required positional parameters."""
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False
    required = [p for p in params if p.kind in _POSITIONAL and p.default is p.empty]
    return len(required) == 2


async def call_hook(fn: Callable[..., Any], arg: Any) -> Any:
    """Call ``fn(arg)`` and await whatever it produces."""
    if is_callback_style(fn):
        return await _call_with_callback(fn, arg)

    result = fn(arg)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _call_with_callback(fn: Callable[..., Any], arg: Any) -> Any:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def settle(err: BaseException | None, result: Any) -> None:
        if future.done():
            return
        if err is not None:
            future.set_exception(err)
        else:
            future.set_result(result)

    def callback(err: BaseException | None = None, result: Any = None) -> None:
        loop.call_soon_threadsafe(settle, err, result)

    fn(arg, callback)
    return await future
