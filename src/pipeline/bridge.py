# src/pipeline/bridge.py — v1
"""Execution bridge: drive a push-style task to a single awaited result.

One attempt per call, no retry, no timeout. The listeners installed here
are always removed again, and the task's listener cap is restored, whether
the task finishes or fails.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from taskcache.core.models import Artifact
from taskcache.pipeline.task import BaseTask

logger = logging.getLogger(__name__)

# data + error + end
_LISTENERS_ADDED = 3


async def run_task(
    task: BaseTask,
    inputs: list[Artifact],
    many_to_many: bool = False,
) -> list[Artifact]:
    """Run ``inputs`` through ``task`` and collect its outputs in emission order.

    One-to-one: only the first input is written and the first output
    completes the run. Many-to-many: every input is written, the channel is
    closed, and only ``end`` completes the run.

    Raises:
        Whatever error the task emits. Outputs collected before it are dropped.
    """
    loop = asyncio.get_running_loop()
    done: asyncio.Future[list[Artifact]] = loop.create_future()
    outputs: list[Artifact] = []

    def handle_data(artifact: Artifact | None = None) -> None:
        if artifact is None or done.done():
            return
        outputs.append(artifact)
        if not many_to_many:
            done.set_result(list(outputs))

    def handle_end(artifact: Artifact | None = None) -> None:
        if done.done():
            return
        if artifact is not None:
            outputs.append(artifact)
        done.set_result(list(outputs))

    def handle_error(err: Any) -> None:
        if done.done():
            return
        done.set_exception(err if isinstance(err, BaseException) else RuntimeError(str(err)))

    # Raise the cap first so our own listeners never trip the leak warning
    task.set_max_listeners(task.max_listeners + _LISTENERS_ADDED)
    task.on("data", handle_data)
    task.once("error", handle_error)
    task.once("end", handle_end)

    try:
        if many_to_many:
            for artifact in inputs:
                task.write(artifact)
            task.end()
        else:
            task.write(inputs[0])

        result = await done
        logger.debug("Task %s produced %d output(s)", type(task).__name__, len(result))
        return result
    finally:
        task.remove_listener("data", handle_data)
        task.remove_listener("error", handle_error)
        task.remove_listener("end", handle_end)
        task.set_max_listeners(max(task.max_listeners - _LISTENERS_ADDED, 0))
