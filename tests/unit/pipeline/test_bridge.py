# tests/unit/pipeline/test_bridge.py — v1
"""Tests for pipeline/bridge.py — driving a task to one awaited result."""

from __future__ import annotations

import asyncio

import pytest

from taskcache.core.models import Artifact
from taskcache.pipeline.bridge import run_task
from taskcache.pipeline.task import BaseTask, BatchTask, TransformTask


class _ScriptedTask(BaseTask):
    """Emits a fixed event script once the first write (or end) arrives."""

    def __init__(self, script, trigger="write"):
        super().__init__()
        self.script = script
        self.trigger = trigger
        self.written = []
        self.ended = False

    def write(self, artifact):
        self.written.append(artifact)
        if self.trigger == "write":
            self._play()

    def end(self):
        self.ended = True
        if self.trigger == "end":
            self._play()

    def _play(self):
        loop = asyncio.get_running_loop()
        for event, *args in self.script:
            loop.call_soon(self.emit, event, *args)


def _art(name):
    return Artifact(path=f"/{name}", contents=name.encode())


class TestOneToOne:
    @pytest.mark.asyncio
    async def test_first_data_completes(self):
        task = TransformTask(lambda a: a)
        out = await run_task(task, [_art("a")])
        assert [a.path for a in out] == ["/a"]

    @pytest.mark.asyncio
    async def test_only_first_input_written(self):
        task = _ScriptedTask([("data", _art("x"))])
        await run_task(task, [_art("a"), _art("b")])
        assert [a.path for a in task.written] == ["/a"]
        assert task.ended is False

    @pytest.mark.asyncio
    async def test_end_with_artifact(self):
        task = _ScriptedTask([("end", _art("final"))])
        out = await run_task(task, [_art("a")])
        assert [a.path for a in out] == ["/final"]


class TestManyToMany:
    @pytest.mark.asyncio
    async def test_collects_until_end_in_order(self):
        task = _ScriptedTask(
            [("data", _art("1")), ("data", _art("2")), ("data", _art("3")), ("end",)],
            trigger="end",
        )
        out = await run_task(task, [_art("a"), _art("b")], many_to_many=True)
        assert [a.path for a in out] == ["/1", "/2", "/3"]
        assert [a.path for a in task.written] == ["/a", "/b"]
        assert task.ended is True

    @pytest.mark.asyncio
    async def test_batch_task(self):
        task = BatchTask(lambda batch: list(reversed(batch)))
        out = await run_task(task, [_art("a"), _art("b")], many_to_many=True)
        assert [a.path for a in out] == ["/b", "/a"]


class TestErrors:
    @pytest.mark.asyncio
    async def test_error_rejects_and_discards_partial(self):
        task = _ScriptedTask(
            [("data", _art("1")), ("error", RuntimeError("task failed")), ("end",)],
            trigger="end",
        )
        with pytest.raises(RuntimeError, match="task failed"):
            await run_task(task, [_art("a")], many_to_many=True)

    @pytest.mark.asyncio
    async def test_task_exception_propagates_as_is(self):
        class Boom(Exception):
            pass

        def fail(a):
            raise Boom("nope")

        with pytest.raises(Boom):
            await run_task(TransformTask(fail), [_art("a")])

    @pytest.mark.asyncio
    async def test_non_exception_error_wrapped(self):
        task = _ScriptedTask([("error", "plain string")])
        with pytest.raises(RuntimeError, match="plain string"):
            await run_task(task, [_art("a")])


class TestListenerHygiene:
    @pytest.mark.asyncio
    async def test_listeners_removed_on_success(self):
        task = TransformTask(lambda a: a)
        task.on("data", lambda a: None)
        before_count, before_cap = task.listener_count(), task.max_listeners
        await run_task(task, [_art("a")])
        assert task.listener_count() == before_count
        assert task.max_listeners == before_cap

    @pytest.mark.asyncio
    async def test_listeners_removed_on_error(self):
        task = _ScriptedTask([("error", RuntimeError("x"))])
        before_cap = task.max_listeners
        with pytest.raises(RuntimeError):
            await run_task(task, [_art("a")])
        assert task.listener_count() == 0
        assert task.max_listeners == before_cap

    @pytest.mark.asyncio
    async def test_cap_raised_while_running(self):
        caps = []
        task = _ScriptedTask([("data", _art("x"))])
        original_write = task.write

        def spy(artifact):
            caps.append((task.max_listeners, task.listener_count()))
            original_write(artifact)

        task.write = spy  # type: ignore[method-assign]
        await run_task(task, [_art("a")])
        assert caps == [(13, 3)]

    @pytest.mark.asyncio
    async def test_repeated_runs_do_not_accumulate(self):
        task = TransformTask(lambda a: a)
        for _ in range(20):
            await run_task(task, [_art("a")])
        assert task.listener_count() == 0
        assert task.max_listeners == 10
