# tests/unit/pipeline/test_task.py — v1
"""Tests for pipeline/task.py — listener registry and supplied tasks."""

from __future__ import annotations

import asyncio
import logging

import pytest

from taskcache.core.models import Artifact
from taskcache.pipeline.task import BaseTask, BatchTask, TransformTask


class _NullTask(BaseTask):
    def write(self, artifact):
        pass

    def end(self):
        pass


class TestListenerRegistry:
    def test_cannot_instantiate_base(self):
        with pytest.raises(TypeError):
            BaseTask()  # type: ignore[abstract]

    def test_on_and_emit(self):
        task = _NullTask()
        seen = []
        task.on("data", seen.append)
        task.emit("data", 1)
        task.emit("data", 2)
        assert seen == [1, 2]

    def test_once(self):
        task = _NullTask()
        seen = []
        task.once("end", lambda: seen.append("end"))
        task.emit("end")
        task.emit("end")
        assert seen == ["end"]
        assert task.listener_count("end") == 0

    def test_remove_listener(self):
        task = _NullTask()
        seen = []
        task.on("data", seen.append)
        task.remove_listener("data", seen.append)
        assert task.emit("data", 1) is False
        assert seen == []

    def test_remove_bound_method_once_listener(self):
        task = _NullTask()
        seen = []
        task.once("end", seen.append)
        task.remove_listener("end", seen.append)
        assert task.listener_count("end") == 0

    def test_listener_count(self):
        task = _NullTask()
        task.on("data", print)
        task.once("end", print)
        assert task.listener_count() == 2
        assert task.listener_count("data") == 1

    def test_leak_warning(self, caplog):
        task = _NullTask()
        task.set_max_listeners(1)
        with caplog.at_level(logging.WARNING):
            task.on("data", lambda *_: None)
            task.on("data", lambda *_: None)
        assert "Possible listener leak" in caplog.text

    def test_negative_cap_rejected(self):
        with pytest.raises(ValueError):
            _NullTask().set_max_listeners(-1)

    def test_unhandled_error_logged(self, caplog):
        with caplog.at_level(logging.ERROR):
            assert _NullTask().emit("error", RuntimeError("boom")) is False
        assert "boom" in caplog.text


class TestTransformTask:
    @pytest.mark.asyncio
    async def test_emits_data_then_end(self):
        task = TransformTask(lambda a: Artifact(path=a.path, contents=a.contents.upper()))
        events = []
        task.on("data", lambda a: events.append(a.contents))
        task.on("end", lambda: events.append("end"))
        task.write(Artifact(path="/a", contents=b"a"))
        task.write(Artifact(path="/b", contents=b"b"))
        task.end()
        for _ in range(5):
            await asyncio.sleep(0)
        assert events == [b"A", b"B", "end"]

    @pytest.mark.asyncio
    async def test_async_fn_and_drop(self):
        async def keep_even(a):
            return a if len(a.contents) % 2 == 0 else None

        task = TransformTask(keep_even)
        out = []
        task.on("data", out.append)
        task.write(Artifact(path="/a", contents=b"ab"))
        task.write(Artifact(path="/b", contents=b"abc"))
        task.end()
        done = asyncio.Event()
        task.on("end", done.set)
        await asyncio.wait_for(done.wait(), 1)
        assert [a.path for a in out] == ["/a"]

    @pytest.mark.asyncio
    async def test_error_emitted(self):
        def boom(a):
            raise ValueError("bad input")

        task = TransformTask(boom)
        errors = []
        task.on("error", errors.append)
        task.write(Artifact(path="/a", contents=b"x"))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)

    @pytest.mark.asyncio
    async def test_end_job_referenced_until_done(self):
        task = TransformTask(lambda a: a)
        done = asyncio.Event()
        task.on("end", done.set)
        task.end()
        assert len(task._background) == 1
        await asyncio.wait_for(done.wait(), 1)
        for _ in range(3):
            await asyncio.sleep(0)
        assert task._background == set()

    def test_cacheable_per_instance(self):
        task = TransformTask(lambda a: a, cacheable={"name": "t"})
        assert task.cacheable == {"name": "t"}
        assert TransformTask(lambda a: a).cacheable is None


class TestBatchTask:
    @pytest.mark.asyncio
    async def test_runs_whole_batch_on_end(self):
        batches = []

        def fn(batch):
            batches.append([a.path for a in batch])
            return [Artifact(path="/out", contents=b"".join(a.contents for a in batch))]

        task = BatchTask(fn)
        out = []
        done = asyncio.Event()
        task.on("data", out.append)
        task.on("end", done.set)
        task.write(Artifact(path="/a", contents=b"1"))
        task.write(Artifact(path="/b", contents=b"2"))
        assert batches == []
        task.end()
        assert len(task._background) == 1
        await asyncio.wait_for(done.wait(), 1)
        assert batches == [["/a", "/b"]]
        assert out[0].contents == b"12"
