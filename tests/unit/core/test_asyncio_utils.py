"""Unit tests for the asyncio task helpers."""

import asyncio
import logging

import pytest

from tap2eat.core.asyncio_utils import (
    cancel_task_safely,
    create_logged_task,
    discard_task_result,
)


class TestCreateLoggedTask:

    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def work():
            return 42

        task = create_logged_task(work(), context="work")
        assert await task == 42
        assert task.get_name() == "work"

    @pytest.mark.asyncio
    async def test_logs_unhandled_exception(self, caplog):
        async def boom():
            raise RuntimeError("reader exploded")

        with caplog.at_level(logging.ERROR, logger="tap2eat"):
            task = create_logged_task(boom(), context="boom task")
            await asyncio.wait({task})
            await asyncio.sleep(0)

        assert "Unhandled exception in boom task" in caplog.text

    @pytest.mark.asyncio
    async def test_cancellation_is_not_logged(self, caplog):
        task = create_logged_task(asyncio.sleep(10), context="sleeper")
        await asyncio.sleep(0)
        task.cancel()
        with caplog.at_level(logging.ERROR, logger="tap2eat"):
            await asyncio.wait({task})
            await asyncio.sleep(0)
        assert caplog.text == ""

    @pytest.mark.asyncio
    async def test_pending_set_tracks_task(self):
        pending = set()
        gate = asyncio.Event()
        task = create_logged_task(gate.wait(), pending=pending)
        assert task in pending

        gate.set()
        await task
        await asyncio.sleep(0)
        assert pending == set()


class TestDiscardTaskResult:

    @pytest.mark.asyncio
    async def test_exception_is_retrieved(self):
        async def fail():
            raise ValueError("ignored")

        task = asyncio.ensure_future(fail())
        discard_task_result(task)
        await asyncio.wait({task})
        await asyncio.sleep(0)
        assert task.exception() is not None


class TestCancelTaskSafely:

    @pytest.mark.asyncio
    async def test_none_and_done_tasks(self):
        assert await cancel_task_safely(None) is True

        async def quick():
            return 1

        task = asyncio.ensure_future(quick())
        await task
        assert await cancel_task_safely(task) is True

    @pytest.mark.asyncio
    async def test_cancels_running_task(self):
        task = asyncio.ensure_future(asyncio.sleep(10))
        await asyncio.sleep(0)

        assert await cancel_task_safely(task, "sleeper", timeout=1.0) is True
        assert task.cancelled()

    @pytest.mark.asyncio
    async def test_stubborn_task_is_bounded(self):
        release = asyncio.Event()

        async def stubborn():
            while not release.is_set():
                try:
                    await release.wait()
                except asyncio.CancelledError:
                    continue

        task = asyncio.ensure_future(stubborn())
        await asyncio.sleep(0)
        loop = asyncio.get_running_loop()
        started = loop.time()

        assert await cancel_task_safely(task, "stubborn", timeout=0.05) is False
        assert loop.time() - started < 0.5

        release.set()
        await asyncio.wait({task}, timeout=1.0)
        assert task.done()
