"""Tests for PeriodicTask."""

import asyncio

import pytest

from toolrep.scheduler import PeriodicTask


class TestPeriodicTask:
    """Tests for fixed-interval scheduling."""

    def test_interval_must_be_positive(self):
        async def noop():
            return None

        with pytest.raises(ValueError):
            PeriodicTask(0, noop)

    @pytest.mark.asyncio
    async def test_runs_repeatedly(self):
        calls = 0
        done = asyncio.Event()

        async def callback():
            nonlocal calls
            calls += 1
            if calls >= 3:
                done.set()

        task = PeriodicTask(0.01, callback, name="test")
        task.start()
        try:
            await asyncio.wait_for(done.wait(), timeout=2)
        finally:
            await task.stop()

        assert calls >= 3
        assert not task.is_running

    @pytest.mark.asyncio
    async def test_first_run_waits_one_interval(self):
        calls = 0

        async def callback():
            nonlocal calls
            calls += 1

        task = PeriodicTask(60, callback)
        task.start()
        await asyncio.sleep(0)

        assert task.is_running
        assert calls == 0
        await task.stop()

    @pytest.mark.asyncio
    async def test_failing_callback_keeps_schedule(self):
        calls = 0
        done = asyncio.Event()

        async def callback():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("first run fails")
            done.set()

        task = PeriodicTask(0.01, callback)
        task.start()
        try:
            await asyncio.wait_for(done.wait(), timeout=2)
        finally:
            await task.stop()

        assert calls >= 2

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        async def callback():
            return None

        task = PeriodicTask(60, callback)
        task.start()
        first = task._task
        task.start()

        assert task._task is first
        await task.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        async def callback():
            return None

        task = PeriodicTask(60, callback)
        await task.stop()
        assert not task.is_running
