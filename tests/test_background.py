"""Tests for the background task runner."""

import asyncio

import pytest

from smmadmin.managers.background import BackgroundTaskRunner


@pytest.mark.asyncio
class TestBackgroundTaskRunner:
    async def test_spawn_returns_immediately(self):
        runner = BackgroundTaskRunner()
        release = asyncio.Event()

        async def work():
            await release.wait()
            return "done"

        task = runner.spawn(work(), name="work")
        assert runner.pending == 1
        assert not task.done()

        release.set()
        await runner.drain()
        assert task.result() == "done"
        assert runner.pending == 0

    async def test_failure_is_kept_on_the_task(self):
        runner = BackgroundTaskRunner()

        async def work():
            raise RuntimeError("boom")

        task = runner.spawn(work(), name="failing")
        await runner.drain()

        assert isinstance(task.exception(), RuntimeError)
        assert runner.pending == 0

    async def test_cancel_all(self):
        runner = BackgroundTaskRunner()
        task = runner.spawn(asyncio.sleep(60), name="sleeper")

        await runner.cancel_all()

        assert task.cancelled()
        assert runner.pending == 0

    def test_spawn_requires_running_loop(self):
        runner = BackgroundTaskRunner()

        async def work():
            pass

        coro = work()
        with pytest.raises(RuntimeError):
            runner.spawn(coro, name="orphan")
        coro.close()
