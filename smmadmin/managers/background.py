"""Detached background work for smmadmin."""

import asyncio
import logging
from typing import Coroutine, Set


class BackgroundTaskRunner:
    """Runs slow external work outside the caller's request path.

    The caller gets the task back immediately as its acknowledgment. The work
    itself is responsible for writing its terminal state onto the record it
    owns; this runner only keeps the task alive and logs how it ended.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, work: Coroutine, name: str) -> asyncio.Task:
        """Start ``work`` as a background task.

        Must be called from a running event loop.

        Args:
            work: Coroutine to run
            name: Task name used in logs

        Returns:
            The created task
        """
        task = asyncio.get_running_loop().create_task(work, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logging.debug(f"🚀 Background task started: {name}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logging.debug(f"Background task cancelled: {task.get_name()}")
            return
        error = task.exception()
        if error:
            logging.error(f"❌ Background task {task.get_name()} failed: {error}")
        else:
            logging.info(f"✅ Background task {task.get_name()} finished")

    async def drain(self) -> None:
        """Wait until every spawned task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel pending tasks and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
