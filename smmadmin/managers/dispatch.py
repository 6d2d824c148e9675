"""Scheduled post dispatch loop."""

import asyncio
import logging
import math
import time
from datetime import datetime
from typing import Optional

from smmadmin.managers.database import DatabaseManager
from smmadmin.managers.delivery import PostDelivery
from smmadmin.utils.dates import utcnow

DEFAULT_INTERVAL = 60.0


class ScheduledDispatcher:
    """Periodically publishes scheduled posts whose time has come.

    Nothing about the schedule is persisted: after a restart, overdue posts
    are simply picked up by the first sweep. Sweeps never overlap; a sweep
    requested while another one is still running is skipped.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        delivery: PostDelivery,
        interval: float = 60,
    ):
        """Initialize the dispatcher.

        Args:
            db_manager: DatabaseManager instance used to find due posts
            delivery: PostDelivery used to publish each post
            interval: Seconds between sweeps
        """
        self.db = db_manager
        self.delivery = delivery
        self.interval = interval
        self._tick_lock = asyncio.Lock()

    @property
    def interval(self) -> float:
        """Seconds between sweeps."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        if value is None or not math.isfinite(value) or value <= 0:
            logging.warning(
                f"⚠️ Invalid dispatch interval {value}, using {DEFAULT_INTERVAL:g}s"
            )
            value = DEFAULT_INTERVAL
        self._interval = value

    @property
    def running(self) -> bool:
        """True while a sweep is in progress."""
        return self._tick_lock.locked()

    async def run_tick(self, now: Optional[datetime] = None) -> int:
        """Run one sweep over due scheduled posts.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            Number of posts delivered successfully; 0 if the sweep was skipped
        """
        if self._tick_lock.locked():
            logging.warning("⚠️ Previous dispatch sweep still running, skipping this one")
            return 0

        async with self._tick_lock:
            posts = self.db.get_due_posts(now or utcnow())
            if posts:
                logging.info(f"📬 {len(posts)} scheduled post(s) due for publishing")

            delivered = 0
            for post in posts:
                try:
                    if await self.delivery.send_to_webhook(post.id):
                        delivered += 1
                except Exception as e:
                    logging.error(f"💥 Error sending scheduled post {post.id}: {e}")
            return delivered

    async def run(self):
        """Sweep for due posts every ``interval`` seconds until cancelled."""
        try:
            next_run = time.monotonic() + self.interval
            while True:
                await asyncio.sleep(max(0.0, next_run - time.monotonic()))

                try:
                    await self.run_tick()
                except Exception as e:
                    logging.error(f"💥 Scheduler error: {e}")

                # Fixed period; sweeps missed while a slow sweep ran are dropped
                next_run += self.interval
                now = time.monotonic()
                if next_run <= now:
                    logging.warning(
                        f"⚠️ Dispatch sweep overran the {self.interval}s interval"
                    )
                    while next_run <= now:
                        next_run += self.interval
        except asyncio.CancelledError:
            logging.debug("📬 Dispatch task cancelled")
            raise
