"""Periodic retention sweep of old notifications."""
import asyncio
import logging
from datetime import timedelta
from typing import Optional

from tourney.domain.common.types import Clock, utcnow
from tourney.domain.notifications.services import NotificationStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = timedelta(hours=24)
DEFAULT_INTERVAL_SECONDS = 6 * 60 * 60


class RetentionSweeper:
    """Deletes notifications older than the retention window on a fixed cadence.

    Read state does not matter: an unread notification past the cutoff is removed.
    A failed sweep is logged and left for the next tick.
    """

    def __init__(
        self,
        store: NotificationStore,
        retention: timedelta = DEFAULT_RETENTION,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.retention = retention
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    async def sweep_once(self) -> int:
        """Run one sweep. Never raises; returns 0 on failure."""
        cutoff = self._clock() - self.retention
        try:
            removed = await self.store.delete_older_than(cutoff)
        except Exception as e:
            logger.error("[RETENTION] Sweep failed (cutoff %s): %s", cutoff.isoformat(), e, exc_info=True)
            return 0
        logger.info("[RETENTION] Removed %s notifications older than %s", removed, cutoff.isoformat())
        return removed

    async def _run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.sweep_once()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop. Idempotent."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run_forever(), name="notification-retention-sweeper")
        logger.info(
            "[RETENTION] Scheduler started: every %ss, window %s", self.interval_seconds, self.retention
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
