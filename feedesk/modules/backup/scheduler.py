"""Daily backup job running inside the API process."""

import asyncio
import contextlib
import logging
from datetime import datetime, timedelta

from feedesk.core.config import settings
from feedesk.core.database.session import async_session
from feedesk.modules.backup.service import BackupService
from feedesk.shared.utils.dates import local_now

logger = logging.getLogger(__name__)


def seconds_until(hour: int, now: datetime | None = None) -> float:
    """Seconds from `now` until the next local `hour`:00."""
    now = now or local_now()
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


async def run_backup_once() -> None:
    """One scheduled backup on its own session. Failures are logged, never raised."""
    try:
        async with async_session() as session:
            await BackupService(session).write_backup()
    except Exception:
        logger.exception("Scheduled backup failed")


class BackupScheduler:
    """Runs a backup every day at settings.backup_hour (local time)."""

    def __init__(self, hour: int | None = None):
        self.hour = settings.backup_hour if hour is None else hour
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _loop(self) -> None:
        while True:
            delay = seconds_until(self.hour)
            logger.debug("Next backup in %.0f seconds", delay)
            await asyncio.sleep(delay)
            await run_backup_once()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="daily-backup")
        logger.info("Backup scheduler initialized: running daily at %02d:00", self.hour)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Backup scheduler stopped")
