"""Periodic status polling."""

import logging
from typing import Any, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from wordclock_panel.core.client import SyncClient
from wordclock_panel.models.state import DeviceState

logger = logging.getLogger(__name__)

POLL_JOB_ID = "status_poll"


class StatusPoller:
    """Refreshes the controller state on a fixed interval."""

    def __init__(self, client: SyncClient, interval_seconds: int):
        """Initialize the poller.

        Args:
            client: Sync client to refresh
            interval_seconds: Seconds between refreshes
        """
        if interval_seconds < 1:
            raise ValueError(f"Polling interval must be at least 1 second, got {interval_seconds}")
        self._client = client
        self._interval = interval_seconds
        self._scheduler = AsyncIOScheduler()
        self._on_refresh: Optional[Callable[[DeviceState], None]] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the poller is running."""
        return self._running

    def set_refresh_callback(self, callback: Callable[[DeviceState], None]) -> None:
        """Set callback invoked with every successfully refreshed state."""
        self._on_refresh = callback

    async def poll(self) -> None:
        """Refresh once. Failures are logged and the next tick proceeds."""
        result = await self._client.refresh()
        if not result.ok:
            logger.warning(f"Status poll failed: {result.error}")
            return
        if self._on_refresh:
            self._on_refresh(result.value)

    def start(self) -> None:
        """Start polling. Must be called from within a running event loop."""
        if self._running:
            logger.warning("Status poller already running")
            return

        self._scheduler.add_job(
            self.poll,
            trigger=IntervalTrigger(seconds=self._interval),
            id=POLL_JOB_ID,
            name=f"Poll status every {self._interval}s",
            replace_existing=True,
        )
        self._scheduler.start()
        self._running = True
        logger.info(f"Polling status every {self._interval}s")

    def stop(self) -> None:
        """Stop polling."""
        if not self._running:
            return

        self._scheduler.shutdown(wait=False)
        self._running = False
        logger.info("Status poller stopped")

    def get_jobs(self) -> list[dict[str, Any]]:
        """Get information about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
            })
        return jobs
