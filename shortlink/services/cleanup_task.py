"""
Expiry Cleanup Task

Periodically purges expired records from the registry. The task is owned by
the application: started on startup, stopped (and awaited) on shutdown.
"""

import asyncio
import logging
from typing import Optional

from shortlink.services.url_registry import URLRegistry

logger = logging.getLogger(__name__)


class ExpiryCleanupTask:
    """
    Ticker that calls URLRegistry.cleanup_expired() every interval.

    A stop event doubles as the tick timer, so stop() interrupts the wait
    immediately instead of waiting for the next tick.
    """

    def __init__(self, registry: URLRegistry, interval_seconds: float = 300):
        self.registry = registry
        self.interval_seconds = interval_seconds
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("Expiry cleanup task already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="expiry-cleanup")
        logger.info(f"Expiry cleanup task started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Expiry cleanup task stopped")

    async def run_once(self) -> int:
        """Run one cleanup pass and return the number of records removed."""
        return await self.registry.cleanup_expired()

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                try:
                    await self.run_once()
                except Exception as e:
                    logger.error(f"Expiry cleanup pass failed: {str(e)}", exc_info=True)
