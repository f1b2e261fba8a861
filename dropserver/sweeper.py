"""Background task that periodically purges expired archives."""

import asyncio
import logging
from typing import Optional

from common.constants import SWEEP_INTERVAL_SECONDS
from dropserver.registry import ArchiveRegistry

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Background task that evicts expired archives on a fixed interval.

    Read paths already hide and evict expired archives, so the sweeper only
    reclaims disk space sooner; it changes no observable behavior.
    """

    def __init__(self, registry: ArchiveRegistry, interval_seconds: int = SWEEP_INTERVAL_SECONDS):
        """
        Initialize sweeper task.

        Args:
            registry: Registry to purge
            interval_seconds: Time between sweeps (default 1 hour)
        """
        self.registry = registry
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            logger.warning("Expiry sweeper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started expiry sweeper (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Stopped expiry sweeper")

    async def _run(self) -> None:
        """Main loop for the sweeper."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.sweep_once()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in expiry sweeper: {e}", exc_info=True)

    async def sweep_once(self) -> int:
        """
        Execute one sweep cycle off the event loop.

        Returns:
            Number of archives evicted
        """
        purged = await asyncio.to_thread(self.registry.purge_expired)
        if purged:
            logger.info(f"Sweep complete: {purged} expired archive(s) evicted")
        else:
            logger.debug("Sweep complete: nothing expired")
        return purged
