"""
Optional background sweep of expired cache entries.

Expired entries are already treated as absent on read; the sweep only
keeps rarely-read keys from holding memory until they are evicted.
"""

import asyncio
from typing import Optional

from shared.logging import get_logger
from .cache_manager import CacheManager


class ExpirySweeper:
    """Periodically purges expired entries from every store."""

    def __init__(self, cache_manager: CacheManager, interval_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache_manager = cache_manager
        self.interval_seconds = interval_seconds
        self.logger = get_logger("dashboard.cache_sweeper")
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        removed = self.cache_manager.purge_expired()
        total = sum(removed.values())
        if total:
            self.logger.debug("Expired cache entries purged", removed=removed)
        return total

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.sweep_once()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        self.logger.info("Cache sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info("Cache sweeper stopped")
