"""
Cache warming: pre-load the data every dashboard view starts with.
"""

import asyncio
from typing import Any, Dict, Optional, TYPE_CHECKING

from shared.errors import get_error_message, is_network_error
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..domain.inventory import InventoryService


class CacheWarmer:
    """Loads the group and service lists through the cache."""

    def __init__(self, inventory: "InventoryService"):
        self.inventory = inventory
        self.logger = get_logger("dashboard.cache_warmer")
        self._task: Optional[asyncio.Task] = None

    async def warm_essential(self) -> Dict[str, Any]:
        """
        Warm the group list, then the unfiltered service list.

        Failures are logged and reported in the summary, never raised.
        """
        summary: Dict[str, Any] = {"warmed": [], "errors": []}

        # Groups first: smaller payload
        for name, load in (
            ("groups", self.inventory.list_groups),
            ("services", self.inventory.list_services),
        ):
            try:
                await load()
                summary["warmed"].append(name)
            except Exception as exc:
                self.logger.warning(
                    "Cache warming failed",
                    target=name,
                    error=get_error_message(exc),
                    network=is_network_error(exc),
                )
                summary["errors"].append(f"{name}: {get_error_message(exc)}")

        self.logger.info("Cache warm completed", warmed=summary["warmed"], errors=len(summary["errors"]))
        return summary

    def schedule(self, delay_seconds: float) -> asyncio.Task:
        """Warm in the background after ``delay_seconds``."""

        async def _delayed():
            await asyncio.sleep(delay_seconds)
            return await self.warm_essential()

        self._task = asyncio.create_task(_delayed())
        return self._task

    async def cancel(self) -> None:
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
