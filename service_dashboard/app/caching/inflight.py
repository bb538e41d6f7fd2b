"""
Registry of outstanding fetches, used to coalesce concurrent requests.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from shared.logging import get_logger

DEFAULT_COALESCE_WINDOW = 30.0


@dataclass
class InFlightRecord:
    """An outstanding fetch shared by every caller that observes it."""

    outcome: "asyncio.Future[Any]"
    started_at: float


class InFlightRegistry:
    """
    Tracks at most one outstanding fetch per key.

    Callers arriving while a fetch is outstanding and younger than the
    coalescing window share its outcome instead of starting their own. A
    record older than the window is replaced by a fresh fetch. Records are
    removed as soon as their fetch settles, whatever the result.

    Every caller awaits the shared task through ``asyncio.shield``: a caller
    that gives up does not cancel the fetch for anyone else.
    """

    def __init__(
        self,
        name: str,
        window: float = DEFAULT_COALESCE_WINDOW,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_join: Optional[Callable[[str], None]] = None,
    ):
        self.name = name
        self.window = window
        self._clock = clock
        self._on_join = on_join
        self._records: Dict[str, InFlightRecord] = {}
        self.logger = get_logger(f"dashboard.inflight.{name}")

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def owns(self, key: str, outcome: Any) -> bool:
        """True while ``outcome`` is the registered fetch for ``key``."""
        record = self._records.get(key)
        return record is not None and record.outcome is outcome

    def coalesce(self, key: str, start_fetch: Callable[[], Awaitable[Any]]) -> "asyncio.Future[Any]":
        """Return an awaitable for the outcome of the fetch for ``key``.

        ``start_fetch`` is only called when no fresh record exists. Must be
        called with a running event loop.
        """
        now = self._clock()
        record = self._records.get(key)

        if record is not None and now - record.started_at < self.window:
            if self._on_join is not None:
                self._on_join(key)
            return asyncio.shield(record.outcome)

        if record is not None:
            self.logger.warning(
                "Superseding stale in-flight fetch",
                key=key,
                age_seconds=round(now - record.started_at, 3),
            )

        outcome = asyncio.ensure_future(start_fetch())
        record = InFlightRecord(outcome=outcome, started_at=now)
        self._records[key] = record
        outcome.add_done_callback(lambda task: self._settle(key, record))
        return asyncio.shield(outcome)

    def _settle(self, key: str, record: InFlightRecord) -> None:
        # A superseding fetch may own the slot by now; leave it alone.
        if self._records.get(key) is record:
            del self._records[key]

        task = record.outcome
        if task.cancelled():
            self.logger.debug("In-flight fetch cancelled", key=key)
            return

        error = task.exception()
        if error is not None:
            self.logger.debug("In-flight fetch failed", key=key, error=str(error))
