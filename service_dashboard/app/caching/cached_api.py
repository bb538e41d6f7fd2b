"""
Read-through cache facade.

``CachedResource`` pairs one entry store with its in-flight registry and hit
counter. ``CachedApi`` is the only surface data-fetching callers use: it
derives keys and routes each entity kind to its resource.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from shared.logging import get_logger
from .entry_store import EntryStore, MISSING
from .inflight import InFlightRegistry
from .keys import EntityKind, derive_key, entity_key
from .stats import HitCounter

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


FetchFn = Callable[[], Awaitable[Any]]


class CachedResource:
    """Store, in-flight registry and counter for one entity kind."""

    def __init__(
        self,
        kind: EntityKind,
        store: EntryStore,
        registry: InFlightRegistry,
        counter: HitCounter,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.kind = kind
        self.store = store
        self.registry = registry
        self.counter = counter
        self.metrics = metrics
        self.logger = get_logger(f"dashboard.cached_api.{kind.value}")

    async def fetch(self, key: str, fetch_fn: FetchFn) -> Any:
        """Serve ``key`` from the store, an outstanding fetch, or ``fetch_fn``."""
        cached = self.store.lookup(key)
        if cached is not MISSING:
            self.counter.record_hit()
            return cached

        self.counter.record_miss()

        # The store is populated inside the shared fetch so that the result
        # is cached even when every waiting caller has gone away.
        return await self.registry.coalesce(key, lambda: self._fetch_and_store(key, fetch_fn))

    async def _fetch_and_store(self, key: str, fetch_fn: FetchFn) -> Any:
        value = await fetch_fn()

        # Runs as the registered task; a newer fetch may have replaced it
        if not self.registry.owns(key, asyncio.current_task()):
            self.logger.debug("Discarding superseded fetch result", key=key)
            return value

        self.store.set(key, value)
        self.logger.debug("Cached fetch result", key=key, size=self.store.size)
        self._record_size()
        return value

    def _record_size(self) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.set_gauge("cache_entries", self.store.size, cache_type=self.kind.value)
        except Exception as exc:  # pragma: no cover - metrics failures should never break caching
            self.logger.debug("Failed to record cache size", error=str(exc))

    def stats(self) -> Dict[str, Any]:
        """Read-only diagnostic snapshot."""
        return {
            "size": self.store.size,
            "max_size": self.store.max_entries,
            "in_flight": len(self.registry),
            "hits": self.counter.hits,
            "misses": self.counter.misses,
            "hit_rate": self.counter.hit_rate,
        }


class CachedApi:
    """Read-through entry point for services and groups."""

    def __init__(self, resources: Mapping[EntityKind, CachedResource]):
        missing = [kind.value for kind in EntityKind if kind not in resources]
        if missing:
            raise ValueError(f"Missing cache resources for: {', '.join(missing)}")
        self._resources = dict(resources)

    def resource(self, kind: EntityKind) -> CachedResource:
        return self._resources[EntityKind(kind)]

    async def get_services(self, fetch_fn: FetchFn, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Service list for a filter combination."""
        key = derive_key(EntityKind.SERVICES, params)
        return await self._resources[EntityKind.SERVICES].fetch(key, fetch_fn)

    async def get_service(self, fetch_fn: FetchFn, service_id: str) -> Any:
        key = entity_key(EntityKind.SERVICE, service_id)
        return await self._resources[EntityKind.SERVICE].fetch(key, fetch_fn)

    async def get_groups(self, fetch_fn: FetchFn, params: Optional[Mapping[str, Any]] = None) -> Any:
        key = derive_key(EntityKind.GROUPS, params)
        return await self._resources[EntityKind.GROUPS].fetch(key, fetch_fn)

    async def get_group(self, fetch_fn: FetchFn, group_id: str) -> Any:
        key = entity_key(EntityKind.GROUP, group_id)
        return await self._resources[EntityKind.GROUP].fetch(key, fetch_fn)
