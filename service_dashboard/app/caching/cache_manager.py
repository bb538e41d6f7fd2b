"""
Dashboard cache manager: builds and owns the per-kind cache stores.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from shared.logging import get_logger
from .cached_api import CachedApi, CachedResource
from .entry_store import EntryStore
from .inflight import DEFAULT_COALESCE_WINDOW, InFlightRegistry
from .invalidation import InvalidationCoordinator
from .keys import EntityKind
from .stats import HitCounter

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.config import BaseConfig
    from shared.metrics import MetricsCollector


@dataclass(frozen=True)
class StoreConfig:
    """TTL (seconds) and size bound of one store."""

    ttl: float
    max_entries: int


DEFAULT_STORE_CONFIG: Dict[EntityKind, StoreConfig] = {
    EntityKind.SERVICES: StoreConfig(ttl=300.0, max_entries=50),
    EntityKind.SERVICE: StoreConfig(ttl=600.0, max_entries=100),
    EntityKind.GROUPS: StoreConfig(ttl=600.0, max_entries=20),
    EntityKind.GROUP: StoreConfig(ttl=600.0, max_entries=50),
}


class CacheManager:
    """Owns one store, registry and counter per entity kind.

    Construct one per process and inject it where needed; tests build their
    own with a fake clock.
    """

    def __init__(
        self,
        store_config: Optional[Mapping[EntityKind, StoreConfig]] = None,
        *,
        coalesce_window: float = DEFAULT_COALESCE_WINDOW,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = get_logger("dashboard.cache_manager")
        self.metrics = metrics
        self.coalesce_window = coalesce_window

        config = dict(DEFAULT_STORE_CONFIG)
        if store_config:
            config.update(store_config)
        self.store_config = config

        self.resources: Dict[EntityKind, CachedResource] = {
            kind: self._build_resource(kind, config[kind], clock) for kind in EntityKind
        }
        self.api = CachedApi(self.resources)
        self.invalidation = InvalidationCoordinator(self.resources, metrics=metrics)

    @classmethod
    def from_config(
        cls,
        config: "BaseConfig",
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> "CacheManager":
        """Build from service settings."""
        store_config = {
            EntityKind.SERVICES: StoreConfig(config.services_cache_ttl, config.services_cache_max_entries),
            EntityKind.SERVICE: StoreConfig(config.service_cache_ttl, config.service_cache_max_entries),
            EntityKind.GROUPS: StoreConfig(config.groups_cache_ttl, config.groups_cache_max_entries),
            EntityKind.GROUP: StoreConfig(config.group_cache_ttl, config.group_cache_max_entries),
        }
        return cls(store_config, coalesce_window=config.coalesce_window_seconds, metrics=metrics)

    def _build_resource(self, kind: EntityKind, config: StoreConfig, clock: Callable[[], float]) -> CachedResource:
        store = EntryStore(
            kind.value,
            ttl=config.ttl,
            max_entries=config.max_entries,
            clock=clock,
            on_evict=lambda key: self._record_metric("cache_evictions_total", kind),
        )
        registry = InFlightRegistry(
            kind.value,
            window=self.coalesce_window,
            clock=clock,
            on_join=lambda key: self._record_metric("cache_coalesced_total", kind),
        )
        counter = HitCounter(kind.value, metrics=self.metrics)
        return CachedResource(kind, store, registry, counter, metrics=self.metrics)

    def _record_metric(self, metric_name: str, kind: EntityKind) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter(metric_name, cache_type=kind.value)
        except Exception as exc:  # pragma: no cover - metrics failures should never break caching
            self.logger.debug("Failed to record cache metric", metric=metric_name, error=str(exc))

    def stores(self) -> Dict[EntityKind, EntryStore]:
        return {kind: resource.store for kind, resource in self.resources.items()}

    def invalidate(self, entity_kind: Any, entity_id: Optional[str] = None) -> Dict[str, int]:
        return self.invalidation.invalidate(entity_kind, entity_id)

    def clear_all(self) -> Dict[str, int]:
        return self.invalidation.clear_all()

    def purge_expired(self) -> Dict[str, int]:
        """Drop expired entries from every store."""
        return {kind.value: resource.store.purge_expired() for kind, resource in self.resources.items()}

    def get_cache_stats(self) -> Dict[str, Dict[str, Any]]:
        """Per-store diagnostic snapshots keyed by entity kind."""
        return {kind.value: resource.stats() for kind, resource in self.resources.items()}

    def get_total_hit_rate(self) -> float:
        """Unweighted mean of the per-store hit rates."""
        stats = self.get_cache_stats()
        return sum(entry["hit_rate"] for entry in stats.values()) / len(stats)
