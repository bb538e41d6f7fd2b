"""
Cascading cache invalidation after inventory mutations.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from shared.logging import get_logger
from .cached_api import CachedResource
from .keys import EntityKind, derive_key, entity_key

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


@dataclass(frozen=True)
class InvalidationRule:
    """Stores affected when an entity of some kind is mutated."""

    list_kind: EntityKind
    entity_kind: EntityKind


# List stores are keyed by arbitrary filter combinations, so any mutation
# clears the whole list store. Single-entity stores are targeted by id.
INVALIDATION_RULES: Dict[EntityKind, InvalidationRule] = {
    EntityKind.SERVICE: InvalidationRule(EntityKind.SERVICES, EntityKind.SERVICE),
    EntityKind.SERVICES: InvalidationRule(EntityKind.SERVICES, EntityKind.SERVICE),
    EntityKind.GROUP: InvalidationRule(EntityKind.GROUPS, EntityKind.GROUP),
    EntityKind.GROUPS: InvalidationRule(EntityKind.GROUPS, EntityKind.GROUP),
}


class InvalidationCoordinator:
    """
    Applies ``INVALIDATION_RULES`` to the cache stores.

    Outstanding fetches are left alone: one that started before the
    mutation may still store its (older) result, which the next
    invalidation corrects.
    """

    def __init__(
        self,
        resources: Mapping[EntityKind, CachedResource],
        metrics: Optional["MetricsCollector"] = None,
    ):
        self._resources = dict(resources)
        self.metrics = metrics
        self.logger = get_logger("dashboard.cache_invalidation")

    def invalidate(self, entity_kind: Any, entity_id: Optional[str] = None) -> Dict[str, int]:
        """Invalidate after a create (no id) or an update/delete (with id).

        Returns the number of entries removed per store.
        """
        kind = EntityKind(entity_kind)
        rule = INVALIDATION_RULES[kind]
        removed: Dict[str, int] = {}

        if entity_id is not None:
            entity_store = self._resources[rule.entity_kind].store
            deleted = entity_store.delete(entity_key(rule.entity_kind, entity_id))
            removed[rule.entity_kind.value] = int(deleted)

        removed[rule.list_kind.value] = self._resources[rule.list_kind].store.clear()

        self._record(rule.entity_kind)
        self.logger.info(
            "Cache invalidated",
            entity_kind=kind.value,
            entity_id=entity_id,
            removed=removed,
        )
        return removed

    def invalidate_list(self, entity_kind: Any, params: Optional[Mapping[str, Any]] = None) -> bool:
        """Drop the list entry of one filter combination, or the whole list store without params."""
        rule = INVALIDATION_RULES[EntityKind(entity_kind)]
        store = self._resources[rule.list_kind].store

        if params:
            return store.delete(derive_key(rule.list_kind, params))

        return store.clear() > 0

    def clear_all(self) -> Dict[str, int]:
        """Empty every store."""
        removed = {kind.value: resource.store.clear() for kind, resource in self._resources.items()}
        self.logger.info("All caches cleared", removed=removed)
        return removed

    def _record(self, entity_kind: EntityKind) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter("cache_invalidations_total", entity_kind=entity_kind.value)
        except Exception as exc:  # pragma: no cover - metrics failures should never break invalidation
            self.logger.debug("Failed to record invalidation metric", error=str(exc))
