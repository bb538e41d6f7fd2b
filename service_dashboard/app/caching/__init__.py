"""
Dashboard caching package.

Process-local read-through cache between the dashboard's data callers and
the inventory API: per-kind bounded stores with TTLs, coalescing of
concurrent fetches, and rule-based invalidation after writes.
"""

from .cache_manager import CacheManager, StoreConfig
from .cached_api import CachedApi, CachedResource
from .entry_store import EntryStore
from .inflight import InFlightRegistry
from .invalidation import InvalidationCoordinator
from .keys import EntityKind, derive_key, entity_key

__all__ = [
    "CacheManager",
    "StoreConfig",
    "CachedApi",
    "CachedResource",
    "EntryStore",
    "InFlightRegistry",
    "InvalidationCoordinator",
    "EntityKind",
    "derive_key",
    "entity_key",
]
