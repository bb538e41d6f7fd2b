"""
Bounded in-memory entry store with per-entry TTL and FIFO eviction.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterator, Optional, TypeVar

from shared.logging import get_logger

T = TypeVar("T")

# Distinguishes "no entry" from falsy cached values such as empty lists.
MISSING: Any = object()


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A stored value. Refreshing a key replaces the entry wholesale."""

    value: T
    stored_at: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now - self.stored_at <= self.ttl


class EntryStore(Generic[T]):
    """
    Key to value mapping bounded by ``max_entries``.

    Expired entries are dropped lazily when read. When an insert would
    exceed the bound, the oldest-inserted entry is evicted regardless of
    how recently it was read.
    """

    def __init__(
        self,
        name: str,
        ttl: float,
        max_entries: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_evict: Optional[Callable[[str], None]] = None,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._on_evict = on_evict
        # dict preserves insertion order; the first key is the oldest
        self._entries: Dict[str, CacheEntry[T]] = {}
        self.logger = get_logger(f"dashboard.cache.{name}")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.lookup(key) is not MISSING

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    @property
    def size(self) -> int:
        return len(self._entries)

    def lookup(self, key: str) -> Any:
        """Return the live value for ``key`` or ``MISSING``."""
        entry = self._entries.get(key)
        if entry is None:
            return MISSING

        if not entry.is_valid(self._clock()):
            del self._entries[key]
            self.logger.debug("Expired cache entry dropped", key=key)
            return MISSING

        return entry.value

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        """Return the live value for ``key`` or ``default``."""
        value = self.lookup(key)
        return default if value is MISSING else value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key`` stamped with the current time."""
        entry = CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self.ttl if ttl is None else ttl,
        )

        # A refresh counts as a new insertion
        self._entries.pop(key, None)

        if len(self._entries) >= self.max_entries:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            self.logger.debug("Evicted oldest cache entry", key=oldest_key)
            if self._on_evict is not None:
                self._on_evict(oldest_key)

        self._entries[key] = entry

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns whether an entry was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove every entry; returns how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def purge_expired(self) -> int:
        """Drop all expired entries without waiting for them to be read."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if not entry.is_valid(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)
