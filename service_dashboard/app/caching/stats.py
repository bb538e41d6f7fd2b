"""
Hit/miss accounting for cache stores.
"""

from typing import Optional, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class HitCounter:
    """Per-store hit and miss counters, mirrored to Prometheus when available."""

    def __init__(self, cache_type: str, metrics: Optional["MetricsCollector"] = None):
        self.cache_type = cache_type
        self.metrics = metrics
        self.hits = 0
        self.misses = 0
        self.logger = get_logger(f"dashboard.cache_stats.{cache_type}")

    @property
    def total(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from the store; 0.0 before any lookup."""
        total = self.total
        return self.hits / total if total > 0 else 0.0

    def record_hit(self) -> None:
        self.hits += 1
        self._increment("cache_hits_total")

    def record_miss(self) -> None:
        self.misses += 1
        self._increment("cache_misses_total")

    def _increment(self, metric_name: str) -> None:
        if not self.metrics:
            return

        try:
            self.metrics.increment_counter(metric_name, cache_type=self.cache_type)
        except Exception as exc:  # pragma: no cover - metrics failures should never break lookups
            self.logger.debug("Failed to record cache metric", metric=metric_name, error=str(exc))
