"""
Unit tests for the dashboard cache manager and read-through facade.
"""

import asyncio

import pytest
from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector
from service_dashboard.app.caching.cache_manager import CacheManager, StoreConfig
from service_dashboard.app.caching.cached_api import CachedApi
from service_dashboard.app.caching.keys import EntityKind


class DummyMetrics:
    """Minimal metrics collector stub."""

    def __init__(self):
        self.counters = []
        self.gauges = []

    def increment_counter(self, metric_name: str, **labels):
        self.counters.append((metric_name, labels))

    def set_gauge(self, metric_name: str, value: float, **labels):
        self.gauges.append((metric_name, value, labels))


class CountingFetch:
    """Fetch function that counts invocations."""

    def __init__(self, result):
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.result


class TestCacheManager:
    """Test cases for CacheManager."""

    @pytest.fixture
    def metrics(self):
        return DummyMetrics()

    @pytest.fixture
    def cache_manager(self, clock, metrics):
        """CacheManager with a short services TTL and a fake clock."""
        return CacheManager(
            {EntityKind.SERVICES: StoreConfig(ttl=0.1, max_entries=3)},
            metrics=metrics,
            clock=clock,
        )

    @pytest.mark.asyncio
    async def test_second_read_is_served_from_cache(self, cache_manager):
        fetch = CountingFetch([{"id": "svc-1"}])

        first = await cache_manager.api.get_services(fetch)
        second = await cache_manager.api.get_services(fetch)

        assert first == second == [{"id": "svc-1"}]
        assert fetch.calls == 1

    @pytest.mark.asyncio
    async def test_ttl_expiry_triggers_refetch(self, cache_manager, clock):
        fetch = CountingFetch(["a"])

        await cache_manager.api.get_services(fetch)
        clock.advance(0.05)
        await cache_manager.api.get_services(fetch)
        assert fetch.calls == 1

        clock.advance(0.1)
        await cache_manager.api.get_services(fetch)
        assert fetch.calls == 2

    @pytest.mark.asyncio
    async def test_empty_result_is_cached(self, cache_manager):
        fetch = CountingFetch([])

        assert await cache_manager.api.get_services(fetch) == []
        assert await cache_manager.api.get_services(fetch) == []
        assert fetch.calls == 1

    @pytest.mark.asyncio
    async def test_equivalent_params_share_an_entry(self, cache_manager):
        fetch = CountingFetch(["a"])

        await cache_manager.api.get_services(fetch, {"page": 1, "type": "web"})
        await cache_manager.api.get_services(fetch, {"type": "web", "page": 1, "search": None})

        assert fetch.calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_misses_are_coalesced(self, cache_manager, metrics):
        fetch = CountingFetch(["a"])

        results = await asyncio.gather(*(cache_manager.api.get_services(fetch) for _ in range(4)))

        assert fetch.calls == 1
        assert all(result is results[0] for result in results)
        stats = cache_manager.get_cache_stats()["services"]
        assert stats["misses"] == 4
        assert stats["in_flight"] == 0
        assert metrics.counters.count(("cache_coalesced_total", {"cache_type": "services"})) == 3

    @pytest.mark.asyncio
    async def test_failed_fetch_is_not_cached(self, cache_manager):
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("boom")
            return ["ok"]

        with pytest.raises(RuntimeError, match="boom"):
            await cache_manager.api.get_services(flaky)

        assert await cache_manager.api.get_services(flaky) == ["ok"]
        assert calls == 2

    @pytest.mark.asyncio
    async def test_fifo_eviction_bound(self, cache_manager, metrics):
        fetch = CountingFetch(["a"])

        for page in range(1, 5):
            await cache_manager.api.get_services(fetch, {"page": page})
        assert fetch.calls == 4

        # Pages 2-4 are still cached
        for page in range(2, 5):
            await cache_manager.api.get_services(fetch, {"page": page})
        assert fetch.calls == 4

        # Page 1 was evicted first
        await cache_manager.api.get_services(fetch, {"page": 1})
        assert fetch.calls == 5
        assert cache_manager.stores()[EntityKind.SERVICES].size == 3
        assert ("cache_evictions_total", {"cache_type": "services"}) in metrics.counters

    @pytest.mark.asyncio
    async def test_hit_rate_through_invalidation(self, cache_manager):
        """Test hit rate across a miss, a hit, and a post-mutation miss."""
        fetch = CountingFetch({"id": "svc-1"})

        await cache_manager.api.get_service(fetch, "svc-1")
        assert cache_manager.get_cache_stats()["service"]["hit_rate"] == 0.0

        await cache_manager.api.get_service(fetch, "svc-1")
        assert cache_manager.get_cache_stats()["service"]["hit_rate"] == 0.5

        cache_manager.invalidate("service", "svc-1")
        await cache_manager.api.get_service(fetch, "svc-1")

        stats = cache_manager.get_cache_stats()["service"]
        assert (stats["hits"], stats["misses"]) == (1, 2)
        assert stats["hit_rate"] == pytest.approx(1 / 3)
        assert fetch.calls == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_still_populates_cache(self, cache_manager):
        release = asyncio.Event()
        calls = 0

        async def slow():
            nonlocal calls
            calls += 1
            await release.wait()
            return ["late"]

        caller = asyncio.ensure_future(cache_manager.api.get_services(slow))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller

        release.set()
        for _ in range(5):
            await asyncio.sleep(0)

        assert await cache_manager.api.get_services(slow) == ["late"]
        assert calls == 1

    @pytest.mark.asyncio
    async def test_superseded_fetch_does_not_overwrite_newer_result(self, cache_manager, clock):
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return ["old"]

        stale_caller = asyncio.ensure_future(cache_manager.api.get_services(slow))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        clock.advance(31)
        assert await cache_manager.api.get_services(CountingFetch(["new"])) == ["new"]

        release.set()
        assert await stale_caller == ["old"]
        assert cache_manager.stores()[EntityKind.SERVICES].lookup("services:all") == ["new"]

    @pytest.mark.asyncio
    async def test_separators_in_filter_values_select_distinct_entries(self, cache_manager):
        tricky = await cache_manager.api.get_services(
            CountingFetch(["nothing matches"]), {"search": "x|type:web"}
        )
        plain = await cache_manager.api.get_services(
            CountingFetch(["web services"]), {"search": "x", "type": "web"}
        )

        assert tricky == ["nothing matches"]
        assert plain == ["web services"]
        assert cache_manager.stores()[EntityKind.SERVICES].size == 2

    def test_stats_shape(self, cache_manager):
        stats = cache_manager.get_cache_stats()

        assert set(stats) == {"services", "service", "groups", "group"}
        assert stats["services"] == {
            "size": 0,
            "max_size": 3,
            "in_flight": 0,
            "hits": 0,
            "misses": 0,
            "hit_rate": 0.0,
        }
        assert stats["group"]["max_size"] == 50
        assert cache_manager.get_total_hit_rate() == 0.0

    @pytest.mark.asyncio
    async def test_total_hit_rate_is_mean_of_stores(self, cache_manager):
        fetch = CountingFetch(["a"])
        await cache_manager.api.get_groups(fetch)
        await cache_manager.api.get_groups(fetch)

        # groups: 0.5, the other three stores: 0.0
        assert cache_manager.get_total_hit_rate() == pytest.approx(0.125)

    @pytest.mark.asyncio
    async def test_size_gauge_is_recorded(self, cache_manager, metrics):
        await cache_manager.api.get_group(CountingFetch({"id": "grp-1"}), "grp-1")
        assert ("cache_entries", 1, {"cache_type": "group"}) in metrics.gauges

    @pytest.mark.asyncio
    async def test_purge_expired(self, cache_manager, clock):
        await cache_manager.api.get_services(CountingFetch(["a"]))
        await cache_manager.api.get_group(CountingFetch({"id": "g"}), "g")
        clock.advance(1)

        removed = cache_manager.purge_expired()

        assert removed == {"services": 1, "service": 0, "groups": 0, "group": 0}

    def test_from_config(self):
        from shared.config import get_config

        config = get_config(
            "dashboard",
            8000,
            services_cache_ttl=1.5,
            services_cache_max_entries=7,
            coalesce_window_seconds=5.0,
        )
        manager = CacheManager.from_config(config)

        services = manager.stores()[EntityKind.SERVICES]
        assert (services.ttl, services.max_entries) == (1.5, 7)
        assert manager.resources[EntityKind.GROUPS].registry.window == 5.0

    @pytest.mark.asyncio
    async def test_prometheus_metrics_integration(self, clock):
        registry = CollectorRegistry()
        metrics = MetricsCollector("dashboard", registry=registry)
        manager = CacheManager(metrics=metrics, clock=clock)
        fetch = CountingFetch([])

        await manager.api.get_groups(fetch)
        await manager.api.get_groups(fetch)
        manager.invalidate(EntityKind.GROUP, "grp-1")

        assert registry.get_sample_value("cache_hits_total", {"cache_type": "groups"}) == 1.0
        assert registry.get_sample_value("cache_misses_total", {"cache_type": "groups"}) == 1.0
        assert registry.get_sample_value("cache_invalidations_total", {"entity_kind": "group"}) == 1.0


class TestCachedApi:
    """Test cases for CachedApi construction."""

    def test_requires_every_entity_kind(self):
        with pytest.raises(ValueError, match="services"):
            CachedApi({})
