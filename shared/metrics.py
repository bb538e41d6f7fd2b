"""
Prometheus metrics for the Network Inventory dashboard backend.

Metrics are declared once in the tables below and created per collector, so
each service (and each test) can own an isolated ``CollectorRegistry``.
"""

from typing import Any, Dict, Optional, Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info

MetricSpec = Tuple[str, Tuple[str, ...]]

COUNTERS: Dict[str, MetricSpec] = {
    "http_requests_total": ("Total HTTP requests", ("method", "endpoint", "status_code")),
    "health_check_total": ("Total health check requests", ("status",)),
    "errors_total": ("Total errors", ("error_type", "service")),
    "cache_hits_total": ("Total cache hits", ("cache_type",)),
    "cache_misses_total": ("Total cache misses", ("cache_type",)),
    "cache_coalesced_total": ("Total fetches served by an already outstanding request", ("cache_type",)),
    "cache_evictions_total": ("Total entries evicted under size pressure", ("cache_type",)),
    "cache_invalidations_total": ("Total invalidations by mutated entity kind", ("entity_kind",)),
}

GAUGES: Dict[str, MetricSpec] = {
    "cache_entries": ("Current number of entries per cache store", ("cache_type",)),
}

HISTOGRAMS: Dict[str, MetricSpec] = {
    "http_request_duration_seconds": ("HTTP request duration in seconds", ("method", "endpoint")),
    "inventory_request_duration_seconds": ("Inventory API request duration in seconds", ("method", "status_code")),
}


class MetricsCollector:
    """Owns the metrics of one service.

    Without a registry the metrics are left unregistered, which lets several
    collectors coexist in one process.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        info = Info("service_info", "Service information", registry=self.registry)
        info.info({"service": self.service_name, "version": "1.0.0"})
        self._metrics["service_info"] = info

        for metric_type, specs in ((Counter, COUNTERS), (Gauge, GAUGES), (Histogram, HISTOGRAMS)):
            for name, (documentation, labels) in specs.items():
                self._metrics[name] = metric_type(name, documentation, labels, registry=self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self.increment_counter("http_requests_total", method=method, endpoint=endpoint, status_code=str(status_code))
        self.observe_histogram("http_request_duration_seconds", duration, method=method, endpoint=endpoint)

    def record_health_check(self, status: str):
        self.increment_counter("health_check_total", status=status)

    def record_error(self, error_type: str, service: Optional[str] = None):
        self.increment_counter("errors_total", error_type=error_type, service=service or self.service_name)

    # Unknown metric names are ignored.

    def increment_counter(self, metric_name: str, **labels):
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def set_gauge(self, metric_name: str, value: float, **labels):
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).set(value)

    def observe_histogram(self, metric_name: str, value: float, **labels):
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
