"""
Shared metrics configuration for the storefront edge layer.
"""

from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry so several service instances (tests,
    CLI runs) can coexist in one process without duplicate registration.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_region_metrics()
        self._setup_routing_metrics()
        self._setup_enumeration_metrics()

    def _setup_region_metrics(self):
        """Set up region cache metrics."""
        self._metrics["region_cache_refresh_total"] = Counter(
            "region_cache_refresh_total",
            "Total region cache refreshes",
            ["status"],
            registry=self.registry
        )

        self._metrics["region_cache_refresh_duration_seconds"] = Histogram(
            "region_cache_refresh_duration_seconds",
            "Region cache refresh duration in seconds",
            ["status"],
            registry=self.registry
        )

        self._metrics["region_cache_lookups_total"] = Counter(
            "region_cache_lookups_total",
            "Total region lookups",
            ["result"],
            registry=self.registry
        )

        self._metrics["region_cache_locales"] = Gauge(
            "region_cache_locales",
            "Number of locale codes in the current region snapshot",
            registry=self.registry
        )

    def _setup_routing_metrics(self):
        """Set up edge routing metrics."""
        self._metrics["routing_decisions_total"] = Counter(
            "routing_decisions_total",
            "Total edge routing decisions",
            ["action"],
            registry=self.registry
        )

    def _setup_enumeration_metrics(self):
        """Set up static path enumeration metrics."""
        self._metrics["static_path_enumerations_total"] = Counter(
            "static_path_enumerations_total",
            "Total static path enumerations",
            ["content_type", "mode"],
            registry=self.registry
        )

        self._metrics["static_path_enumeration_duration_seconds"] = Histogram(
            "static_path_enumeration_duration_seconds",
            "Static path enumeration duration in seconds",
            ["content_type"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            metric = self._metrics[metric_name]
            (metric.labels(**labels) if labels else metric).inc()

    def set_gauge(self, metric_name: str, value: float, **labels):
        """Set a gauge metric value."""
        if metric_name in self._metrics:
            metric = self._metrics[metric_name]
            (metric.labels(**labels) if labels else metric).set(value)

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            metric = self._metrics[metric_name]
            (metric.labels(**labels) if labels else metric).observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
