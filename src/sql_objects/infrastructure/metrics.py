"""Prometheus metrics for table handlers."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all table handler metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Statement metrics
        self.queries_total = Counter(
            "sql_objects_queries_total",
            "Total number of statements issued",
            ["table", "statement", "status"],  # status: success, error
            registry=self._registry,
        )

        self.query_latency_seconds = Histogram(
            "sql_objects_query_latency_seconds",
            "Statement latency in seconds",
            ["statement"],  # select, insert, replace, update, delete, truncate
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self._registry,
        )

        self.rows_loaded_total = Counter(
            "sql_objects_rows_loaded_total",
            "Total rows turned into row objects",
            ["table"],
            registry=self._registry,
        )

        # Cache metrics
        self.cache_hits_total = Counter(
            "sql_objects_cache_hits_total",
            "Total row cache hits",
            ["table"],
            registry=self._registry,
        )

        self.cache_misses_total = Counter(
            "sql_objects_cache_misses_total",
            "Total row cache misses",
            ["table"],
            registry=self._registry,
        )

        self.cache_entries = Gauge(
            "sql_objects_cache_entries",
            "Row objects currently cached",
            ["table"],
            registry=self._registry,
        )

        self.cache_invalidations_total = Counter(
            "sql_objects_cache_invalidations_total",
            "Total full cache invalidations",
            ["table", "reason"],  # load_all, delete_where, delete_all, manual
            registry=self._registry,
        )

        # Library info
        self.info = Info(
            "sql_objects",
            "SQL Objects information",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """The Prometheus registry the metrics are registered in."""
        return self._registry


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(
    port: int | None = None, registry: CollectorRegistry | None = None
) -> MetricsRegistry:
    """
    Set up Prometheus metrics.

    Args:
        port: Port for the metrics HTTP server (no server if None)
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    _metrics = MetricsRegistry(registry)

    from sql_objects import __version__
    _metrics.info.info({
        "version": __version__,
    })

    if port is not None:
        start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
