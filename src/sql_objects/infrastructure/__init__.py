"""Infrastructure layer - cross-cutting concerns."""

from sql_objects.infrastructure.logging import setup_logging, get_logger
from sql_objects.infrastructure.metrics import setup_metrics, get_metrics, MetricsRegistry
from sql_objects.infrastructure.tracing import setup_tracing, get_tracer, trace_span
from sql_objects.infrastructure.container import Container, get_container, reset_container

__all__ = [
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
    "Container",
    "get_container",
    "reset_container",
]
