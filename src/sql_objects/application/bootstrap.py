"""Application start-up and shutdown.

``bootstrap`` wires the configured services into a DI container:

    Config          the settings used
    SQLiteConnection (also resolvable as Connection)
    MetricsRegistry
    TableRegistry   created lazily on first resolve

Usage:
    container = bootstrap()
    users = container.resolve(TableRegistry).get(UserTable)
    ...
    shutdown(container)
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry

from sql_objects.adapters.outbound.sqlite_connection import SQLiteConnection
from sql_objects.application.registry import TableRegistry
from sql_objects.infrastructure.config import Config, get_config
from sql_objects.infrastructure.container import Container, get_container
from sql_objects.infrastructure.logging import setup_logging
from sql_objects.infrastructure.metrics import MetricsRegistry, setup_metrics
from sql_objects.infrastructure.tracing import setup_tracing
from sql_objects.ports.outbound.connection import Connection


def bootstrap(
    config: Config | None = None,
    *,
    container: Container | None = None,
    metrics_registry: CollectorRegistry | None = None,
) -> Container:
    """
    Set up logging, tracing and metrics, open the database and register
    everything in a container.

    Args:
        config: Settings to use (default: the global configuration)
        container: Container to register into (default: the global one)
        metrics_registry: Prometheus registry for the metrics (default:
            the process-wide registry)

    Returns:
        The populated container
    """
    config = config or get_config()
    observability = config.observability

    logger = setup_logging(observability.log_level, observability.log_format)

    if observability.otel_endpoint:
        setup_tracing(observability.otel_service_name, observability.otel_endpoint)

    metrics = setup_metrics(observability.metrics_port, metrics_registry)
    connection = SQLiteConnection(config.database.path, config.database.timeout_seconds)

    container = container or get_container()
    container.register_singleton(Config, config)
    container.register_singleton(SQLiteConnection, connection)
    container.register_singleton(Connection, connection)  # type: ignore[type-abstract]
    container.register_singleton(MetricsRegistry, metrics)
    container.register_factory(
        TableRegistry,
        lambda c: TableRegistry(
            c.resolve(SQLiteConnection),
            metrics=c.resolve(MetricsRegistry),
            default_search_limit=config.query.default_search_limit,
        ),
    )

    logger.info(
        "sql_objects_started",
        database=config.database.path,
        tracing=bool(observability.otel_endpoint),
        metrics_port=observability.metrics_port,
    )
    return container


def shutdown(container: Container) -> None:
    """Close the connection registered by ``bootstrap`` and clear the container."""
    if container.has(SQLiteConnection):
        container.resolve(SQLiteConnection).close()
    container.clear()
