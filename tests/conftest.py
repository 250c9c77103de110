"""Pytest configuration and fixtures for sql_objects tests."""

from __future__ import annotations

from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from sql_objects.adapters.outbound import SQLiteConnection
from sql_objects.application.registry import TableRegistry
from sql_objects.infrastructure.container import Container, reset_container
from sql_objects.infrastructure.metrics import MetricsRegistry

from recording_connection import RecordingConnection
from table_models import SCHEMA, NoIdUserTable, UserTable, UuidUserTable


@pytest.fixture
def sqlite_connection() -> Generator[SQLiteConnection, None, None]:
    """Provide an in-memory database with the test schema."""
    connection = SQLiteConnection(":memory:")
    connection.execute_script(SCHEMA)
    yield connection
    connection.close()


@pytest.fixture
def connection(sqlite_connection: SQLiteConnection) -> RecordingConnection:
    """Provide the test database behind a statement-recording wrapper."""
    return RecordingConnection(sqlite_connection)


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def registry(
    connection: RecordingConnection, metrics_registry: MetricsRegistry
) -> TableRegistry:
    """Provide a table registry over the test database."""
    return TableRegistry(connection, metrics=metrics_registry)


@pytest.fixture
def users(registry: TableRegistry) -> UserTable:
    return registry.get(UserTable)


@pytest.fixture
def uuid_users(registry: TableRegistry) -> UuidUserTable:
    return registry.get(UuidUserTable)


@pytest.fixture
def no_id_users(registry: TableRegistry) -> NoIdUserTable:
    return registry.get(NoIdUserTable)


@pytest.fixture
def container() -> Generator[Container, None, None]:
    """Provide a fresh DI container for each test."""
    reset_container()
    c = Container()
    yield c
    c.clear()


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
