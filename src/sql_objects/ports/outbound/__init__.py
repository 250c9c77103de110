"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for external systems that the
table handlers depend on, namely the SQL connection.
"""

from sql_objects.ports.outbound.connection import (
    Connection,
    QueryExecutionError,
    ResultSet,
    WireType,
)

__all__ = [
    "Connection",
    "QueryExecutionError",
    "ResultSet",
    "WireType",
]
