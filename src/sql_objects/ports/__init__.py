"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts:
- Inbound ports: the table contract row objects persist through
- Outbound ports: the SQL connection table handlers issue statements on

Adapters implement these ports with concrete functionality.
"""

from sql_objects.ports.inbound import KeyedTablePort, NoSuchIdError, TablePort
from sql_objects.ports.outbound import (
    Connection,
    QueryExecutionError,
    ResultSet,
    WireType,
)

__all__ = [
    # Inbound ports
    "NoSuchIdError",
    "KeyedTablePort",
    "TablePort",
    # Outbound ports
    "Connection",
    "QueryExecutionError",
    "ResultSet",
    "WireType",
]
