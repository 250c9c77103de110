"""Inbound ports - contracts offered to row objects and application code."""

from sql_objects.ports.inbound.table import KeyedTablePort, NoSuchIdError, TablePort

__all__ = [
    "KeyedTablePort",
    "NoSuchIdError",
    "TablePort",
]
