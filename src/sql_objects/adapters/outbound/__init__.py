"""Outbound adapters - implementations of outbound ports.

These adapters implement the SQL connection table handlers issue their
statements on.
"""

from sql_objects.adapters.outbound.sqlite_connection import SQLiteConnection

__all__ = [
    "SQLiteConnection",
]
