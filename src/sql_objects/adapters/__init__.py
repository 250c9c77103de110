"""Adapters layer - concrete implementations of port interfaces.

Adapters provide the actual implementations:
- Outbound adapters: The SQL connection (SQLite)
"""

from sql_objects.adapters.outbound import SQLiteConnection

__all__ = [
    # Outbound adapters
    "SQLiteConnection",
]
