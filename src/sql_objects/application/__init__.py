"""Application layer for SQL Objects.

The application layer wires the domain services to a connection and
hands table handlers to application code.

Exports:
    Registry:
        - TableRegistry: One handler per table type, created on first use
    Bootstrap:
        - bootstrap: Configure observability, open the database, fill a container
        - shutdown: Close the database and clear the container
"""

from sql_objects.application.bootstrap import bootstrap, shutdown
from sql_objects.application.registry import TableRegistry

__all__ = [
    "TableRegistry",
    "bootstrap",
    "shutdown",
]
