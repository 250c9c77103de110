"""Domain entities for the row-mapping layer.

Entities are objects with identity that have a lifecycle. A row object
is identified by its key and moves from unpersisted to persisted to
deleted.

Exports:
    Row objects:
        - RowObject: Base class with the declared column table
        - KeyedRowObject: Rows that persist themselves through their table
        - IdentityRow, UuidRow, KeylessRow: One base per key kind
        - Column: Declarative column descriptor
        - MISSING: Marker for a column without a client-side default

    Errors:
        - MissingColumnError: Required column absent on initialization
        - DeletedRowError: Persistence call on a deleted row
        - MissingSetterWarning: Update named an undeclared column
"""

from sql_objects.domain.entities.row_object import (
    MISSING,
    Column,
    DeletedRowError,
    IdentityRow,
    KeyedRowObject,
    KeylessRow,
    MissingColumnError,
    MissingSetterWarning,
    RowObject,
    UuidRow,
)

__all__ = [
    # Row objects
    "RowObject",
    "KeyedRowObject",
    "IdentityRow",
    "UuidRow",
    "KeylessRow",
    "Column",
    "MISSING",
    # Errors
    "MissingColumnError",
    "DeletedRowError",
    "MissingSetterWarning",
]
