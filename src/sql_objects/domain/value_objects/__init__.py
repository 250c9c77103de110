"""Value objects for the row-mapping domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Identifiers:
        - AutoId, UuidHex, UuidBinary: Type-safe key primitives
        - RowKey: Normalized key (cache and caller form)
        - KeyKind: AUTO_ID, UUID or NONE per table
        - UUID_BINARY_SIZE, UUID_HEX_LENGTH: Size constants

    Query Types:
        - Conjunction: AND/OR combinator for predicates
        - InvalidConjunctionError: Rejected conjunction
        - Predicate, Scalar: Predicate map typing
        - StatementKind: Statement label for metrics and tracing
        - DEFAULT_SEARCH_LIMIT: Unbounded search sentinel
"""

from sql_objects.domain.value_objects.identifiers import (
    UUID_BINARY_SIZE,
    UUID_HEX_LENGTH,
    AutoId,
    KeyKind,
    RowKey,
    UuidBinary,
    UuidHex,
)
from sql_objects.domain.value_objects.query_types import (
    DEFAULT_SEARCH_LIMIT,
    Conjunction,
    InvalidConjunctionError,
    Predicate,
    Scalar,
    StatementKind,
)

__all__ = [
    # Identifiers
    "AutoId",
    "UuidHex",
    "UuidBinary",
    "RowKey",
    "KeyKind",
    "UUID_BINARY_SIZE",
    "UUID_HEX_LENGTH",
    # Query types
    "Conjunction",
    "InvalidConjunctionError",
    "Predicate",
    "Scalar",
    "StatementKind",
    "DEFAULT_SEARCH_LIMIT",
]
