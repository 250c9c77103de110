"""Value objects used when building queries."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Collection, Mapping, Union


Scalar = Union[str, int, float, bool, bytes, Decimal, None]
"""A single value that can be rendered as a SQL literal."""

Predicate = Mapping[str, Union[Scalar, Collection[Scalar]]]
"""Column name to value (equality) or collection of values (membership)."""

DEFAULT_SEARCH_LIMIT = 999999999999999999
"""Effectively unbounded LIMIT used by search when no limit is given."""


class InvalidConjunctionError(ValueError):
    """Raised when a WHERE clause is joined with anything but AND or OR."""

    pass


class Conjunction(str, Enum):
    """Combinator for the clauses of a WHERE predicate."""

    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: Conjunction | str) -> Conjunction:
        """Accept an enum member or a case-insensitive 'and'/'or' string.

        Raises:
            InvalidConjunctionError: For any other value.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidConjunctionError(f"Invalid conjunction: {value!r}")


class StatementKind(str, Enum):
    """Kind of statement issued by a table handler (metrics and tracing label)."""

    SELECT = "select"
    INSERT = "insert"
    REPLACE = "replace"
    UPDATE = "update"
    DELETE = "delete"
    TRUNCATE = "truncate"
