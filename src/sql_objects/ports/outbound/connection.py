"""Connection port for SQL execution.

This outbound port defines the contract for the live database connection
that table handlers issue their statements through. The connection owns
query execution and literal escaping. Each result set carries the insert
id and affected row count of the statement that produced it, captured
atomically with the statement, so handlers sharing a connection never
read another statement's bookkeeping.

Column type metadata is reported with the MySQL client type codes, which
is what the row codec classifies into integer and floating point families.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterator, Protocol


class WireType(IntEnum):
    """Column type codes reported alongside a result set."""

    DECIMAL = 0
    TINY = 1
    SHORT = 2
    LONG = 3
    FLOAT = 4
    DOUBLE = 5
    NULL = 6
    TIMESTAMP = 7
    LONGLONG = 8
    INT24 = 9
    DATE = 10
    TIME = 11
    DATETIME = 12
    YEAR = 13
    VARCHAR = 15
    BIT = 16
    JSON = 245
    NEWDECIMAL = 246
    ENUM = 247
    SET = 248
    BLOB = 252
    VAR_STRING = 253
    STRING = 254


@dataclass
class ResultSet:
    """Rows returned by a statement, with per-column type metadata.

    Attributes:
        columns: Column names in result order.
        rows: One column->raw value mapping per row.
        field_types: Column name -> wire type, for the columns the driver
            reported a type for.
        last_insert_id: Auto-increment id generated by this statement
            (0 if it inserted nothing).
        affected_rows: Rows changed by this statement.
    """

    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)
    field_types: dict[str, WireType] = field(default_factory=dict)
    last_insert_id: int = 0
    affected_rows: int = 0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def column_type(self, index: int) -> WireType | None:
        """Return the wire type of the column at ``index`` (None if unknown)."""
        return self.field_types.get(self.columns[index])

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


class Connection(Protocol):
    """Protocol for the SQL connection used by table handlers.

    Thread Safety:
        Table handlers do not serialise access to the connection.
        Implementations shared between threads must do so themselves.
    """

    @property
    @abstractmethod
    def supports_truncate(self) -> bool:
        """Whether ``TRUNCATE`` is available on this connection."""
        ...

    @abstractmethod
    def execute(self, sql: str) -> ResultSet:
        """Execute a single statement.

        Args:
            sql: Complete statement text; values are already escaped.

        Returns:
            The result set (empty for statements that return no rows).

        Raises:
            QueryExecutionError: If the driver rejects the statement.
        """
        ...

    @abstractmethod
    def escape(self, value: Any) -> str:
        """Render a scalar as a complete SQL literal.

        ``None`` renders as ``NULL``, numbers verbatim, strings quoted with
        embedded quotes doubled and bytes as a hex blob literal.

        Raises:
            TypeError: If the value has no literal form.
        """
        ...

    @abstractmethod
    def last_insert_id(self) -> int:
        """Return the auto-increment id generated by the last INSERT.

        This is the last INSERT on the connection, whichever caller issued
        it; use ``ResultSet.last_insert_id`` when the connection is shared.
        """
        ...

    @abstractmethod
    def affected_rows(self) -> int:
        """Return the number of rows changed by the last statement.

        Like ``last_insert_id``, this reflects whichever caller ran last;
        use ``ResultSet.affected_rows`` when the connection is shared.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the connection and release resources."""
        ...


class QueryExecutionError(Exception):
    """Raised when the connection fails to execute a statement.

    Attributes:
        sql: The statement that was attempted.
        driver_message: The error text reported by the driver.
    """

    def __init__(self, sql: str, driver_message: str) -> None:
        self.sql = sql
        self.driver_message = driver_message
        super().__init__(f"{driver_message} (query: {sql})")
