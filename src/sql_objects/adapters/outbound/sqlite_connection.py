"""SQLite Connection implementation.

This adapter implements the Connection protocol over the standard
library ``sqlite3`` module. Statements run in autocommit mode; every
result row is returned as a column -> value mapping.

SQLite reports no column types for a result set, so ``field_types`` is
inferred from the first non-null value of each column:

    int   -> LONGLONG
    float -> DOUBLE
    bytes -> BLOB
    str   -> VAR_STRING

SQLite has no TRUNCATE; ``supports_truncate`` is False so table handlers
fall back to ``DELETE FROM``.

Thread Safety:
    One connection may be shared between threads. Each statement runs
    under a lock, and its insert id and row count are copied into the
    returned ResultSet before the lock is released.
"""

from __future__ import annotations

import datetime
import sqlite3
import threading
from decimal import Decimal
from pathlib import Path
from types import TracebackType
from typing import Any

from sql_objects.infrastructure.config import get_config
from sql_objects.infrastructure.logging import get_logger
from sql_objects.ports.outbound.connection import QueryExecutionError, ResultSet, WireType


logger = get_logger(__name__)

_INFERRED_TYPES: tuple[tuple[type, WireType], ...] = (
    (bool, WireType.TINY),
    (int, WireType.LONGLONG),
    (float, WireType.DOUBLE),
    (bytes, WireType.BLOB),
    (str, WireType.VAR_STRING),
)


def _infer_wire_type(value: Any) -> WireType | None:
    for python_type, wire_type in _INFERRED_TYPES:
        if isinstance(value, python_type):
            return wire_type
    return None


class SQLiteConnection:
    """SQLite implementation of the Connection protocol.

    Attributes:
        database: Path of the database file, or ``":memory:"``.
    """

    def __init__(
        self,
        database: str | Path | None = None,
        timeout: float | None = None,
    ) -> None:
        """Open the database.

        Args:
            database: Database file or ``":memory:"`` (default from config).
            timeout: Seconds to wait on a locked database (default from config).
        """
        config = get_config().database
        self._database = str(database if database is not None else config.path)
        self._timeout = timeout if timeout is not None else config.timeout_seconds
        self._lock = threading.RLock()
        self._last_insert_id = 0
        self._affected_rows = 0
        self._closed = False

        self._conn = sqlite3.connect(
            self._database,
            timeout=self._timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        logger.debug("sqlite_connection_opened", database=self._database)

    @property
    def database(self) -> str:
        return self._database

    @property
    def supports_truncate(self) -> bool:
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    def execute(self, sql: str) -> ResultSet:
        """Execute a single statement.

        Raises:
            QueryExecutionError: If SQLite rejects the statement or the
                connection is closed.
        """
        with self._lock:
            if self._closed:
                raise QueryExecutionError(sql, "connection is closed")
            try:
                cursor = self._conn.execute(sql)
                rows = cursor.fetchall()
            except sqlite3.Error as e:
                raise QueryExecutionError(sql, str(e)) from e

            self._last_insert_id = cursor.lastrowid or 0
            self._affected_rows = max(cursor.rowcount, 0)

            if cursor.description is None:
                return ResultSet(
                    last_insert_id=self._last_insert_id,
                    affected_rows=self._affected_rows,
                )

            columns = [column[0] for column in cursor.description]
            result = ResultSet(
                columns=columns,
                rows=[dict(zip(columns, row)) for row in rows],
                last_insert_id=self._last_insert_id,
                affected_rows=self._affected_rows,
            )

        for index, column in enumerate(columns):
            for row in rows:
                if row[index] is not None:
                    wire_type = _infer_wire_type(row[index])
                    if wire_type is not None:
                        result.field_types[column] = wire_type
                    break

        return result

    def execute_script(self, script: str) -> None:
        """Run several ``;``-separated statements (schema setup)."""
        with self._lock:
            try:
                self._conn.executescript(script)
            except sqlite3.Error as e:
                raise QueryExecutionError(script, str(e)) from e

    def escape(self, value: Any) -> str:
        """Render a scalar as a complete SQLite literal.

        Raises:
            TypeError: If the value has no literal form.
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, Decimal)):
            return str(value)
        if isinstance(value, float):
            return repr(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return f"X'{bytes(value).hex().upper()}'"
        if isinstance(value, datetime.datetime):
            value = value.isoformat(sep=" ")
        elif isinstance(value, (datetime.date, datetime.time)):
            value = value.isoformat()
        if isinstance(value, str):
            if "\x00" in value:
                raise TypeError("Strings containing NUL cannot be written as SQL literals")
            return "'" + value.replace("'", "''") + "'"
        raise TypeError(f"Cannot render {type(value).__name__} as a SQL literal")

    def last_insert_id(self) -> int:
        return self._last_insert_id

    def affected_rows(self) -> int:
        return self._affected_rows

    def close(self) -> None:
        """Close the connection (idempotent)."""
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True
        logger.debug("sqlite_connection_closed", database=self._database)

    def __enter__(self) -> SQLiteConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SQLiteConnection({self._database!r})"
