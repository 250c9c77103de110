"""Table registry: one handler per table type, created on first use.

Application code asks the registry for a table type instead of reaching
for a process-wide singleton. The registry is built once at start-up
(see ``bootstrap``) and passed to whoever needs tables, so tests can
swap in a registry over a test connection or register fakes.

Usage:
    registry = TableRegistry(connection)
    users = registry.get(UserTable)
    assert registry.get(UserTable) is users
    assert UserTable.get_instance(registry) is users
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, TypeVar

from sql_objects.domain.services.table_handler import TableHandler
from sql_objects.domain.value_objects import DEFAULT_SEARCH_LIMIT
from sql_objects.infrastructure.logging import get_logger
from sql_objects.ports.outbound.connection import Connection

if TYPE_CHECKING:
    from sql_objects.infrastructure.metrics import MetricsRegistry


logger = get_logger(__name__)

TableT = TypeVar("TableT", bound=TableHandler[Any])


class TableRegistry:
    """Holds exactly one handler per concrete table type.

    Args:
        connection: Connection every handler issues its statements on.
        metrics: Optional metrics registry handed to every handler.
        default_search_limit: Search LIMIT handed to every handler.

    Thread Safety:
        ``get`` may be called from several threads; a handler is only
        ever constructed once.
    """

    def __init__(
        self,
        connection: Connection,
        *,
        metrics: MetricsRegistry | None = None,
        default_search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        self._connection = connection
        self._metrics = metrics
        self._default_search_limit = default_search_limit
        self._tables: dict[type[TableHandler[Any]], TableHandler[Any]] = {}
        self._lock = threading.Lock()

    @property
    def connection(self) -> Connection:
        return self._connection

    def get(self, table_type: type[TableT]) -> TableT:
        """Return the handler for ``table_type``, constructing it on first use."""
        with self._lock:
            table = self._tables.get(table_type)
            if table is None:
                table = table_type(
                    self._connection,
                    metrics=self._metrics,
                    default_search_limit=self._default_search_limit,
                )
                self._tables[table_type] = table
                logger.debug("table_registered", table=table_type.table_name)
            return table  # type: ignore[return-value]

    def register(self, table: TableHandler[Any]) -> None:
        """Install a ready-made handler (a fake, or one built differently).

        Raises:
            ValueError: If a handler of the same type is already held.
        """
        with self._lock:
            if type(table) in self._tables:
                raise ValueError(f"{type(table).__name__} is already registered")
            self._tables[type(table)] = table

    def __contains__(self, table_type: object) -> bool:
        with self._lock:
            return table_type in self._tables

    def __len__(self) -> int:
        with self._lock:
            return len(self._tables)

    def clear(self) -> None:
        """Forget every handler (their caches go with them)."""
        with self._lock:
            self._tables.clear()
