"""Table ports: the persistence contracts row objects delegate to.

Row objects never issue SQL themselves. ``save``, ``update``, ``replace``
and ``delete`` on a row call back into the table that owns it through
these contracts, and implementations must operate directly against
storage (never through a row object's own persistence methods).

Every table offers ``TablePort``. Tables whose rows carry a key also offer
``KeyedTablePort``; keyless tables do not, since their rows cannot be
addressed individually.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Mapping, Protocol, runtime_checkable

from sql_objects.domain.value_objects import RowKey

if TYPE_CHECKING:
    from sql_objects.domain.entities.row_object import RowObject
    from sql_objects.domain.services.key_strategy import KeyStrategy


@runtime_checkable
class TablePort(Protocol):
    """Protocol for the table handler that owns a set of row objects."""

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Return the name of the underlying table."""
        ...

    @property
    @abstractmethod
    def key_strategy(self) -> KeyStrategy:
        """Return how rows of this table are identified."""
        ...

    @abstractmethod
    def create(self, row: Mapping[str, Any]) -> RowObject:
        """Insert a new row and return its row object."""
        ...

    @abstractmethod
    def replace(self, row: Mapping[str, Any]) -> RowObject:
        """Insert or overwrite the row with the same primary key."""
        ...


@runtime_checkable
class KeyedTablePort(TablePort, Protocol):
    """Protocol for tables whose rows are addressed by key."""

    @abstractmethod
    def update(self, key: RowKey, row: Mapping[str, Any]) -> RowObject:
        """Apply column values to the row identified by ``key``."""
        ...

    @abstractmethod
    def delete(self, key: RowKey) -> None:
        """Delete the row identified by ``key``.

        Raises:
            NoSuchIdError: If no row was deleted.
        """
        ...

class NoSuchIdError(LookupError):
    """Raised when no row exists for the requested key.

    Attributes:
        table: Name of the table that was searched.
        key: The key that matched nothing.
    """

    def __init__(self, table: str, key: Any) -> None:
        self.table = table
        self.key = key
        super().__init__(f"There is no {table} row with key {key!r}")
