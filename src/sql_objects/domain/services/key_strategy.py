"""Key strategies for table handlers.

A single table handler implementation serves all three key kinds; the
strategy object supplies what differs between them:

- which column holds the key,
- how a key is normalized for the cache and for callers,
- how it is rendered for storage,
- whether new rows get a key on the client and how an inserted row's key
  is learned,
- whether rows can be cached at all,
- whether saving a persisted row is an UPDATE by key or a REPLACE.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from sql_objects.domain.services.key_codec import generate_uuid, to_binary, to_hex
from sql_objects.domain.value_objects import AutoId, KeyKind, RowKey
from sql_objects.ports.outbound.connection import ResultSet


class KeyStrategy(ABC):
    """Capability object describing how a table identifies its rows."""

    kind: ClassVar[KeyKind]
    column: ClassVar[str | None] = None
    saves_by_replace: ClassVar[bool] = False

    @property
    def caches(self) -> bool:
        """Whether handlers using this strategy keep a row cache."""
        return self.kind.is_keyed

    @abstractmethod
    def client_key(self, value: Any) -> RowKey:
        """Normalize a key to the form used by callers and the cache."""
        ...

    @abstractmethod
    def storage_key(self, value: Any) -> Any:
        """Normalize a key to the form stored in the key column."""
        ...

    def new_key(self) -> RowKey | None:
        """Key for a freshly constructed row (None if the database assigns it)."""
        return None

    @abstractmethod
    def prepare_insert(self, row: dict[str, Any]) -> dict[str, Any]:
        """Return the column values to INSERT for ``row``."""
        ...

    @abstractmethod
    def inserted_key(self, row: dict[str, Any], result: ResultSet) -> RowKey | None:
        """Return the key of the row ``result`` reports inserting from ``row``."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AutoIdStrategy(KeyStrategy):
    """Integer ``id`` column assigned by the database."""

    kind = KeyKind.AUTO_ID
    column = "id"

    def client_key(self, value: Any) -> AutoId:
        if isinstance(value, bool):
            raise TypeError("A boolean is not a row id")
        return AutoId(int(value))

    def storage_key(self, value: Any) -> int:
        return int(self.client_key(value))

    def prepare_insert(self, row: dict[str, Any]) -> dict[str, Any]:
        prepared = dict(row)
        if prepared.get(self.column) is None:
            prepared.pop(self.column, None)
        else:
            prepared[self.column] = self.storage_key(prepared[self.column])
        return prepared

    def inserted_key(self, row: dict[str, Any], result: ResultSet) -> AutoId:
        if row.get(self.column) is not None:
            return self.client_key(row[self.column])
        return AutoId(result.last_insert_id)


class UuidStrategy(KeyStrategy):
    """Binary ``uuid`` column; keys are hex on the client, 16 bytes in storage."""

    kind = KeyKind.UUID
    column = "uuid"
    saves_by_replace = True

    def client_key(self, value: Any) -> RowKey:
        return to_hex(value)

    def storage_key(self, value: Any) -> bytes:
        return to_binary(value)

    def new_key(self) -> RowKey:
        return generate_uuid()

    def prepare_insert(self, row: dict[str, Any]) -> dict[str, Any]:
        prepared = dict(row)
        if prepared.get(self.column) is None:
            prepared[self.column] = self.new_key()
        prepared[self.column] = self.storage_key(prepared[self.column])
        return prepared

    def inserted_key(self, row: dict[str, Any], result: ResultSet) -> RowKey:
        return self.client_key(row[self.column])


class NoKeyStrategy(KeyStrategy):
    """Rows without a stable identifier; nothing is cached."""

    kind = KeyKind.NONE

    def client_key(self, value: Any) -> RowKey:
        raise TypeError("Keyless tables have no row keys")

    def storage_key(self, value: Any) -> Any:
        raise TypeError("Keyless tables have no row keys")

    def prepare_insert(self, row: dict[str, Any]) -> dict[str, Any]:
        return dict(row)

    def inserted_key(self, row: dict[str, Any], result: ResultSet) -> None:
        return None
