"""Row objects: one typed in-memory object per table row.

A row class declares its columns with ``Column`` descriptors; the ordered
descriptor table is derived when the class is created and drives
initialization from raw rows, the property map, and partial updates.

    class User(IdentityRow):
        name = Column()
        email = Column()
        nickname = Column(nullable=True)

Row objects hold a reference to their table handler and delegate every
persistence operation to it. The handler never calls back into the
save/update/replace/delete methods defined here, so the two cannot
recurse into each other.

Lifecycle:
    Unpersisted (no key) -> Persisted (key set) -> Deleted

A UUID row receives its key at construction, before it is ever saved.
Cloning clears the key so that saving the clone inserts a new row.
"""

from __future__ import annotations

import copy
import warnings
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Mapping

from sql_objects.domain.services.row_codec import decode_value
from sql_objects.domain.value_objects import KeyKind, RowKey
from sql_objects.infrastructure.logging import get_logger

if TYPE_CHECKING:
    from sql_objects.domain.services.key_strategy import KeyStrategy
    from sql_objects.ports.inbound.table import KeyedTablePort, TablePort
    from sql_objects.ports.outbound.connection import WireType


logger = get_logger(__name__)


class _Missing:
    """Sentinel for a column without a client-side default."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class MissingColumnError(Exception):
    """Raised when a required column is absent from the data a row is built from.

    Attributes:
        column: The missing column name.
        row_type: Name of the row class being initialized.
    """

    def __init__(self, column: str, row_type: str) -> None:
        self.column = column
        self.row_type = row_type
        super().__init__(f"{column} has not been provided for {row_type}")


class MissingSetterWarning(UserWarning):
    """Emitted when an update names a field the row class has no column for."""

    pass


class DeletedRowError(Exception):
    """Raised when a deleted row object is saved, updated or deleted again."""

    pass


class Column:
    """Declarative column descriptor.

    Attributes:
        name: Column name in the table (defaults to the attribute name).
        nullable: The column may hold NULL, so it may be absent on input.
        default: Client-side value used when the column is absent.
        server_default: The database fills the column when it is absent;
            a None value is then left out of INSERT/REPLACE/UPDATE.
        converter: Applied to every non-None value on set.
    """

    def __init__(
        self,
        name: str | None = None,
        *,
        nullable: bool = False,
        default: Any = MISSING,
        server_default: bool = False,
        converter: Callable[[Any], Any] | None = None,
    ) -> None:
        self.name = name
        self.attr: str | None = None
        self.nullable = nullable
        self.default = default
        self.server_default = server_default
        self.converter = converter

    def __set_name__(self, owner: type, attr: str) -> None:
        self.attr = attr
        if self.name is None:
            self.name = attr

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING or self.server_default

    @property
    def omit_when_none(self) -> bool:
        """Whether a None value should be left for the database to fill."""
        return self.server_default and not self.nullable

    def default_value(self) -> Any:
        if self.default is MISSING:
            return None
        return copy.copy(self.default)

    def get(self, row: RowObject) -> Any:
        return row._values.get(self.name)

    def set(self, row: RowObject, value: Any) -> None:
        if value is not None and self.converter is not None:
            value = self.converter(value)
        row._values[self.name] = value

    def __get__(self, row: RowObject | None, owner: type | None = None) -> Any:
        if row is None:
            return self
        return self.get(row)

    def __set__(self, row: RowObject, value: Any) -> None:
        self.set(row, value)

    def __repr__(self) -> str:
        return f"Column({self.name!r}, nullable={self.nullable}, has_default={self.has_default})"


class RowObject:
    """Base class for all row objects.

    Args:
        table: The table owning this row (any ``TablePort``; keyed rows
            need a ``KeyedTablePort``).
        row: Column name -> value. Values from the database may be raw;
            ``field_types`` is then used to type them.
        field_types: Optional column name -> wire type metadata.
        **values: Extra column values, merged over ``row``.

    Raises:
        MissingColumnError: If a column that is neither nullable nor
            defaulted is absent (or None).
    """

    key_kind: ClassVar[KeyKind] = KeyKind.NONE
    _columns: ClassVar[tuple[Column, ...]] = ()
    _columns_by_name: ClassVar[dict[str, Column]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        by_attr: dict[str, Column] = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                if isinstance(value, Column):
                    by_attr.pop(attr, None)
                    by_attr[attr] = value
        cls._columns = tuple(by_attr.values())
        cls._columns_by_name = {column.name: column for column in cls._columns}

    def __init__(
        self,
        table: TablePort,
        row: Mapping[str, Any] | None = None,
        field_types: Mapping[str, WireType | int] | None = None,
        /,
        **values: Any,
    ) -> None:
        self._table = table
        self._values: dict[str, Any] = {}
        self._key: RowKey | None = None
        self._deleted = False

        data = dict(row or {})
        data.update(values)
        self._initialize(data, field_types)

        if self._key is None:
            self._key = self.key_strategy.new_key()

    @classmethod
    def columns(cls) -> tuple[Column, ...]:
        """Return the declared columns in definition order."""
        return cls._columns

    @classmethod
    def column(cls, name: str) -> Column | None:
        """Return the column descriptor for ``name`` (None if undeclared)."""
        return cls._columns_by_name.get(name)

    @property
    def table(self) -> TablePort:
        return self._table

    @property
    def key_strategy(self) -> KeyStrategy:
        return self._table.key_strategy

    @property
    def key(self) -> RowKey | None:
        """The row identifier, or None if the row has none (yet)."""
        return self._key

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    def _read_key(
        self,
        data: Mapping[str, Any],
        field_types: Mapping[str, WireType | int],
    ) -> RowKey | None:
        key_column = self.key_strategy.column
        if key_column is None or data.get(key_column) is None:
            return None
        raw = decode_value(data[key_column], field_types.get(key_column))
        return self.key_strategy.client_key(raw)

    def _initialize(
        self,
        data: Mapping[str, Any],
        field_types: Mapping[str, WireType | int] | None = None,
    ) -> None:
        field_types = field_types or {}

        key = self._read_key(data, field_types)
        if key is not None:
            self._key = key

        for column in self._columns:
            value = data.get(column.name)

            if value is not None:
                column.set(self, decode_value(value, field_types.get(column.name)))
            elif column.name in data and column.nullable:
                column.set(self, None)
            elif column.has_default:
                column.set(self, column.default_value())
            elif column.nullable:
                column.set(self, None)
            else:
                raise MissingColumnError(column.name, type(self).__name__)

    def column_values(self) -> dict[str, Any]:
        """Return column name -> value for every declared column (no key)."""
        return {column.name: column.get(self) for column in self._columns}

    def to_property_map(self) -> dict[str, Any]:
        """Return the row as column name -> value.

        The key is included (first) only once it has been assigned.
        """
        properties: dict[str, Any] = {}
        key_column = self.key_strategy.column
        if key_column is not None and self._key is not None:
            properties[key_column] = self._key
        properties.update(self.column_values())
        return properties

    def get_array_form(self) -> dict[str, Any]:
        """Raw dump of the row for a caller-owned presentation layer."""
        return self.to_property_map()

    def __copy__(self) -> RowObject:
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._values = dict(self._values)
        clone._key = None
        clone._deleted = False
        return clone

    def __deepcopy__(self, memo: dict[int, Any]) -> RowObject:
        clone = self.__copy__()
        clone._values = copy.deepcopy(self._values, memo)
        return clone

    def clone(self) -> RowObject:
        """Return a copy of this row without its key (a new, unsaved row)."""
        return copy.copy(self)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{name}={value!r}" for name, value in self.to_property_map().items())
        return f"{type(self).__name__}({pairs})"


class KeyedRowObject(RowObject):
    """Row object of a table with a stable key; supports persistence."""

    _table: KeyedTablePort

    def _ensure_live(self) -> None:
        if self._deleted:
            raise DeletedRowError(
                f"{type(self).__name__} with key {self._key!r} has already been deleted"
            )

    def save(self) -> None:
        """Persist the row.

        Without a key the row is created (and takes the assigned key);
        otherwise auto-id rows are updated by id and UUID rows are
        replaced by primary key.
        """
        self._ensure_live()
        properties = self.column_values()
        strategy = self.key_strategy

        if self._key is None:
            created = self._table.create(properties)
            self._key = created.key
        elif strategy.saves_by_replace:
            self._table.replace({strategy.column: self._key, **properties})
        else:
            self._table.update(self._key, properties)

    def update(self, data: Mapping[str, Any]) -> None:
        """Apply a partial set of column values, then save.

        Names without a matching column emit ``MissingSetterWarning`` and
        are skipped; the remaining values are still applied and saved.
        """
        self._ensure_live()

        for name, value in data.items():
            column = self.column(name)

            if column is None:
                message = f"Missing setter for: {name} when updating: {type(self).__name__}"
                logger.warning("missing_setter", column=name, row_type=type(self).__name__)
                warnings.warn(MissingSetterWarning(message), stacklevel=2)
                continue

            column.set(self, value)

        self.save()

    def replace(self, data: Mapping[str, Any]) -> None:
        """Overwrite every column from ``data``, then save.

        Raises:
            MissingColumnError: If a required column is absent.
        """
        self._ensure_live()
        self._initialize(data)
        self.save()

    def delete(self) -> None:
        """Delete the row from its table.

        Raises:
            ValueError: If the row has never been saved.
            NoSuchIdError: If no row with this key exists.
        """
        self._ensure_live()
        if self._key is None:
            raise ValueError(f"Cannot delete an unsaved {type(self).__name__}")
        self._table.delete(self._key)
        self._deleted = True


class IdentityRow(KeyedRowObject):
    """Row of a table keyed by an auto-increment ``id``."""

    key_kind = KeyKind.AUTO_ID

    @property
    def id(self) -> RowKey | None:
        return self._key


class UuidRow(KeyedRowObject):
    """Row of a table keyed by a ``uuid`` (hex on the client)."""

    key_kind = KeyKind.UUID

    @property
    def uuid(self) -> RowKey | None:
        return self._key


class KeylessRow(RowObject):
    """Row of a table without a primary key; persisted through the table only."""

    key_kind = KeyKind.NONE
