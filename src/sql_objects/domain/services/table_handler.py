"""Table handlers: CRUD, search and row caching for one table each.

A table handler is the aggregate root for a table. It builds every
statement, runs it on the shared connection, turns result rows into row
objects and keeps the per-table cache of loaded rows coherent.

One implementation serves all three key kinds; the class-level
``key_strategy`` supplies what differs between them:

    IdentityTable   auto-increment ``id``, assigned by the database
    UuidTable       ``uuid`` generated on the client, stored as 16 bytes
    KeylessTable    no key, no cache; rows are only addressed by predicate

Cache rules:
    - every load populates the cache, ``load_all`` repopulates it from empty
    - ``update`` merges into the cached row, moving it if the key changed
    - ``delete``/``delete_ids`` evict the named keys
    - ``delete_where_*`` and ``delete_all`` empty the whole cache
    - ``search`` results are never cached

Handlers operate directly against storage and never call the persistence
methods of a row object, so row.save() -> table.update() cannot recurse.

Example:
    class UserTable(IdentityTable[User]):
        table_name = "user"
        row_class = User

    users = UserTable(connection)
    user = users.create({"name": "user1", "email": "user1@gmail.com"})
    assert users.load(user.id) is user
"""

from __future__ import annotations

import threading
import time
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Generic,
    Iterable,
    Mapping,
    Sequence,
    TypeVar,
)

from sql_objects.domain.entities.row_object import RowObject
from sql_objects.domain.services.key_strategy import (
    AutoIdStrategy,
    KeyStrategy,
    NoKeyStrategy,
    UuidStrategy,
)
from sql_objects.domain.services.where_clause import (
    build_where_fragment,
    join_clauses,
    quote_identifier,
    where_clause,
)
from sql_objects.domain.value_objects import (
    DEFAULT_SEARCH_LIMIT,
    Conjunction,
    KeyKind,
    Predicate,
    RowKey,
    StatementKind,
)
from sql_objects.infrastructure.logging import get_logger
from sql_objects.infrastructure.tracing import trace_span
from sql_objects.ports.inbound.table import NoSuchIdError
from sql_objects.ports.outbound.connection import Connection, QueryExecutionError, ResultSet

if TYPE_CHECKING:
    from sql_objects.application.registry import TableRegistry
    from sql_objects.infrastructure.metrics import MetricsRegistry


logger = get_logger(__name__)

RowT = TypeVar("RowT", bound=RowObject)

SEARCH_ID_FILTERS = ("start_id", "end_id", "in_id")


class TableHandler(Generic[RowT]):
    """Operations shared by every table, keyed or not.

    Subclasses set ``table_name`` and ``row_class``; the key variants
    below fix ``key_strategy``.

    Args:
        connection: Connection the statements are executed on.
        metrics: Optional metrics registry to record statements and
            cache activity in.
        default_search_limit: LIMIT used by ``search`` when none is given.

    Thread Safety:
        The cache and every check-then-fetch sequence on it are guarded
        by a per-handler re-entrant lock. Statements are not made atomic
        with respect to other handlers sharing the connection.
    """

    table_name: ClassVar[str]
    row_class: ClassVar[type[RowObject]]
    key_strategy: ClassVar[KeyStrategy] = NoKeyStrategy()

    def __init__(
        self,
        connection: Connection,
        *,
        metrics: MetricsRegistry | None = None,
        default_search_limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> None:
        cls = type(self)
        if not getattr(cls, "table_name", None) or not hasattr(cls, "row_class"):
            raise TypeError(f"{cls.__name__} must define table_name and row_class")
        if cls.row_class.key_kind is not cls.key_strategy.kind:
            raise TypeError(
                f"{cls.row_class.__name__} rows are keyed by {cls.row_class.key_kind.value} "
                f"but {cls.__name__} is keyed by {cls.key_strategy.kind.value}"
            )

        self._connection = connection
        self._metrics = metrics
        self._default_search_limit = default_search_limit
        self._cache: dict[RowKey, RowT] = {}
        self._lock = threading.RLock()
        self._logger = logger.bind(table=self.table_name)

    @classmethod
    def get_instance(cls, registry: TableRegistry) -> TableHandler[Any]:
        """Return the one handler of this type held by ``registry``."""
        return registry.get(cls)

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def default_search_limit(self) -> int:
        return self._default_search_limit

    def validate_inputs(self, data: dict[str, Any]) -> dict[str, Any]:
        """Check or clean column values before they are written.

        Called by ``create``, ``replace`` and ``update``. Override to
        reject bad input by raising; the default returns ``data`` as is.
        """
        return data

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_all(self) -> list[RowT]:
        """Load every row of the table, repopulating the cache from empty."""
        with self._lock:
            result = self._query(f"SELECT * FROM {self._quoted_table}", StatementKind.SELECT)
            if self.key_strategy.caches:
                self._invalidate("load_all")
            return self._to_objects(result)

    def load_range(self, offset: int, count: int) -> list[RowT]:
        """Load ``count`` rows starting at ``offset`` (storage order)."""
        sql = f"SELECT * FROM {self._quoted_table} LIMIT {int(offset)}, {int(count)}"
        with self._lock:
            return self._to_objects(self._query(sql, StatementKind.SELECT))

    def load_where_and(self, predicate: Predicate) -> list[RowT]:
        """Load the rows matching every entry of ``predicate``."""
        return self._load_where(predicate, Conjunction.AND)

    def load_where_or(self, predicate: Predicate) -> list[RowT]:
        """Load the rows matching any entry of ``predicate``."""
        return self._load_where(predicate, Conjunction.OR)

    def load_where_explicit(self, where_sql: str) -> list[RowT]:
        """Load the rows matching a caller-written WHERE body.

        ``where_sql`` is inserted into the statement verbatim and is NOT
        escaped; never build it from untrusted input.
        """
        sql = f"SELECT * FROM {self._quoted_table} WHERE {where_sql}"
        with self._lock:
            return self._to_objects(self._query(sql, StatementKind.SELECT))

    def _load_where(self, predicate: Predicate, conjunction: Conjunction) -> list[RowT]:
        sql = f"SELECT * FROM {self._quoted_table}" + where_clause(
            self._storage_predicate(predicate), conjunction, self._connection.escape
        )
        with self._lock:
            return self._to_objects(self._query(sql, StatementKind.SELECT))

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def create(self, row: Mapping[str, Any]) -> RowT:
        """Insert a new row and return its row object.

        Auto-id tables take the id the database assigned. UUID tables
        generate a UUID when none is supplied and store it as binary.

        Raises:
            ValueError: If there is nothing to insert.
            QueryExecutionError: If the INSERT fails.
        """
        strategy = self.key_strategy
        data = self._writable(self.validate_inputs(dict(row)))
        values = strategy.prepare_insert(data)
        if not values:
            raise ValueError(f"Cannot create a {self.table_name} row without any column values")

        with self._lock:
            result = self._query(self._insert_sql("INSERT", values), StatementKind.INSERT)
            key = strategy.inserted_key(values, result)
            if strategy.column is not None:
                data[strategy.column] = key
            created = self._construct(data)
            self._remember(created)
            self._logger.debug("row_created", key=key)
            return created

    def replace(self, row: Mapping[str, Any]) -> RowT:
        """Insert ``row``, overwriting any row with the same primary key.

        Which row gets overwritten is decided by the database, not the
        cache. The cache entry for the key is refreshed with the result.
        """
        strategy = self.key_strategy
        data = self._writable(self.validate_inputs(dict(row)))
        if not data:
            raise ValueError(f"Cannot replace a {self.table_name} row without any column values")

        values = dict(data)
        if strategy.column is not None and data.get(strategy.column) is not None:
            values[strategy.column] = strategy.storage_key(data[strategy.column])
            data[strategy.column] = strategy.client_key(data[strategy.column])

        with self._lock:
            self._query(self._insert_sql("REPLACE", values), StatementKind.REPLACE)
            replaced = self._construct(data)
            self._remember(replaced)
            return replaced

    def delete_where_and(self, predicate: Predicate, clear_cache: bool = True) -> int:
        """Delete the rows matching every entry of ``predicate``."""
        return self._delete_where(predicate, Conjunction.AND, clear_cache)

    def delete_where_or(self, predicate: Predicate, clear_cache: bool = True) -> int:
        """Delete the rows matching any entry of ``predicate``."""
        return self._delete_where(predicate, Conjunction.OR, clear_cache)

    def _delete_where(
        self,
        predicate: Predicate,
        conjunction: Conjunction,
        clear_cache: bool,
    ) -> int:
        if not predicate:
            raise ValueError("Refusing to delete with an empty predicate; use delete_all()")

        sql = f"DELETE FROM {self._quoted_table}" + where_clause(
            self._storage_predicate(predicate), conjunction, self._connection.escape
        )
        with self._lock:
            affected = self._query(sql, StatementKind.DELETE).affected_rows
            # Which cached rows matched is unknown
            if clear_cache and self.key_strategy.caches:
                self._invalidate("delete_where")
            return affected

    def delete_all(self, in_transaction: bool = False) -> None:
        """Delete every row and empty the cache.

        Uses TRUNCATE when the connection supports it, unless
        ``in_transaction`` is set: TRUNCATE commits implicitly, so a
        transaction-safe ``DELETE FROM`` is issued instead.
        """
        if not in_transaction and self._connection.supports_truncate:
            sql, kind = f"TRUNCATE {self._quoted_table}", StatementKind.TRUNCATE
        else:
            sql, kind = f"DELETE FROM {self._quoted_table}", StatementKind.DELETE

        with self._lock:
            self._query(sql, kind)
            if self.key_strategy.caches:
                self._invalidate("delete_all")

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    def search(self, parameters: Mapping[str, Any]) -> list[RowT]:
        """Search with the ``start_id``/``end_id``/``in_id``/``offset``/``limit`` filters."""
        return self.advanced_search(parameters)

    def advanced_search(
        self,
        parameters: Mapping[str, Any],
        where_clauses: Iterable[str] = (),
    ) -> list[RowT]:
        """Search with the standard filters on top of raw WHERE clauses.

        Args:
            parameters: Optional ``start_id`` / ``end_id`` (inclusive, auto-id
                tables only), ``in_id`` (a list of keys), ``offset`` (default
                0) and ``limit`` (default: the configured search limit).
            where_clauses: Extra WHERE clauses, ANDed together. These are
                used verbatim and are NOT escaped.

        Returns:
            The matching rows. Search results are not cached.

        Raises:
            ValueError: For an id filter the table cannot apply or an
                ``in_id`` that is not a list.
        """
        clauses = list(where_clauses) + self._id_filter_clauses(parameters)

        offset = int(parameters["offset"]) if parameters.get("offset") is not None else 0
        limit = (
            int(parameters["limit"])
            if parameters.get("limit") is not None
            else self._default_search_limit
        )

        sql = (
            f"SELECT * FROM {self._quoted_table}"
            f"{join_clauses(clauses)} LIMIT {offset}, {limit}"
        )
        result = self._query(sql, StatementKind.SELECT)
        return [self._construct(row, result.field_types) for row in result]

    def _id_filter_clauses(self, parameters: Mapping[str, Any]) -> list[str]:
        strategy = self.key_strategy
        given = [name for name in SEARCH_ID_FILTERS if parameters.get(name) is not None]
        if not given:
            return []
        if strategy.column is None:
            raise ValueError(f"{self.table_name} has no key column to apply {given} to")

        clauses: list[str] = []
        column = quote_identifier(strategy.column)
        escape = self._connection.escape

        for name, operator in (("start_id", ">="), ("end_id", "<=")):
            if parameters.get(name) is None:
                continue
            if strategy.kind is not KeyKind.AUTO_ID:
                raise ValueError(f"{name} only applies to tables with an auto-increment id")
            clauses.append(f"{column} {operator} {escape(strategy.storage_key(parameters[name]))}")

        if parameters.get("in_id") is not None:
            keys = parameters["in_id"]
            if not isinstance(keys, list):
                raise ValueError('"in_id" needs to be a list of ids')
            clauses.append(
                build_where_fragment(
                    {strategy.column: [strategy.storage_key(key) for key in keys]},
                    Conjunction.AND,
                    escape,
                )
            )

        return clauses

    # ------------------------------------------------------------------
    # Statement helpers
    # ------------------------------------------------------------------

    @property
    def _quoted_table(self) -> str:
        return quote_identifier(self.table_name)

    def _insert_sql(self, verb: str, values: Mapping[str, Any]) -> str:
        escape = self._connection.escape
        columns = ", ".join(quote_identifier(column) for column in values)
        literals = ", ".join(escape(value) for value in values.values())
        return f"{verb} INTO {self._quoted_table} ({columns}) VALUES ({literals})"

    def _writable(self, data: dict[str, Any]) -> dict[str, Any]:
        """Drop None values the database is meant to fill in itself."""
        writable: dict[str, Any] = {}
        for name, value in data.items():
            column = self.row_class.column(name)
            if value is None and column is not None and column.omit_when_none:
                continue
            writable[name] = value
        return writable

    def _storage_predicate(self, predicate: Predicate) -> dict[str, Any]:
        """Render key values in a predicate in their stored form."""
        strategy = self.key_strategy
        converted = dict(predicate)
        column = strategy.column
        if column is None or converted.get(column) is None:
            return converted

        value = converted[column]
        if isinstance(value, (list, tuple, set, frozenset)):
            converted[column] = [strategy.storage_key(v) for v in value]
        else:
            converted[column] = strategy.storage_key(value)
        return converted

    def _query(self, sql: str, kind: StatementKind) -> ResultSet:
        attributes = {"db.table": self.table_name, "db.statement_kind": kind.value}
        with trace_span(f"sql_objects.{kind.value}", attributes) as span:
            start = time.perf_counter()
            try:
                result = self._connection.execute(sql)
            except QueryExecutionError as e:
                self._record_query(kind, "error", start)
                self._logger.error(
                    "query_failed", statement=kind.value, sql=sql, error=e.driver_message
                )
                raise

            self._record_query(kind, "success", start)
            span.set_attribute("db.row_count", result.row_count)
            self._logger.debug("query_executed", statement=kind.value, rows=result.row_count)
            return result

    def _record_query(self, kind: StatementKind, status: str, start: float) -> None:
        if self._metrics is None:
            return
        self._metrics.queries_total.labels(
            table=self.table_name, statement=kind.value, status=status
        ).inc()
        self._metrics.query_latency_seconds.labels(statement=kind.value).observe(
            time.perf_counter() - start
        )

    # ------------------------------------------------------------------
    # Row objects and cache
    # ------------------------------------------------------------------

    def _construct(
        self,
        row: Mapping[str, Any],
        field_types: Mapping[str, Any] | None = None,
    ) -> RowT:
        return self.row_class(self, row, field_types)  # type: ignore[return-value]

    def _to_objects(self, result: ResultSet) -> list[RowT]:
        objects = [self._construct(row, result.field_types) for row in result]
        for obj in objects:
            self._remember(obj)
        if self._metrics is not None and objects:
            self._metrics.rows_loaded_total.labels(table=self.table_name).inc(len(objects))
        return objects

    def _remember(self, obj: RowT) -> None:
        if not self.key_strategy.caches or obj.key is None:
            return
        with self._lock:
            self._cache[obj.key] = obj
            self._update_cache_gauge()

    def _evict(self, keys: Iterable[RowKey]) -> None:
        with self._lock:
            for key in keys:
                self._cache.pop(key, None)
            self._update_cache_gauge()

    def _invalidate(self, reason: str) -> None:
        with self._lock:
            dropped = len(self._cache)
            self._cache.clear()
            self._update_cache_gauge()
        if self._metrics is not None:
            self._metrics.cache_invalidations_total.labels(
                table=self.table_name, reason=reason
            ).inc()
        self._logger.info("cache_invalidated", reason=reason, dropped=dropped)

    def _update_cache_gauge(self) -> None:
        if self._metrics is not None:
            self._metrics.cache_entries.labels(table=self.table_name).set(len(self._cache))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.table_name!r}, key={self.key_strategy!r})"


class KeyedTable(TableHandler[RowT]):
    """Operations of tables whose rows carry a stable key (and are cached)."""

    def load(self, key: Any, use_cache: bool = True) -> RowT:
        """Load the row with ``key``.

        Args:
            key: The row key, in any form the table accepts.
            use_cache: Serve a cached row if there is one.

        Raises:
            NoSuchIdError: If no row has this key.
        """
        client_key = self.key_strategy.client_key(key)
        loaded = self.load_ids([client_key], use_cache=use_cache)
        if client_key not in loaded:
            raise NoSuchIdError(self.table_name, client_key)
        return loaded[client_key]

    def load_ids(self, keys: Iterable[Any], use_cache: bool = True) -> dict[RowKey, RowT]:
        """Load many rows by key with at most one query.

        Cached rows are served from the cache (unless ``use_cache`` is
        False); the rest are fetched together with a single IN query.
        Unknown keys are left out of the result.

        Returns:
            Normalized key -> row object, in request order.
        """
        strategy = self.key_strategy
        requested = list(dict.fromkeys(strategy.client_key(key) for key in keys))
        found: dict[RowKey, RowT] = {}

        with self._lock:
            missing: list[RowKey] = []
            for key in requested:
                cached = self._cache.get(key) if use_cache else None
                if cached is not None:
                    found[key] = cached
                else:
                    missing.append(key)

            if self._metrics is not None:
                if found:
                    self._metrics.cache_hits_total.labels(table=self.table_name).inc(len(found))
                if missing:
                    self._metrics.cache_misses_total.labels(table=self.table_name).inc(
                        len(missing)
                    )

            if missing:
                sql = f"SELECT * FROM {self._quoted_table}" + where_clause(
                    {strategy.column: [strategy.storage_key(key) for key in missing]},
                    Conjunction.AND,
                    self._connection.escape,
                )
                for obj in self._to_objects(self._query(sql, StatementKind.SELECT)):
                    found[obj.key] = obj

        return {key: found[key] for key in requested if key in found}

    def update(self, key: Any, row: Mapping[str, Any]) -> RowT:
        """Write column values to the row with ``key`` and return it.

        A cached row is updated in place of a reload: the values are merged
        onto its current state. If ``row`` changes the key, the entry moves
        to the new key. Uncached rows are reloaded after the UPDATE.

        Raises:
            NoSuchIdError: If the row is not cached and does not exist.
        """
        strategy = self.key_strategy
        column = strategy.column
        client_key = strategy.client_key(key)
        data = self._writable(self.validate_inputs(dict(row)))
        if not data:
            return self.load(client_key)

        new_key = client_key
        values = dict(data)
        if data.get(column) is not None:
            new_key = strategy.client_key(data[column])
            values[column] = strategy.storage_key(data[column])
            data[column] = new_key

        escape = self._connection.escape
        assignments = ", ".join(
            f"{quote_identifier(name)} = {escape(value)}" for name, value in values.items()
        )
        sql = (
            f"UPDATE {self._quoted_table} SET {assignments}"
            f" WHERE {quote_identifier(column)} = {escape(strategy.storage_key(client_key))}"
        )

        with self._lock:
            self._query(sql, StatementKind.UPDATE)

            cached = self._cache.get(client_key)
            if cached is None:
                if new_key != client_key:
                    self._evict([client_key])
                return self.load(new_key, use_cache=False)

            merged = cached.to_property_map()
            merged.update(data)
            merged[column] = new_key
            updated = self._construct(merged)
            if new_key != client_key:
                self._evict([client_key])
            self._remember(updated)
            return updated

    def delete(self, key: Any) -> None:
        """Delete the row with ``key`` and evict it from the cache.

        Raises:
            NoSuchIdError: If no row was deleted.
        """
        strategy = self.key_strategy
        client_key = strategy.client_key(key)
        escape = self._connection.escape
        sql = (
            f"DELETE FROM {self._quoted_table}"
            f" WHERE {quote_identifier(strategy.column)} = {escape(strategy.storage_key(client_key))}"
        )

        with self._lock:
            affected = self._query(sql, StatementKind.DELETE).affected_rows
            self._evict([client_key])

        if affected == 0:
            raise NoSuchIdError(self.table_name, client_key)

    def delete_ids(self, keys: Sequence[Any]) -> int:
        """Delete the rows with the given keys; unknown keys are ignored.

        Returns:
            Number of rows deleted.
        """
        strategy = self.key_strategy
        client_keys = [strategy.client_key(key) for key in keys]
        if not client_keys:
            return 0

        sql = f"DELETE FROM {self._quoted_table}" + where_clause(
            {strategy.column: [strategy.storage_key(key) for key in client_keys]},
            Conjunction.AND,
            self._connection.escape,
        )
        with self._lock:
            affected = self._query(sql, StatementKind.DELETE).affected_rows
            self._evict(client_keys)
            return affected

    def empty_cache(self) -> None:
        """Drop every cached row."""
        self._invalidate("manual")

    def unset_cache(self, key: Any) -> None:
        """Drop the cached row for ``key``, if any."""
        self._evict([self.key_strategy.client_key(key)])

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def is_cached(self, key: Any) -> bool:
        with self._lock:
            return self.key_strategy.client_key(key) in self._cache


class IdentityTable(KeyedTable[RowT]):
    """Table keyed by an auto-increment integer ``id``."""

    key_strategy = AutoIdStrategy()


class UuidTable(KeyedTable[RowT]):
    """Table keyed by a binary ``uuid``; keys are hex strings on the client."""

    key_strategy = UuidStrategy()


class KeylessTable(TableHandler[RowT]):
    """Table without a primary key. Nothing is cached."""

    key_strategy = NoKeyStrategy()
