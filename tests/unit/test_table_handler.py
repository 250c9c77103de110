"""Unit tests for table handler statement generation against a scripted connection."""

from __future__ import annotations

from typing import Any

import pytest

from sql_objects.domain.entities import Column, IdentityRow
from sql_objects.domain.services.key_codec import to_binary
from sql_objects.domain.services.table_handler import IdentityTable, UuidTable
from sql_objects.domain.value_objects import DEFAULT_SEARCH_LIMIT
from sql_objects.ports.inbound.table import KeyedTablePort, NoSuchIdError, TablePort
from sql_objects.ports.outbound.connection import ResultSet

from table_models import NoIdUserTable, UserTable, UuidUserRecord, UuidUserTable


SAMPLE_HEX = "0190e0b4-6d3c-7a11-8b2e-3c4d5e6f7a8b"


class ScriptedConnection:
    """Records statements and answers with canned results."""

    def __init__(self, supports_truncate: bool = False) -> None:
        self.statements: list[str] = []
        self.results: list[ResultSet] = []
        self.insert_id = 11
        self.affected = 1
        self._supports_truncate = supports_truncate

    @property
    def supports_truncate(self) -> bool:
        return self._supports_truncate

    def execute(self, sql: str) -> ResultSet:
        self.statements.append(sql)
        if self.results:
            return self.results.pop(0)
        return ResultSet(last_insert_id=self.insert_id, affected_rows=self.affected)

    def escape(self, value: Any) -> str:
        if value is None:
            return "NULL"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, bytes):
            return f"X'{value.hex().upper()}'"
        return "'" + str(value).replace("'", "''") + "'"

    def last_insert_id(self) -> int:
        return self.insert_id

    def affected_rows(self) -> int:
        return self.affected

    def close(self) -> None:
        pass


@pytest.fixture
def scripted() -> ScriptedConnection:
    return ScriptedConnection()


@pytest.mark.unit
class TestTableDefinition:
    """Tests for table class validation."""

    def test_missing_table_name(self, scripted: ScriptedConnection) -> None:
        """Test that a handler without table_name cannot be built."""
        class Nameless(IdentityTable[Any]):
            row_class = IdentityRow

        with pytest.raises(TypeError, match="table_name"):
            Nameless(scripted)

    def test_row_class_must_match_key_kind(self, scripted: ScriptedConnection) -> None:
        """Test that the row class and handler must use the same key kind."""
        class Mismatched(UuidTable[Any]):
            table_name = "user"
            row_class = IdentityRow

        with pytest.raises(TypeError, match="keyed by"):
            Mismatched(scripted)

    def test_keyless_tables_lack_key_operations(self) -> None:
        """Test that keyless handlers have no by-key operations."""
        for name in ("load", "load_ids", "update", "delete", "delete_ids", "empty_cache"):
            assert not hasattr(NoIdUserTable, name)

    def test_keyed_tables_implement_keyed_port(self, scripted: ScriptedConnection) -> None:
        """Auto-id and UUID handlers satisfy the contract keyed rows persist through."""
        for table in (UserTable(scripted), UuidUserTable(scripted)):
            assert isinstance(table, TablePort)
            assert isinstance(table, KeyedTablePort)

    def test_keyless_table_implements_only_base_port(self, scripted: ScriptedConnection) -> None:
        """Keyless handlers offer create and replace but no keyed operations."""
        table = NoIdUserTable(scripted)

        assert isinstance(table, TablePort)
        assert not isinstance(table, KeyedTablePort)


@pytest.mark.unit
class TestWriteStatements:
    """Tests for INSERT/REPLACE/UPDATE/DELETE generation."""

    def test_create_inserts_and_takes_insert_id(self, scripted: ScriptedConnection) -> None:
        """Test that create issues one INSERT and takes the generated id."""
        created = UserTable(scripted).create({"name": "a", "email": "e"})

        assert scripted.statements == [
            "INSERT INTO `user` (`name`, `email`) VALUES ('a', 'e')"
        ]
        assert created.id == 11

    def test_create_omits_server_filled_nulls(self, scripted: ScriptedConnection) -> None:
        """Test that None server-filled columns are left out of the INSERT."""
        UserTable(scripted).create(
            {"name": "a", "email": "e", "nickname": None, "created_at": None}
        )

        assert scripted.statements == [
            "INSERT INTO `user` (`name`, `email`, `nickname`) VALUES ('a', 'e', NULL)"
        ]

    def test_create_empty_row_rejected(self, scripted: ScriptedConnection) -> None:
        """Test that create with no values raises without SQL."""
        with pytest.raises(ValueError):
            UserTable(scripted).create({})
        assert scripted.statements == []

    def test_uuid_create_stores_binary(self, scripted: ScriptedConnection) -> None:
        """Test that a supplied UUID is inserted as a binary literal."""
        created = UuidUserTable(scripted).create({"uuid": SAMPLE_HEX, "name": "a", "email": "e"})

        binary = to_binary(SAMPLE_HEX).hex().upper()
        assert scripted.statements == [
            f"INSERT INTO `user_uuid_table` (`uuid`, `name`, `email`) VALUES (X'{binary}', 'a', 'e')"
        ]
        assert created.uuid == SAMPLE_HEX

    def test_uuid_row_save_replaces(self, scripted: ScriptedConnection) -> None:
        """Test that saving a UUID row issues REPLACE and caches it."""
        table = UuidUserTable(scripted)
        row = UuidUserRecord(table, {"uuid": SAMPLE_HEX, "name": "a", "email": "e"})
        row.save()

        binary = to_binary(SAMPLE_HEX).hex().upper()
        assert scripted.statements == [
            f"REPLACE INTO `user_uuid_table` (`uuid`, `name`, `email`) VALUES (X'{binary}', 'a', 'e')"
        ]
        assert table.is_cached(SAMPLE_HEX)

    def test_update_of_cached_row_issues_only_update(self, scripted: ScriptedConnection) -> None:
        """Test that updating a cached row needs no reload."""
        table = UserTable(scripted)
        table.create({"name": "a", "email": "e"})
        scripted.statements.clear()

        updated = table.update(11, {"name": "b"})

        assert scripted.statements == ["UPDATE `user` SET `name` = 'b' WHERE `id` = 11"]
        assert updated.name == "b"
        assert updated.email == "e"

    def test_delete_by_key(self, scripted: ScriptedConnection) -> None:
        """Test the DELETE statement for one key."""
        UserTable(scripted).delete("4")
        assert scripted.statements == ["DELETE FROM `user` WHERE `id` = 4"]

    def test_delete_nothing_raises(self, scripted: ScriptedConnection) -> None:
        """Test that deleting a missing key raises NoSuchIdError."""
        scripted.affected = 0
        with pytest.raises(NoSuchIdError) as excinfo:
            UserTable(scripted).delete(4)

        assert excinfo.value.key == 4
        assert excinfo.value.table == "user"

    def test_delete_ids(self, scripted: ScriptedConnection) -> None:
        """Test that delete_ids uses one IN statement and returns the count."""
        scripted.affected = 2
        assert UserTable(scripted).delete_ids([1, 2, 3]) == 2
        assert scripted.statements == ["DELETE FROM `user` WHERE `id` IN (1, 2, 3)"]

    def test_delete_ids_empty_issues_nothing(self, scripted: ScriptedConnection) -> None:
        """Test that deleting no keys issues no statement."""
        assert UserTable(scripted).delete_ids([]) == 0
        assert scripted.statements == []

    def test_delete_where(self, scripted: ScriptedConnection) -> None:
        """Test the DELETE statement for an OR predicate."""
        UserTable(scripted).delete_where_or({"name": "a", "email": ["x", "y"]})
        assert scripted.statements == [
            "DELETE FROM `user` WHERE `name` = 'a' OR `email` IN ('x', 'y')"
        ]

    def test_delete_where_empty_predicate_rejected(self, scripted: ScriptedConnection) -> None:
        """Test that an empty predicate never deletes the table."""
        with pytest.raises(ValueError, match="delete_all"):
            UserTable(scripted).delete_where_and({})

    def test_delete_all_truncates_when_supported(self) -> None:
        """Test that delete_all truncates where the connection allows."""
        connection = ScriptedConnection(supports_truncate=True)
        UserTable(connection).delete_all()
        assert connection.statements == ["TRUNCATE `user`"]

    def test_delete_all_in_transaction_deletes(self) -> None:
        """Test that delete_all avoids TRUNCATE inside a transaction."""
        connection = ScriptedConnection(supports_truncate=True)
        UserTable(connection).delete_all(in_transaction=True)
        assert connection.statements == ["DELETE FROM `user`"]

    def test_delete_all_without_truncate(self, scripted: ScriptedConnection) -> None:
        """Test that delete_all falls back to DELETE FROM."""
        UserTable(scripted).delete_all()
        assert scripted.statements == ["DELETE FROM `user`"]


@pytest.mark.unit
class TestReadStatements:
    """Tests for SELECT generation."""

    def test_load_all(self, scripted: ScriptedConnection) -> None:
        """Test the SELECT statement of load_all."""
        UserTable(scripted).load_all()
        assert scripted.statements == ["SELECT * FROM `user`"]

    def test_load_range(self, scripted: ScriptedConnection) -> None:
        """Test that load_range pages with LIMIT offset, count."""
        UserTable(scripted).load_range(20, 10)
        assert scripted.statements == ["SELECT * FROM `user` LIMIT 20, 10"]

    def test_load_where_converts_uuid_keys(self, scripted: ScriptedConnection) -> None:
        """Test that UUID keys in a predicate are matched in binary form."""
        UuidUserTable(scripted).load_where_and({"uuid": SAMPLE_HEX, "name": "a"})

        binary = to_binary(SAMPLE_HEX).hex().upper()
        assert scripted.statements == [
            f"SELECT * FROM `user_uuid_table` WHERE `uuid` = X'{binary}' AND `name` = 'a'"
        ]

    def test_load_where_explicit_is_verbatim(self, scripted: ScriptedConnection) -> None:
        """Test that an explicit WHERE body is used as written."""
        UserTable(scripted).load_where_explicit("`visits` > 3 OR `name` LIKE 'a%'")
        assert scripted.statements == [
            "SELECT * FROM `user` WHERE `visits` > 3 OR `name` LIKE 'a%'"
        ]

    def test_load_ids_single_in_query(self, scripted: ScriptedConnection) -> None:
        """Test that load_ids deduplicates keys into one IN query."""
        UserTable(scripted).load_ids([3, "1", 3])
        assert scripted.statements == ["SELECT * FROM `user` WHERE `id` IN (3, 1)"]

    def test_load_missing_raises(self, scripted: ScriptedConnection) -> None:
        """Test that loading a missing key raises NoSuchIdError."""
        with pytest.raises(NoSuchIdError):
            UserTable(scripted).load(5)

    def test_search_defaults(self, scripted: ScriptedConnection) -> None:
        """Test the default offset and limit of search."""
        UserTable(scripted).search({})
        assert scripted.statements == [f"SELECT * FROM `user` LIMIT 0, {DEFAULT_SEARCH_LIMIT}"]

    def test_search_configured_default_limit(self, scripted: ScriptedConnection) -> None:
        """Test that the handler's configured limit applies to search."""
        UserTable(scripted, default_search_limit=25).search({})
        assert scripted.statements == ["SELECT * FROM `user` LIMIT 0, 25"]

    def test_search_id_range(self, scripted: ScriptedConnection) -> None:
        """Test the inclusive id range filter with paging."""
        UserTable(scripted).search({"start_id": "2", "end_id": 5, "offset": 10, "limit": 20})
        assert scripted.statements == [
            "SELECT * FROM `user` WHERE `id` >= 2 AND `id` <= 5 LIMIT 10, 20"
        ]

    def test_advanced_search_with_clauses(self, scripted: ScriptedConnection) -> None:
        """Test that extra clauses are ANDed with the id filters."""
        UserTable(scripted).advanced_search({"in_id": [1, 2]}, ["`visits` > 3"])
        assert scripted.statements == [
            f"SELECT * FROM `user` WHERE `visits` > 3 AND `id` IN (1, 2) LIMIT 0, {DEFAULT_SEARCH_LIMIT}"
        ]

    def test_search_in_id_must_be_list(self, scripted: ScriptedConnection) -> None:
        """Test that in_id must be a list."""
        with pytest.raises(ValueError, match="in_id"):
            UserTable(scripted).search({"in_id": 3})
        assert scripted.statements == []

    def test_search_id_range_rejected_for_uuid_tables(self, scripted: ScriptedConnection) -> None:
        """Test that id ranges apply to auto-id tables only."""
        with pytest.raises(ValueError, match="start_id"):
            UuidUserTable(scripted).search({"start_id": 1})


@pytest.mark.unit
class TestValidateInputs:
    """Tests for the input validation hook."""

    def test_hook_applied_before_writing(self, scripted: ScriptedConnection) -> None:
        """Test that validate_inputs can clean or reject values before SQL is built."""
        class Product(IdentityRow):
            title = Column()

        class ProductTable(IdentityTable[Product]):
            table_name = "product"
            row_class = Product

            def validate_inputs(self, data: dict[str, Any]) -> dict[str, Any]:
                if not data.get("title", "x"):
                    raise ValueError("title must not be empty")
                if "title" in data:
                    data["title"] = data["title"].strip()
                return data

        table = ProductTable(scripted)
        table.create({"title": "  lamp "})
        assert scripted.statements[-1] == "INSERT INTO `product` (`title`) VALUES ('lamp')"

        with pytest.raises(ValueError, match="empty"):
            table.create({"title": ""})
        with pytest.raises(ValueError, match="empty"):
            table.update(11, {"title": ""})
