"""Unit tests for WHERE clause generation."""

from __future__ import annotations

from typing import Any

import pytest

from sql_objects.domain.services.where_clause import (
    build_where_fragment,
    join_clauses,
    quote_identifier,
    where_clause,
)
from sql_objects.domain.value_objects import Conjunction, InvalidConjunctionError


def escape(value: Any) -> str:
    """Minimal literal renderer for clause tests."""
    if isinstance(value, int):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


@pytest.mark.unit
class TestBuildWhereFragment:
    """Tests for predicate rendering."""

    def test_scalars_joined_with_and(self) -> None:
        """Test equality clauses joined with AND."""
        fragment = build_where_fragment({"name": "alice", "age": 30}, Conjunction.AND, escape)
        assert fragment == "`name` = 'alice' AND `age` = 30"

    def test_scalars_joined_with_or(self) -> None:
        """Test that a lower-case conjunction string is accepted."""
        fragment = build_where_fragment({"name": "alice", "age": 30}, "or", escape)
        assert fragment == "`name` = 'alice' OR `age` = 30"

    def test_membership(self) -> None:
        """Test that a list value becomes an IN list."""
        fragment = build_where_fragment({"id": [1, 2, 3]}, "AND", escape)
        assert fragment == "`id` IN (1, 2, 3)"

    def test_tuple_membership(self) -> None:
        """Test that tuples are IN lists too."""
        fragment = build_where_fragment({"name": ("a", "b")}, "AND", escape)
        assert fragment == "`name` IN ('a', 'b')"

    def test_empty_membership_is_false(self) -> None:
        """Test that an empty IN list matches nothing."""
        assert build_where_fragment({"id": []}, "AND", escape) == "FALSE"

    def test_empty_membership_under_or_keeps_other_clauses(self) -> None:
        """Test that an empty IN list does not hide OR alternatives."""
        fragment = build_where_fragment({"id": [], "name": "bob"}, "OR", escape)
        assert fragment == "FALSE OR `name` = 'bob'"

    def test_none_is_null_test(self) -> None:
        """Test that None becomes IS NULL."""
        assert build_where_fragment({"nickname": None}, "AND", escape) == "`nickname` IS NULL"

    def test_values_are_escaped(self) -> None:
        """Test that values go through the escape function."""
        fragment = build_where_fragment({"name": "O'Brien"}, "AND", escape)
        assert fragment == "`name` = 'O''Brien'"

    def test_empty_predicate(self) -> None:
        """Test that an empty predicate renders nothing."""
        assert build_where_fragment({}, "AND", escape) == ""

    @pytest.mark.parametrize("conjunction", ["XOR", "AND NOT", "", None, 1])
    def test_invalid_conjunction(self, conjunction: Any) -> None:
        """Test that anything but AND or OR is rejected."""
        with pytest.raises(InvalidConjunctionError):
            build_where_fragment({"name": "alice"}, conjunction, escape)

    def test_invalid_conjunction_is_value_error(self) -> None:
        """Test that InvalidConjunctionError is a ValueError."""
        with pytest.raises(ValueError):
            build_where_fragment({"name": "alice"}, "NAND", escape)


@pytest.mark.unit
class TestWhereClause:
    """Tests for the WHERE keyword wrappers."""

    def test_where_clause_prefix(self) -> None:
        """Test that a non-empty predicate is prefixed with WHERE."""
        assert where_clause({"id": 1}, "AND", escape) == " WHERE `id` = 1"

    def test_where_clause_empty(self) -> None:
        """Test that an empty predicate adds no WHERE."""
        assert where_clause({}, "AND", escape) == ""

    def test_join_clauses(self) -> None:
        """Test that raw clauses are ANDed and blanks skipped."""
        assert join_clauses(["`a` = 1", "", "`b` = 2"]) == " WHERE `a` = 1 AND `b` = 2"

    def test_join_no_clauses(self) -> None:
        """Test that no clauses add no WHERE."""
        assert join_clauses([]) == ""

    def test_quote_identifier_doubles_backquotes(self) -> None:
        """Test identifier quoting."""
        assert quote_identifier("user") == "`user`"
        assert quote_identifier("we`ird") == "`we``ird`"
