"""WHERE clause generation from predicate maps.

Each predicate entry becomes one clause:

    scalar        ->  `col` = 'value'
    None          ->  `col` IS NULL
    [v1, v2, ...] ->  `col` IN ('v1', 'v2', ...)
    []            ->  FALSE

and the clauses are joined with the requested conjunction. An empty list
never widens a query: under AND it makes the whole predicate false, under
OR it simply contributes no matches.

Every value goes through the connection's ``escape`` before it reaches
the statement text.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

from sql_objects.domain.value_objects import Conjunction, Predicate


Escape = Callable[[Any], str]

ALWAYS_FALSE = "FALSE"


def quote_identifier(name: str) -> str:
    """Back-quote a table or column name, doubling embedded back-quotes."""
    return "`" + name.replace("`", "``") + "`"


def is_membership(value: Any) -> bool:
    """Whether a predicate value is a collection (IN test) rather than a scalar."""
    return isinstance(value, (list, tuple, set, frozenset))


def _clause(column: str, value: Any, escape: Escape) -> str:
    if is_membership(value):
        values = list(value)
        if not values:
            return ALWAYS_FALSE
        rendered = ", ".join(escape(v) for v in values)
        return f"{quote_identifier(column)} IN ({rendered})"
    if value is None:
        return f"{quote_identifier(column)} IS NULL"
    return f"{quote_identifier(column)} = {escape(value)}"


def build_where_fragment(
    predicate: Predicate,
    conjunction: Conjunction | str,
    escape: Escape,
) -> str:
    """Render a predicate map as a WHERE body (without the keyword).

    Args:
        predicate: Column name -> scalar or collection of scalars.
        conjunction: AND or OR.
        escape: Renders a scalar as a SQL literal.

    Returns:
        The clauses joined by the conjunction, or an empty string when the
        predicate map is empty.

    Raises:
        InvalidConjunctionError: If the conjunction is not AND or OR.
    """
    joiner = f" {Conjunction.parse(conjunction).value} "
    return joiner.join(_clause(column, value, escape) for column, value in predicate.items())


def where_clause(
    predicate: Predicate,
    conjunction: Conjunction | str,
    escape: Escape,
) -> str:
    """Render ``" WHERE <fragment>"``, or an empty string for an empty predicate."""
    fragment = build_where_fragment(predicate, conjunction, escape)
    return f" WHERE {fragment}" if fragment else ""


def join_clauses(clauses: Iterable[str]) -> str:
    """Join raw clause strings with AND into ``" WHERE ..."`` (or nothing)."""
    clauses = [clause for clause in clauses if clause]
    return " WHERE " + " AND ".join(clauses) if clauses else ""
