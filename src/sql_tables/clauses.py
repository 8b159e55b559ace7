"""Conversion of sqlglot clause fragments into values and predicates."""

from __future__ import annotations

from sqlglot import exp

from sql_tables.errors import UnimplementedBranch
from sql_tables.predicates import Between, Equal, In, MatchAll, Negate, Predicate
from sql_tables.types import UnsupportedType, Value, from_literal


def literal_value(node: exp.Expression, context: str) -> Value:
    """Convert a literal node, reporting failures as UnimplementedBranch.

    Args:
        node: The expression expected to be a literal.
        context: The clause being processed, used in the diagnostic.
    """
    try:
        return from_literal(node)
    except UnsupportedType as e:
        raise UnimplementedBranch(f"{e.description} in {context}") from e


def _unwrap(node: exp.Expression) -> exp.Expression:
    while isinstance(node, exp.Paren):
        node = node.this
    return node


def build_predicate(where: exp.Where | exp.Expression | None) -> Predicate:
    """Build a predicate from a WHERE clause.

    Supported shapes are `col = literal`, `col [NOT] BETWEEN literal AND
    literal` and `col [NOT] IN (literal, ...)`. A missing clause selects
    every row.

    Raises:
        UnimplementedBranch: For any other shape, naming the construct.
    """
    if where is None:
        return MatchAll()
    condition = where.this if isinstance(where, exp.Where) else where
    return _build_condition(_unwrap(condition))


def _build_condition(condition: exp.Expression) -> Predicate:
    if isinstance(condition, exp.Connector):
        # AND / OR are a known gap
        raise UnimplementedBranch(
            f"{condition.key.upper()} condition {condition.sql()} is not supported in WHERE clause"
        )

    if isinstance(condition, exp.EQ):
        right = _unwrap(condition.expression)
        return Equal(literal_value(right, f"WHERE {condition.sql()}"))

    if isinstance(condition, exp.Between):
        return _build_between(condition)

    if isinstance(condition, exp.In):
        return _build_in(condition)

    if isinstance(condition, exp.Not):
        inner = _unwrap(condition.this)
        if isinstance(inner, exp.Between):
            return Negate(_build_between(inner))
        if isinstance(inner, exp.In):
            return Negate(_build_in(inner))
        raise UnimplementedBranch(f"NOT {inner.sql()} is not supported in WHERE clause")

    if isinstance(condition, exp.Binary):
        raise UnimplementedBranch(
            f"Operator {condition.key.upper()} in {condition.sql()} is not supported in WHERE clause"
        )

    raise UnimplementedBranch(f"WHERE {condition.sql()} is not supported")


def _build_between(condition: exp.Between) -> Between:
    context = f"WHERE {condition.sql()}"
    low = literal_value(_unwrap(condition.args["low"]), context)
    high = literal_value(_unwrap(condition.args["high"]), context)
    return Between(low, high)


def _build_in(condition: exp.In) -> In:
    context = f"WHERE {condition.sql()}"
    if condition.args.get("query") is not None or not condition.expressions:
        raise UnimplementedBranch(f"{context} is not supported, only literal lists are")
    return In(frozenset(literal_value(_unwrap(item), context) for item in condition.expressions))
