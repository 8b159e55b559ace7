"""Row predicates used to filter table contents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from sql_tables.types import Value


@dataclass(frozen=True)
class MatchAll:
    """Selects every row."""


@dataclass(frozen=True)
class Equal:
    """Rows whose value equals `value`."""

    value: Value


@dataclass(frozen=True)
class Between:
    """Rows whose value lies in the closed interval [low, high].

    An interval with low > high matches nothing.
    """

    low: Value
    high: Value


@dataclass(frozen=True)
class In:
    """Rows whose value is a member of `values`."""

    values: frozenset[Value]


@dataclass(frozen=True)
class Negate:
    """Complement of the inner predicate."""

    inner: Predicate


Predicate = Union[MatchAll, Equal, Between, In, Negate]


def matches(predicate: Predicate, value: Value) -> bool:
    """Evaluate a predicate against a single row value."""
    if isinstance(predicate, MatchAll):
        return True
    elif isinstance(predicate, Equal):
        return value == predicate.value
    elif isinstance(predicate, Between):
        return predicate.low <= value <= predicate.high
    elif isinstance(predicate, In):
        return value in predicate.values
    elif isinstance(predicate, Negate):
        return not matches(predicate.inner, value)
    else:
        raise ValueError(f"Unknown predicate: {predicate!r}")
