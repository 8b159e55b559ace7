"""Tests for predicate evaluation."""

from sql_tables.predicates import Between, Equal, In, MatchAll, Negate, matches
from sql_tables.types import Int

DOMAIN = [Int(v) for v in range(1, 6)]


def selected(predicate):
    return [v.value for v in DOMAIN if matches(predicate, v)]


class TestMatches:
    def test_match_all(self):
        assert selected(MatchAll()) == [1, 2, 3, 4, 5]

    def test_equal(self):
        assert selected(Equal(Int(3))) == [3]
        assert selected(Equal(Int(9))) == []

    def test_between_is_closed(self):
        assert selected(Between(Int(2), Int(4))) == [2, 3, 4]

    def test_between_with_low_above_high(self):
        """The interval is not normalized; an inverted one is empty."""
        assert selected(Between(Int(4), Int(2))) == []

    def test_negated_between(self):
        assert selected(Negate(Between(Int(2), Int(4)))) == [1, 5]

    def test_in(self):
        assert selected(In(frozenset({Int(1), Int(3), Int(5)}))) == [1, 3, 5]

    def test_negated_in(self):
        assert selected(Negate(In(frozenset({Int(1), Int(3), Int(5)})))) == [2, 4]

    def test_double_negation(self):
        assert selected(Negate(Negate(Equal(Int(2))))) == [2]

    def test_predicates_are_values(self):
        """Predicates compare by content and carry no engine state."""
        assert Between(Int(1), Int(2)) == Between(Int(1), Int(2))
        assert In(frozenset({Int(1), Int(2)})) == In(frozenset({Int(2), Int(1)}))
