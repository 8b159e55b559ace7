"""Tests for the value model and literal conversion."""

import pytest
import sqlglot
from sqlglot import exp

from sql_tables.types import (
    Int,
    UnsupportedType,
    ValueKind,
    decode_value,
    encode_value,
    from_literal,
)


def literal(text):
    """Parse a single SQL expression."""
    return sqlglot.parse_one(text)


class TestFromLiteral:
    """Tests for converting literal nodes to values."""

    def test_integer_literal(self):
        """Parsing "42" yields the integer value 42."""
        assert from_literal(literal("42")) == Int(42)

    def test_negative_integer_literal(self):
        assert from_literal(literal("-7")) == Int(-7)

    def test_integer_beyond_64_bits(self):
        """Integer literals are not bounded by machine word size."""
        big = 2 ** 100 + 1
        assert from_literal(literal(str(big))) == Int(big)

    def test_string_literal_rejected(self):
        with pytest.raises(UnsupportedType) as exc_info:
            from_literal(literal("'x'"))
        assert "string" in exc_info.value.description

    def test_float_literal_rejected(self):
        with pytest.raises(UnsupportedType) as exc_info:
            from_literal(literal("1.5"))
        assert "float" in exc_info.value.description

    def test_boolean_literal_rejected(self):
        with pytest.raises(UnsupportedType) as exc_info:
            from_literal(literal("TRUE"))
        assert "boolean" in exc_info.value.description

    def test_null_literal_rejected(self):
        with pytest.raises(UnsupportedType) as exc_info:
            from_literal(literal("NULL"))
        assert "null" in exc_info.value.description

    def test_column_reference_rejected(self):
        with pytest.raises(UnsupportedType):
            from_literal(exp.column("int_column"))

    def test_unsupported_type_is_type_error(self):
        """Conversion failures are classified as TypeError, never a crash."""
        with pytest.raises(TypeError):
            from_literal(literal("'x'"))


class TestValueOrdering:
    def test_equality(self):
        assert Int(3) == Int(3)
        assert Int(3) != Int(4)

    def test_ordering(self):
        assert Int(-1) < Int(0) < Int(2 ** 70)
        assert sorted([Int(3), Int(1), Int(2)]) == [Int(1), Int(2), Int(3)]

    def test_hashable(self):
        assert {Int(1), Int(1), Int(2)} == {Int(1), Int(2)}

    def test_kind(self):
        assert Int(5).kind == ValueKind.INT


class TestEncoding:
    """Tests for the stored byte encoding."""

    @pytest.mark.parametrize("number", [0, 1, -1, 127, 128, -129, 2 ** 64, -(2 ** 90)])
    def test_decode_inverts_encode(self, number):
        assert decode_value(encode_value(Int(number))) == Int(number)

    def test_encoding_starts_with_kind_tag(self):
        assert encode_value(Int(1))[0] == ValueKind.INT.tag

    def test_decode_unknown_tag(self):
        with pytest.raises(ValueError):
            decode_value(b"\x7f\x01")

    def test_decode_empty(self):
        with pytest.raises(ValueError):
            decode_value(b"")
