"""Value and type definitions for the sql_tables engine."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum

from sqlglot import exp


class ValueKind(Enum):
    """Kinds of values a table can store."""

    INT = "int"

    @property
    def tag(self) -> int:
        """Return the tag byte written in front of an encoded value."""
        tags = {
            ValueKind.INT: 1,
        }
        return tags[self]


# Mapping from tag bytes back to kinds
VALUE_KIND_TAGS: dict[int, ValueKind] = {kind.tag: kind for kind in ValueKind}


class UnsupportedType(TypeError):
    """Raised when a literal cannot be converted to a storable value."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(description)


@dataclass(frozen=True, order=True)
class Int:
    """Arbitrary-precision signed integer value."""

    value: int

    @property
    def kind(self) -> ValueKind:
        return ValueKind.INT

    def __str__(self) -> str:
        return str(self.value)


# Closed set of value variants
Value = Int


@dataclass(frozen=True)
class ColumnDefinition:
    """A column declared by CREATE TABLE. Recorded, never enforced."""

    name: str
    type_name: str


def _literal_kind(node: exp.Expression) -> str:
    """Name the kind of a literal node for diagnostics."""
    if isinstance(node, exp.Literal):
        if node.is_string:
            return "string"
        return "float" if not node.is_int else "integer"
    if isinstance(node, exp.Boolean):
        return "boolean"
    if isinstance(node, exp.Null):
        return "null"
    return type(node).__name__


def from_literal(node: exp.Expression) -> Value:
    """Convert a SQL literal node into a value.

    Integer literals are parsed with arbitrary precision. A unary minus
    applied to an integer literal is accepted, since the parser represents
    negative numbers that way.

    Raises:
        UnsupportedType: For string, float, boolean and null literals, and for
            any node that is not a plain literal.
    """
    negative = False
    literal = node
    if isinstance(literal, exp.Neg) and isinstance(literal.this, exp.Literal):
        negative = True
        literal = literal.this

    if isinstance(literal, exp.Literal) and not literal.is_string and literal.is_int:
        number = int(literal.this)
        return Int(-number if negative else number)

    if isinstance(literal, (exp.Literal, exp.Boolean, exp.Null)):
        raise UnsupportedType(
            f"{_literal_kind(literal)} literal {node.sql()} is not supported yet"
        )
    raise UnsupportedType(f"{type(node).__name__} {node.sql()} is not a literal")


def encode_value(value: Value) -> bytes:
    """Encode a value as a kind tag followed by its payload bytes."""
    if isinstance(value, Int):
        n = value.value
        payload = n.to_bytes((n.bit_length() + 8) // 8, "little", signed=True)
        return struct.pack("<B", value.kind.tag) + payload
    raise TypeError(f"Cannot encode value: {value!r}")


def decode_value(data: bytes) -> Value:
    """Decode bytes produced by encode_value."""
    if not data:
        raise ValueError("Cannot decode an empty value")
    tag = struct.unpack("<B", data[:1])[0]
    kind = VALUE_KIND_TAGS.get(tag)
    if kind == ValueKind.INT:
        return Int(int.from_bytes(data[1:], "little", signed=True))
    raise ValueError(f"Unknown value tag: {tag}")
