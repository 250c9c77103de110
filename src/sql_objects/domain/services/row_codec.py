"""Row codec: raw driver values to native Python values.

Drivers may hand back numeric columns as text (or bytes, for BIT). When
the result set carries column type metadata, integer-family columns are
coerced to ``int`` and float/decimal-family columns to ``float``; every
other value passes through untouched. Nulls always stay ``None``.

Row objects run this before calling their column setters, which assume
already-typed input.
"""

from __future__ import annotations

from typing import Any, Mapping

from sql_objects.ports.outbound.connection import WireType


INTEGER_WIRE_TYPES = frozenset(
    {
        WireType.TINY,
        WireType.SHORT,
        WireType.LONG,
        WireType.LONGLONG,
        WireType.INT24,
        WireType.BIT,
        WireType.YEAR,
    }
)

FLOAT_WIRE_TYPES = frozenset(
    {
        WireType.FLOAT,
        WireType.DOUBLE,
        WireType.DECIMAL,
        WireType.NEWDECIMAL,
    }
)


def _to_int(value: Any, wire_type: WireType) -> int:
    if isinstance(value, (bytes, bytearray)):
        if wire_type is WireType.BIT:
            return int.from_bytes(value, byteorder="big")
        value = value.decode("ascii")
    return int(value)


def _to_float(value: Any) -> float:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("ascii")
    return float(value)


def decode_value(value: Any, wire_type: WireType | int | None) -> Any:
    """Coerce a single raw value according to its wire type."""
    if value is None or wire_type is None:
        return value

    try:
        wire_type = WireType(wire_type)
    except ValueError:
        return value

    if wire_type in INTEGER_WIRE_TYPES:
        return _to_int(value, wire_type)
    if wire_type in FLOAT_WIRE_TYPES:
        return _to_float(value)
    return value


def decode_row(
    row: Mapping[str, Any],
    field_types: Mapping[str, WireType | int] | None = None,
) -> dict[str, Any]:
    """Decode every value of a raw row.

    Args:
        row: Column name -> raw value.
        field_types: Optional column name -> wire type. Without it, values
            pass through unmodified.

    Returns:
        A new mapping with the same columns and typed values.
    """
    if not field_types:
        return dict(row)
    return {column: decode_value(value, field_types.get(column)) for column, value in row.items()}
