"""UUID key codec.

UUIDs travel in two equivalent forms: the canonical hex string with
dashes that callers and the row cache use, and the raw 16 bytes that are
stored in the ``uuid`` column. Conversions are guarded by ``is_binary`` so
that a value already in the target form passes through unchanged.

Generated UUIDs are time ordered (RFC 9562 version 7, from ``uuid_utils``)
so that new rows land at the end of the primary key index.
"""

from __future__ import annotations

import re
import uuid
from typing import Any

import uuid_utils

from sql_objects.domain.value_objects import UUID_BINARY_SIZE, UuidBinary, UuidHex


# Anything outside printable ASCII and common whitespace marks a binary value
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\t\r\n]")


def is_binary(value: Any) -> bool:
    """Return whether ``value`` is the binary form of a UUID.

    Bytes-like values are binary. Strings are binary only if they contain
    non-printable characters (a driver that hands blobs back as text).
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return True
    if isinstance(value, str):
        return _NON_PRINTABLE.search(value) is not None
    raise TypeError(f"UUID must be str or bytes, got {type(value).__name__}")


def normalize_hex(value: str) -> UuidHex:
    """Return the canonical lower-case dashed form of a hex UUID.

    Raises:
        ValueError: If ``value`` is not a valid hex UUID.
    """
    try:
        return UuidHex(str(uuid.UUID(value)))
    except (ValueError, AttributeError, TypeError) as e:
        raise ValueError(f"Invalid UUID: {value!r}") from e


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        try:
            data = value.encode("latin-1")
        except UnicodeEncodeError as e:
            raise ValueError(f"Invalid UUID: {value!r}") from e
    else:
        data = bytes(value)
    if len(data) != UUID_BINARY_SIZE:
        raise ValueError(f"Binary UUID requires {UUID_BINARY_SIZE} bytes, got {len(data)}")
    return data


def to_binary(value: str | bytes) -> UuidBinary:
    """Convert a UUID to its 16-byte storage form.

    Values already in binary form are returned as ``bytes`` unchanged.
    """
    if is_binary(value):
        return UuidBinary(_as_bytes(value))
    return UuidBinary(uuid.UUID(normalize_hex(value)).bytes)


def to_hex(value: str | bytes) -> UuidHex:
    """Convert a UUID to its canonical hex form.

    Values already in hex form are normalized (lower case, dashed).
    """
    if is_binary(value):
        return UuidHex(str(uuid.UUID(bytes=_as_bytes(value))))
    return normalize_hex(value)


def generate_uuid() -> UuidHex:
    """Return a new time-ordered UUID in hex form.

    Values generated in one process increase strictly, including within
    the same millisecond.
    """
    return UuidHex(str(uuid_utils.uuid7()))
