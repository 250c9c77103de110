"""Row identifiers and key kinds.

A table addresses its rows in exactly one of three ways, fixed per table:
an auto-increment integer assigned by the database, a UUID supplied or
generated on the client, or nothing at all.
"""

from __future__ import annotations

from enum import Enum
from typing import NewType, Union


AutoId = NewType("AutoId", int)
"""Auto-increment integer key assigned by the database on insert."""

UuidHex = NewType("UuidHex", str)
"""Canonical lower-case hex UUID with dashes (caller and cache form)."""

UuidBinary = NewType("UuidBinary", bytes)
"""Raw 16-byte UUID (storage form)."""

RowKey = Union[AutoId, UuidHex]
"""A normalized key as used for cache lookups and returned to callers."""

UUID_BINARY_SIZE = 16
UUID_HEX_LENGTH = 36


class KeyKind(Enum):
    """How the rows of a table are identified."""

    AUTO_ID = "auto_id"
    UUID = "uuid"
    NONE = "none"

    @property
    def is_keyed(self) -> bool:
        """Whether rows carry a stable identifier (and can be cached)."""
        return self is not KeyKind.NONE
