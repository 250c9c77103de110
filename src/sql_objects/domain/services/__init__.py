"""Domain services for mapping rows to objects.

Services implement the logic shared by every table: key conversion,
result decoding, WHERE clause generation and per-kind key handling.
The table handlers built on top of them live in
``sql_objects.domain.services.table_handler``.
"""

from sql_objects.domain.services.key_codec import (
    generate_uuid,
    is_binary,
    normalize_hex,
    to_binary,
    to_hex,
)
from sql_objects.domain.services.key_strategy import (
    AutoIdStrategy,
    KeyStrategy,
    NoKeyStrategy,
    UuidStrategy,
)
from sql_objects.domain.services.row_codec import decode_row, decode_value
from sql_objects.domain.services.where_clause import (
    build_where_fragment,
    join_clauses,
    quote_identifier,
    where_clause,
)

__all__ = [
    # Key codec
    "generate_uuid",
    "is_binary",
    "normalize_hex",
    "to_binary",
    "to_hex",
    # Key strategies
    "KeyStrategy",
    "AutoIdStrategy",
    "UuidStrategy",
    "NoKeyStrategy",
    # Row codec
    "decode_row",
    "decode_value",
    # WHERE clauses
    "build_where_fragment",
    "join_clauses",
    "quote_identifier",
    "where_clause",
]
