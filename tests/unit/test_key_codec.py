"""Unit tests for the UUID key codec."""

from __future__ import annotations

import threading
import uuid

import pytest

from sql_objects.domain.services.key_codec import (
    generate_uuid,
    is_binary,
    normalize_hex,
    to_binary,
    to_hex,
)


SAMPLE_HEX = "6ba7b810-9dad-11d1-80b4-00c04fd430c8"
SAMPLE_BYTES = uuid.UUID(SAMPLE_HEX).bytes


@pytest.mark.unit
class TestIsBinary:
    """Tests for telling the two UUID forms apart."""

    def test_bytes_are_binary(self) -> None:
        """Test that bytes-like values are the binary form."""
        assert is_binary(SAMPLE_BYTES)
        assert is_binary(bytearray(SAMPLE_BYTES))

    def test_hex_string_is_not_binary(self) -> None:
        """Test that a dashed hex string is the hex form."""
        assert not is_binary(SAMPLE_HEX)

    def test_string_with_control_characters_is_binary(self) -> None:
        """Drivers that hand blobs back as text still count as binary."""
        assert is_binary(SAMPLE_BYTES.decode("latin-1"))

    def test_other_types_rejected(self) -> None:
        """Test that values other than str or bytes raise TypeError."""
        with pytest.raises(TypeError):
            is_binary(12345)


@pytest.mark.unit
class TestConversions:
    """Tests for hex <-> binary conversion."""

    def test_to_binary_from_hex(self) -> None:
        """Test converting hex to the 16-byte form."""
        assert to_binary(SAMPLE_HEX) == SAMPLE_BYTES

    def test_to_binary_passes_binary_through(self) -> None:
        """Test that binary input is returned unchanged."""
        assert to_binary(SAMPLE_BYTES) == SAMPLE_BYTES

    def test_to_hex_from_binary(self) -> None:
        """Test converting 16 bytes to canonical hex."""
        assert to_hex(SAMPLE_BYTES) == SAMPLE_HEX

    def test_to_hex_normalizes_hex(self) -> None:
        """Test that upper-case and undashed hex are normalized."""
        assert to_hex(SAMPLE_HEX.upper()) == SAMPLE_HEX
        assert to_hex(SAMPLE_HEX.replace("-", "")) == SAMPLE_HEX

    def test_hex_binary_hex_is_normalizing(self) -> None:
        """Going through binary and back yields the normalized hex form."""
        for value in (SAMPLE_HEX, SAMPLE_HEX.upper(), "{" + SAMPLE_HEX + "}"):
            assert to_hex(to_binary(value)) == normalize_hex(value)

    def test_binary_hex_binary_is_identity(self) -> None:
        """Test that binary survives a trip through hex unchanged."""
        for value in (SAMPLE_BYTES, bytes(16), b"\xff" * 16):
            assert to_binary(to_hex(value)) == value

    def test_wrong_binary_length_rejected(self) -> None:
        """Test that binary values must be exactly 16 bytes."""
        with pytest.raises(ValueError, match="16 bytes"):
            to_hex(b"\x00\x01\x02")

    def test_invalid_hex_rejected(self) -> None:
        """Test that malformed hex raises ValueError."""
        with pytest.raises(ValueError, match="Invalid UUID"):
            to_binary("not-a-uuid")

    def test_wide_unicode_string_rejected_as_invalid_uuid(self) -> None:
        """A string that cannot be read as bytes raises ValueError, not UnicodeEncodeError."""
        with pytest.raises(ValueError, match="Invalid UUID"):
            to_binary("€" * 16)
        with pytest.raises(ValueError, match="Invalid UUID"):
            to_hex("€" * 16)


@pytest.mark.unit
class TestGenerateUuid:
    """Tests for time-ordered UUID generation."""

    def test_generated_uuid_is_canonical_hex(self) -> None:
        """Test that generated UUIDs are lower-case dashed hex."""
        value = generate_uuid()
        assert value == normalize_hex(value)
        assert len(value) == 36

    def test_version_and_variant(self) -> None:
        """Test that generated UUIDs are RFC 9562 version 7."""
        parsed = uuid.UUID(generate_uuid())
        assert parsed.version == 7
        assert parsed.variant == uuid.RFC_4122

    def test_generated_values_increase(self) -> None:
        """Consecutive UUIDs sort in generation order, even within one millisecond."""
        values = [generate_uuid() for _ in range(5000)]

        assert values == sorted(values)
        assert len(set(values)) == len(values)

    def test_unique_across_threads(self) -> None:
        """Threads generating concurrently never receive the same UUID."""
        results: list[str] = []
        lock = threading.Lock()

        def worker() -> None:
            batch = [generate_uuid() for _ in range(500)]
            with lock:
                results.extend(batch)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(results)) == 4000
