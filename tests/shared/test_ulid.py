"""Tests for shared ULID conversion and ordering semantics."""

from __future__ import annotations

import pytest

from packages.newsdesk_shared.ids import (
    ULID_BYTES_LENGTH,
    generate_ulid_bytes,
    ulid_bytes_to_str,
    ulid_str_to_bytes,
)


def test_ulid_round_trip_bytes_string_bytes() -> None:
    """ULID bytes/string conversion must be lossless."""
    ulid_value = generate_ulid_bytes()
    encoded = ulid_bytes_to_str(ulid_value)

    assert len(ulid_value) == ULID_BYTES_LENGTH
    assert len(encoded) == 26
    assert ulid_str_to_bytes(encoded) == ulid_value


def test_ulid_decoding_accepts_lowercase() -> None:
    """Decoding normalizes case."""
    ulid_value = generate_ulid_bytes()

    assert ulid_str_to_bytes(ulid_bytes_to_str(ulid_value).lower()) == ulid_value


@pytest.mark.parametrize("value", ["", "01ABC", "U" * 26, "8" + "0" * 25])
def test_ulid_decoding_rejects_malformed_strings(value: str) -> None:
    """Wrong length, invalid alphabet, or overflow fail to decode."""
    with pytest.raises(ValueError):
        ulid_str_to_bytes(value)


def test_ulid_lexicographic_order_matches_big_endian_binary() -> None:
    """Sorting canonical strings must match sorting binary big-endian ULIDs."""
    values = [generate_ulid_bytes(timestamp_ms=1_700_000_000_000) for _ in range(300)]

    assert sorted(values) == sorted(values, key=ulid_bytes_to_str)
