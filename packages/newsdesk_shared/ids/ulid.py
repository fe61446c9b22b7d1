"""ULID conversion and generation helpers.

Asset and reference rows store ULIDs as 16-byte big-endian binary; the domain
layer and logs use the canonical 26-character Crockford Base32 form.
"""

from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE = {char: index for index, char in enumerate(_ALPHABET)}
_TEXT_LENGTH = 26
_BYTE_LENGTH = 16


def generate_ulid_bytes(*, timestamp_ms: int | None = None) -> bytes:
    """Generate a new ULID as 16-byte big-endian binary.

    The high 48 bits carry milliseconds since epoch so ids sort by creation
    time; the low 80 bits are random.
    """
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if not 0 <= ts_ms < (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")
    number = (ts_ms << 80) | secrets.randbits(80)
    return number.to_bytes(_BYTE_LENGTH, byteorder="big")


def ulid_bytes_to_str(value: bytes) -> str:
    """Encode 16-byte ULID binary into its canonical string form."""
    if len(value) != _BYTE_LENGTH:
        raise ValueError("ULID bytes must be exactly 16 bytes")
    number = int.from_bytes(value, byteorder="big")
    chars = []
    for _ in range(_TEXT_LENGTH):
        number, remainder = divmod(number, 32)
        chars.append(_ALPHABET[remainder])
    return "".join(reversed(chars))


def ulid_str_to_bytes(value: str) -> bytes:
    """Decode a canonical ULID string into 16-byte binary."""
    candidate = value.strip().upper()
    if len(candidate) != _TEXT_LENGTH:
        raise ValueError("ULID string must be exactly 26 characters")
    number = 0
    for char in candidate:
        digit = _DECODE.get(char)
        if digit is None:
            raise ValueError(f"Invalid ULID character: {char!r}")
        number = (number << 5) | digit
    if number >> 128:
        raise ValueError("ULID value exceeds 128-bit range")
    return number.to_bytes(_BYTE_LENGTH, byteorder="big")
