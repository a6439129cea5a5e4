"""ULID helpers for catalog and event-log identities.

Books and log entries are keyed by ULIDs: 16 big-endian bytes in storage and
26 Crockford Base32 characters at service boundaries. The 48-bit millisecond
prefix keeps ids roughly insertion-ordered, which gives log listings a stable
tiebreaker for entries sharing one timestamp.
"""

from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODE = {char: index for index, char in enumerate(_ALPHABET)}
_STR_LENGTH = 26
_BYTES_LENGTH = 16
_TIMESTAMP_LIMIT = 1 << 48


def ulid_str_to_bytes(value: str) -> bytes:
    """Decode one ULID string into its 16-byte storage form."""
    candidate = value.strip().upper()
    if len(candidate) != _STR_LENGTH:
        raise ValueError(f"ULID string must be exactly {_STR_LENGTH} characters")

    number = 0
    for char in candidate:
        digit = _DECODE.get(char)
        if digit is None:
            raise ValueError(f"Invalid ULID character: {char!r}")
        number = number * 32 + digit

    # 26 chars carry 130 bits; the top two must be zero.
    if number >> 128:
        raise ValueError("ULID value exceeds 128-bit range")
    return number.to_bytes(_BYTES_LENGTH, byteorder="big")


def ulid_bytes_to_str(value: bytes) -> str:
    """Encode 16 storage bytes as the canonical ULID string."""
    if len(value) != _BYTES_LENGTH:
        raise ValueError(f"ULID bytes must be exactly {_BYTES_LENGTH} bytes")

    number = int.from_bytes(value, byteorder="big")
    return "".join(
        _ALPHABET[(number >> shift) & 0x1F]
        for shift in range(5 * (_STR_LENGTH - 1), -1, -5)
    )


def generate_ulid_bytes(*, timestamp_ms: int | None = None) -> bytes:
    """Generate a new ULID with a millisecond prefix and 80 random bits."""
    ts_ms = time.time_ns() // 1_000_000 if timestamp_ms is None else int(timestamp_ms)
    if not 0 <= ts_ms < _TIMESTAMP_LIMIT:
        raise ValueError("timestamp_ms out of ULID 48-bit range")
    return ts_ms.to_bytes(6, byteorder="big") + secrets.token_bytes(10)


def generate_ulid_str(*, timestamp_ms: int | None = None) -> str:
    """Generate a new ULID in canonical string form."""
    return ulid_bytes_to_str(generate_ulid_bytes(timestamp_ms=timestamp_ms))


def normalize_ulid_str(value: str) -> str:
    """Validate one ULID string and return its canonical uppercase form."""
    return ulid_bytes_to_str(ulid_str_to_bytes(value))
