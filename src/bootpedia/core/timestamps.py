"""
ID generation and timestamp utilities (stdlib-only).

- **generate_ulid():** time-sortable ids for documents created by the
  bundled adapters
- **utc_now():** timezone-aware UTC datetime
- **to_iso8601() / from_iso8601():** serialization round-trip
- **coerce_datetime():** turn whatever a remote record holds into a datetime

Tags:
    timestamps, ulid, utc, datetime, bootpedia
"""

from __future__ import annotations

import random
import time
from datetime import UTC, datetime
from typing import Any


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def generate_ulid() -> str:
    """
    Generate a ULID-like identifier.

    Format: 26 characters, base32 encoded, time-sortable.
    """
    # Time component: milliseconds since epoch (48 bits -> 10 chars)
    timestamp_ms = int(time.time() * 1000)
    timestamp_chars = _encode_base32(timestamp_ms, 10)

    # Random component (80 bits -> 16 chars)
    random_part = "".join(random.choices(_ENCODING, k=16))

    return timestamp_chars + random_part


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


def from_iso8601(s: str | None) -> datetime | None:
    """Parse ISO 8601 string to datetime."""
    if s is None:
        return None
    return datetime.fromisoformat(s)


def coerce_datetime(value: Any) -> datetime | None:
    """Best-effort conversion of a stored timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC), ISO 8601 strings, epoch
    seconds and provider timestamp objects exposing ``to_datetime()``.
    Returns ``None`` when nothing usable is found; never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if hasattr(value, "to_datetime") and not isinstance(value, datetime):
        try:
            value = value.to_datetime()
        except Exception:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            return coerce_datetime(from_iso8601(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


# ULID base32 alphabet (Crockford's)
_ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ENCODING_LEN = len(_ENCODING)


def _encode_base32(value: int, length: int) -> str:
    """Encode integer to base32 string of fixed length."""
    result = []
    for _ in range(length):
        result.append(_ENCODING[value % _ENCODING_LEN])
        value //= _ENCODING_LEN
    return "".join(reversed(result))


__all__ = ["coerce_datetime", "from_iso8601", "generate_ulid", "to_iso8601", "utc_now"]
