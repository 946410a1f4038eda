"""Parse-or-default coercion for client-submitted JSON.

One helper per primitive kind, applied uniformly by the normalizer. None of
these raise: a value that can't be read as the requested type becomes the
documented default (None, False, "", [] or the caller's fallback).

Timestamps: numbers are epoch milliseconds (what the mobile client's
Date.now() produces); numeric strings likewise; other strings are parsed as
ISO-8601 (a trailing "Z" is accepted). Naive datetimes are taken as UTC.

Tier 1 leaf — imports only stdlib.
"""

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

_MISSING = object()

# Longest response or encoding time accepted; larger values read as missing.
MAX_DURATION_MS = 3_600_000.0


def pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Returns the value of the first key present in raw.

    Lets one normalizer accept both snake_case and the mobile client's
    camelCase spellings (pick(raw, "response_time_ms", "responseTimeMs")).
    """
    for key in keys:
        value = raw.get(key, _MISSING)
        if value is not _MISSING:
            return value
    return default


def to_str(value: Any, default: str = "") -> str:
    """Strings pass through, numbers are stringified, anything else → default."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return str(value)
    return default


def to_bool(value: Any) -> bool:
    """Reads JSON-ish truthiness: true, 1, "true", "yes", "1" → True."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return False


def to_finite(value: Any) -> float | None:
    """Finite float, or None for anything non-numeric, NaN or infinite."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def to_duration_ms(value: Any) -> float | None:
    """Duration in milliseconds within [0, MAX_DURATION_MS], else None."""
    number = to_finite(value)
    if number is None or number < 0 or number > MAX_DURATION_MS:
        return None
    return number


def to_timestamp(value: Any, default: datetime | None = None) -> datetime | None:
    """Parses epoch milliseconds or ISO-8601 into an aware UTC datetime.

    Args:
        value: Raw client value.
        default: Returned when value is missing or unparsable.

    Returns:
        The parsed datetime, or default.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    millis = to_finite(value)
    if millis is not None:
        try:
            return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return default

    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return default
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return default


def to_str_list(value: Any) -> list[str]:
    """Coerces a JSON array into strings; non-arrays become []."""
    if not isinstance(value, list):
        return []
    return [to_str(item) for item in value]


def to_mapping(value: Any) -> dict[str, Any] | None:
    """Returns value as a plain dict if it is a JSON object, else None."""
    if isinstance(value, Mapping):
        return dict(value)
    return None
