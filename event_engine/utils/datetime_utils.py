"""Utility functions for working with dates and times."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from ..errors import InputError

__all__ = [
    "get_current_timestamp",
    "parse_timestamp",
    "format_timestamp",
    "delta_ms",
]


def get_current_timestamp() -> datetime:
    """Return the current UTC datetime with micro-second precision.

    This object can be stored directly in MongoDB where it will be written as
    a BSON Date.
    """
    return datetime.now(tz=timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Coerce *value* into a timezone-aware datetime.

    Accepts ``datetime`` objects (naive values are taken as UTC), ISO-8601
    strings (a trailing ``Z`` is understood) and epoch milliseconds. ``None``
    and empty strings map to ``None``.

    Raises
    ------
    InputError
        If *value* cannot be interpreted as a timestamp.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise InputError(f"Not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InputError(f"Timestamp out of range: {value!r}") from exc
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InputError(f"Unparseable timestamp: {value!r}") from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise InputError(f"Unsupported timestamp type: {type(value).__name__}")


def format_timestamp(value: Optional[datetime]) -> str:
    """Return an ISO-8601 string for *value* (empty string for ``None``)."""
    if value is None:
        return ""
    return value.isoformat()


def delta_ms(a: datetime, b: datetime) -> float:
    """Absolute difference between two timestamps in milliseconds."""
    try:
        return abs((a - b).total_seconds()) * 1000.0
    except TypeError as exc:  # naive vs aware
        raise InputError("Cannot compare naive and aware timestamps") from exc
