"""Value coercion helpers for database operations."""
from datetime import datetime, timezone
from typing import Any


def float_or_none(value: Any) -> float | None:
    """Return a float, or None if the input is None or an empty string."""
    if value is None:
        return None

    if isinstance(value, bool):
        raise ValueError(f"Unexpected type for value '{value}' (type='{type(value)}')")

    if isinstance(value, float):
        return value

    if isinstance(value, int):
        return float(value)

    if isinstance(value, str):
        if not value.strip():
            return None
        return float(value.strip())

    # Decimal and numpy-style scalars coming back from the driver
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Unexpected type for value '{value}' (type='{type(value)}')") from exc


def int_or_none(value: Any) -> int | None:
    """Return an int, or None if the input is None."""
    if value is None:
        return None
    return int(value)


def utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)
