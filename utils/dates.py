"""Date parsing helpers shared by validation and filtering."""
from datetime import date, datetime, time, timezone
from typing import Any


def to_naive_utc(dt: datetime) -> datetime:
    """MongoDB stores naive datetimes as UTC, so aware values are converted and stripped."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: Any) -> datetime:
    """
    Parses a loosely-typed date value into a naive UTC datetime.

    Accepts datetime/date objects, ISO 8601 strings ('2025-08-01',
    '2025-08-01T10:30:00Z', '2025-08-01T10:30:00+02:00') and epoch
    milliseconds (0 counts as missing). Raises ValueError for anything else.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a date: {value!r}")
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, (int, float)):
        if value == 0:
            raise ValueError("Missing date: 0")
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty date string")
        if text[-1] in "Zz":
            text = text[:-1] + "+00:00"
        return to_naive_utc(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported date type: {type(value).__name__}")
