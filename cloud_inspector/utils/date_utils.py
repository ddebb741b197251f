"""Date parsing for filter expressions."""

from datetime import datetime, timezone
from typing import Optional

# Formats tried after the ISO-8601-with-offset attempt, in order.
# Naive results are interpreted as UTC.
DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
]


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; leave aware ones untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_with_offset(text: str) -> Optional[datetime]:
    """Parse a full timestamp that carries a UTC offset (``Z`` allowed)."""
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    if "T" not in candidate and "t" not in candidate:
        return None
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def parse_date(text: str) -> datetime:
    """
    Parse a date or timestamp string into an aware datetime.

    Accepted, tried in order: a full timestamp with offset
    (``2024-01-01T10:00:00+02:00`` or ``...Z``), ``YYYY-MM-DD``,
    ``YYYY-MM-DDTHH:MM:SS`` and ``YYYY-MM-DD HH:MM:SS``.

    Args:
        text: Date string

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If no accepted format matches
    """
    text = text.strip()
    parsed = _parse_with_offset(text)
    if parsed is not None:
        return parsed

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    raise ValueError(f"unable to parse date: {text}")
