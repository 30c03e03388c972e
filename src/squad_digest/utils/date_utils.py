"""Date utility functions for week boundaries and timestamp parsing.

These are pure date math helpers shared by the input adapters, the date range
model, and report rendering so that every component agrees on Monday-aligned
weeks and on how naive timestamps are interpreted.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as date_parser


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware UTC datetime.

    Naive datetimes are assumed to already be in UTC; aware datetimes are
    converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    if value.tzinfo != timezone.utc:
        return value.astimezone(timezone.utc)
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as delivered by the issue tracker.

    Handles the tracker's ``2024-01-15T10:30:00.000+0000`` form, ``Z`` suffixes,
    plain dates, and values that are already ``datetime``/``date`` objects.

    Args:
        value: Raw value from an input record.

    Returns:
        Timezone-aware UTC datetime, or None if the value is empty or cannot
        be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    return ensure_utc(parsed)


def get_week_start(value: datetime) -> datetime:
    """Get Monday 00:00:00 UTC of the week containing ``value``.

    Args:
        value: Input date (timezone-aware or naive)

    Returns:
        Monday of the week containing the input date, as timezone-aware UTC
        datetime at 00:00:00
    """
    value = ensure_utc(value)
    monday = value - timedelta(days=value.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def get_week_end(value: datetime) -> datetime:
    """Get Sunday 23:59:59.999999 UTC of the week containing ``value``."""
    week_start = get_week_start(value)
    return week_start + timedelta(days=6, hours=23, minutes=59, seconds=59, microseconds=999999)


def start_of_day(day: date) -> datetime:
    """Return 00:00:00 UTC on ``day``."""
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """Return 23:59:59.999999 UTC on ``day``."""
    return start_of_day(day) + timedelta(days=1) - timedelta(microseconds=1)


def format_for_display(value: Optional[datetime]) -> str:
    """Format a timestamp the way reports show dates, e.g. ``Jan 5, 2024``."""
    if value is None:
        return "Unknown"
    value = ensure_utc(value)
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_for_file(value: datetime) -> str:
    """Format a timestamp for use in report file names (``YYYY-MM-DD``)."""
    return ensure_utc(value).strftime("%Y-%m-%d")


def format_range_label(start: datetime, end: datetime) -> str:
    """Human-readable range label, e.g. ``Jan 1 - Jan 7, 2024``."""
    start = ensure_utc(start)
    end = ensure_utc(end)
    return f"{start.strftime('%b')} {start.day} - {end.strftime('%b')} {end.day}, {end.year}"

