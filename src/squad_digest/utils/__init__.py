"""Utility modules for Squad Digest."""

from .date_utils import (
    end_of_day,
    ensure_utc,
    format_for_display,
    format_for_file,
    format_range_label,
    get_week_end,
    get_week_start,
    parse_timestamp,
    start_of_day,
)

__all__ = [
    "end_of_day",
    "ensure_utc",
    "format_for_display",
    "format_for_file",
    "format_range_label",
    "get_week_end",
    "get_week_start",
    "parse_timestamp",
    "start_of_day",
]
