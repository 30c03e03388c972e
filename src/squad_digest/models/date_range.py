"""Inclusive reporting window."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from ..errors import InvalidDateRangeError
from ..utils.date_utils import (
    end_of_day,
    ensure_utc,
    format_for_file,
    format_range_label,
    get_week_end,
    get_week_start,
    start_of_day,
)


@dataclass(frozen=True)
class DateRange:
    """A reporting window, inclusive on both ends.

    Naive datetimes are interpreted as UTC. Constructing a range whose end is
    before its start is a caller bug and raises :class:`InvalidDateRangeError`.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.end < self.start:
            raise InvalidDateRangeError(self.start, self.end)

    def contains(self, value: Optional[datetime]) -> bool:
        """True when ``value`` falls within the window (both ends inclusive)."""
        if value is None:
            return False
        return self.start <= ensure_utc(value) <= self.end

    @property
    def display(self) -> str:
        return format_range_label(self.start, self.end)

    def to_dict(self) -> dict[str, str]:
        return {"start": format_for_file(self.start), "end": format_for_file(self.end)}

    @classmethod
    def for_days(cls, start_day: date, end_day: date) -> "DateRange":
        """Whole-day window from 00:00 on ``start_day`` to the last microsecond of ``end_day``."""
        if isinstance(start_day, datetime):
            start_day = ensure_utc(start_day).date()
        if isinstance(end_day, datetime):
            end_day = ensure_utc(end_day).date()
        return cls(start_of_day(start_day), end_of_day(end_day))

    @classmethod
    def current_week(cls, now: datetime) -> "DateRange":
        """Monday-to-Sunday week containing ``now``."""
        return cls(get_week_start(now), get_week_end(now))

    @classmethod
    def previous_week(cls, now: datetime) -> "DateRange":
        """The last complete Monday-to-Sunday week before ``now``."""
        last_week = get_week_start(now) - timedelta(weeks=1)
        return cls(last_week, get_week_end(last_week))
