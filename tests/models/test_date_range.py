"""Tests for the inclusive reporting window."""

from datetime import date, datetime, timedelta, timezone

import pytest

from squad_digest.errors import InvalidDateRangeError
from squad_digest.models import DateRange


class TestDateRange:
    def test_both_ends_inclusive(self, week):
        assert week.contains(week.start)
        assert week.contains(week.end)
        assert not week.contains(week.start - timedelta(microseconds=1))
        assert not week.contains(week.end + timedelta(microseconds=1))
        assert not week.contains(None)

    def test_naive_datetimes_are_utc(self):
        date_range = DateRange(datetime(2024, 1, 1), datetime(2024, 1, 2))

        assert date_range.start.tzinfo == timezone.utc
        assert date_range.contains(datetime(2024, 1, 1, 12))

    def test_end_before_start_raises(self):
        with pytest.raises(InvalidDateRangeError):
            DateRange(datetime(2024, 1, 2, tzinfo=timezone.utc), datetime(2024, 1, 1, tzinfo=timezone.utc))

    def test_single_instant_is_valid(self, at):
        assert DateRange(at(2024, 1, 1), at(2024, 1, 1)).contains(at(2024, 1, 1))

    def test_for_days_covers_whole_days(self, week):
        assert DateRange.for_days(date(2024, 1, 8), date(2024, 1, 14)) == week

    def test_previous_week(self, week, at):
        assert DateRange.previous_week(at(2024, 1, 17, 9)) == week
        assert DateRange.previous_week(at(2024, 1, 15)) == week

    def test_current_week(self, week, at):
        assert DateRange.current_week(at(2024, 1, 14, 23, 59)) == week

    def test_display_and_dict(self, week):
        assert week.to_dict() == {"start": "2024-01-08", "end": "2024-01-14"}
        assert "2024" in week.display
