"""Tests for src.core.date_window — Sunday-anchored weeks and month spans."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from src.core.date_window import (
    DateWindow,
    current_month,
    month_window,
    next_month,
    next_month_window,
    next_week,
    this_month_window,
    this_week,
    today_window,
    tomorrow_window,
)

TAIPEI = ZoneInfo("Asia/Taipei")


def _at(y, m, d, hour=12):
    return datetime(y, m, d, hour, 0, tzinfo=TAIPEI)


class TestWeeks:
    def test_this_week_from_wednesday(self):
        window = this_week(_at(2025, 1, 15))
        assert window == DateWindow(date(2025, 1, 12), date(2025, 1, 18))

    def test_this_week_on_sunday_starts_same_day(self):
        window = this_week(_at(2025, 1, 12))
        assert window.start == date(2025, 1, 12)

    def test_this_week_on_saturday(self):
        window = this_week(_at(2025, 1, 18))
        assert window.start == date(2025, 1, 12)
        assert window.end == date(2025, 1, 18)

    @pytest.mark.parametrize("day", range(12, 19))
    def test_next_week_is_seven_days_after_this_week(self, day):
        now = _at(2025, 1, day)
        assert (next_week(now).start - this_week(now).start).days == 7

    def test_next_week_on_sunday_is_following_block(self):
        window = next_week(_at(2025, 1, 12))
        assert window == DateWindow(date(2025, 1, 19), date(2025, 1, 25))

    def test_week_spans_seven_days(self):
        assert this_week(_at(2025, 3, 5)).days == 7

    def test_week_across_year_boundary(self):
        window = this_week(_at(2025, 1, 2))
        assert window.start == date(2024, 12, 29)
        assert window.end == date(2025, 1, 4)


class TestDays:
    def test_today(self):
        window = today_window(_at(2025, 1, 15))
        assert window.start == window.end == date(2025, 1, 15)

    def test_tomorrow_rolls_over_month(self):
        window = tomorrow_window(_at(2025, 1, 31))
        assert window.start == window.end == date(2025, 2, 1)

    def test_late_evening_uses_configured_zone(self):
        # 23:30 UTC on Jan 14 is already Jan 15 in Taipei
        utc_now = datetime(2025, 1, 14, 23, 30, tzinfo=ZoneInfo("UTC")).astimezone(TAIPEI)
        assert today_window(utc_now).start == date(2025, 1, 15)

    def test_contains(self):
        window = DateWindow(date(2025, 1, 12), date(2025, 1, 18))
        assert date(2025, 1, 12) in window
        assert date(2025, 1, 18) in window
        assert date(2025, 1, 19) not in window


class TestMonths:
    def test_leap_february(self):
        window = month_window(2, 2024)
        assert window.start == date(2024, 2, 1)
        assert window.end == date(2024, 2, 29)

    def test_common_february(self):
        assert month_window(2, 2025).end == date(2025, 2, 28)

    def test_december(self):
        assert month_window(12, 2025).end == date(2025, 12, 31)

    def test_invalid_month_raises(self):
        with pytest.raises(ValueError):
            month_window(13, 2025)

    def test_current_month(self):
        assert current_month(_at(2025, 11, 3)) == (11, 2025)

    def test_next_month_rolls_year(self):
        assert next_month(_at(2024, 12, 10)) == (1, 2025)

    def test_next_month_window(self):
        window = next_month_window(_at(2025, 1, 31))
        assert window == DateWindow(date(2025, 2, 1), date(2025, 2, 28))

    def test_this_month_window(self):
        window = this_month_window(_at(2025, 4, 20))
        assert window == DateWindow(date(2025, 4, 1), date(2025, 4, 30))
