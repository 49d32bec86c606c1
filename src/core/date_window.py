"""Calendar windows used by chat queries and scheduled reminders.

All functions are pure given ``now``. When ``now`` is omitted it is taken in
the configured time zone, never the host's local zone, so a reminder fired
from any deployment region selects the same days.

Weeks are Sunday-anchored: Sunday 00:00 through Saturday 23:59:59.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Taipei"


@dataclass(frozen=True)
class DateWindow:
    """An inclusive range of calendar days."""

    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


def now_in(tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Current time in the given IANA time zone."""
    return datetime.now(ZoneInfo(tz_name))


def _today(now: datetime | None, tz_name: str) -> date:
    if now is None:
        now = now_in(tz_name)
    return now.date()


def today_window(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> DateWindow:
    today = _today(now, tz_name)
    return DateWindow(today, today)


def tomorrow_window(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> DateWindow:
    tomorrow = _today(now, tz_name) + timedelta(days=1)
    return DateWindow(tomorrow, tomorrow)


def this_week(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> DateWindow:
    """Sunday..Saturday of the week containing ``now``."""
    today = _today(now, tz_name)
    # date.weekday(): Monday=0 .. Sunday=6 -> days since the last Sunday
    days_since_sunday = (today.weekday() + 1) % 7
    start = today - timedelta(days=days_since_sunday)
    return DateWindow(start, start + timedelta(days=6))


def next_week(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> DateWindow:
    """The Sunday..Saturday block right after :func:`this_week`."""
    current = this_week(now, tz_name)
    return DateWindow(current.start + timedelta(days=7), current.end + timedelta(days=7))


def month_window(month: int, year: int) -> DateWindow:
    """First through last calendar day of ``month``/``year``."""
    if not 1 <= month <= 12:
        raise ValueError(f"month out of range: {month}")
    last_day = calendar.monthrange(year, month)[1]
    return DateWindow(date(year, month, 1), date(year, month, last_day))


def current_month(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> tuple[int, int]:
    """Return (month, year) for ``now``."""
    today = _today(now, tz_name)
    return today.month, today.year


def next_month(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> tuple[int, int]:
    """Return (month, year) of the month after ``now``, rolling December over."""
    month, year = current_month(now, tz_name)
    if month == 12:
        return 1, year + 1
    return month + 1, year


def this_month_window(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> DateWindow:
    month, year = current_month(now, tz_name)
    return month_window(month, year)


def next_month_window(now: datetime | None = None, tz_name: str = DEFAULT_TIMEZONE) -> DateWindow:
    month, year = next_month(now, tz_name)
    return month_window(month, year)
