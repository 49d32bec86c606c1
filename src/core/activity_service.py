"""
Church Calendar Bot — Activity service.

Validation layer over ActivityDB shared by the chat bot and the HTTP API.
"Today" is always taken in the configured time zone so the past-date rule
and the retention cutoff agree with what the congregation sees.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable

from src.core.date_window import DEFAULT_TIMEZONE, DateWindow, month_window, now_in
from src.core.errors import ValidationError
from src.core.validators import (
    normalize_time,
    validate_activity_data,
    validate_activity_update,
)
from src.data.db import ActivityDB
from src.data.models import Activity

logger = logging.getLogger(__name__)

_FIELDS = ("name", "date", "start_time", "end_time")


@dataclass
class CleanupResult:
    cutoff_date: str
    deleted: list[Activity] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


def _sanitize(data: dict) -> dict:
    """Trim strings and drop blank values so they read as "not supplied"."""
    clean: dict = {}
    for key in _FIELDS:
        value = data.get(key)
        if isinstance(value, str):
            value = value.strip() or None
        if value is not None:
            clean[key] = value
    return clean


def _normalize_times(data: dict) -> dict:
    for key in ("start_time", "end_time"):
        if data.get(key):
            data[key] = normalize_time(data[key])
    return data


class ActivityService:
    """CRUD and range queries with validation and typed errors."""

    def __init__(
        self,
        db: ActivityDB,
        tz_name: str = DEFAULT_TIMEZONE,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self._db = db
        self._tz_name = tz_name
        self._clock = clock

    def today(self) -> date:
        if self._clock is not None:
            return self._clock()
        return now_in(self._tz_name).date()

    # -- Mutations --------------------------------------------------------

    def create(self, data: dict) -> Activity:
        """Validate and store a new activity.

        Raises ValidationError (every problem listed) or ConflictError when
        the name+date pair already exists.
        """
        clean = _sanitize(data)
        errors = validate_activity_data(clean, self.today())
        if errors:
            raise ValidationError(errors)

        clean = _normalize_times(clean)
        return self._db.insert(
            name=clean["name"],
            date=clean["date"],
            start_time=clean.get("start_time"),
            end_time=clean.get("end_time"),
        )

    def get(self, activity_id: int) -> Activity:
        return self._db.get(activity_id)

    def update(self, activity_id: int, data: dict) -> Activity:
        """Apply a partial update. Only supplied fields change."""
        clean = _sanitize(data)
        errors = validate_activity_update(clean, self.today())
        if errors:
            raise ValidationError(errors)

        clean = _normalize_times(clean)
        existing = self._db.get(activity_id)

        # A lone start or end time must still fit the stored counterpart
        start = clean.get("start_time", existing.start_time)
        end = clean.get("end_time", existing.end_time)
        if start and end and normalize_time(start) >= normalize_time(end):
            raise ValidationError("Start time must be before end time")

        return self._db.update(activity_id, clean)

    def delete(self, activity_id: int) -> Activity:
        """Delete and return the removed record so callers can echo it back."""
        activity = self._db.get(activity_id)
        self._db.delete(activity_id)
        return activity

    # -- Queries ----------------------------------------------------------

    def list_all(self) -> list[Activity]:
        return self._db.list_all()

    def list_for_range(self, start: date | str, end: date | str) -> list[Activity]:
        start_str = start.isoformat() if isinstance(start, date) else start
        end_str = end.isoformat() if isinstance(end, date) else end
        return self._db.list_between(start_str, end_str)

    def list_for_window(self, window: DateWindow) -> list[Activity]:
        return self.list_for_range(window.start, window.end)

    def list_for_month(self, month: int, year: int) -> list[Activity]:
        try:
            window = month_window(month, year)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return self.list_for_window(window)

    # -- Retention --------------------------------------------------------

    def cleanup_old(self, days_old: int = 1) -> CleanupResult:
        """Delete activities dated before ``today - days_old``.

        Independent of the no-past-dates rule: an activity created for today
        survives until the cutoff passes it.
        """
        cutoff = (self.today() - timedelta(days=days_old)).isoformat()
        deleted = self._db.delete_before(cutoff)
        for activity in deleted:
            logger.info("Cleaned up #%d '%s' (%s)", activity.id, activity.name, activity.date)
        return CleanupResult(cutoff_date=cutoff, deleted=deleted)
