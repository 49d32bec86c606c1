"""Input validation for activity data.

Validators return plain booleans or lists of error strings; raising is left
to the service layer so that every problem is reported at once.
"""

from __future__ import annotations

import re
from datetime import date

MAX_NAME_LENGTH = 255

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9](:[0-5][0-9])?$")
END_OF_DAY = "24:00"


def is_valid_date(value: str | None) -> bool:
    """True iff ``value`` is ``YYYY-MM-DD`` and names a real calendar day."""
    if not value or not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_time(value: str | None) -> bool:
    """Accept ``HH:MM`` or ``HH:MM:SS`` on a 24-hour clock (00-23)."""
    if not value or not isinstance(value, str):
        return False
    return bool(_TIME_RE.match(value))


def is_valid_end_time(value: str | None) -> bool:
    """Like :func:`is_valid_time`, but also accepts the literal ``24:00``."""
    return value == END_OF_DAY or is_valid_time(value)


def normalize_time(value: str) -> str:
    """Zero-pad the hour so times compare correctly as strings ("9:00" -> "09:00")."""
    hour, rest = value.split(":", 1)
    return f"{int(hour):02d}:{rest}"


def is_valid_name(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    trimmed = value.strip()
    return 0 < len(trimmed) <= MAX_NAME_LENGTH


def is_past(value: str, today: date) -> bool:
    return date.fromisoformat(value) < today


def _time_errors(start_time: str | None, end_time: str | None) -> list[str]:
    errors: list[str] = []
    start_ok = end_ok = False
    if start_time:
        start_ok = is_valid_time(start_time)
        if not start_ok:
            errors.append("Invalid start time format. Expected HH:MM:SS or HH:MM")
    if end_time:
        end_ok = is_valid_end_time(end_time)
        if not end_ok:
            errors.append("Invalid end time format. Expected HH:MM:SS or HH:MM")
    if start_ok and end_ok and normalize_time(start_time) >= normalize_time(end_time):
        errors.append("Start time must be before end time")
    return errors


def validate_activity_data(data: dict, today: date) -> list[str]:
    """Validate a full activity for creation."""
    errors: list[str] = []

    if not is_valid_name(data.get("name")):
        errors.append(
            f"Activity name is required and must be between 1-{MAX_NAME_LENGTH} characters"
        )

    activity_date = data.get("date")
    if not activity_date:
        errors.append("Activity date is required")
    elif not is_valid_date(activity_date):
        errors.append("Invalid date format. Expected YYYY-MM-DD")
    elif is_past(activity_date, today):
        errors.append("Activity date cannot be in the past")

    errors.extend(_time_errors(data.get("start_time"), data.get("end_time")))
    return errors


def validate_activity_update(data: dict, today: date) -> list[str]:
    """Validate a partial update; only the supplied fields are checked."""
    fields = ("name", "date", "start_time", "end_time")
    if not any(data.get(f) is not None for f in fields):
        return [
            "At least one field (name, date, start_time, or end_time) "
            "must be provided for update"
        ]

    errors: list[str] = []
    if data.get("name") is not None and not is_valid_name(data["name"]):
        errors.append(f"Activity name must be between 1-{MAX_NAME_LENGTH} characters")

    if data.get("date") is not None:
        if not is_valid_date(data["date"]):
            errors.append("Invalid date format. Expected YYYY-MM-DD")
        elif is_past(data["date"], today):
            errors.append("Activity date cannot be in the past")

    errors.extend(_time_errors(data.get("start_time"), data.get("end_time")))
    return errors
