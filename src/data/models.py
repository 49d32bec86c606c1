"""
Church Calendar Bot — Data Models.

Activities and reminder groups persist in SQLite across restarts.
LINE users need no record of their own: broadcasts reach every follower.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class Activity:
    """A calendar entry shown to the congregation.

    ``date`` is ISO ``YYYY-MM-DD``; times are ``HH:MM`` or ``HH:MM:SS``
    and may be absent.
    """

    id: int
    name: str                         # e.g. "主日崇拜"
    date: str                         # ISO date YYYY-MM-DD
    start_time: str | None = None     # e.g. "09:00"
    end_time: str | None = None       # e.g. "11:00", "24:00" allowed
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ReminderGroup:
    """A LINE group that receives scheduled reminders.

    Registered when the bot joins a group, deactivated when it leaves.
    """

    group_id: str
    group_name: str | None = None
    is_active: bool = field(default=True)
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)
