"""
Church Calendar Bot — Chat command parser.

Turns a raw LINE text message (English or Chinese) into one of a closed set
of command models. Anything outside the recognised triggers becomes
``UnknownCommand`` so the bot can stay silent in busy group chats.

Examples:
    "查看 十一月 2024"                      -> ViewSpecificMonth(month=11, year=2024)
    "新增 2025-01-15 09:00-11:00 主日崇拜"   -> CreateActivity(...)
    "更新 17 時間 22:00-24:00"              -> UpdateActivity(field="time", ...)
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Literal, Optional, Union

from pydantic import BaseModel

from src.core.validators import (
    is_valid_date,
    is_valid_end_time,
    is_valid_time,
    normalize_time,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Command models
# ---------------------------------------------------------------------------


class ShowHelp(BaseModel):
    kind: Literal["help"] = "help"


class ViewAll(BaseModel):
    kind: Literal["view_all"] = "view_all"


class ViewWithIds(BaseModel):
    kind: Literal["view_with_ids"] = "view_with_ids"


class ViewThisMonth(BaseModel):
    kind: Literal["view_this_month"] = "view_this_month"


class ViewNextMonth(BaseModel):
    kind: Literal["view_next_month"] = "view_next_month"


class ViewThisWeek(BaseModel):
    kind: Literal["view_this_week"] = "view_this_week"


class ViewNextWeek(BaseModel):
    kind: Literal["view_next_week"] = "view_next_week"


class ViewSpecificMonth(BaseModel):
    """``查看 11月`` / ``查看 十一月 2024``."""
    kind: Literal["view_month"] = "view_month"
    month: int
    year: int


class CreateActivity(BaseModel):
    """New activity. Times are zero-padded ``HH:MM`` when present.

    JSON example:
    {
        "kind": "create",
        "name": "主日崇拜",
        "date": "2025-01-15",
        "start_time": "09:00",
        "end_time": "11:00"
    }
    """
    kind: Literal["create"] = "create"
    name: str
    date: str                          # ISO format YYYY-MM-DD
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class UpdateActivity(BaseModel):
    """Partial update of one field group of an existing activity."""
    kind: Literal["update"] = "update"
    activity_id: int
    field: Literal["name", "time", "date"]
    name: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def patch(self) -> dict:
        """Only the fields this update actually changes."""
        return self.model_dump(
            include={"name", "date", "start_time", "end_time"}, exclude_none=True,
        )


class DeleteActivity(BaseModel):
    kind: Literal["delete"] = "delete"
    activity_id: int


class Unauthorized(BaseModel):
    """A mutating command from a user outside the allow-list."""
    kind: Literal["unauthorized"] = "unauthorized"
    action: Literal["create", "update", "delete"]


class InvalidCommand(BaseModel):
    """Recognised trigger with a malformed shape; ``hint`` is shown to the user."""
    kind: Literal["invalid"] = "invalid"
    action: str
    hint: str


class UnknownCommand(BaseModel):
    kind: Literal["unknown"] = "unknown"


Command = Union[
    ShowHelp,
    ViewAll,
    ViewWithIds,
    ViewThisMonth,
    ViewNextMonth,
    ViewThisWeek,
    ViewNextWeek,
    ViewSpecificMonth,
    CreateActivity,
    UpdateActivity,
    DeleteActivity,
    Unauthorized,
    InvalidCommand,
    UnknownCommand,
]

# ---------------------------------------------------------------------------
# Usage hints (bilingual, shown verbatim in chat)
# ---------------------------------------------------------------------------

CREATE_USAGE = (
    "格式錯誤。請使用：\n"
    "• 新增 [日期] [活動名稱]\n"
    "• 新增 [日期] [開始時間-結束時間] [活動名稱]\n"
    "例如：新增 2025-01-15 主日崇拜\n"
    "例如：新增 2025-01-15 09:00-11:00 主日崇拜\n"
    "Usage: add [YYYY-MM-DD] [HH:MM-HH:MM] [name]"
)
UPDATE_USAGE = (
    "格式錯誤。請使用：\n"
    "• 更新 [ID] 名稱 [新名稱]\n"
    "• 更新 [ID] 時間 [開始時間-結束時間]\n"
    "• 更新 [ID] 日期 [YYYY-MM-DD]\n"
    "例如：更新 17 名稱 教導站桌遊活動\n"
    "Usage: update [id] [name|time|date] [value]"
)
UPDATE_FIELD_HINT = (
    "更新類型錯誤。請使用：名稱、時間 或 日期\n"
    "例如：更新 17 名稱 教導站桌遊活動\n"
    "Field must be one of: name, time, date"
)
DELETE_USAGE = "格式錯誤。請使用：刪除 [ID]\n例如：刪除 1\nUsage: delete [id]"
DATE_HINT = (
    "日期格式錯誤。請使用 YYYY-MM-DD 格式，例如：2025-01-15\n"
    "Invalid date. Use YYYY-MM-DD"
)
TIME_FORMAT_HINT = (
    "時間格式錯誤。請使用：開始時間-結束時間\n"
    "例如：22:00-24:00\n"
    "Invalid time range. Use HH:MM-HH:MM"
)
TIME_ORDER_HINT = (
    "時間錯誤：開始時間必須早於結束時間。\n"
    "例如：09:00-11:00\n"
    "Start time must be before end time"
)
MONTH_HINT = (
    "月份格式錯誤。請使用：查看 11月 或 查看 十一月\n"
    "Invalid month. Example: 查看 11月 2025"
)

# ---------------------------------------------------------------------------
# Trigger tables
# ---------------------------------------------------------------------------

_FIXED_TRIGGERS: dict[str, type[BaseModel]] = {
    "help": ShowHelp,
    "幫助": ShowHelp,
    "list": ViewAll,
    "列表": ViewAll,
    "view all": ViewAll,
    "查看 全部": ViewAll,
    "查看 id": ViewWithIds,
    "查看 這個月": ViewThisMonth,
    "查看 本月": ViewThisMonth,
    "查看 下個月": ViewNextMonth,
    "查看 這個禮拜": ViewThisWeek,
    "查看 本週": ViewThisWeek,
    "查看 下周": ViewNextWeek,
    "查看 下個禮拜": ViewNextWeek,
}

_CREATE_WORDS = {"新增", "add", "create"}
_UPDATE_WORDS = {"更新", "update"}
_DELETE_WORDS = {"刪除", "delete"}

_NAME_FIELDS = {"名稱", "name"}
_TIME_FIELDS = {"時間", "time"}
_DATE_FIELDS = {"日期", "date"}

_CHINESE_MONTHS = {
    "一": 1, "二": 2, "三": 3, "四": 4, "五": 5, "六": 6,
    "七": 7, "八": 8, "九": 9, "十": 10, "十一": 11, "十二": 12,
}

_DIGIT_MONTH_RE = re.compile(r"^(\d{1,2})月$")
_YEAR_RE = re.compile(r"^\d{4}$")


def parse_command(
    raw_text: str | None,
    is_authorized: bool = True,
    today: date | None = None,
) -> Command:
    """Parse one chat message into a command.

    ``today`` supplies the default year for ``查看 <month>``; it defaults to
    the host date and callers pass the configured zone's date instead.
    """
    text = (raw_text or "").strip()
    if not text:
        return UnknownCommand()

    tokens = text.split()
    lowered = [t.lower() for t in tokens]

    fixed = _FIXED_TRIGGERS.get(" ".join(lowered))
    if fixed is not None:
        return fixed()

    head = lowered[0]

    if head == "查看":
        return _parse_view_month(lowered, today or date.today())

    if head in _CREATE_WORDS:
        if not is_authorized:
            return Unauthorized(action="create")
        return _parse_create(tokens)

    if head in _UPDATE_WORDS:
        if not is_authorized:
            return Unauthorized(action="update")
        return _parse_update(tokens, lowered)

    if head in _DELETE_WORDS:
        if not is_authorized:
            return Unauthorized(action="delete")
        return _parse_delete(tokens)

    logger.debug("Ignoring non-command message: %r", text[:50])
    return UnknownCommand()


# ---------------------------------------------------------------------------
# View helpers
# ---------------------------------------------------------------------------


def parse_month_token(token: str) -> int | None:
    """``11月`` / ``十一月`` -> 11. Returns None for anything else."""
    match = _DIGIT_MONTH_RE.match(token)
    if match:
        month = int(match.group(1))
        return month if 1 <= month <= 12 else None
    if token.endswith("月"):
        return _CHINESE_MONTHS.get(token[:-1])
    return None


def _parse_view_month(lowered: list[str], today: date) -> Command:
    if len(lowered) < 2 or "月" not in lowered[1]:
        return UnknownCommand()

    month = parse_month_token(lowered[1])
    if month is None or len(lowered) > 3:
        return InvalidCommand(action="view", hint=MONTH_HINT)

    year = today.year
    if len(lowered) == 3:
        if not _YEAR_RE.match(lowered[2]):
            return InvalidCommand(action="view", hint=MONTH_HINT)
        year = int(lowered[2])

    return ViewSpecificMonth(month=month, year=year)


# ---------------------------------------------------------------------------
# Mutation helpers
# ---------------------------------------------------------------------------


def _looks_like_time_range(token: str) -> bool:
    return "-" in token and ":" in token and len(token.split("-")) == 2


def _parse_time_range(token: str, action: str) -> tuple[str, str] | InvalidCommand:
    start, end = token.split("-")
    if not is_valid_time(start) or not is_valid_end_time(end):
        return InvalidCommand(action=action, hint=TIME_FORMAT_HINT)
    start, end = normalize_time(start), normalize_time(end)
    if start >= end:
        return InvalidCommand(action=action, hint=TIME_ORDER_HINT)
    return start, end


def _parse_activity_id(token: str) -> int | None:
    if not re.fullmatch(r"[0-9]+", token):
        return None
    activity_id = int(token)
    return activity_id if activity_id > 0 else None


def _parse_create(tokens: list[str]) -> Command:
    if len(tokens) < 3:
        return InvalidCommand(action="create", hint=CREATE_USAGE)

    activity_date = tokens[1]
    if not is_valid_date(activity_date):
        return InvalidCommand(action="create", hint=DATE_HINT)

    rest = tokens[2:]
    start_time = end_time = None
    if _looks_like_time_range(rest[0]):
        parsed = _parse_time_range(rest[0], "create")
        if isinstance(parsed, InvalidCommand):
            return parsed
        start_time, end_time = parsed
        rest = rest[1:]

    name = " ".join(rest).strip()
    if not name:
        return InvalidCommand(action="create", hint=CREATE_USAGE)

    return CreateActivity(
        name=name, date=activity_date, start_time=start_time, end_time=end_time,
    )


def _parse_update(tokens: list[str], lowered: list[str]) -> Command:
    if len(tokens) < 4:
        return InvalidCommand(action="update", hint=UPDATE_USAGE)

    activity_id = _parse_activity_id(tokens[1])
    if activity_id is None:
        return InvalidCommand(action="update", hint=UPDATE_USAGE)

    field = lowered[2]
    if field in _NAME_FIELDS:
        return UpdateActivity(
            activity_id=activity_id, field="name", name=" ".join(tokens[3:]),
        )

    if field in _TIME_FIELDS:
        if len(tokens) != 4 or not _looks_like_time_range(tokens[3]):
            return InvalidCommand(action="update", hint=TIME_FORMAT_HINT)
        parsed = _parse_time_range(tokens[3], "update")
        if isinstance(parsed, InvalidCommand):
            return parsed
        start_time, end_time = parsed
        return UpdateActivity(
            activity_id=activity_id, field="time",
            start_time=start_time, end_time=end_time,
        )

    if field in _DATE_FIELDS:
        if len(tokens) != 4 or not is_valid_date(tokens[3]):
            return InvalidCommand(action="update", hint=DATE_HINT)
        return UpdateActivity(activity_id=activity_id, field="date", date=tokens[3])

    return InvalidCommand(action="update", hint=UPDATE_FIELD_HINT)


def _parse_delete(tokens: list[str]) -> Command:
    if len(tokens) != 2:
        return InvalidCommand(action="delete", hint=DELETE_USAGE)
    activity_id = _parse_activity_id(tokens[1])
    if activity_id is None:
        return InvalidCommand(action="delete", hint=DELETE_USAGE)
    return DeleteActivity(activity_id=activity_id)
