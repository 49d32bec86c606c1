"""
Church Calendar Bot — Message formatting.

Every chat reply and reminder is plain text. One activity renders as

    • 1/15 星期三 09:00-11:00 主日崇拜

with month/day unpadded and the weekday taken from the stored date string
as-is (no time-zone shifting).
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable

from src.data.models import Activity

WEEKDAYS = ["星期日", "星期一", "星期二", "星期三", "星期四", "星期五", "星期六"]
MONTH_NAMES = [
    "", "一月", "二月", "三月", "四月", "五月", "六月",
    "七月", "八月", "九月", "十月", "十一月", "十二月",
]

_HHMM_RE = re.compile(r"^\d{1,2}:\d{2}$")
_HHMMSS_RE = re.compile(r"^\d{1,2}:\d{2}:\d{2}$")

# ---------------------------------------------------------------------------
# Fixed texts
# ---------------------------------------------------------------------------

NO_ACTIVITIES_TEXT = "目前沒有活動安排。\nNo activities scheduled."
NOT_FOUND_TEXT = "❌ 找不到指定的活動。\nActivity not found."
DUPLICATE_TEXT = (
    "此日期和活動名稱已存在，請使用不同的組合。\n"
    "An activity with this name and date already exists."
)
GENERIC_FAILURE_TEXT = (
    "❌ 系統暫時無法使用。\n\n請稍後再試或聯繫管理員。\n"
    "Something went wrong. Please try again later."
)

VIEW_TITLES: dict[str, tuple[str, str]] = {
    # kind: (title, label used in the empty text)
    "view_all": ("所有活動 All activities", ""),
    "view_with_ids": ("所有活動（含ID）All activities with IDs", ""),
    "view_this_month": ("本月活動 This month", "本月"),
    "view_next_month": ("下個月活動 Next month", "下個月"),
    "view_this_week": ("本週活動 This week", "本週"),
    "view_next_week": ("下周活動 Next week", "下周"),
}

REMINDER_TITLES = {
    "monthly": "📅 本月活動 This month's activities",
    "weekly": "📢 下週活動 Next week's activities",
    "this_week": "📢 本週活動 This week's activities",
    "daily": "⏰ 明天活動 Tomorrow's activities",
    "custom": "📌 活動提醒 Activity reminder",
}

_ACTION_TEXTS = {
    "create": "活動已成功新增 Activity created",
    "update": "活動已成功更新 Activity updated",
    "delete": "活動已成功刪除 Activity deleted",
}

_ACTION_VERBS = {
    "create": ("新增", "create"),
    "update": ("更新", "update"),
    "delete": ("刪除", "delete"),
}


# ---------------------------------------------------------------------------
# Per-activity rendering
# ---------------------------------------------------------------------------


def to_hhmm(value: str | None) -> str:
    """``09:00`` passes through, ``09:00:00`` loses its seconds, anything else is unchanged."""
    if not value:
        return ""
    if _HHMM_RE.match(value):
        return value
    if _HHMMSS_RE.match(value):
        return value.rsplit(":", 1)[0]
    return value


def format_time_range(start_time: str | None, end_time: str | None) -> str:
    if start_time and end_time:
        return f"{to_hhmm(start_time)}-{to_hhmm(end_time)}"
    if start_time:
        return to_hhmm(start_time)
    return ""


def weekday_name(iso_date: str) -> str:
    # isoweekday(): Monday=1 .. Sunday=7
    return WEEKDAYS[date.fromisoformat(iso_date).isoweekday() % 7]


def format_activity_line(activity: Activity, with_id: bool = False) -> str:
    day = date.fromisoformat(activity.date)
    parts = [f"{day.month}/{day.day}", weekday_name(activity.date)]
    time_range = format_time_range(activity.start_time, activity.end_time)
    if time_range:
        parts.append(time_range)
    parts.append(activity.name)
    line = " ".join(parts)
    if with_id:
        return f"• ID: {activity.id} | {line}"
    return f"• {line}"


def sort_activities(activities: Iterable[Activity]) -> list[Activity]:
    """Date first, then start time (untimed entries lead), then id."""
    return sorted(
        activities,
        key=lambda a: (a.date, a.start_time or "", a.id),
    )


# ---------------------------------------------------------------------------
# Whole messages
# ---------------------------------------------------------------------------


def format_list(
    activities: list[Activity],
    title: str,
    empty_text: str | None = None,
    with_ids: bool = False,
) -> str:
    if not activities:
        return empty_text or NO_ACTIVITIES_TEXT
    lines = [f"{title}："]
    lines.extend(format_activity_line(a, with_id=with_ids) for a in sort_activities(activities))
    return "\n".join(lines).strip()


def empty_text_for(label: str) -> str:
    if not label:
        return NO_ACTIVITIES_TEXT
    return f"目前沒有{label}活動安排。\nNo activities scheduled for {label}."


def format_view(kind: str, activities: list[Activity]) -> str:
    """Render one of the fixed ``查看`` listings."""
    title, label = VIEW_TITLES[kind]
    return format_list(
        activities, title, empty_text_for(label), with_ids=(kind == "view_with_ids"),
    )


def format_month_view(month: int, year: int, activities: list[Activity]) -> str:
    label = month_label(month, year)
    return format_list(
        activities,
        f"{label}活動 Activities for {year}-{month:02d}",
        empty_text_for(label),
    )


def format_single(activity: Activity, action: str) -> str:
    """Confirmation for a create/update/delete, e.g. ``✅ 活動已成功新增 ...``."""
    text = _ACTION_TEXTS.get(action, "操作成功 Done")
    return f"✅ {text}：\n{format_activity_line(activity)}"


def format_reminder(activities: list[Activity], kind: str) -> str:
    title = REMINDER_TITLES.get(kind, REMINDER_TITLES["custom"])
    return format_list(activities, title)


def month_label(month: int, year: int) -> str:
    return f"{year}年{MONTH_NAMES[month]}"


def validation_text(errors: list[str]) -> str:
    return "❌ 輸入錯誤：\n" + "\n".join(errors) + "\n\n請檢查您的輸入並重試。"


def unauthorized_text(action: str) -> str:
    zh, en = _ACTION_VERBS.get(action, ("管理", "manage"))
    return (
        f"抱歉，您沒有權限{zh}活動，請聯繫管理員。\n"
        f"Sorry, you are not authorized to {en} activities. Contact the administrator."
    )


def welcome_message() -> str:
    return (
        "歡迎使用教會行事曆機器人！\n\n"
        "我可以幫您：\n"
        "• 管理教會活動\n"
        "• 發送提醒通知\n\n"
        '輸入 "help" 查看可用指令。\n'
        'Welcome! Type "help" to see the available commands.'
    )


def help_message(is_authorized: bool = False) -> str:
    message = (
        "教會行事曆助理指令：\n\n"
        "• help - 顯示此幫助訊息\n"
        "• 查看 全部 - 查看所有活動\n"
        "• 查看 id - 查看所有活動（含ID）\n"
        "• 查看 這個月 - 查看本月活動\n"
        "• 查看 下個月 - 查看下個月活動\n"
        "• 查看 這個禮拜 - 查看本週活動\n"
        "• 查看 下周 - 查看下周活動\n"
        "• 查看 [月份] - 查看指定月份活動\n\n"
        "月份格式範例：\n"
        "• 查看 11月 - 查看11月活動\n"
        "• 查看 十一月 - 查看11月活動\n"
        "• 查看 11月 2025 - 查看2025年11月活動"
    )
    if is_authorized:
        message += (
            "\n\n管理員功能：\n"
            "• 新增 [日期] [活動名稱] - 新增活動\n"
            "• 新增 [日期] [開始時間-結束時間] [活動名稱] - 新增帶時間的活動\n"
            "• 更新 [ID] [日期/名稱/時間] [新值] - 更新活動\n"
            "• 刪除 [ID] - 刪除活動\n\n"
            "時間格式範例：\n"
            "• 新增 2025-01-15 主日崇拜\n"
            "• 新增 2025-01-15 09:00-11:00 主日崇拜"
        )
    message += "\n\nCommands: help, list, view all, add, update, delete"
    return message
