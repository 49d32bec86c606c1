"""
Church Calendar Bot — Reminder engine.

One run per cron trigger:
    compute window -> fetch activities -> (nothing? stop) -> format
    -> broadcast to all followers -> fan out to registered groups

Group sends are sequential with a fixed delay to stay under LINE's rate
limit. One failing group never stops the rest, but an exhausted monthly
quota does: every group not yet attempted is recorded as ``error="quota"``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, time
from typing import Awaitable, Callable

from src.core import date_window
from src.core.activity_service import ActivityService
from src.core.errors import UpstreamQuotaExhausted
from src.core.formatter import empty_text_for, format_reminder
from src.data.db import GroupDB
from src.data.models import Activity, ReminderGroup
from src.ports.messaging_port import MessagingPort

logger = logging.getLogger(__name__)

QUOTA_ERROR = "quota"


@dataclass
class DispatchResult:
    success: bool
    error: str | None = None


@dataclass
class GroupSendResult:
    success: bool
    group_id: str
    group_name: str | None = None
    error: str | None = None


@dataclass
class ReminderResult:
    success: bool
    status: str                       # "sent" | "no_activities"
    activities_count: int
    message: str
    broadcast_result: DispatchResult | None = None
    group_results: list[GroupSendResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class ReminderEngine:
    """Builds reminder messages and fans them out to users and groups."""

    def __init__(
        self,
        activity_service: ActivityService,
        messenger: MessagingPort,
        group_db: GroupDB,
        tz_name: str = date_window.DEFAULT_TIMEZONE,
        group_send_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._activities = activity_service
        self._messenger = messenger
        self._groups = group_db
        self._tz_name = tz_name
        self._group_send_delay = group_send_delay
        self._sleep = sleep

    def _now(self) -> datetime:
        # Same "today" as the past-date rule and cleanup
        return datetime.combine(self._activities.today(), time())

    # -- Triggers ---------------------------------------------------------

    async def monthly_overview(self) -> ReminderResult:
        window = date_window.this_month_window(self._now(), self._tz_name)
        activities = self._activities.list_for_window(window)
        return await self._run(activities, "monthly", empty_text_for("本月"))

    async def weekly_reminders(self, window: str = "next") -> ReminderResult:
        """Upcoming Sunday..Saturday by default; ``window="this"`` for the current week."""
        if window == "this":
            week = date_window.this_week(self._now(), self._tz_name)
            kind, label = "this_week", "本週"
        else:
            week = date_window.next_week(self._now(), self._tz_name)
            kind, label = "weekly", "下週"
        activities = self._activities.list_for_window(week)
        return await self._run(activities, kind, empty_text_for(label))

    async def daily_reminders(self) -> ReminderResult:
        window = date_window.tomorrow_window(self._now(), self._tz_name)
        activities = self._activities.list_for_window(window)
        return await self._run(activities, "daily", empty_text_for("明天"))

    async def custom_reminder(
        self, activities: list[Activity], kind: str = "custom",
    ) -> ReminderResult:
        return await self._run(activities, kind, empty_text_for(""))

    async def _run(self, activities: list[Activity], kind: str, empty_text: str) -> ReminderResult:
        if not activities:
            logger.info("No activities for %s reminder, nothing sent", kind)
            return ReminderResult(
                success=True,
                status="no_activities",
                activities_count=0,
                message=empty_text,
            )

        message = format_reminder(activities, kind)
        broadcast_result = await self._broadcast(message)
        group_results = await self.send_to_groups(message)

        success = broadcast_result.success or any(r.success for r in group_results)
        logger.info(
            "%s reminder: %d activities, broadcast=%s, groups %d/%d",
            kind,
            len(activities),
            broadcast_result.success,
            sum(r.success for r in group_results),
            len(group_results),
        )
        return ReminderResult(
            success=success,
            status="sent",
            activities_count=len(activities),
            message=message,
            broadcast_result=broadcast_result,
            group_results=group_results,
        )

    # -- Dispatch ---------------------------------------------------------

    async def _broadcast(self, message: str) -> DispatchResult:
        """Quota exhaustion is recorded; any other failure propagates."""
        try:
            await self._messenger.broadcast(message)
        except UpstreamQuotaExhausted:
            logger.warning("Broadcast skipped: monthly message quota exhausted")
            return DispatchResult(success=False, error=QUOTA_ERROR)
        return DispatchResult(success=True)

    def _active_groups(self) -> list[ReminderGroup]:
        try:
            return self._groups.list_active_groups()
        except Exception:
            logger.exception("Could not load reminder groups, sending broadcast only")
            return []

    async def send_to_groups(self, message: str) -> list[GroupSendResult]:
        results: list[GroupSendResult] = []
        quota_exhausted = False

        for index, group in enumerate(self._active_groups()):
            if quota_exhausted:
                results.append(GroupSendResult(
                    success=False, group_id=group.group_id,
                    group_name=group.group_name, error=QUOTA_ERROR,
                ))
                continue

            if index > 0 and self._group_send_delay > 0:
                await self._sleep(self._group_send_delay)

            try:
                await self._messenger.send(group.group_id, message)
            except UpstreamQuotaExhausted:
                logger.warning(
                    "Quota exhausted at group %s, skipping remaining groups", group.group_id,
                )
                quota_exhausted = True
                results.append(GroupSendResult(
                    success=False, group_id=group.group_id,
                    group_name=group.group_name, error=QUOTA_ERROR,
                ))
            except Exception as exc:
                logger.warning("Reminder to group %s failed: %s", group.group_id, exc)
                results.append(GroupSendResult(
                    success=False, group_id=group.group_id,
                    group_name=group.group_name, error=str(exc),
                ))
            else:
                results.append(GroupSendResult(
                    success=True, group_id=group.group_id, group_name=group.group_name,
                ))

        return results
