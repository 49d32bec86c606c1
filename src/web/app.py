"""
Church Calendar Bot — HTTP application.

Routes:
    GET    /health
    POST   /api/webhook              LINE webhook (signature-checked)
    GET    /api/activities           public listing, optional ?month=&year=
    POST   /api/activities           admin
    PUT    /api/activities?id=       admin
    DELETE /api/activities?id=       admin
    POST   /api/reminders?type=      cron: monthly | weekly | daily | cleanup
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Awaitable, Callable, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from src.adapters.line_dispatcher import LineDispatcher
from src.bot.line_bot import LineBot
from src.config import Settings
from src.core.activity_service import ActivityService
from src.core.errors import ValidationError
from src.core.reminder_engine import ReminderEngine
from src.core.retry import DispatchContext, RetryPolicy
from src.data.db import ActivityDB, GroupDB
from src.integrations.line_api import LineAPI, verify_signature
from src.web.auth import require_admin, require_cron_key
from src.web.errors import error_response, register_error_handlers

logger = logging.getLogger(__name__)

REMINDER_TYPES = ("monthly", "weekly", "daily", "cleanup")


class ActivityPayload(BaseModel):
    """Request body for create/update. Field rules live in the service."""
    name: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None


def build_app(
    settings: Settings,
    *,
    activity_service: ActivityService | None = None,
    group_db: GroupDB | None = None,
    line_api: LineAPI | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> FastAPI:
    """Wire services from ``settings``; any collaborator may be injected."""
    if activity_service is None:
        activity_service = ActivityService(ActivityDB(settings.DATABASE_PATH), settings.TIMEZONE)
    if group_db is None:
        group_db = GroupDB(settings.DATABASE_PATH)
    if line_api is None:
        line_api = LineAPI(settings.LINE_CHANNEL_ACCESS_TOKEN, settings.LINE_API_TIMEOUT_SECONDS)

    policy = RetryPolicy(max_attempts=settings.LINE_RETRY_ATTEMPTS)
    bot = LineBot(
        activity_service,
        group_db,
        LineDispatcher(line_api, policy, DispatchContext.WEBHOOK, sleep=sleep),
        authorized_user_ids=settings.AUTHORIZED_USER_IDS,
        tz_name=settings.TIMEZONE,
    )
    engine = ReminderEngine(
        activity_service,
        LineDispatcher(line_api, policy, DispatchContext.BACKGROUND, sleep=sleep),
        group_db,
        tz_name=settings.TIMEZONE,
        group_send_delay=settings.GROUP_SEND_DELAY_SECONDS,
        sleep=sleep,
    )

    app = FastAPI(title="Church Calendar Bot")
    app.state.settings = settings
    app.state.activity_service = activity_service
    app.state.group_db = group_db
    app.state.bot = bot
    app.state.reminder_engine = engine
    register_error_handlers(app)

    # -----------------------------------------------------------------------
    # Health & webhook
    # -----------------------------------------------------------------------

    @app.get("/health", response_class=PlainTextResponse)
    def health() -> str:
        return "ok"

    @app.post("/api/webhook")
    async def webhook(request: Request):
        signature = request.headers.get("x-line-signature")
        if not signature:
            return error_response(401, "MISSING_SIGNATURE", "Missing LINE signature header")

        body = await request.body()
        if not verify_signature(settings.LINE_CHANNEL_SECRET, body, signature):
            logger.warning("Rejected webhook call with invalid signature")
            return error_response(401, "INVALID_SIGNATURE", "Invalid LINE signature")

        try:
            payload = json.loads(body or b"{}")
        except ValueError as exc:
            raise ValidationError("Request body must be JSON") from exc

        events = payload.get("events") if isinstance(payload, dict) else None
        if not events or not isinstance(events, list):
            return {"success": True, "message": "No events to process"}

        await bot.handle_events(events)
        return {"success": True, "message": "Webhook events processed"}

    # -----------------------------------------------------------------------
    # Activities
    # -----------------------------------------------------------------------

    @app.get("/api/activities")
    def list_activities(month: Optional[int] = None, year: Optional[int] = None):
        if month is not None:
            year = year or activity_service.today().year
            activities = activity_service.list_for_month(month, year)
        else:
            activities = activity_service.list_all()
        return {
            "success": True,
            "data": [a.to_dict() for a in activities],
            "count": len(activities),
        }

    @app.post("/api/activities", status_code=201)
    def create_activity(payload: ActivityPayload, actor: str = Depends(require_admin)):
        activity = activity_service.create(payload.model_dump())
        logger.info("Activity #%d created via API by %s", activity.id, actor)
        return {
            "success": True,
            "data": activity.to_dict(),
            "message": "Activity created successfully",
        }

    @app.put("/api/activities")
    def update_activity(
        payload: ActivityPayload,
        activity_id: Optional[int] = Query(None, alias="id"),
        actor: str = Depends(require_admin),
    ):
        if activity_id is None:
            raise ValidationError("Activity ID is required")
        activity = activity_service.update(activity_id, payload.model_dump(exclude_none=True))
        logger.info("Activity #%d updated via API by %s", activity.id, actor)
        return {
            "success": True,
            "data": activity.to_dict(),
            "message": "Activity updated successfully",
        }

    @app.delete("/api/activities")
    def delete_activity(
        activity_id: Optional[int] = Query(None, alias="id"),
        actor: str = Depends(require_admin),
    ):
        if activity_id is None:
            raise ValidationError("Activity ID is required")
        activity = activity_service.delete(activity_id)
        logger.info("Activity #%d deleted via API by %s", activity.id, actor)
        return {
            "success": True,
            "data": activity.to_dict(),
            "message": "Activity deleted successfully",
        }

    # -----------------------------------------------------------------------
    # Reminders (cron)
    # -----------------------------------------------------------------------

    @app.post("/api/reminders", dependencies=[Depends(require_cron_key)])
    async def reminders(
        reminder_type: Optional[str] = Query(None, alias="type"),
        window: str = "next",
    ):
        if reminder_type not in REMINDER_TYPES:
            return error_response(
                400,
                "INVALID_REMINDER_TYPE",
                "Type must be one of: " + ", ".join(REMINDER_TYPES),
            )

        if reminder_type == "cleanup":
            cleanup = activity_service.cleanup_old(settings.CLEANUP_DAYS_OLD)
            return {
                "success": True,
                "message": f"Cleaned up {cleanup.deleted_count} old activities",
                "data": {
                    "cutoff_date": cleanup.cutoff_date,
                    "deleted_count": cleanup.deleted_count,
                    "deleted": [a.to_dict() for a in cleanup.deleted],
                },
            }

        if reminder_type == "monthly":
            result = await engine.monthly_overview()
        elif reminder_type == "weekly":
            result = await engine.weekly_reminders(window="this" if window == "this" else "next")
        else:
            result = await engine.daily_reminders()

        if result.status == "no_activities":
            return {"success": True, "message": result.message, "data": None}
        return {
            "success": result.success,
            "message": f"{reminder_type.capitalize()} reminders sent",
            "data": result.to_dict(),
        }

    return app
