"""
Church Calendar Bot — LINE webhook event handling.

LINE is the only chat interface. Everyone may read the calendar; only users
on the allow-list may create, update or delete. Messages outside the known
command set get no reply so the bot stays quiet in group chats.
"""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Any

from src.core import date_window, formatter
from src.core.activity_service import ActivityService
from src.core.command_parser import (
    Command,
    CreateActivity,
    DeleteActivity,
    InvalidCommand,
    ShowHelp,
    Unauthorized,
    UnknownCommand,
    UpdateActivity,
    ViewSpecificMonth,
    parse_command,
)
from src.core.errors import ConflictError, NotFoundError, ValidationError
from src.data.db import GroupDB
from src.ports.messaging_port import MessagingPort

logger = logging.getLogger(__name__)

_MUTATING = (CreateActivity, UpdateActivity, DeleteActivity, Unauthorized)


def is_authorized_user(user_id: str | None, allowed: list[str]) -> bool:
    """An empty allow-list authorizes everyone."""
    if not allowed:
        return True
    return bool(user_id) and user_id in allowed


class LineBot:
    """Routes webhook events to the calendar and replies over LINE."""

    def __init__(
        self,
        activity_service: ActivityService,
        group_db: GroupDB,
        messenger: MessagingPort,
        authorized_user_ids: list[str] | None = None,
        tz_name: str = date_window.DEFAULT_TIMEZONE,
    ) -> None:
        self._activities = activity_service
        self._groups = group_db
        self._messenger = messenger
        self._authorized = list(authorized_user_ids or [])
        self._tz_name = tz_name

    # -----------------------------------------------------------------------
    # Event routing
    # -----------------------------------------------------------------------

    async def handle_events(self, events: list[dict[str, Any]]) -> None:
        """Process events one by one. A failing event is logged and skipped."""
        for event in events:
            if not isinstance(event, dict):
                logger.warning("Skipping malformed event: %r", event)
                continue
            try:
                await self.handle_event(event)
            except Exception:
                logger.exception("Error processing %s event", event.get("type", "unknown"))

    async def handle_event(self, event: dict[str, Any]) -> None:
        event_type = event.get("type")
        if event_type == "message":
            await self._on_message(event)
        elif event_type == "follow":
            await self._on_follow(event)
        elif event_type == "unfollow":
            logger.info("User unfollowed: %s", event.get("source", {}).get("userId"))
        elif event_type == "join":
            await self._on_join(event)
        elif event_type == "leave":
            await self._on_leave(event)
        else:
            logger.info("Unhandled event type: %s", event_type)

    async def _on_message(self, event: dict[str, Any]) -> None:
        message = event.get("message") or {}
        if message.get("type") != "text":
            return

        source = event.get("source") or {}
        if source.get("type") not in ("user", "group", "room"):
            logger.info("Unknown source type: %s", source.get("type"))
            return

        user_id = source.get("userId")
        authorized = is_authorized_user(user_id, self._authorized)
        command = parse_command(
            message.get("text", ""), is_authorized=authorized, today=self._activities.today(),
        )

        if isinstance(command, _MUTATING):
            granted = not isinstance(command, Unauthorized)
            logger.info(
                "Access %s: user=%s command=%s",
                "GRANTED" if granted else "DENIED", user_id, command.kind,
            )

        reply = self.execute_command(command, is_authorized=authorized)
        if reply is None:
            return
        await self._respond(event, reply)

    async def _on_follow(self, event: dict[str, Any]) -> None:
        user_id = (event.get("source") or {}).get("userId")
        logger.info("New follower: %s", user_id)
        if user_id:
            await self._messenger.send(user_id, formatter.welcome_message())

    async def _on_join(self, event: dict[str, Any]) -> None:
        source = event.get("source") or {}
        group_id = source.get("groupId")
        if source.get("type") != "group" or not group_id:
            logger.info("Joined a %s, not registering for reminders", source.get("type"))
            return
        self._groups.add_group(group_id)
        reply_token = event.get("replyToken")
        if reply_token:
            await self._messenger.reply(reply_token, formatter.welcome_message())

    async def _on_leave(self, event: dict[str, Any]) -> None:
        group_id = (event.get("source") or {}).get("groupId")
        if group_id:
            self._groups.remove_group(group_id)

    async def _respond(self, event: dict[str, Any], text: str) -> None:
        """Users get a push; groups and rooms get a reply with push fallback."""
        source = event.get("source") or {}
        user_id = source.get("userId")
        if source.get("type") == "user":
            await self._messenger.send(user_id, text)
        else:
            await self._messenger.reply_or_push(event.get("replyToken"), user_id, text)

    # -----------------------------------------------------------------------
    # Command execution
    # -----------------------------------------------------------------------

    def execute_command(self, command: Command, is_authorized: bool = False) -> str | None:
        """Run a parsed command and return the reply text, or None for silence."""
        if isinstance(command, UnknownCommand):
            return None
        if isinstance(command, ShowHelp):
            return formatter.help_message(is_authorized)
        if isinstance(command, InvalidCommand):
            return command.hint
        if isinstance(command, Unauthorized):
            return formatter.unauthorized_text(command.action)

        try:
            return self._execute(command)
        except ValidationError as exc:
            return formatter.validation_text(exc.errors)
        except NotFoundError:
            return formatter.NOT_FOUND_TEXT
        except ConflictError:
            return formatter.DUPLICATE_TEXT
        except Exception:
            logger.exception("Command %s failed", command.kind)
            return formatter.GENERIC_FAILURE_TEXT

    def _execute(self, command: Command) -> str:
        now = datetime.combine(self._activities.today(), time())

        if isinstance(command, CreateActivity):
            activity = self._activities.create(command.model_dump(exclude={"kind"}))
            return formatter.format_single(activity, "create")

        if isinstance(command, UpdateActivity):
            activity = self._activities.update(command.activity_id, command.patch())
            return formatter.format_single(activity, "update")

        if isinstance(command, DeleteActivity):
            activity = self._activities.delete(command.activity_id)
            return formatter.format_single(activity, "delete")

        if isinstance(command, ViewSpecificMonth):
            activities = self._activities.list_for_month(command.month, command.year)
            return formatter.format_month_view(command.month, command.year, activities)

        windows = {
            "view_this_month": lambda: date_window.this_month_window(now, self._tz_name),
            "view_next_month": lambda: date_window.next_month_window(now, self._tz_name),
            "view_this_week": lambda: date_window.this_week(now, self._tz_name),
            "view_next_week": lambda: date_window.next_week(now, self._tz_name),
        }
        if command.kind in windows:
            activities = self._activities.list_for_window(windows[command.kind]())
        else:
            activities = self._activities.list_all()
        return formatter.format_view(command.kind, activities)
