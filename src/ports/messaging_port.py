"""Messaging port — abstract interface for sending chat messages.

Core modules depend on this protocol, never on the LINE SDK or HTTP client.
"""

from __future__ import annotations

from typing import Protocol


class MessagingPort(Protocol):
    """Abstract messaging interface used by the bot and the reminder engine."""

    async def send(self, recipient_id: str, text: str) -> None: ...

    async def reply(self, reply_token: str, text: str) -> None: ...

    async def broadcast(self, text: str) -> None: ...

    async def reply_or_push(
        self, reply_token: str | None, fallback_user_id: str | None, text: str,
    ) -> None: ...
