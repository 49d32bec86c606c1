"""LINE dispatch adapter — implements MessagingPort.

Wraps LineAPI with the retry policy for its dispatch context.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from src.core.errors import UpstreamError
from src.core.retry import DispatchContext, RetryPolicy, retry_async
from src.integrations.line_api import LineAPI

logger = logging.getLogger(__name__)


class LineDispatcher:
    """LINE implementation of MessagingPort."""

    def __init__(
        self,
        api: LineAPI,
        policy: RetryPolicy | None = None,
        context: DispatchContext = DispatchContext.BACKGROUND,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api = api
        self._policy = policy or RetryPolicy()
        self._context = context
        self._sleep = sleep

    @property
    def context(self) -> DispatchContext:
        return self._context

    async def _call(self, name: str, func: Callable[[], Awaitable[None]]) -> None:
        await retry_async(
            func,
            policy=self._policy,
            context=self._context,
            name=name,
            sleep=self._sleep,
        )

    async def send(self, recipient_id: str, text: str) -> None:
        await self._call("push", lambda: self._api.push_message(recipient_id, text))

    async def reply(self, reply_token: str, text: str) -> None:
        await self._call("reply", lambda: self._api.reply_message(reply_token, text))

    async def broadcast(self, text: str) -> None:
        await self._call("broadcast", lambda: self._api.broadcast_message(text))

    async def reply_or_push(
        self, reply_token: str | None, fallback_user_id: str | None, text: str,
    ) -> None:
        """Group/room path: reply token first, then push to the sender."""
        if reply_token:
            try:
                await self.reply(reply_token, text)
                return
            except UpstreamError as exc:
                if not fallback_user_id:
                    raise
                logger.warning("Reply failed (%s), falling back to push", exc.code)
        if not fallback_user_id:
            raise UpstreamError("No reply token or user id to respond to")
        await self.send(fallback_user_id, text)
