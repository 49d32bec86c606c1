"""LINE Messaging API integration: push, reply, broadcast and webhook signatures.

Each call opens a short-lived ``httpx.AsyncClient`` with the configured
timeout. Failures are raised as the Upstream* error family so the retry
policy can tell a rate limit from an exhausted monthly quota without
reading message text.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging

import httpx

from src.core.errors import (
    UpstreamClientError,
    UpstreamError,
    UpstreamQuotaExhausted,
    UpstreamRateLimited,
    UpstreamServerError,
    UpstreamTimeout,
    ValidationError,
)

logger = logging.getLogger(__name__)

_API_BASE = "https://api.line.me/v2/bot/message"
PUSH_URL = f"{_API_BASE}/push"
REPLY_URL = f"{_API_BASE}/reply"
BROADCAST_URL = f"{_API_BASE}/broadcast"

MAX_TEXT_LENGTH = 5000
_DEFAULT_TIMEOUT_SECONDS = 10.0


def verify_signature(channel_secret: str, body: bytes, signature: str | None) -> bool:
    """Check ``X-Line-Signature``: base64(HMAC-SHA256(secret, raw body))."""
    if not channel_secret or not signature:
        return False
    mac = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(mac).decode("utf-8")
    return hmac.compare_digest(expected, signature)


def _text_messages(text: str) -> list[dict]:
    if not text or not text.strip():
        raise ValidationError("Message text must not be empty")
    if len(text) > MAX_TEXT_LENGTH:
        logger.warning("Truncating %d-char message to %d", len(text), MAX_TEXT_LENGTH)
        text = text[:MAX_TEXT_LENGTH]
    return [{"type": "text", "text": text}]


def classify_response(status_code: int, body: str) -> UpstreamError:
    """Map a non-2xx LINE response onto the error taxonomy."""
    detail = f"LINE API {status_code}: {body[:200]}"
    if status_code == 429:
        if "monthly limit" in body.lower():
            return UpstreamQuotaExhausted(detail, http_status=status_code)
        return UpstreamRateLimited(detail, http_status=status_code)
    if 400 <= status_code < 500:
        return UpstreamClientError(detail, http_status=status_code)
    return UpstreamServerError(detail, http_status=status_code)


class LineAPI:
    """Thin async wrapper over the three LINE message endpoints."""

    def __init__(
        self,
        channel_access_token: str,
        timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._token = channel_access_token
        self._timeout = timeout_seconds

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    async def _post(self, url: str, payload: dict) -> None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=payload, headers=self._headers)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"LINE API timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise UpstreamServerError(f"LINE API unreachable: {exc}") from exc

        if resp.status_code >= 400:
            raise classify_response(resp.status_code, resp.text)

    async def push_message(self, to: str, text: str) -> None:
        await self._post(PUSH_URL, {"to": to, "messages": _text_messages(text)})
        logger.info("Pushed message to %s", to)

    async def reply_message(self, reply_token: str, text: str) -> None:
        await self._post(
            REPLY_URL, {"replyToken": reply_token, "messages": _text_messages(text)},
        )
        logger.info("Replied via reply token")

    async def broadcast_message(self, text: str) -> None:
        await self._post(BROADCAST_URL, {"messages": _text_messages(text)})
        logger.info("Broadcast message sent")
