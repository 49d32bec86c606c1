"""Request authentication for the HTTP API.

Two credentials exist: the cron API key (scheduler jobs and admin scripts)
and the ``X-Line-User-Id`` header checked against the LINE allow-list.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Request

from src.bot.line_bot import is_authorized_user
from src.config import Settings
from src.core.errors import ConfigurationError, ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)


def extract_api_key(request: Request) -> str | None:
    """``X-API-Key`` header, ``Authorization: Bearer``, or ``api_key`` query."""
    key = request.headers.get("x-api-key")
    if key:
        return key
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return request.query_params.get("api_key") or None


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _key_matches(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def require_cron_key(request: Request) -> None:
    """FastAPI dependency for scheduler-only endpoints."""
    supplied = extract_api_key(request)
    if not supplied:
        raise UnauthorizedError("API key is required", code="MISSING_API_KEY")

    expected = _settings(request).CRON_API_KEY
    if not expected:
        raise ConfigurationError(
            "Cron API key not configured on server", code="API_KEY_NOT_CONFIGURED",
        )
    if not _key_matches(supplied, expected):
        logger.warning("Invalid cron API key on %s", request.url.path)
        raise ForbiddenError("Invalid API key", code="INVALID_API_KEY")


def require_admin(request: Request) -> str:
    """FastAPI dependency for activity mutations.

    Accepts a valid cron API key, otherwise an allow-listed LINE user id.
    Returns the acting identity for logging.
    """
    supplied = extract_api_key(request)
    if supplied:
        require_cron_key(request)
        return "cron"

    user_id = request.headers.get("x-line-user-id")
    if not user_id:
        raise UnauthorizedError("LINE User ID is required", code="MISSING_USER_ID")

    if not is_authorized_user(user_id, _settings(request).AUTHORIZED_USER_IDS):
        logger.info("Access DENIED: user=%s %s %s", user_id, request.method, request.url.path)
        raise ForbiddenError(
            "Access denied. You are not authorized to perform this action.",
            code="ACCESS_DENIED",
        )
    logger.info("Access GRANTED: user=%s %s %s", user_id, request.method, request.url.path)
    return user_id
