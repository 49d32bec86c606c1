"""Retry/backoff policy for outbound LINE calls.

The dispatch context decides how patient we are: a webhook reply must finish
before LINE gives up on the inbound request, while a cron-triggered reminder
can afford to wait out a rate limit.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from src.core.errors import (
    UpstreamClientError,
    UpstreamQuotaExhausted,
    UpstreamRateLimited,
    UpstreamServerError,
    UpstreamTimeout,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DispatchContext(enum.Enum):
    WEBHOOK = "webhook"
    BACKGROUND = "background"


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    webhook_base_delay_ms: int = 200
    webhook_max_delay_ms: int = 1000
    background_base_delay_ms: int = 1000
    background_max_delay_ms: int = 10000


def next_delay(
    attempt: int,
    context: DispatchContext,
    policy: RetryPolicy | None = None,
) -> float:
    """Seconds to wait after failed ``attempt`` (1-based).

    Webhook: capped linear (base * attempt). Background: capped exponential
    (base * 2**(attempt-1)).
    """
    policy = policy or RetryPolicy()
    attempt = max(attempt, 1)
    if context is DispatchContext.WEBHOOK:
        delay_ms = min(policy.webhook_max_delay_ms, policy.webhook_base_delay_ms * attempt)
    else:
        delay_ms = min(
            policy.background_max_delay_ms,
            policy.background_base_delay_ms * (2 ** (attempt - 1)),
        )
    return delay_ms / 1000


def should_retry(
    exc: Exception,
    attempt: int,
    context: DispatchContext,
    max_attempts: int,
) -> bool:
    if attempt >= max_attempts:
        return False
    if isinstance(exc, UpstreamQuotaExhausted):
        return False
    if isinstance(exc, UpstreamRateLimited):
        # First 429 inside a webhook fails fast
        return not (context is DispatchContext.WEBHOOK and attempt == 1)
    if isinstance(exc, UpstreamClientError):
        return False
    return isinstance(exc, (UpstreamServerError, UpstreamTimeout))


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    context: DispatchContext,
    name: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    attempts = max(1, policy.max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except Exception as exc:
            if not should_retry(exc, attempt, context, attempts):
                raise
            delay = next_delay(attempt, context, policy)
            logger.warning(
                "%s failed (attempt %d/%d, %s), retrying in %.2fs",
                name, attempt, attempts, type(exc).__name__, delay,
            )
            await sleep(delay)
    raise RuntimeError("retry attempts exhausted")
