"""Rate limiting of mutating quote calls.

This module wires the rate limiting adapter into the service layer.

Design goals:
- Minimal coupling: services depend on the abstract limiter only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind the
  abstract interface.

Rate limiting strategy:
- Budget per verified user id. Unauthenticated calls never reach the
  limiter because authentication runs first.
"""

from __future__ import annotations

import logging

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryRateLimiter
from app.core.config import settings
from app.core.errors import ErrorDetails, RateLimitAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again later."

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
        )
        _limiter_config = config

    return _limiter


def enforce_rate_limit(limiter: AbstractRateLimiter, user_id: str) -> RateLimitResult:
    """Count one mutating request for ``user_id``.

    Args:
        limiter: Limiter holding the per-user budgets.
        user_id: Verified identity of the caller.

    Returns:
        RateLimitResult of the allowed request.

    Raises:
        RateLimitAppError: When the caller exhausted the current window.
    """

    result = limiter.consume(user_id)
    key_hash = hash_identifier(user_id)

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return result

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "retry_after_s": retry_after,
        },
    )
    raise RateLimitAppError(
        code="rate_limited",
        message=RATE_LIMITED_MESSAGE,
        details={
            "retry_after": retry_after,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
        },
    )


def build_rate_limit_headers(details: ErrorDetails | None) -> dict[str, str]:
    """Build Retry-After / X-RateLimit-* headers for a throttled response."""

    if not details or not settings.app.rate_limit_include_headers:
        return {}

    headers: dict[str, str] = {}
    if "retry_after" in details:
        headers["Retry-After"] = str(int(details["retry_after"]))
    if "limit" in details:
        headers["X-RateLimit-Limit"] = str(details["limit"])
    if "remaining" in details:
        headers["X-RateLimit-Remaining"] = str(details["remaining"])
    if "reset_at" in details:
        headers["X-RateLimit-Reset"] = str(details["reset_at"])
    return headers
