"""Rate limiter interfaces.

The quote endpoints depend on this abstraction (not the concrete
implementation) so the in-process counter can be replaced by a shared
counter store (e.g., Redis) when running several instances.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters keyed by caller identity."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it may proceed.

        Args:
            key: Unique identifier of the caller (verified user id).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    def allow(self, key: str) -> bool:
        """Shorthand for ``consume(key).allowed``."""
        return self.consume(key).allowed
