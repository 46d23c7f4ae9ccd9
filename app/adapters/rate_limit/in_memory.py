"""In-memory windowed rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and counters are lost on restart.
- A window opens on a key's first request and lasts ``window_seconds``; the
  next request after it elapses opens a fresh window with a count of 1.
- Stale entries are only overwritten on next use, never evicted.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    count: int
    reset_at: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class InMemoryRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per key inside a window opened on first use.

    The map of keys is guarded by a short-lived lock; each key's counter has
    its own lock, so callers with different keys never wait on each other
    while counting.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of requests per window.
            window_seconds: Window length in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._map_lock = threading.Lock()
        self._state_by_key: dict[str, _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _get_state(self, key: str, now: float) -> tuple[_WindowState, bool]:
        """Return the state for ``key``, creating it when absent.

        Returns:
            Tuple of (state, created) where ``created`` means this call opened
            the key's first window and already counted the request.
        """
        with self._map_lock:
            state = self._state_by_key.get(key)
            if state is None:
                state = _WindowState(count=1, reset_at=now + self._window_seconds)
                self._state_by_key[key] = state
                return state, True
            return state, False

    def _build_allowed_result(self, state: _WindowState) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - state.count),
            reset_at=int(math.ceil(state.reset_at)),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, state: _WindowState, now: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(state.reset_at)),
            retry_after_seconds=max(1, int(math.ceil(state.reset_at - now))),
        )

    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key``.

        A blocked request does not increase the stored count.

        Args:
            key: Unique identifier for rate limiting (verified user id).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        state, created = self._get_state(key, now)
        if created:
            return self._build_allowed_result(state)

        with state.lock:
            if now > state.reset_at:
                state.count = 1
                state.reset_at = now + self._window_seconds
                return self._build_allowed_result(state)

            if state.count < self._limit:
                state.count += 1
                return self._build_allowed_result(state)

            return self._build_blocked_result(state, now)

    def reset(self) -> None:
        """Forget every counter."""
        with self._map_lock:
            self._state_by_key.clear()
