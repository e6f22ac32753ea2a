"""Fixed-window rate limiter keyed by request scope and session."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from cancelflow.security.store import ExpiringStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Maximum requests per window.
        remaining: Requests left in the current window.
        reset_at: Epoch second at which the window ends.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float

    def headers(self) -> dict[str, str]:
        """X-RateLimit-* response headers describing this window."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }


class RateLimiter:
    """Counts requests per key in fixed windows.

    The first request for a key opens a window of ``window_seconds``. Within
    the window at most ``max_requests`` are allowed; once the window has
    passed the next request opens a fresh one.

    Example:
        >>> limiter = RateLimiter(InMemoryStore())
        >>> limiter.check("post:session", max_requests=10, window_seconds=900)
    """

    def __init__(self, store: ExpiringStore) -> None:
        self.store = store
        # Serializes the read-increment-write of a window
        self._lock = threading.Lock()

    def check(self, key: str, max_requests: int, window_seconds: int) -> RateLimitResult:
        """Record one request for key and report whether it is allowed.

        Rejected requests are not counted. Concurrent checks on one limiter
        never lose an increment.

        Args:
            key: Scope and session, e.g. "get:<session id>".
            max_requests: Requests allowed per window.
            window_seconds: Window length.

        Returns:
            The check outcome with the window's remaining budget.
        """
        with self._lock:
            entry = self.store.get(key)
            if entry is None:
                reset_at = self.store.clock() + window_seconds
                count = 0
            else:
                reset_at = entry.expires_at
                count = entry.value

            if count >= max_requests:
                logger.warning("Rate limit exceeded for %s", key)
                return RateLimitResult(
                    allowed=False, limit=max_requests, remaining=0, reset_at=reset_at
                )

            count += 1
            self.store.set(key, count, reset_at)
        return RateLimitResult(
            allowed=True,
            limit=max_requests,
            remaining=max_requests - count,
            reset_at=reset_at,
        )

    def sweep(self) -> int:
        """Drop windows that have ended."""
        removed = self.store.sweep()
        if removed:
            logger.debug("Swept %d expired rate-limit windows", removed)
        return removed
