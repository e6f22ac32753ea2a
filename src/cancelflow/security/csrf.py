"""CSRF tokens bound to a client session."""

from __future__ import annotations

import hmac
import logging
import secrets

from starlette.requests import Request

from cancelflow.security.store import ExpiringStore

logger = logging.getLogger(__name__)

CSRF_HEADER = "x-csrf-token"
DEFAULT_TOKEN_TTL = 30 * 60


def get_client_ip(request: Request) -> str:
    """Extract client IP from request headers with proxy support.

    Checks X-Forwarded-For and X-Real-IP headers for proxied requests.
    Falls back to direct client host.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First hop is the originating client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"


def session_key(request: Request) -> str:
    """Identify the client session a token and a rate limit belong to.

    User agent plus address is easy to share and to spoof. Replace this
    function when a real session identifier is available.
    """
    user_agent = request.headers.get("user-agent", "unknown")
    return f"{user_agent}-{get_client_ip(request)}"


class CsrfProtector:
    """Issues and checks per-session CSRF tokens.

    A token is 32 random bytes in hex. It stays valid for ``ttl`` seconds and
    is not consumed by a successful check, so one token covers every
    submission of a wizard run.

    Attributes:
        store: Backing store, keyed by session.
        ttl: Token lifetime in seconds.
    """

    def __init__(self, store: ExpiringStore, ttl: int = DEFAULT_TOKEN_TTL) -> None:
        self.store = store
        self.ttl = ttl

    @staticmethod
    def generate() -> str:
        """Return a fresh random token."""
        return secrets.token_hex(32)

    def issue(self, session_id: str) -> str:
        """Generate a token for session_id, replacing any earlier one."""
        token = self.generate()
        self.store.set(session_id, token, self.store.clock() + self.ttl)
        return token

    def validate(self, session_id: str, token: str | None) -> bool:
        """Check token against the one issued to session_id.

        Expired tokens are removed and never match. Header values are
        compared as bytes, so non-ASCII input is a mismatch rather than an
        error.
        """
        if not token:
            return False
        entry = self.store.get(session_id)
        if entry is None:
            return False
        return hmac.compare_digest(
            entry.value.encode(), token.encode("utf-8", "surrogateescape")
        )

    def sweep(self) -> int:
        """Drop expired tokens."""
        removed = self.store.sweep()
        if removed:
            logger.debug("Swept %d expired CSRF tokens", removed)
        return removed
