"""Request guards and input hygiene for the cancellation API."""

from cancelflow.security.csrf import (
    CSRF_HEADER,
    CsrfProtector,
    get_client_ip,
    session_key,
)
from cancelflow.security.rate_limit import RateLimiter, RateLimitResult
from cancelflow.security.sanitize import (
    is_valid_uuid,
    sanitize_input,
    validate_cancellation_reason,
    validate_price,
)
from cancelflow.security.store import ExpiringStore, InMemoryStore, StoreEntry

__all__ = [
    "CSRF_HEADER",
    "CsrfProtector",
    "ExpiringStore",
    "InMemoryStore",
    "RateLimitResult",
    "RateLimiter",
    "StoreEntry",
    "get_client_ip",
    "is_valid_uuid",
    "sanitize_input",
    "session_key",
    "validate_cancellation_reason",
    "validate_price",
]
