"""Input sanitization and format checks shared by the wizard and the API."""

from __future__ import annotations

import re

MAX_INPUT_LENGTH = 1000
MIN_REASON_LENGTH = 3
MAX_REASON_LENGTH = 500

# RFC 4122 textual form: version 1-5, variant 10xx
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_PRICE_PATTERN = re.compile(r"^\d+(\.\d{1,2})?$")
_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)


def _sanitize_once(value: str) -> str:
    value = value.strip()
    value = _ANGLE_BRACKETS.sub("", value)
    value = _JAVASCRIPT_SCHEME.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    return value[:MAX_INPUT_LENGTH]


def sanitize_input(value: object) -> str:
    """Strip markup and script markers from user input for safe storage.

    Removes angle brackets, ``javascript:`` markers and inline event-handler
    patterns such as ``onclick=``, then truncates to 1000 characters. Passes
    repeat until the text stops changing, so removals that splice a new
    marker together (``javajavascript:script:``) are caught and the result
    is stable under re-sanitization.

    Args:
        value: Raw input. Anything that is not a non-empty string yields "".

    Returns:
        The sanitized text.
    """
    if not value or not isinstance(value, str):
        return ""
    current = value
    while True:
        cleaned = _sanitize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def is_valid_uuid(value: object) -> bool:
    """Check that value is a UUID in RFC 4122 textual form."""
    return isinstance(value, str) and bool(_UUID_PATTERN.fullmatch(value))


def validate_cancellation_reason(reason: object) -> str | None:
    """Sanitize a cancellation reason and check its length.

    Returns:
        The sanitized reason, or None if it is missing or its sanitized
        length falls outside [3, 500].
    """
    if not reason or not isinstance(reason, str):
        return None
    sanitized = sanitize_input(reason)
    if not MIN_REASON_LENGTH <= len(sanitized) <= MAX_REASON_LENGTH:
        return None
    return sanitized


def validate_price(price: object) -> bool:
    """Check a non-negative amount with at most two decimals, e.g. "12.50"."""
    return isinstance(price, str) and bool(_PRICE_PATTERN.fullmatch(price.strip()))


__all__ = [
    "MAX_INPUT_LENGTH",
    "MAX_REASON_LENGTH",
    "MIN_REASON_LENGTH",
    "is_valid_uuid",
    "sanitize_input",
    "validate_cancellation_reason",
    "validate_price",
]
