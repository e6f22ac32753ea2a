"""Expiring key/value store behind the rate limiter and CSRF protector.

Entries carry an absolute expiry time. They expire lazily on access and in
bulk through ``sweep``, which the API runs periodically.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

Clock = Callable[[], float]


@dataclass(frozen=True)
class StoreEntry:
    """A stored value and the epoch second after which it is gone."""

    value: Any
    expires_at: float


class ExpiringStore(Protocol):
    """Storage interface used by the security guards."""

    clock: Clock

    def get(self, key: str) -> StoreEntry | None:
        """Return the live entry for key, or None if absent or expired."""
        ...

    def set(self, key: str, value: Any, expires_at: float) -> None:
        """Store value under key until expires_at."""
        ...

    def expire(self, key: str) -> None:
        """Remove key immediately."""
        ...

    def sweep(self) -> int:
        """Remove every expired entry and return how many were removed."""
        ...


class InMemoryStore:
    """Process-wide dictionary store.

    Safe to share between request handlers and the sweep task. An entry is
    expired once the clock has passed its ``expires_at``.

    Attributes:
        clock: Returns the current time in epoch seconds.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        self.clock = clock
        self._entries: dict[str, StoreEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> StoreEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.clock() > entry.expires_at:
                del self._entries[key]
                return None
            return entry

    def set(self, key: str, value: Any, expires_at: float) -> None:
        with self._lock:
            self._entries[key] = StoreEntry(value=value, expires_at=expires_at)

    def expire(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now > e.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)
