"""
Expiring in-memory token cache.

Holds identity tokens keyed by session id and privilege tokens keyed by
session id + vehicle. Entries live for the lifetime of the process only.
"""

import threading
import time
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 10 * 60


class ExpiringStore(Generic[T]):
    """
    Thread-safe key/value store with a per-entry time-to-live.

    Expired entries are never returned; they are evicted lazily on read or
    in bulk through ``purge_expired``.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (value, expires_at); tuples are replaced, never mutated
        self._entries: Dict[str, Tuple[T, float]] = {}

    def put(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, replacing any existing entry."""
        if ttl is None:
            ttl = self.default_ttl
        expires_at = self._clock() + ttl
        with self._lock:
            self._entries[key] = (value, expires_at)

    def get(self, key: str) -> Optional[T]:
        """Return the value for ``key``, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None

            return value

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def privilege_token_key(session_id: str, token_id: int) -> str:
    """Cache key of the privilege token for one (session, vehicle) pair."""
    return f"privilegeToken_{session_id}_{token_id}"
