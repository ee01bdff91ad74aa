"""Grant cache with TTL support.

Caches the resolved role assignment of a user in a business unit so the
evaluator does not query the grant graph on every check. Entries expire
after a configurable TTL and are invalidated explicitly whenever
provisioning or membership changes touch them.
"""

import threading
import time
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Cache entry with TTL support.

    Attributes:
        value: The cached value.
        expires_at: Unix timestamp when this entry expires.
    """

    value: V
    expires_at: float


class GrantCache(Generic[V]):
    """Thread-safe TTL cache keyed by ``(user_id, business_unit_id)``."""

    def __init__(self, ttl_seconds: int = 300) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: Time-to-live for cache entries in seconds (default: 5 minutes).
        """
        self.ttl_seconds = ttl_seconds
        self._cache: dict[tuple[str, str], CacheEntry[V]] = {}
        self._lock = threading.RLock()

    def get(self, user_id: str, business_unit_id: str) -> V | None:
        """Get a cached grant.

        Args:
            user_id: User ID.
            business_unit_id: Business unit ID.

        Returns:
            Cached value if found and not expired, None otherwise.
        """
        key = (user_id, business_unit_id)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if time.monotonic() > entry.expires_at:
                del self._cache[key]
                return None
            return entry.value

    def set(self, user_id: str, business_unit_id: str, value: V) -> None:
        """Store a resolved grant.

        Args:
            user_id: User ID.
            business_unit_id: Business unit ID.
            value: Value to cache.
        """
        expires_at = time.monotonic() + self.ttl_seconds
        with self._lock:
            self._cache[(user_id, business_unit_id)] = CacheEntry(value=value, expires_at=expires_at)

    def invalidate_user(self, user_id: str) -> None:
        """Drop every entry of a user."""
        with self._lock:
            for key in [key for key in self._cache if key[0] == user_id]:
                del self._cache[key]

    def invalidate_business_unit(self, business_unit_id: str) -> None:
        """Drop every entry of a business unit."""
        with self._lock:
            for key in [key for key in self._cache if key[1] == business_unit_id]:
                del self._cache[key]

    def invalidate_all(self) -> None:
        """Clear entire cache.

        Used after role grants change, since any assignment may reference
        the changed role.
        """
        with self._lock:
            self._cache.clear()

    def cleanup_expired(self) -> int:
        """Remove all expired entries from cache.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = time.monotonic()
            expired = [key for key, entry in self._cache.items() if now > entry.expires_at]
            for key in expired:
                del self._cache[key]
            return len(expired)

    def size(self) -> int:
        """Get current cache size."""
        with self._lock:
            return len(self._cache)
