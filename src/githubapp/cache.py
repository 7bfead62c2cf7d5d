"""Pluggable caches for installation clients.

The resolver only needs ``get`` and ``set``. Locking around those calls is
the resolver's job; ``ExpiringMapCache`` is additionally safe on its own.
"""

import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

INSTALLATION_KEY_PREFIX = "installation/"


def cache_key(login: str) -> str:
    """Cache key of the installation for a GitHub login."""
    return INSTALLATION_KEY_PREFIX + login


class Cache(Protocol):
    """Minimal cache capability used by the installation resolver."""

    def get(self, key: str) -> Any | None:
        """Return the stored object, or None if there is none."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store an object under key."""
        ...


class NoCache:
    """A cache that never holds anything."""

    def get(self, key: str) -> None:
        return None

    def set(self, key: str, value: Any) -> None:
        pass


class ExpiringMapCache:
    """In-memory map whose entries expire after a default duration.

    ``default_expiration`` of None (or <= 0) keeps entries forever. Expired
    entries are never returned, and are purged from the map at most once per
    ``cleanup_interval`` seconds, lazily on the next access.
    """

    def __init__(
        self,
        default_expiration: float | None = 3600,
        cleanup_interval: float | None = 600,
        clock: Callable[[], float] = time.monotonic,
    ):
        if default_expiration is not None and default_expiration <= 0:
            default_expiration = None
        self.default_expiration = default_expiration
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._items: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)
            entry = self._items.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and now >= expires_at:
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)
            expires_at = None
            if self.default_expiration is not None:
                expires_at = now + self.default_expiration
            self._items[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def flush(self) -> None:
        with self._lock:
            self._items.clear()

    def delete_expired(self) -> None:
        with self._lock:
            self._delete_expired(self._clock())

    def __len__(self) -> int:
        """Number of stored items, expired ones included until purged."""
        with self._lock:
            return len(self._items)

    def _maybe_cleanup(self, now: float) -> None:
        if self.cleanup_interval is None or self.cleanup_interval <= 0:
            return
        if now - self._last_cleanup >= self.cleanup_interval:
            self._delete_expired(now)

    def _delete_expired(self, now: float) -> None:
        expired = [
            k
            for k, (_, expires_at) in self._items.items()
            if expires_at is not None and now >= expires_at
        ]
        for k in expired:
            del self._items[k]
        self._last_cleanup = now
