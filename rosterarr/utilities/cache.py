"""Bounded in-memory LRU cache.

Thread-safe key/value store with a fixed maximum entry count. The least
recently used entry (by get or set) is evicted when a new key is inserted
into a full cache.

The store knows nothing about TTLs. Callers store CacheEntry values with a
stored_at timestamp and decide freshness themselves, which lets success and
error entries share one structure with different lifetimes.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 500


def make_cache_key(*parts: Any) -> str:
    """Build a cache key by joining parts with ':'.

    Examples:
        >>> make_cache_key("423.l.1.t.2", "none", "default")
        '423.l.1.t.2:none:default'
    """
    return ":".join(str(p) for p in parts)


class LRUCache:
    """Least-recently-used cache guarded by a single lock."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._data: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: str) -> Any | None:
        """Return the value for key and mark it most recently used."""
        with self._lock:
            if key not in self._data:
                self._misses += 1
                return None
            self._data.move_to_end(key)
            self._hits += 1
            return self._data[key]

    def set(self, key: str, value: Any) -> None:
        """Insert or replace a value, evicting the LRU entry if full."""
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            elif len(self._data) >= self._max_entries:
                evicted, _ = self._data.popitem(last=False)
                self._evictions += 1
                logger.debug("[CACHE] Evicted %s", evicted)
            self._data[key] = value

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        with self._lock:
            if key not in self._data:
                return False
            del self._data[key]
            return True

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def keys(self) -> list[str]:
        """Snapshot of keys, least recently used first."""
        with self._lock:
            return list(self._data.keys())

    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            return {
                "size": len(self._data),
                "max_entries": self._max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        # Membership test does not count as a use
        with self._lock:
            return key in self._data
