"""Shared utilities."""

from rosterarr.utilities.cache import DEFAULT_MAX_ENTRIES, LRUCache, make_cache_key
from rosterarr.utilities.parsing import safe_float, short_id

__all__ = [
    "DEFAULT_MAX_ENTRIES",
    "LRUCache",
    "make_cache_key",
    "safe_float",
    "short_id",
]
