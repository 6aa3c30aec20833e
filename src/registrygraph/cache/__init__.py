"""Result and range caches.

Brief: Defines the ResultCachePlugin interface, the in-memory and disabled
result caches, and the IP range-containment cache.

Inputs:
  - None

Outputs:
  - None
"""

from __future__ import annotations

from .base import DEFAULT_CACHE_TTL, CacheEntry, ResultCachePlugin, cache_aliases
from .in_memory_ttl import ResultCache
from .null import NullResultCache
from .range_cache import RangeCache, RangeRecord
from .registry import load_result_cache

__all__ = [
    "DEFAULT_CACHE_TTL",
    "CacheEntry",
    "NullResultCache",
    "RangeCache",
    "RangeRecord",
    "ResultCache",
    "ResultCachePlugin",
    "cache_aliases",
    "load_result_cache",
]
