from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Tuple

from registrygraph.cache.backends.ttl_store import TTLStore
from registrygraph.errors import QueryError
from registrygraph.items import Item, QueryIdentity

from .base import DEFAULT_CACHE_TTL, CacheEntry, ResultCachePlugin, cache_aliases

logger = logging.getLogger(__name__)


@cache_aliases("in_memory_ttl", "memory", "ttl")
class ResultCache(ResultCachePlugin):
    """In-memory result/error cache.

    Brief:
      Default ResultCachePlugin implementation backed by
      `registrygraph.cache.backends.ttl_store.TTLStore`. Positive entries hold
      the tuple of items a resolution produced; negative entries hold the
      classified QueryError so a cached NOT_FOUND replays as NOT_FOUND.

    Inputs:
      - ttl_seconds: Default TTL applied when store_* is called without one.
      - shards: Number of lock shards in the backing store.
      - now: Optional time source in epoch seconds.
      - **config: Ignored extra config keys.

    Outputs:
      - ResultCache instance.

    Example:
      >>> from registrygraph.items import QueryIdentity, QueryMethod
      >>> cache = ResultCache()
      >>> ident = QueryIdentity("rdap", QueryMethod.GET, "global", "rdap-asn", "AS1")
      >>> cache.lookup(ident)
      (False, None)
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL,
        shards: int = 16,
        *,
        now: Optional[Callable[[], float]] = None,
        **config: object,
    ) -> None:
        self.default_ttl = float(ttl_seconds)
        self._store = TTLStore(shards=shards, now=now)

    def lookup(
        self, identity: QueryIdentity, bypass: bool = False
    ) -> Tuple[bool, Optional[CacheEntry]]:
        """Brief: Return (hit, entry) for identity; bypass forces a miss.

        Inputs:
          - identity: QueryIdentity of the request.
          - bypass: When True the cache is not consulted at all.

        Outputs:
          - (True, CacheEntry) on a fresh hit, otherwise (False, None).
        """

        if bypass:
            logger.debug("cache bypass for %s", identity)
            return False, None
        entry = self._store.get(identity)
        if entry is None:
            logger.debug("cache miss for %s", identity)
            return False, None
        logger.debug("cache hit for %s", identity)
        return True, entry

    def store_items(
        self,
        identity: QueryIdentity,
        items: Iterable[Item],
        ttl: Optional[float] = None,
    ) -> None:
        self._put(identity, tuple(items), None, ttl)

    def store_error(
        self, identity: QueryIdentity, error: QueryError, ttl: Optional[float] = None
    ) -> None:
        if not isinstance(error, QueryError):
            raise TypeError(
                f"only classified QueryErrors can be cached, got {type(error)!r}"
            )
        self._put(identity, (), error, ttl)

    def _put(
        self,
        identity: QueryIdentity,
        items: Tuple[Item, ...],
        error: Optional[QueryError],
        ttl: Optional[float],
    ) -> None:
        ttl_val = self.default_ttl if ttl is None else float(ttl)
        if ttl_val <= 0:
            self._store.delete(identity)
            return
        # The expiry is computed once so the entry and the store agree on it.
        expires_at = self._store.now() + ttl_val
        entry = CacheEntry(items=items, error=error, expires_at=expires_at)
        self._store.set_until(identity, expires_at, entry)

    def purge(self) -> int:
        return int(self._store.purge_expired())

    def stats(self) -> dict[str, int]:
        """Brief: Snapshot of entry count and access counters."""

        return {
            "entries": len(self._store),
            "calls_total": self._store.calls_total,
            "cache_hits": self._store.cache_hits,
            "cache_misses": self._store.cache_misses,
        }
