from __future__ import annotations

from typing import Iterable, Optional, Tuple

from registrygraph.errors import QueryError
from registrygraph.items import Item, QueryIdentity

from .base import CacheEntry, ResultCachePlugin, cache_aliases


@cache_aliases("none", "null", "disabled")
class NullResultCache(ResultCachePlugin):
    """Brief: Result cache that never stores anything (caching disabled).

    Inputs:
      - **config: Ignored.

    Outputs:
      - NullResultCache instance; every lookup is a miss.
    """

    def __init__(self, **config: object) -> None:
        pass

    def lookup(
        self, identity: QueryIdentity, bypass: bool = False
    ) -> Tuple[bool, Optional[CacheEntry]]:
        return False, None

    def store_items(
        self,
        identity: QueryIdentity,
        items: Iterable[Item],
        ttl: Optional[float] = None,
    ) -> None:
        return None

    def store_error(
        self, identity: QueryIdentity, error: QueryError, ttl: Optional[float] = None
    ) -> None:
        return None

    def purge(self) -> int:
        return 0
