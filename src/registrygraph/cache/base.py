from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from registrygraph.errors import QueryError
from registrygraph.items import Item, QueryIdentity

# Registry data changes infrequently, so one window covers positive and
# negative entries alike.
DEFAULT_CACHE_TTL = 30 * 60


def cache_aliases(*aliases: str):
    """Brief: Decorator to set aliases on a result cache class for discovery.

    Inputs:
      - *aliases: Variable number of alias strings.

    Outputs:
      - Callable that applies the aliases to a ResultCachePlugin subclass.

    Example:
      >>> @cache_aliases('none', 'null')
      ... class NullCache(ResultCachePlugin):
      ...     pass
      >>> NullCache.aliases
      ('none', 'null')
    """

    def _wrap(cls: type) -> type:
        cls.aliases = tuple(aliases)
        return cls

    return _wrap


@dataclass(frozen=True)
class CacheEntry:
    """Cached outcome of one query.

    Inputs:
      - items: Items returned by a successful resolution (possibly empty).
      - error: Classified error when the resolution failed.
      - expires_at: Absolute expiry in epoch seconds.

    Outputs:
      - Immutable entry; exactly one of a success (items) or a failure (error).
    """

    items: Tuple[Item, ...] = ()
    error: Optional[QueryError] = None
    expires_at: float = 0.0

    @property
    def is_error(self) -> bool:
        return self.error is not None


class ResultCachePlugin:
    """Base class for query result caches.

    Brief:
      A ResultCachePlugin memoizes the outcome of queries keyed by
      QueryIdentity. Subclasses must implement all methods.

    Inputs:
      - None.

    Outputs:
      - ResultCachePlugin instance.
    """

    aliases: tuple[str, ...] = ()
    default_ttl: float = DEFAULT_CACHE_TTL

    def lookup(
        self, identity: QueryIdentity, bypass: bool = False
    ) -> Tuple[bool, Optional[CacheEntry]]:
        """Brief: Look up the cached outcome of a query.

        Inputs:
          - identity: QueryIdentity of the request.
          - bypass: When True, always report a miss.

        Outputs:
          - (hit, entry): entry is None on a miss.
        """

        raise NotImplementedError(
            "ResultCachePlugin.lookup() must be implemented by a subclass"
        )

    def store_items(
        self,
        identity: QueryIdentity,
        items: Iterable[Item],
        ttl: Optional[float] = None,
    ) -> None:
        """Brief: Store a successful outcome.

        Inputs:
          - identity: QueryIdentity of the request.
          - items: Items to return on later hits.
          - ttl: Optional TTL in seconds (defaults to default_ttl).

        Outputs:
          - None.
        """

        raise NotImplementedError(
            "ResultCachePlugin.store_items() must be implemented by a subclass"
        )

    def store_error(
        self, identity: QueryIdentity, error: QueryError, ttl: Optional[float] = None
    ) -> None:
        """Brief: Store a classified failure.

        Inputs:
          - identity: QueryIdentity of the request.
          - error: QueryError to replay on later hits.
          - ttl: Optional TTL in seconds (defaults to default_ttl).

        Outputs:
          - None.
        """

        raise NotImplementedError(
            "ResultCachePlugin.store_error() must be implemented by a subclass"
        )

    def purge(self) -> int:
        """Brief: Purge expired entries.

        Inputs:
          - None.

        Outputs:
          - int: Number of entries removed (best-effort).
        """

        raise NotImplementedError(
            "ResultCachePlugin.purge() must be implemented by a subclass"
        )
