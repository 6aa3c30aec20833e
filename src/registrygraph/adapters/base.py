from __future__ import annotations

import logging
import threading
from typing import Any, ClassVar, List, Optional, Sequence, Tuple, Type, TypeVar

import requests

from registrygraph.attributes import to_attributes
from registrygraph.cache.base import DEFAULT_CACHE_TTL, ResultCachePlugin
from registrygraph.errors import (
    ErrorType,
    QueryError,
    ResolutionCancelled,
    UnexpectedResponseError,
)
from registrygraph.items import (
    GLOBAL_SCOPE,
    Item,
    LinkedQuery,
    QueryIdentity,
    QueryMethod,
)
from registrygraph.rdap.client import RDAPClientError, RDAPRequest, RDAPResponse
from registrygraph.rdap.objects import RDAPObject

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=RDAPObject)

# Failures of the upstream call itself; anything else is a programming error.
UPSTREAM_ERRORS: Tuple[Type[BaseException], ...] = (
    RDAPClientError,
    requests.RequestException,
    OSError,
)


def adapter_aliases(*aliases: str):
    """Brief: Decorator to set aliases on an adapter class for discovery.

    Inputs:
      - *aliases: Variable number of alias strings.

    Outputs:
      - Callable that applies the aliases to an Adapter subclass and returns it.

    Example:
      >>> @adapter_aliases('network', 'ipnet')
      ... class MyAdapter(Adapter):
      ...     pass
      >>> MyAdapter.aliases
      ('network', 'ipnet')
    """

    def _wrap(cls: type) -> type:
        cls.aliases = tuple(aliases)
        return cls

    return _wrap


def check_cancel(cancel: Optional[threading.Event], what: str) -> None:
    """Brief: Raise ResolutionCancelled when the cancel event is set.

    Inputs:
      - cancel: Optional threading.Event supplied by the caller.
      - what: Description of the work being abandoned, for the message.

    Outputs:
      - None; raises ResolutionCancelled (never cached).
    """

    if cancel is not None and cancel.is_set():
        raise ResolutionCancelled(f"{what} cancelled")


def wrap_rdap_error(
    exc: BaseException,
    *,
    scope: Optional[str] = None,
    source_name: Optional[str] = None,
    item_type: Optional[str] = None,
) -> QueryError:
    """Brief: Classify an upstream failure.

    Inputs:
      - exc: Exception raised by the RDAP client (or transport).
      - scope, source_name, item_type: Context copied onto the QueryError.

    Outputs:
      - QueryError: NOT_FOUND when the registry says the object does not
        exist, OTHER for everything else. QueryErrors pass through unchanged.
    """

    if isinstance(exc, QueryError):
        return exc
    if isinstance(exc, RDAPClientError) and exc.is_not_found:
        error_type = ErrorType.NOT_FOUND
    else:
        error_type = ErrorType.OTHER
    return QueryError(
        error_type,
        str(exc),
        scope=scope,
        source_name=source_name,
        item_type=item_type,
    )


class Adapter:
    """Brief: Base class for every item adapter.

    Adapters answer GET, LIST and SEARCH for one item type. The shared
    helpers here implement the caching contract: scope is checked first
    (NO_SCOPE is never cached), the Result Cache is consulted and cached
    errors are replayed, upstream failures are classified and stored as
    negative entries, and cancellation is never stored.

    Inputs:
      - client: Upstream collaborator (RDAPClient or a DNS resolver).
      - cache: Explicitly constructed ResultCachePlugin shared between adapters.
      - ttl: Seconds positive and negative entries stay cached.

    Outputs:
      - Adapter instance.

    Example use:
        >>> from registrygraph.cache import ResultCache
        >>> class Null(Adapter):
        ...     item_type = "null"
        >>> Null(client=None, cache=ResultCache()).scopes
        ('global',)
    """

    source_name: ClassVar[str] = "rdap"
    item_type: ClassVar[str] = ""
    descriptive_name: ClassVar[str] = ""
    unique_attribute: ClassVar[str] = "handle"
    scopes: ClassVar[Sequence[str]] = (GLOBAL_SCOPE,)
    weight: ClassVar[int] = 100
    aliases: ClassVar[Sequence[str]] = ()

    def __init__(
        self,
        client: Any,
        cache: ResultCachePlugin,
        ttl: float = DEFAULT_CACHE_TTL,
    ) -> None:
        self.client = client
        self.cache = cache
        self.ttl = float(ttl)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(type={self.item_type!r}, "
            f"source={self.source_name!r})"
        )

    # Operations

    def get(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> Item:
        self.check_scope(scope)
        raise self.unsupported(
            QueryMethod.GET, scope, query, f"{self.item_type} does not support GET"
        )

    def list(
        self,
        scope: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        self.check_scope(scope)
        raise self.unsupported(
            QueryMethod.LIST, scope, "", f"{self.item_type} items cannot be listed"
        )

    def search(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        self.check_scope(scope)
        raise self.unsupported(
            QueryMethod.SEARCH,
            scope,
            query,
            f"{self.item_type} does not support SEARCH",
        )

    # Helpers

    def identity(self, method: QueryMethod, scope: str, query: str) -> QueryIdentity:
        return QueryIdentity(self.source_name, method, scope, self.item_type, query)

    def error(self, error_type: ErrorType, message: str, scope: str) -> QueryError:
        return QueryError(
            error_type,
            message,
            scope=scope,
            source_name=self.source_name,
            item_type=self.item_type,
        )

    def check_scope(self, scope: str) -> None:
        """Brief: Raise NO_SCOPE (uncached) when scope is not served."""

        if scope not in self.scopes:
            raise self.error(
                ErrorType.NO_SCOPE,
                f"{self.item_type} queries are only supported in scopes "
                f"{', '.join(self.scopes)}",
                scope,
            )

    def lookup(
        self, identity: QueryIdentity, ignore_cache: bool
    ) -> Tuple[bool, Tuple[Item, ...]]:
        """Brief: Consult the Result Cache.

        Inputs:
          - identity: QueryIdentity of the request.
          - ignore_cache: Force a miss.

        Outputs:
          - (hit, items); a cached error is raised again instead of returned.
        """

        hit, entry = self.cache.lookup(identity, bypass=ignore_cache)
        if not hit or entry is None:
            return False, ()
        if entry.error is not None:
            raise entry.error.replay()
        return True, entry.items

    def store(self, identity: QueryIdentity, items: Sequence[Item]) -> List[Item]:
        self.cache.store_items(identity, items, self.ttl)
        return list(items)

    def fail(self, identity: QueryIdentity, err: QueryError) -> QueryError:
        """Brief: Cache a classified failure and return it for raising.

        Notes:
          - Only NOT_FOUND and OTHER are stored; MALFORMED and NO_SCOPE
            describe the request, not the registry.
        """

        if err.error_type in (ErrorType.NOT_FOUND, ErrorType.OTHER):
            self.cache.store_error(identity, err, self.ttl)
        return err

    def unsupported(
        self, method: QueryMethod, scope: str, query: str, message: str
    ) -> QueryError:
        """Brief: Cached NOT_FOUND for a query this method can never resolve.

        Inputs:
          - method: QueryMethod that was called.
          - scope: Scope of the request (already checked).
          - query: Query string; '' for LIST.
          - message: Hint pointing at the method that does work.

        Outputs:
          - QueryError(NOT_FOUND), stored under the request's identity.
        """

        err = self.error(ErrorType.NOT_FOUND, message, scope)
        return self.fail(self.identity(method, scope, query), err)

    def request(
        self, identity: QueryIdentity, request: RDAPRequest, scope: str
    ) -> RDAPResponse:
        """Brief: Run one upstream RDAP request, caching classified failures.

        Inputs:
          - identity: QueryIdentity the failure is cached under.
          - request: RDAPRequest to execute.
          - scope: Scope copied onto any QueryError.

        Outputs:
          - RDAPResponse; raises QueryError on upstream failure and
            ResolutionCancelled (uncached) on cancellation, including a
            cancellation that arrives while the request is in flight.
        """

        what = f"RDAP {request.type.value} {request.query}"
        try:
            response = self.client.do(request)
        except ResolutionCancelled:
            raise
        except UPSTREAM_ERRORS as exc:
            check_cancel(request.cancel, what)
            logger.warning(
                "%s %s %s failed: %s",
                self.item_type,
                request.type.value,
                request.query,
                exc,
            )
            err = wrap_rdap_error(
                exc,
                scope=scope,
                source_name=self.source_name,
                item_type=self.item_type,
            )
            raise self.fail(identity, err) from exc
        check_cancel(request.cancel, what)
        return response

    def expect(
        self,
        identity: QueryIdentity,
        response: RDAPResponse,
        kind: Type[T],
        scope: str,
        not_found: str,
    ) -> T:
        """Brief: Return the response object, checking it is of the wanted kind.

        Inputs:
          - identity: QueryIdentity an empty response is cached under.
          - response: RDAPResponse from the client.
          - kind: Expected RDAPObject subclass.
          - scope: Scope copied onto errors.
          - not_found: Message for an empty response.

        Outputs:
          - The typed object; NOT_FOUND (cached) for an empty response,
            UnexpectedResponseError (uncached) for the wrong kind.
        """

        obj = response.object
        if obj is None:
            err = self.error(ErrorType.NOT_FOUND, not_found, scope)
            raise self.fail(identity, err)
        if not isinstance(obj, kind):
            raise UnexpectedResponseError(
                f"Expected {kind.__name__}, got {type(obj).__name__}"
            )
        return obj

    def make_item(
        self, obj: RDAPObject, scope: str, links: Sequence[LinkedQuery]
    ) -> Item:
        return Item(
            item_type=self.item_type,
            scope=scope,
            unique_attribute=self.unique_attribute,
            attributes=to_attributes(obj, self.item_type),
            linked_queries=tuple(links),
        )

    def finish(
        self, identity: QueryIdentity, items: Sequence[Item], scope: str
    ) -> List[Item]:
        """Brief: Validate items and store them; invalid data is an OTHER failure."""

        for item in items:
            try:
                item.validate()
            except ValueError as exc:
                err = self.error(ErrorType.OTHER, str(exc), scope)
                raise self.fail(identity, err) from exc
        return self.store(identity, items)
