from __future__ import annotations

import logging
import threading
from typing import List, Optional

from registrygraph.cache.base import DEFAULT_CACHE_TTL, ResultCachePlugin
from registrygraph.errors import (
    ErrorType,
    QueryError,
    ResolutionCancelled,
    UnexpectedResponseError,
)
from registrygraph.items import Item, QueryMethod
from registrygraph.links import entity_links, nameserver_links, network_link
from registrygraph.rdap.client import RDAPClient, RDAPRequest, RDAPResponse, RequestType
from registrygraph.rdap.objects import Domain
from registrygraph.rdap.urls import server_root_from_urls

from .base import UPSTREAM_ERRORS, Adapter, adapter_aliases, check_cancel

logger = logging.getLogger(__name__)


class DomainResolver:
    """Find the most specific registered domain for a host name.

    Brief:
      Registries only know registered domains, not arbitrary host names.
      The resolver asks for the full name first and then each shorter
      suffix, stopping at the first answer. The bare top-level label is
      never queried.

    Inputs:
      - client: RDAPClient (or anything with a compatible do()).

    Outputs:
      - DomainResolver instance.

    Example:
      >>> DomainResolver(client=None).candidates("www.example.co.uk")
      ['www.example.co.uk', 'example.co.uk', 'co.uk']
    """

    def __init__(self, client: RDAPClient) -> None:
        self.client = client

    @staticmethod
    def candidates(name: str) -> List[str]:
        """Brief: Suffixes to query, longest first, excluding the bare TLD.

        Inputs:
          - name: Host name; a trailing root dot is ignored.

        Outputs:
          - list[str] with N-1 entries for an N-label name.
        """

        labels = str(name).strip().rstrip(".").split(".")
        return [".".join(labels[i:]) for i in range(len(labels) - 1)]

    def search(
        self, name: str, cancel: Optional[threading.Event] = None
    ) -> RDAPResponse:
        """Brief: Return the first registry answer among the candidate suffixes.

        Inputs:
          - name: Host name to resolve.
          - cancel: Optional cancellation event.

        Outputs:
          - RDAPResponse carrying a Domain.

        Notes:
          - Raises QueryError(NOT_FOUND) naming the original query when no
            candidate answers, or when a registry answers with no object.
          - Raises UnexpectedResponseError when a registry answers with a
            non-domain object.
          - Raises ResolutionCancelled once cancel is set, even when it is set
            while a request is in flight.
        """

        for candidate in self.candidates(name):
            request = RDAPRequest(RequestType.DOMAIN, candidate, cancel=cancel)
            try:
                response = self.client.do(request)
            except ResolutionCancelled:
                raise
            except UPSTREAM_ERRORS as exc:
                check_cancel(cancel, f"domain search for {name}")
                logger.debug("domain candidate %s failed: %s", candidate, exc)
                continue
            check_cancel(cancel, f"domain search for {name}")

            if response.object is None:
                raise QueryError(ErrorType.NOT_FOUND, "Empty domain response")
            if not isinstance(response.object, Domain):
                raise UnexpectedResponseError(
                    f"Unexpected response type {type(response.object).__name__}"
                )
            return response

        raise QueryError(ErrorType.NOT_FOUND, f"No domain found for {name}")


@adapter_aliases("rdap-domain", "domain")
class DomainAdapter(Adapter):
    """Resolve host names to their registered domain.

    Inputs:
      - client: RDAPClient.
      - cache: Shared ResultCachePlugin.
      - ttl: Cache window in seconds.
      - resolver: Optional DomainResolver (built around client when omitted).

    Outputs:
      - DomainAdapter instance.
    """

    item_type = "rdap-domain"
    descriptive_name = "RDAP Domain"
    unique_attribute = "handle"

    def __init__(
        self,
        client: RDAPClient,
        cache: ResultCachePlugin,
        ttl: float = DEFAULT_CACHE_TTL,
        resolver: Optional[DomainResolver] = None,
    ) -> None:
        super().__init__(client, cache, ttl)
        self.resolver = resolver or DomainResolver(client)

    def get(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> Item:
        self.check_scope(scope)
        raise self.unsupported(
            QueryMethod.GET,
            scope,
            query,
            "Domains can't be queried by handle, use the SEARCH method instead",
        )

    def list(
        self,
        scope: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        self.check_scope(scope)
        raise self.unsupported(
            QueryMethod.LIST,
            scope,
            "",
            "Domains cannot be listed, use the SEARCH method instead",
        )

    def search(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        """Brief: Resolve a host name to the domain registration that covers it.

        Inputs:
          - scope: Must be 'global'.
          - query: Host name, e.g. 'www.example.co.uk'.

        Outputs:
          - list with one rdap-domain Item linked to its nameservers,
            entities and network.
        """

        self.check_scope(scope)
        identity = self.identity(QueryMethod.SEARCH, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit:
            return list(items)

        try:
            response = self.resolver.search(query, cancel=cancel)
        except QueryError as exc:
            err = self.error(exc.error_type, exc.error_string, scope)
            raise self.fail(identity, err) from exc

        domain = response.object
        assert isinstance(domain, Domain)
        server_root = server_root_from_urls(response.urls)
        links = nameserver_links(domain.nameservers, server_root)
        links += entity_links(domain.entities)
        links += network_link(domain.network)
        item = self.make_item(domain, scope, links)
        return self.finish(identity, [item], scope)
