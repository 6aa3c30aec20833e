from __future__ import annotations

import ipaddress
import logging
import threading
from typing import List, Optional

from registrygraph.cache.base import DEFAULT_CACHE_TTL, ResultCachePlugin
from registrygraph.cache.range_cache import RangeCache
from registrygraph.cidr import CIDRError, covering_network
from registrygraph.errors import ErrorType
from registrygraph.items import Item, QueryMethod
from registrygraph.links import entity_links
from registrygraph.rdap.client import RDAPClient, RDAPRequest, RequestType
from registrygraph.rdap.objects import IPNetwork

from .base import Adapter, adapter_aliases

logger = logging.getLogger(__name__)


@adapter_aliases("rdap-ip-network", "ip_network", "network")
class IPNetworkAdapter(Adapter):
    """Resolve the registry allocation containing an IP address or CIDR.

    Brief:
      SEARCH consults the Result Cache, then the Range Cache: once one
      address's allocation is known, every other address inside it is
      answered without contacting the registry. On a miss the allocation is
      fetched, its covering network computed and stored in both caches.

    Inputs:
      - client: RDAPClient.
      - cache: Shared ResultCachePlugin.
      - range_cache: Shared RangeCache of IPNetwork objects.
      - ttl: Cache window in seconds.

    Outputs:
      - IPNetworkAdapter instance.
    """

    item_type = "rdap-ip-network"
    descriptive_name = "RDAP IP Network"
    unique_attribute = "handle"

    def __init__(
        self,
        client: RDAPClient,
        cache: ResultCachePlugin,
        range_cache: Optional[RangeCache[IPNetwork]] = None,
        ttl: float = DEFAULT_CACHE_TTL,
    ) -> None:
        super().__init__(client, cache, ttl)
        self.range_cache: RangeCache[IPNetwork] = (
            range_cache if range_cache is not None else RangeCache()
        )

    def get(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> Item:
        """Brief: Return a network already resolved by SEARCH, by handle.

        Notes:
          - Registries cannot be queried by network handle, so a miss is a
            cached NOT_FOUND.
        """

        self.check_scope(scope)
        identity = self.identity(QueryMethod.GET, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit and items:
            return items[0]
        raise self.unsupported(
            QueryMethod.GET,
            scope,
            query,
            "IP networks can't be queried by handle, use the SEARCH method instead",
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
            "IP networks cannot be listed, use the SEARCH method instead",
        )

    def search(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        """Brief: Find the most specific network containing an IP or CIDR.

        Inputs:
          - scope: Must be 'global'.
          - query: IP address ('1.1.1.1') or CIDR ('1.1.1.0/28').
          - ignore_cache: Skip both the Result Cache and the Range Cache.
          - cancel: Optional cancellation event.

        Outputs:
          - list with one rdap-ip-network Item.
        """

        self.check_scope(scope)
        identity = self.identity(QueryMethod.SEARCH, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit:
            return list(items)

        text = str(query).strip()
        address = network = None
        try:
            address = ipaddress.ip_address(text)
        except ValueError:
            try:
                network = ipaddress.ip_network(text, strict=False)
            except ValueError:
                raise self.error(
                    ErrorType.MALFORMED, f"Invalid IP or CIDR: {query}", scope
                ) from None

        ip_network: Optional[IPNetwork] = None
        found = False
        if not ignore_cache:
            if address is not None:
                ip_network, found = self.range_cache.search_point(address)
            else:
                ip_network, found = self.range_cache.search_network(network)
        if found:
            logger.debug("range cache answered %s", query)
        else:
            response = self.request(
                identity, RDAPRequest(RequestType.IP, text, cancel=cancel), scope
            )
            ip_network = self.expect(
                identity,
                response,
                IPNetwork,
                scope,
                f"No IP Network found for {query}",
            )
            try:
                covering = covering_network(
                    ip_network.start_address, ip_network.end_address
                )
            except CIDRError as exc:
                err = self.error(ErrorType.OTHER, str(exc), scope)
                raise self.fail(identity, err) from exc
            self.range_cache.store(covering, ip_network, self.ttl)

        assert ip_network is not None
        item = self.make_item(ip_network, scope, entity_links(ip_network.entities))
        stored = self.finish(identity, [item], scope)
        # Make the handle answerable through GET from now on.
        handle = item.unique_attribute_value()
        self.store(self.identity(QueryMethod.GET, scope, handle), stored)
        return stored
