from __future__ import annotations

import threading
from typing import List, Optional

from registrygraph.errors import ErrorType, QueryError
from registrygraph.items import Item, QueryMethod
from registrygraph.links import dns_name_link, entity_links, ip_links
from registrygraph.rdap.client import RDAPRequest, RequestType
from registrygraph.rdap.objects import Nameserver
from registrygraph.rdap.urls import parse_rdap_url

from .base import Adapter, adapter_aliases


@adapter_aliases("rdap-nameserver", "nameserver")
class NameserverAdapter(Adapter):
    """Resolve nameserver registrations by their RDAP URL.

    Brief:
      Domains link to nameservers on the server that returned the domain,
      so SEARCH takes a full URL. GET by name answers from the cache only.
    """

    item_type = "rdap-nameserver"
    descriptive_name = "RDAP Nameserver"
    unique_attribute = "ldhName"

    def get(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> Item:
        self.check_scope(scope)
        identity = self.identity(QueryMethod.GET, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit and items:
            return items[0]
        raise self.unsupported(
            QueryMethod.GET,
            scope,
            query,
            "Nameservers can't be queried by name, use the SEARCH method with a URL",
        )

    def search(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        self.check_scope(scope)
        identity = self.identity(QueryMethod.SEARCH, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit:
            return list(items)

        try:
            parsed = parse_rdap_url(query)
        except QueryError as exc:
            raise self.error(ErrorType.MALFORMED, exc.error_string, scope) from exc
        if parsed.type != "nameserver":
            raise self.error(
                ErrorType.MALFORMED,
                f"Expected URL to lookup nameserver, got {parsed.type}",
                scope,
            )
        request = RDAPRequest(
            RequestType.NAMESERVER,
            parsed.query,
            server=parsed.server_root,
            cancel=cancel,
        )
        response = self.request(identity, request, scope)
        nameserver = self.expect(
            identity, response, Nameserver, scope, f"No nameserver found for {query}"
        )

        links = entity_links(nameserver.entities)
        # Same host seen through DNS, linked both ways.
        links += dns_name_link(nameserver.ldh_name)
        if nameserver.ip_addresses is not None:
            links += ip_links(nameserver.ip_addresses.all())
        item = self.make_item(nameserver, scope, links)
        stored = self.finish(identity, [item], scope)
        self.store(
            self.identity(QueryMethod.GET, scope, item.unique_attribute_value()), stored
        )
        return stored
