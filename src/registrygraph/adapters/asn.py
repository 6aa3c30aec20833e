from __future__ import annotations

import threading
from typing import List, Optional

from registrygraph.errors import ErrorType
from registrygraph.items import Item, QueryMethod
from registrygraph.links import entity_links
from registrygraph.rdap.client import RDAPRequest, RequestType
from registrygraph.rdap.objects import Autnum

from .base import Adapter, adapter_aliases


@adapter_aliases("rdap-asn", "asn", "autnum")
class ASNAdapter(Adapter):
    """Resolve autonomous system numbers.

    Inputs:
      - client: RDAPClient.
      - cache: Shared ResultCachePlugin.
      - ttl: Cache window in seconds.

    Outputs:
      - ASNAdapter instance. GET accepts 'AS15169' or '15169'; LIST and
        SEARCH are NOT_FOUND.
    """

    item_type = "rdap-asn"
    descriptive_name = "Autonomous System Number (ASN)"
    unique_attribute = "handle"

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

        number = str(query).strip()
        if number[:2].upper() == "AS":
            number = number[2:]
        if not number.isdigit():
            raise self.error(ErrorType.MALFORMED, f"Invalid ASN: {query}", scope)

        request = RDAPRequest(RequestType.AUTNUM, number, cancel=cancel)
        response = self.request(identity, request, scope)
        autnum = self.expect(identity, response, Autnum, scope, "No ASN found")
        item = self.make_item(autnum, scope, entity_links(autnum.entities))
        return self.finish(identity, [item], scope)[0]

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
            "ASNs cannot be listed, use the GET method instead",
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
            "ASNs cannot be searched, use the GET method instead",
        )
