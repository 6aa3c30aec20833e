from __future__ import annotations

import threading
from typing import List, Optional

from registrygraph.errors import ErrorType, QueryError
from registrygraph.items import Item, QueryIdentity, QueryMethod
from registrygraph.links import autnum_links, entity_links
from registrygraph.rdap.client import RDAPRequest, RequestType
from registrygraph.rdap.objects import Entity
from registrygraph.rdap.urls import parse_rdap_url

from .base import Adapter, adapter_aliases


@adapter_aliases("rdap-entity", "entity")
class EntityAdapter(Adapter):
    """Resolve registry contacts (entities).

    Brief:
      GET looks an entity up by handle through the bootstrap registry.
      SEARCH takes the entity's own RDAP URL, which also names the server to
      ask; entities reached through links always carry one, while handle
      bootstrapping is unreliable.
    """

    item_type = "rdap-entity"
    descriptive_name = "RDAP Entity"
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
        return self._run(identity, query, None, scope, cancel)[0]

    def list(
        self,
        scope: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        self.check_scope(scope)
        return []

    def search(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> List[Item]:
        """Brief: Resolve an entity by URL, e.g. https://rdap.apnic.net/entity/AIC3-AP.

        Outputs:
          - list with one rdap-entity Item; MALFORMED (uncached) when the
            query is not an entity URL.
        """

        self.check_scope(scope)
        identity = self.identity(QueryMethod.SEARCH, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit:
            return list(items)

        try:
            parsed = parse_rdap_url(query)
        except QueryError as exc:
            raise self.error(ErrorType.MALFORMED, exc.error_string, scope) from exc
        if parsed.type != "entity":
            raise self.error(
                ErrorType.MALFORMED,
                f"Expected URL to lookup entity, got {parsed.type}",
                scope,
            )
        return self._run(identity, parsed.query, parsed.server_root, scope, cancel)

    def _run(
        self,
        identity: QueryIdentity,
        handle: str,
        server: Optional[str],
        scope: str,
        cancel: Optional[threading.Event],
    ) -> List[Item]:
        request = RDAPRequest(RequestType.ENTITY, handle, server=server, cancel=cancel)
        response = self.request(identity, request, scope)
        entity = self.expect(
            identity, response, Entity, scope, f"No entity found for {handle}"
        )
        # Networks are not linked: some entities hold hundreds of them.
        links = entity_links(entity.entities) + autnum_links(entity.autnums, scope)
        item = self.make_item(entity, scope, links)
        return self.finish(identity, [item], scope)
