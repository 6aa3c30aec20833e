from __future__ import annotations

from typing import Iterable, List, Optional

from registrygraph.items import GLOBAL_SCOPE, LinkedQuery, QueryMethod
from registrygraph.rdap.objects import Autnum, Entity, IPNetwork, Nameserver
from registrygraph.rdap.urls import join_object_url, server_root_from_urls

"""Edge builders.

Brief:
  Turn the relationships carried by registry and DNS answers into
  LinkedQuery edges. Every edge's direction flags follow one causality
  model: contacts never affect anything, infrastructure an item depends on
  propagates in, and different views of the same thing propagate both ways.

Inputs:
  - Typed RDAP objects, DNS names and addresses.

Outputs:
  - Lists of LinkedQuery.
"""

__all__ = [
    "autnum_links",
    "cname_link",
    "dns_name_link",
    "entity_links",
    "ip_links",
    "nameserver_links",
    "network_link",
    "rdap_domain_link",
    "server_root_from_urls",
]


def entity_links(entities: Iterable[Entity]) -> List[LinkedQuery]:
    """Brief: Link to each entity through its self URL.

    Inputs:
      - entities: Entities attached to a registry object.

    Outputs:
      - list[LinkedQuery] of rdap-entity SEARCH edges; entities without a
        self link are skipped.

    Notes:
      - Contact records are informational only, so the edges are inert.
    """

    out: List[LinkedQuery] = []
    for entity in entities:
        href = entity.self_link()
        if not href:
            continue
        out.append(
            LinkedQuery(
                item_type="rdap-entity",
                scope=GLOBAL_SCOPE,
                method=QueryMethod.SEARCH,
                query=href,
                propagates_in=False,
                propagates_out=False,
            )
        )
    return out


def nameserver_links(
    nameservers: Iterable[Nameserver], server_root: Optional[str]
) -> List[LinkedQuery]:
    """Brief: Link a domain to its nameservers on the server that answered.

    Inputs:
      - nameservers: Nameservers listed on the domain.
      - server_root: Root of the RDAP server that returned the domain; no
        edges are produced when it is unknown.

    Outputs:
      - list[LinkedQuery] of rdap-nameserver SEARCH edges (in=True, out=False).
    """

    if not server_root:
        return []
    out: List[LinkedQuery] = []
    for ns in nameservers:
        if not ns.ldh_name:
            continue
        out.append(
            LinkedQuery(
                item_type="rdap-nameserver",
                scope=GLOBAL_SCOPE,
                method=QueryMethod.SEARCH,
                query=join_object_url(server_root, "nameserver", ns.ldh_name),
                propagates_in=True,
                propagates_out=False,
            )
        )
    return out


def network_link(network: Optional[IPNetwork]) -> List[LinkedQuery]:
    """Brief: Link to the IP network containing an object, by start address."""

    if network is None or not network.start_address:
        return []
    return [
        LinkedQuery(
            item_type="rdap-ip-network",
            scope=GLOBAL_SCOPE,
            method=QueryMethod.SEARCH,
            query=network.start_address,
            propagates_in=True,
            propagates_out=False,
        )
    ]


def autnum_links(autnums: Iterable[Autnum], scope: str) -> List[LinkedQuery]:
    """Brief: Link an entity to the ASNs it holds.

    Inputs:
      - autnums: Autnums attached to the entity.
      - scope: Scope of the entity query; carried onto the edge.

    Outputs:
      - list[LinkedQuery] of rdap-asn GET edges (in=False, out=True).
    """

    return [
        LinkedQuery(
            item_type="rdap-asn",
            scope=scope,
            method=QueryMethod.GET,
            query=autnum.handle,
            propagates_in=False,
            propagates_out=True,
        )
        for autnum in autnums
        if autnum.handle
    ]


def dns_name_link(name: str) -> List[LinkedQuery]:
    """Brief: Link to the DNS view of a host name (same thing, both ways)."""

    if not name:
        return []
    return [
        LinkedQuery(
            item_type="dns",
            scope=GLOBAL_SCOPE,
            method=QueryMethod.SEARCH,
            query=name.lower(),
            propagates_in=True,
            propagates_out=True,
        )
    ]


def ip_links(addresses: Iterable[str]) -> List[LinkedQuery]:
    return [
        LinkedQuery(
            item_type="ip",
            scope=GLOBAL_SCOPE,
            method=QueryMethod.GET,
            query=address,
            propagates_in=True,
            propagates_out=True,
        )
        for address in addresses
        if address
    ]


def rdap_domain_link(name: str) -> List[LinkedQuery]:
    """Brief: Link a DNS name to its registration (in=True, out=False)."""

    if not name:
        return []
    return [
        LinkedQuery(
            item_type="rdap-domain",
            scope=GLOBAL_SCOPE,
            method=QueryMethod.SEARCH,
            query=name,
            propagates_in=True,
            propagates_out=False,
        )
    ]


def cname_link(target: str) -> List[LinkedQuery]:
    """Brief: Link a CNAME to the name it points at."""

    if not target:
        return []
    return [
        LinkedQuery(
            item_type="dns",
            scope=GLOBAL_SCOPE,
            method=QueryMethod.SEARCH,
            query=target,
            propagates_in=True,
            propagates_out=True,
        )
    ]
