"""Item adapters.

Brief:
  One adapter per item type. new_adapters() wires them around one shared
  Result Cache, one Range Cache, one RDAP client and one DNS resolver.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import requests

from registrygraph.cache.base import ResultCachePlugin
from registrygraph.cache.range_cache import RangeCache
from registrygraph.cache.registry import load_result_cache
from registrygraph.rdap.bootstrap import Bootstrap
from registrygraph.rdap.client import RDAPClient

from .asn import ASNAdapter
from .base import Adapter, adapter_aliases, wrap_rdap_error
from .dns_entry import DNSAdapter, build_resolver
from .domain import DomainAdapter, DomainResolver
from .entity import EntityAdapter
from .ip import IPAdapter
from .ip_network import IPNetworkAdapter
from .nameserver import NameserverAdapter

if TYPE_CHECKING:  # pragma: no cover
    from registrygraph.config.settings import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "ASNAdapter",
    "Adapter",
    "DNSAdapter",
    "DomainAdapter",
    "DomainResolver",
    "EntityAdapter",
    "IPAdapter",
    "IPNetworkAdapter",
    "NameserverAdapter",
    "adapter_aliases",
    "adapters_by_type",
    "new_adapters",
    "wrap_rdap_error",
]


def new_adapters(
    settings: Optional["Settings"] = None,
    *,
    client: Optional[RDAPClient] = None,
    resolver: Optional[Any] = None,
    cache: Optional[ResultCachePlugin] = None,
    range_cache: Optional[RangeCache] = None,
) -> List[Adapter]:
    """Brief: Build every adapter around shared caches and clients.

    Inputs:
      - settings: Settings; defaults are used when omitted.
      - client: Optional RDAPClient (built from settings.rdap when omitted).
      - resolver: Optional DNS resolver (built from settings.dns when omitted).
      - cache: Optional ResultCachePlugin (built from settings.cache when omitted).
      - range_cache: Optional RangeCache for IP networks.

    Outputs:
      - list[Adapter]: IP network, domain, entity, nameserver, ASN, DNS and IP.
    """

    if settings is None:
        from registrygraph.config.settings import Settings

        settings = Settings()

    if cache is None:
        cache = load_result_cache(settings.cache.plugin_config())
    if range_cache is None:
        range_cache = RangeCache()
    if client is None:
        session = requests.Session()
        bootstrap = Bootstrap(
            session=session,
            base_url=settings.rdap.bootstrap_url,
            ttl_seconds=settings.rdap.bootstrap_ttl_seconds,
            timeout=settings.rdap.timeout_seconds,
        )
        client = RDAPClient(
            session=session,
            bootstrap=bootstrap,
            timeout=settings.rdap.timeout_seconds,
            user_agent=settings.rdap.user_agent,
        )
    if resolver is None:
        resolver = build_resolver(settings.dns.servers, settings.dns.timeout_seconds)

    ttl = settings.cache.ttl_seconds
    adapters: List[Adapter] = [
        IPNetworkAdapter(client, cache, range_cache=range_cache, ttl=ttl),
        DomainAdapter(client, cache, ttl=ttl),
        EntityAdapter(client, cache, ttl=ttl),
        NameserverAdapter(client, cache, ttl=ttl),
        ASNAdapter(client, cache, ttl=ttl),
        DNSAdapter(
            resolver,
            cache,
            ttl=settings.dns.ttl_seconds,
            reverse_lookup=settings.dns.reverse_lookup,
        ),
        IPAdapter(None, cache),
    ]
    logger.debug("built adapters: %s", ", ".join(a.item_type for a in adapters))
    return adapters


def adapters_by_type(adapters: List[Adapter]) -> Dict[str, Adapter]:
    """Brief: Index adapters by item type and by each of their aliases."""

    index: Dict[str, Adapter] = {}
    for adapter in adapters:
        index[adapter.item_type] = adapter
        for alias in adapter.aliases:
            index.setdefault(alias, adapter)
    return index
