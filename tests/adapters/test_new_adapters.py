"""
Brief: Tests for new_adapters() wiring and adapters_by_type().

Inputs:
  - None

Outputs:
  - None
"""

from registrygraph.adapters import (
    ASNAdapter,
    DNSAdapter,
    DomainAdapter,
    EntityAdapter,
    IPAdapter,
    IPNetworkAdapter,
    NameserverAdapter,
    adapters_by_type,
    new_adapters,
)
from registrygraph.cache import NullResultCache, RangeCache, ResultCache
from registrygraph.config.settings import settings_from_dict


def test_new_adapters_shares_collaborators(fake_client_cls):
    """
    Brief: Every adapter receives the same cache; RDAP adapters share the client.

    Inputs:
      - client, resolver, cache and range_cache passed explicitly

    Outputs:
      - None: Asserts adapter order and shared objects
    """
    client = fake_client_cls()
    resolver = object()
    cache = ResultCache()
    range_cache = RangeCache()
    adapters = new_adapters(
        client=client, resolver=resolver, cache=cache, range_cache=range_cache
    )
    assert [type(a) for a in adapters] == [
        IPNetworkAdapter,
        DomainAdapter,
        EntityAdapter,
        NameserverAdapter,
        ASNAdapter,
        DNSAdapter,
        IPAdapter,
    ]
    assert all(a.cache is cache for a in adapters)
    assert all(a.client is client for a in adapters[:5])
    assert adapters[0].range_cache is range_cache
    assert adapters[5].client is resolver


def test_new_adapters_applies_settings(fake_client_cls):
    """
    Brief: Settings choose the cache module, TTLs and reverse lookups.

    Inputs:
      - settings: cache disabled, custom TTLs, reverse lookups on

    Outputs:
      - None: Asserts cache type and adapter options
    """
    settings = settings_from_dict(
        {
            "cache": {"module": None, "ttl_seconds": 120},
            "dns": {"reverse_lookup": True, "ttl_seconds": 30},
        }
    )
    adapters = new_adapters(settings, client=fake_client_cls(), resolver=object())
    by_type = adapters_by_type(adapters)
    assert isinstance(by_type["rdap-domain"].cache, NullResultCache)
    assert by_type["rdap-domain"].ttl == 120.0
    assert by_type["dns"].ttl == 30.0
    assert by_type["dns"].reverse_lookup is True


def test_new_adapters_builds_real_clients_from_defaults():
    """
    Brief: Without overrides, an RDAP client and a dnspython resolver are built.

    Inputs:
      - None

    Outputs:
      - None: Asserts collaborator types without network access
    """
    import dns.resolver

    from registrygraph.rdap.client import RDAPClient

    adapters = new_adapters()
    by_type = adapters_by_type(adapters)
    assert isinstance(by_type["rdap-asn"].client, RDAPClient)
    assert isinstance(by_type["dns"].client, dns.resolver.Resolver)
    assert isinstance(by_type["ip"].cache, ResultCache)


def test_adapters_by_type_indexes_aliases(fake_client_cls):
    """
    Brief: Adapters are reachable by item type and by alias.

    Inputs:
      - None

    Outputs:
      - None: Asserts alias lookups
    """
    by_type = adapters_by_type(
        new_adapters(client=fake_client_cls(), resolver=object())
    )
    assert by_type["network"] is by_type["rdap-ip-network"]
    assert by_type["autnum"] is by_type["rdap-asn"]
    assert by_type["entity"].item_type == "rdap-entity"
    assert by_type["nameserver"].item_type == "rdap-nameserver"
