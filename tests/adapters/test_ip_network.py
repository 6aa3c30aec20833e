"""
Brief: Tests for IPNetworkAdapter, including Range Cache short-circuiting.

Inputs:
  - None

Outputs:
  - None
"""

import threading

import pytest

from registrygraph.adapters import IPNetworkAdapter
from registrygraph.cache import RangeCache
from registrygraph.errors import (
    ErrorType,
    QueryError,
    ResolutionCancelled,
    UnexpectedResponseError,
)
from registrygraph.items import QueryMethod

APNIC_LABS = {
    "objectClassName": "ip network",
    "handle": "1.1.1.0 - 1.1.1.255",
    "startAddress": "1.1.1.0",
    "endAddress": "1.1.1.255",
    "ipVersion": "v4",
    "name": "APNIC-LABS",
    "country": "AU",
    "entities": [
        {
            "objectClassName": "entity",
            "handle": "IRT-APNICRANDNET-AU",
            "links": [
                {
                    "rel": "self",
                    "href": "https://rdap.apnic.net/entity/IRT-APNICRANDNET-AU",
                }
            ],
        }
    ],
}


@pytest.fixture
def setup(fake_client_cls, result_cache, clock):
    client = fake_client_cls({("ip", "1.1.1.1"): APNIC_LABS})
    range_cache = RangeCache(now=clock)
    adapter = IPNetworkAdapter(client, result_cache, range_cache=range_cache, ttl=60)
    return adapter, client, range_cache


def test_search_resolves_and_links_entities(setup):
    """
    Brief: SEARCH for an address returns the containing network with entity edges.

    Inputs:
      - query: 1.1.1.1

    Outputs:
      - None: Asserts one item, its attributes and inert entity edge
    """
    adapter, client, _ = setup
    (item,) = adapter.search("global", "1.1.1.1")
    assert item.item_type == "rdap-ip-network"
    assert item.unique_attribute == "handle"
    assert item.attributes["startAddress"] == "1.1.1.0"
    assert item.attributes["name"] == "APNIC-LABS"
    (lq,) = item.linked_queries
    assert lq.item_type == "rdap-entity"
    assert lq.query == "https://rdap.apnic.net/entity/IRT-APNICRANDNET-AU"
    assert (lq.propagates_in, lq.propagates_out) == (False, False)
    assert client.queries() == ["1.1.1.1"]


def test_second_address_in_same_network_uses_range_cache(setup):
    """
    Brief: Once 1.1.1.0/24 is known, 1.1.1.254 resolves with no upstream call.

    Inputs:
      - queries: 1.1.1.1 then 1.1.1.254

    Outputs:
      - None: Asserts identical network and a single upstream request
    """
    adapter, client, range_cache = setup
    first = adapter.search("global", "1.1.1.1")
    second = adapter.search("global", "1.1.1.254")
    assert second[0].attributes == first[0].attributes
    assert client.queries() == ["1.1.1.1"]
    assert len(range_cache) == 1


def test_cidr_query_inside_known_network_uses_range_cache(setup):
    """
    Brief: A CIDR contained in a cached network is answered from the Range Cache.

    Inputs:
      - queries: 1.1.1.1 then 1.1.1.128/25

    Outputs:
      - None: Asserts no extra request
    """
    adapter, client, _ = setup
    adapter.search("global", "1.1.1.1")
    (item,) = adapter.search("global", "1.1.1.128/25")
    assert item.attributes["handle"] == "1.1.1.0 - 1.1.1.255"
    assert len(client.requests) == 1


def test_get_by_handle_after_search(setup):
    """
    Brief: GET answers from the cache once SEARCH has seen the handle.

    Inputs:
      - handle: '1.1.1.0 - 1.1.1.255'

    Outputs:
      - None: Asserts NOT_FOUND before SEARCH and the item after
    """
    adapter, _, _ = setup
    with pytest.raises(QueryError) as excinfo:
        adapter.get("global", "1.1.1.0 - 1.1.1.255")
    assert excinfo.value.error_type is ErrorType.NOT_FOUND
    assert "SEARCH" in excinfo.value.error_string

    adapter.search("global", "1.1.1.1")
    item = adapter.get("global", "1.1.1.0 - 1.1.1.255")
    assert item.attributes["name"] == "APNIC-LABS"


def test_malformed_query_is_not_cached(setup):
    """
    Brief: A query that is neither IP nor CIDR is MALFORMED and never stored.

    Inputs:
      - query: 'not-an-ip'

    Outputs:
      - None: Asserts MALFORMED, no upstream call and no cache entry
    """
    adapter, client, _ = setup
    with pytest.raises(QueryError) as excinfo:
        adapter.search("global", "not-an-ip")
    assert excinfo.value.error_type is ErrorType.MALFORMED
    assert client.requests == []
    ident = adapter.identity(QueryMethod.SEARCH, "global", "not-an-ip")
    assert adapter.cache.lookup(ident) == (False, None)


def test_not_found_is_cached(setup):
    """
    Brief: A registry 404 becomes NOT_FOUND and is replayed from the cache.

    Inputs:
      - query: 192.0.2.1 (unknown to the fake client)

    Outputs:
      - None: Asserts NOT_FOUND twice with one upstream call
    """
    adapter, client, _ = setup
    for _ in range(2):
        with pytest.raises(QueryError) as excinfo:
            adapter.search("global", "192.0.2.1")
        assert excinfo.value.error_type is ErrorType.NOT_FOUND
        assert excinfo.value.item_type == "rdap-ip-network"
        assert excinfo.value.scope == "global"
    assert client.queries() == ["192.0.2.1"]


def test_empty_response_is_cached_not_found(fake_client_cls, result_cache):
    """
    Brief: A registry answer without an object is a cached NOT_FOUND.

    Inputs:
      - answer: None for 192.0.2.1

    Outputs:
      - None: Asserts message and single call
    """
    client = fake_client_cls({("ip", "192.0.2.1"): None})
    adapter = IPNetworkAdapter(client, result_cache)
    for _ in range(2):
        with pytest.raises(QueryError) as excinfo:
            adapter.search("global", "192.0.2.1")
        assert excinfo.value.error_string == "No IP Network found for 192.0.2.1"
    assert len(client.requests) == 1


def test_ignore_cache_bypasses_both_caches(fake_client_cls, result_cache, clock):
    """
    Brief: ignore_cache skips the Result Cache and the Range Cache but still stores.

    Inputs:
      - queries: 1.1.1.1 then 1.1.1.254 with ignore_cache=True

    Outputs:
      - None: Asserts a second upstream request and a stored result
    """
    client = fake_client_cls(
        {("ip", "1.1.1.1"): APNIC_LABS, ("ip", "1.1.1.254"): APNIC_LABS}
    )
    adapter = IPNetworkAdapter(client, result_cache, range_cache=RangeCache(now=clock))
    adapter.search("global", "1.1.1.1")
    adapter.search("global", "1.1.1.254", ignore_cache=True)
    assert client.queries() == ["1.1.1.1", "1.1.1.254"]
    adapter.search("global", "1.1.1.254")
    assert len(client.requests) == 2


def test_wrong_scope_is_no_scope_without_upstream_call(setup):
    """
    Brief: Unsupported scopes fail fast with NO_SCOPE.

    Inputs:
      - scope: 'eu-west-1'

    Outputs:
      - None: Asserts NO_SCOPE and no requests
    """
    adapter, client, _ = setup
    with pytest.raises(QueryError) as excinfo:
        adapter.search("eu-west-1", "1.1.1.1")
    assert excinfo.value.error_type is ErrorType.NO_SCOPE
    assert client.requests == []


def test_list_is_not_supported(setup):
    """
    Brief: LIST is NOT_FOUND with guidance towards SEARCH.

    Inputs:
      - None

    Outputs:
      - None: Asserts message
    """
    adapter, _, _ = setup
    with pytest.raises(QueryError) as excinfo:
        adapter.list("global")
    assert excinfo.value.error_string == (
        "IP networks cannot be listed, use the SEARCH method instead"
    )


def test_wrong_object_kind_and_cancellation_are_not_cached(
    fake_client_cls, result_cache
):
    """
    Brief: Unexpected response kinds and cancellations propagate uncached.

    Inputs:
      - answers: autnum for 192.0.2.1, cancellation for 192.0.2.2

    Outputs:
      - None: Asserts exceptions and repeated upstream calls
    """
    client = fake_client_cls(
        {
            ("ip", "192.0.2.1"): {"objectClassName": "autnum", "handle": "AS1"},
            ("ip", "192.0.2.2"): ResolutionCancelled("stop"),
        }
    )
    adapter = IPNetworkAdapter(client, result_cache)
    for _ in range(2):
        with pytest.raises(UnexpectedResponseError):
            adapter.search("global", "192.0.2.1")
        with pytest.raises(ResolutionCancelled):
            adapter.search("global", "192.0.2.2", cancel=threading.Event())
    assert len(client.requests) == 4


def test_invalid_range_is_cached_other(fake_client_cls, result_cache):
    """
    Brief: A network whose range cannot be turned into CIDR is an OTHER failure.

    Inputs:
      - answer: network with a missing end address

    Outputs:
      - None: Asserts OTHER
    """
    broken = dict(APNIC_LABS, endAddress="")
    client = fake_client_cls({("ip", "1.1.1.1"): broken})
    adapter = IPNetworkAdapter(client, result_cache)
    with pytest.raises(QueryError) as excinfo:
        adapter.search("global", "1.1.1.1")
    assert excinfo.value.error_type is ErrorType.OTHER
    with pytest.raises(QueryError):
        adapter.search("global", "1.1.1.1")
    assert len(client.requests) == 1


def test_cancel_during_request_stores_nothing(fake_client_cls, result_cache, clock):
    """
    Brief: A cancel that lands while the upstream call runs discards its answer.

    Inputs:
      - client: answers 1.1.1.1 but sets the cancel event inside do()

    Outputs:
      - None: Asserts ResolutionCancelled and empty Result and Range Caches
    """
    cancel = threading.Event()

    class CancellingClient(fake_client_cls):
        def do(self, request):
            response = super().do(request)
            cancel.set()
            return response

    client = CancellingClient({("ip", "1.1.1.1"): APNIC_LABS})
    range_cache = RangeCache(now=clock)
    adapter = IPNetworkAdapter(client, result_cache, range_cache=range_cache)
    with pytest.raises(ResolutionCancelled):
        adapter.search("global", "1.1.1.1", cancel=cancel)

    identity = adapter.identity(QueryMethod.SEARCH, "global", "1.1.1.1")
    hit, _ = result_cache.lookup(identity)
    assert not hit
    assert len(range_cache) == 0
    assert range_cache.search_point("1.1.1.1") == (None, False)


def test_cancel_during_failed_request_is_not_cached(fake_client_cls, result_cache):
    """
    Brief: An upstream failure seen after cancellation is not stored as a negative.

    Inputs:
      - client: raises a 404 for 192.0.2.1 after setting the cancel event

    Outputs:
      - None: Asserts ResolutionCancelled, then a fresh NOT_FOUND upstream
    """
    cancel = threading.Event()

    class CancellingClient(fake_client_cls):
        def do(self, request):
            cancel.set()
            return super().do(request)

    client = CancellingClient()
    adapter = IPNetworkAdapter(client, result_cache)
    with pytest.raises(ResolutionCancelled):
        adapter.search("global", "192.0.2.1", cancel=cancel)
    with pytest.raises(QueryError) as excinfo:
        adapter.search("global", "192.0.2.1")
    assert excinfo.value.error_type is ErrorType.NOT_FOUND
    assert len(client.requests) == 2


def test_get_and_list_not_found_are_cached(setup, result_cache):
    """
    Brief: GET misses and LIST are stored as NOT_FOUND negatives.

    Inputs:
      - None

    Outputs:
      - None: Asserts cached error entries under the GET and LIST identities
    """
    adapter, _, _ = setup
    with pytest.raises(QueryError):
        adapter.get("global", "UNKNOWN-NET")
    with pytest.raises(QueryError):
        adapter.list("global")
    for identity in (
        adapter.identity(QueryMethod.GET, "global", "UNKNOWN-NET"),
        adapter.identity(QueryMethod.LIST, "global", ""),
    ):
        hit, entry = result_cache.lookup(identity)
        assert hit
        assert entry.error.error_type is ErrorType.NOT_FOUND
