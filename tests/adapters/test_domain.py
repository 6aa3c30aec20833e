"""
Brief: Tests for DomainResolver suffix walking and DomainAdapter.

Inputs:
  - None

Outputs:
  - None
"""

import threading

import pytest
import requests

from registrygraph.adapters import DomainAdapter, DomainResolver
from registrygraph.errors import (
    ErrorType,
    QueryError,
    ResolutionCancelled,
    UnexpectedResponseError,
)
from registrygraph.items import QueryMethod

EXAMPLE_CO_UK = {
    "objectClassName": "domain",
    "handle": "EXAMPLE-CO-UK",
    "ldhName": "example.co.uk",
    "nameservers": [
        {"objectClassName": "nameserver", "ldhName": "ns1.example.net"},
        {"objectClassName": "nameserver", "ldhName": "ns2.example.net"},
    ],
    "entities": [
        {
            "objectClassName": "entity",
            "handle": "REG-1",
            "links": [{"rel": "self", "href": "https://rdap.example/entity/REG-1"}],
        }
    ],
}


@pytest.mark.parametrize(
    "name,expected",
    [
        ("www.example.co.uk", ["www.example.co.uk", "example.co.uk", "co.uk"]),
        ("example.com.", ["example.com"]),
        ("com", []),
    ],
)
def test_candidates_exclude_bare_tld(name, expected):
    """
    Brief: Candidate suffixes run longest first and never include the TLD alone.

    Inputs:
      - name: parametrized host name

    Outputs:
      - None: Asserts candidate list
    """
    assert DomainResolver.candidates(name) == expected


def test_search_stops_at_first_registered_suffix(fake_client_cls, result_cache):
    """
    Brief: www.example.co.uk resolves to example.co.uk; co.uk and uk are never asked.

    Inputs:
      - query: www.example.co.uk

    Outputs:
      - None: Asserts query order and item
    """
    client = fake_client_cls({("domain", "example.co.uk"): EXAMPLE_CO_UK})
    adapter = DomainAdapter(client, result_cache)
    (item,) = adapter.search("global", "www.example.co.uk")
    assert client.queries() == ["www.example.co.uk", "example.co.uk"]
    assert item.attributes["ldhName"] == "example.co.uk"
    assert item.unique_attribute_value() == "EXAMPLE-CO-UK"


def test_search_links_nameservers_on_answering_server(fake_client_cls, result_cache):
    """
    Brief: Nameserver edges use the root of the server that returned the domain.

    Inputs:
      - query: example.co.uk

    Outputs:
      - None: Asserts nameserver and entity edges
    """
    client = fake_client_cls(
        {("domain", "example.co.uk"): EXAMPLE_CO_UK},
        url_root="https://rdap.nominet.uk/uk",
    )
    (item,) = DomainAdapter(client, result_cache).search("global", "example.co.uk")
    ns_links = [lq for lq in item.linked_queries if lq.item_type == "rdap-nameserver"]
    assert [lq.query for lq in ns_links] == [
        "https://rdap.nominet.uk/uk/nameserver/ns1.example.net",
        "https://rdap.nominet.uk/uk/nameserver/ns2.example.net",
    ]
    assert all(
        (lq.propagates_in, lq.propagates_out) == (True, False) for lq in ns_links
    )
    entity_lqs = [lq for lq in item.linked_queries if lq.item_type == "rdap-entity"]
    assert [lq.query for lq in entity_lqs] == ["https://rdap.example/entity/REG-1"]


def test_no_domain_found_is_cached(fake_client_cls, result_cache):
    """
    Brief: When no candidate answers, NOT_FOUND names the original query and is cached.

    Inputs:
      - query: a.b.c with no registered suffix

    Outputs:
      - None: Asserts message and no second round of requests
    """
    client = fake_client_cls({})
    adapter = DomainAdapter(client, result_cache)
    for _ in range(2):
        with pytest.raises(QueryError) as excinfo:
            adapter.search("global", "a.b.c")
        assert excinfo.value.error_type is ErrorType.NOT_FOUND
        assert excinfo.value.error_string == "No domain found for a.b.c"
        assert excinfo.value.item_type == "rdap-domain"
    assert client.queries() == ["a.b.c", "b.c"]


def test_transport_error_on_one_candidate_moves_on(fake_client_cls, result_cache):
    """
    Brief: A failing candidate is skipped rather than aborting the walk.

    Inputs:
      - answers: timeout for the full name, domain for the suffix

    Outputs:
      - None: Asserts the suffix answer is returned
    """
    client = fake_client_cls(
        {
            ("domain", "www.example.co.uk"): requests.Timeout("slow"),
            ("domain", "example.co.uk"): EXAMPLE_CO_UK,
        }
    )
    (item,) = DomainAdapter(client, result_cache).search("global", "www.example.co.uk")
    assert item.attributes["handle"] == "EXAMPLE-CO-UK"


def test_empty_domain_response_is_cached_not_found(fake_client_cls, result_cache):
    """
    Brief: A registry answer without an object stops the walk with NOT_FOUND.

    Inputs:
      - answer: None for example.com

    Outputs:
      - None: Asserts message and caching
    """
    client = fake_client_cls({("domain", "example.com"): None})
    adapter = DomainAdapter(client, result_cache)
    for _ in range(2):
        with pytest.raises(QueryError) as excinfo:
            adapter.search("global", "example.com")
        assert excinfo.value.error_string == "Empty domain response"
    assert len(client.requests) == 1


def test_unexpected_object_kind_raises(fake_client_cls, result_cache):
    """
    Brief: A non-domain answer raises UnexpectedResponseError.

    Inputs:
      - answer: entity for example.com

    Outputs:
      - None: Asserts exception type
    """
    client = fake_client_cls(
        {("domain", "example.com"): {"objectClassName": "entity", "handle": "E"}}
    )
    with pytest.raises(UnexpectedResponseError):
        DomainAdapter(client, result_cache).search("global", "example.com")


def test_get_and_list_are_not_supported(fake_client_cls, result_cache):
    """
    Brief: Domains are only reachable through SEARCH.

    Inputs:
      - None

    Outputs:
      - None: Asserts cached NOT_FOUND for GET and LIST
    """
    adapter = DomainAdapter(fake_client_cls(), result_cache)
    for call in (lambda: adapter.get("global", "X"), lambda: adapter.list("global")):
        with pytest.raises(QueryError) as excinfo:
            call()
        assert excinfo.value.error_type is ErrorType.NOT_FOUND
    for method, query in ((QueryMethod.GET, "X"), (QueryMethod.LIST, "")):
        hit, entry = result_cache.lookup(adapter.identity(method, "global", query))
        assert hit
        assert entry.error.error_type is ErrorType.NOT_FOUND


def test_cancel_during_suffix_walk_stops_and_stores_nothing(
    fake_client_cls, result_cache
):
    """
    Brief: A cancel set while a candidate is in flight ends the walk uncached.

    Inputs:
      - client: sets the cancel event inside do() for the first candidate

    Outputs:
      - None: Asserts one request, ResolutionCancelled and no cache entry
    """
    cancel = threading.Event()

    class CancellingClient(fake_client_cls):
        def do(self, request):
            cancel.set()
            return super().do(request)

    client = CancellingClient({("domain", "example.co.uk"): EXAMPLE_CO_UK})
    adapter = DomainAdapter(client, result_cache)
    with pytest.raises(ResolutionCancelled):
        adapter.search("global", "www.example.co.uk", cancel=cancel)
    assert client.queries() == ["www.example.co.uk"]
    identity = adapter.identity(QueryMethod.SEARCH, "global", "www.example.co.uk")
    assert result_cache.lookup(identity) == (False, None)

    cancel.clear()
    client.answers[("domain", "www.example.co.uk")] = EXAMPLE_CO_UK
    with pytest.raises(ResolutionCancelled):
        adapter.search("global", "www.example.co.uk", cancel=cancel)
    assert result_cache.lookup(identity) == (False, None)
