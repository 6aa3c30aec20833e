"""
Brief: Shared fakes for adapter tests.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from registrygraph.cache import ResultCache
from registrygraph.rdap.client import ClientErrorType, RDAPClientError, RDAPResponse
from registrygraph.rdap.objects import parse_object


class FakeRDAPClient:
    """
    Brief: RDAPClient stand-in answering from a (type, query) -> result map.

    Inputs:
      - answers: dict keyed by (request type value, query); values are
        RDAPResponse, decoded JSON dicts, None (empty object) or exceptions

    Outputs:
      - Object with do() recording every RDAPRequest
    """

    def __init__(self, answers=None, url_root="https://rdap.example"):
        self.answers = dict(answers or {})
        self.url_root = url_root
        self.requests = []

    def do(self, request):
        self.requests.append(request)
        key = (request.type.value, request.query)
        if key not in self.answers:
            raise RDAPClientError(
                ClientErrorType.OBJECT_DOES_NOT_EXIST, "object does not exist"
            )
        result = self.answers[key]
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, RDAPResponse):
            return result
        root = request.server or self.url_root
        url = f"{root}/{request.type.value}/{request.query}"
        obj = parse_object(result) if result is not None else None
        return RDAPResponse(object=obj, urls=(url,))

    def queries(self):
        return [r.query for r in self.requests]


@pytest.fixture
def result_cache(clock):
    """
    Brief: ResultCache driven by the FakeClock fixture.

    Inputs:
      - clock: FakeClock

    Outputs:
      - ResultCache instance
    """
    return ResultCache(now=clock)


@pytest.fixture
def fake_client_cls():
    """
    Brief: Expose FakeRDAPClient to tests.

    Inputs:
      - None

    Outputs:
      - FakeRDAPClient class
    """
    return FakeRDAPClient
