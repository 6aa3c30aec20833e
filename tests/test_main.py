"""
Brief: Tests for the registrygraph command-line entry point.

Inputs:
  - None

Outputs:
  - None
"""

import io
import json

import pytest

import registrygraph.main as main_mod
from registrygraph.adapters import ASNAdapter, IPAdapter
from registrygraph.cache import ResultCache
from registrygraph.errors import UnexpectedResponseError
from registrygraph.main import main
from registrygraph.rdap.client import RDAPResponse
from registrygraph.rdap.objects import Autnum


class StubClient:
    """
    Brief: RDAP client stub returning a fixed object or raising.

    Inputs:
      - result: RDAPResponse or exception

    Outputs:
      - Object with do()
    """

    def __init__(self, result):
        self.result = result

    def do(self, request):
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


@pytest.fixture
def patched(monkeypatch):
    """
    Brief: Replace new_adapters with offline IP and ASN adapters.

    Inputs:
      - monkeypatch: pytest fixture

    Outputs:
      - dict holding the client result to serve
    """
    state = {"result": RDAPResponse(Autnum(handle="AS64496", start_autnum=64496))}

    def fake_new_adapters(settings):
        cache = ResultCache()
        return [
            IPAdapter(None, cache),
            ASNAdapter(StubClient(state["result"]), cache),
        ]

    monkeypatch.setattr(main_mod, "new_adapters", fake_new_adapters)
    return state


def _run(argv):
    out = io.StringIO()
    rc = main(argv, out=out)
    return rc, out.getvalue()


def test_get_prints_items_as_json(patched):
    """
    Brief: A successful GET prints a JSON list of items and exits 0.

    Inputs:
      - argv: ip GET 192.0.2.1

    Outputs:
      - None: Asserts exit code and JSON body
    """
    rc, body = _run(["ip", "get", "192.0.2.1"])
    assert rc == 0
    (item,) = json.loads(body)
    assert item["type"] == "ip"
    assert item["attributes"]["ip"] == "192.0.2.1"


def test_alias_and_list(patched):
    """
    Brief: Adapters are addressable by alias and LIST needs no query.

    Inputs:
      - argv: autnum GET AS64496, then ip LIST

    Outputs:
      - None: Asserts JSON results
    """
    rc, body = _run(["autnum", "GET", "AS64496"])
    assert rc == 0
    assert json.loads(body)[0]["attributes"]["handle"] == "AS64496"

    rc, body = _run(["ip", "LIST"])
    assert rc == 0
    assert json.loads(body) == []


def test_query_error_prints_json_error(patched):
    """
    Brief: A QueryError is printed as a JSON error object with exit code 1.

    Inputs:
      - argv: rdap-asn GET ASabc

    Outputs:
      - None: Asserts exit code and error fields
    """
    rc, body = _run(["rdap-asn", "GET", "ASabc"])
    assert rc == 1
    err = json.loads(body)["error"]
    assert err["errorType"] == "MALFORMED"
    assert err["itemType"] == "rdap-asn"


def test_unexpected_response_is_reported_as_other(patched):
    """
    Brief: An upstream object of the wrong kind exits 1 with an OTHER error.

    Inputs:
      - client result: UnexpectedResponseError

    Outputs:
      - None: Asserts error type
    """
    patched["result"] = UnexpectedResponseError("Expected Autnum, got Domain")
    rc, body = _run(["rdap-asn", "GET", "AS1"])
    assert rc == 1
    assert json.loads(body)["error"]["errorType"] == "OTHER"


def test_usage_errors_exit_2(patched, capsys):
    """
    Brief: Unknown types and missing queries exit 2 without output.

    Inputs:
      - argv: unknown type; GET without query

    Outputs:
      - None: Asserts exit codes and stderr messages
    """
    rc, body = _run(["nope", "GET", "x"])
    assert rc == 2
    assert body == ""
    assert "Unknown item type 'nope'" in capsys.readouterr().err

    rc, body = _run(["ip", "SEARCH"])
    assert rc == 2
    assert "SEARCH requires a query" in capsys.readouterr().err

    with pytest.raises(SystemExit) as excinfo:
        main(["ip", "DELETE", "x"])
    assert excinfo.value.code == 2


def test_bad_config_exits_1(patched, tmp_path, capsys):
    """
    Brief: An invalid or missing config file is reported and exits 1.

    Inputs:
      - argv: --config pointing at invalid and missing files

    Outputs:
      - None: Asserts exit code and message
    """
    path = tmp_path / "config.yaml"
    path.write_text("cache:\n  ttl_seconds: -5\n")
    rc, _ = _run(["--config", str(path), "ip", "GET", "192.0.2.1"])
    assert rc == 1
    assert "cache.ttl_seconds" in capsys.readouterr().err

    rc, _ = _run(["--config", str(tmp_path / "missing.yaml"), "ip", "LIST"])
    assert rc == 1


def test_config_file_is_applied(patched, tmp_path):
    """
    Brief: A valid config file is loaded before adapters are built.

    Inputs:
      - argv: --config with logging settings

    Outputs:
      - None: Asserts exit code 0
    """
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  level: warn\n  stderr: false\n")
    rc, _ = _run(["--config", str(path), "ip", "GET", "192.0.2.1"])
    assert rc == 0
