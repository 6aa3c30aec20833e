from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import quote

from registrygraph.errors import ErrorType, QueryError

_RDAP_URL = re.compile(r"^(https?://.+)/(ip|nameserver|entity|autnum|domain)/([^/]+)$")


@dataclass(frozen=True)
class RDAPUrl:
    """Components of an RDAP object URL.

    Inputs:
      - server_root: Root queries are run against, e.g. 'https://rdap.apnic.net'.
      - type: Object path segment: ip, nameserver, entity, autnum or domain.
      - query: Object key, e.g. 'AIC3-AP'.

    Outputs:
      - Immutable parsed URL.
    """

    server_root: str
    type: str
    query: str

    def object_url(self) -> str:
        return join_object_url(self.server_root, self.type, self.query)


def parse_rdap_url(url: str) -> RDAPUrl:
    """Brief: Split an RDAP object URL into server root, type and query.

    Inputs:
      - url: e.g. 'https://rdap.arin.net/registry/entity/GOGL'.

    Outputs:
      - RDAPUrl; raises QueryError(MALFORMED) when the URL does not match.

    Example:
      >>> parse_rdap_url("https://rdap.arin.net/registry/entity/GOGL").server_root
      'https://rdap.arin.net/registry'
    """

    match = _RDAP_URL.match(str(url).strip())
    if match is None:
        raise QueryError(ErrorType.MALFORMED, f"Invalid RDAP URL: {url}")
    return RDAPUrl(
        server_root=match.group(1), type=match.group(2), query=match.group(3)
    )


def server_root_from_urls(urls: Iterable[str]) -> Optional[str]:
    """Brief: Return the server root of the first URL that parses as RDAP."""

    for url in urls:
        if not url:
            continue
        try:
            return parse_rdap_url(url).server_root
        except QueryError:
            continue
    return None


def join_object_url(server_root: str, object_type: str, query: str) -> str:
    """Brief: Build '<server_root>/<object_type>/<query>' with one slash between parts.

    Example:
      >>> root = "https://rdap.verisign.com/com/v1/"
      >>> join_object_url(root, "nameserver", "NS1.GOOGLE.COM")
      'https://rdap.verisign.com/com/v1/nameserver/NS1.GOOGLE.COM'
    """

    # CIDR queries keep their slash (e.g. ip/192.0.2.0/24).
    safe = "/:" if object_type == "ip" else ":"
    return f"{server_root.rstrip('/')}/{object_type}/{quote(query, safe=safe)}"
