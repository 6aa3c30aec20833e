from __future__ import annotations

import ipaddress
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests
from cachetools import TTLCache

"""IANA RDAP bootstrap (RFC 9224).

Brief:
  Maps a query to the RDAP base URLs responsible for it using the IANA
  service registries. Registries are fetched lazily and memoized for
  bootstrap_ttl_seconds.

Inputs:
  - Public APIs documented on Bootstrap.

Outputs:
  - Bootstrap.
"""

logger = logging.getLogger(__name__)

DEFAULT_BOOTSTRAP_URL = "https://data.iana.org/rdap"
DEFAULT_BOOTSTRAP_TTL = 24 * 60 * 60

REGISTRY_FILES: Dict[str, str] = {
    "dns": "dns.json",
    "ipv4": "ipv4.json",
    "ipv6": "ipv6.json",
    "asn": "asn.json",
    "object-tags": "object-tags.json",
}


class BootstrapError(Exception):
    """Brief: A bootstrap registry could not be fetched or decoded."""


def _services(document: Any) -> List[Sequence[Any]]:
    if not isinstance(document, dict):
        return []
    services = document.get("services") or []
    return [s for s in services if isinstance(s, (list, tuple))]


class Bootstrap:
    """Resolve RDAP servers through the IANA bootstrap registries.

    Inputs:
      - session: requests.Session used for fetching (a new one when omitted).
      - base_url: Directory holding dns.json, ipv4.json, ipv6.json, asn.json
        and object-tags.json.
      - ttl_seconds: How long a fetched registry is reused.
      - timeout: Per-request timeout in seconds.
      - now: Optional monotonic time source for the registry cache.

    Outputs:
      - Bootstrap instance.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = DEFAULT_BOOTSTRAP_URL,
        ttl_seconds: float = DEFAULT_BOOTSTRAP_TTL,
        timeout: float = 10.0,
        *,
        now: Optional[Callable[[], float]] = None,
    ) -> None:
        self._session = session or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._cache: TTLCache = TTLCache(
            maxsize=len(REGISTRY_FILES), ttl=ttl_seconds, timer=now or time.monotonic
        )
        self._lock = threading.Lock()

    def registry(self, name: str) -> Dict[str, Any]:
        """Brief: Return the decoded registry document, fetching it if needed.

        Inputs:
          - name: One of dns, ipv4, ipv6, asn, object-tags.

        Outputs:
          - Decoded JSON mapping; raises BootstrapError on fetch or decode failure.
        """

        with self._lock:
            cached = self._cache.get(name)
        if cached is not None:
            return cached

        url = f"{self.base_url}/{REGISTRY_FILES[name]}"
        logger.debug("fetching RDAP bootstrap registry %s", url)
        try:
            resp = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise BootstrapError(f"failed to fetch {url}: {exc}") from exc
        if resp.status_code != 200:
            raise BootstrapError(f"failed to fetch {url}: HTTP {resp.status_code}")
        try:
            document = resp.json()
        except ValueError as exc:
            raise BootstrapError(f"invalid JSON in {url}: {exc}") from exc
        if not isinstance(document, dict):
            raise BootstrapError(f"unexpected bootstrap document in {url}")

        with self._lock:
            self._cache[name] = document
        return document

    def servers_for(self, request_type: str, query: str) -> List[str]:
        """Brief: Return the RDAP base URLs responsible for a query.

        Inputs:
          - request_type: ip, domain, nameserver, autnum or entity.
          - query: Query string for that type.

        Outputs:
          - List of base URLs, https first; empty when nothing matches.

        Notes:
          - Nameservers are bootstrapped through the dns registry of their name.
        """

        kind = str(request_type).lower()
        if kind == "ip":
            urls = self._for_ip(query)
        elif kind in ("domain", "nameserver"):
            urls = self._for_domain(query)
        elif kind == "autnum":
            urls = self._for_asn(query)
        elif kind == "entity":
            urls = self._for_entity(query)
        else:
            urls = []
        # Prefer https when a registry lists both schemes.
        return sorted(urls, key=lambda u: not u.lower().startswith("https://"))

    def _for_ip(self, query: str) -> List[str]:
        try:
            net = ipaddress.ip_network(str(query).strip(), strict=False)
        except ValueError:
            return []
        document = self.registry("ipv4" if net.version == 4 else "ipv6")
        best: Tuple[int, List[str]] = (-1, [])
        for service in _services(document):
            if len(service) < 2:
                continue
            for prefix in service[0]:
                try:
                    candidate = ipaddress.ip_network(str(prefix), strict=False)
                except ValueError:
                    continue
                if candidate.version != net.version:
                    continue
                if net.subnet_of(candidate) and candidate.prefixlen > best[0]:
                    best = (candidate.prefixlen, list(service[1]))
        return best[1]

    def _for_domain(self, query: str) -> List[str]:
        name = str(query).strip().rstrip(".").lower()
        if not name:
            return []
        document = self.registry("dns")
        best: Tuple[int, List[str]] = (-1, [])
        for service in _services(document):
            if len(service) < 2:
                continue
            for suffix in service[0]:
                suffix = str(suffix).strip(".").lower()
                if not suffix:
                    continue
                if name == suffix or name.endswith("." + suffix):
                    labels = suffix.count(".") + 1
                    if labels > best[0]:
                        best = (labels, list(service[1]))
        return best[1]

    def _for_asn(self, query: str) -> List[str]:
        text = str(query).strip().upper()
        if text.startswith("AS"):
            text = text[2:]
        try:
            asn = int(text)
        except ValueError:
            return []
        document = self.registry("asn")
        for service in _services(document):
            if len(service) < 2:
                continue
            for span in service[0]:
                low, _, high = str(span).partition("-")
                try:
                    lo = int(low)
                    hi = int(high) if high else lo
                except ValueError:
                    continue
                if lo <= asn <= hi:
                    return list(service[1])
        return []

    def _for_entity(self, query: str) -> List[str]:
        handle = str(query).strip()
        if "-" not in handle:
            return []
        tag = handle.rsplit("-", 1)[1].upper()
        document = self.registry("object-tags")
        for service in _services(document):
            # object-tags entries carry a leading contact list.
            if len(service) < 3:
                continue
            if tag in (str(t).upper() for t in service[1]):
                return list(service[2])
        return []
