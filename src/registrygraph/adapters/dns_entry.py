from __future__ import annotations

import ipaddress
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import dns.exception
import dns.name
import dns.rdatatype
import dns.resolver
import dns.reversename

from registrygraph.cache.base import ResultCachePlugin
from registrygraph.errors import ErrorType, QueryError
from registrygraph.items import GLOBAL_SCOPE, Item, QueryIdentity, QueryMethod
from registrygraph.links import cname_link, ip_links, rdap_domain_link

from .base import Adapter, adapter_aliases, check_cancel

"""DNS name adapter.

Brief:
  Resolves A and AAAA records through dnspython and shapes the answer
  section into graph items: one item per CNAME and one 'address' item per
  name that holds address records.

Inputs:
  - A dns.resolver.Resolver (or a compatible object exposing resolve()).

Outputs:
  - DNSAdapter, build_resolver and group_answers.
"""

logger = logging.getLogger(__name__)

DEFAULT_SERVERS: Tuple[str, ...] = ("1.1.1.1", "8.8.8.8", "8.8.4.4")
DNS_CACHE_TTL = 5 * 60


def build_resolver(
    servers: Optional[Sequence[str]] = None, timeout: float = 5.0
) -> dns.resolver.Resolver:
    """Brief: Build a stub resolver pointed at explicit servers.

    Inputs:
      - servers: Nameserver addresses; DEFAULT_SERVERS when empty.
      - timeout: Overall lifetime of one resolution in seconds.

    Outputs:
      - dns.resolver.Resolver that ignores the host's resolv.conf.
    """

    r = dns.resolver.Resolver(configure=False)
    r.nameservers = list(servers or DEFAULT_SERVERS)
    r.lifetime = float(timeout)
    return r


def _trim(name: Any) -> str:
    text = name.to_text() if isinstance(name, dns.name.Name) else str(name)
    return text[:-1] if text.endswith(".") else text


@dataclass
class AnswerGroup:
    """CNAME and address records of one resolution, keyed by owner name."""

    cname: Dict[str, Tuple[int, str]] = field(default_factory=dict)
    address: Dict[str, List[Tuple[int, str, str]]] = field(default_factory=dict)


def group_answers(rrsets: Iterable[Any]) -> AnswerGroup:
    """Brief: Group answer RRsets into CNAMEs and address records.

    Inputs:
      - rrsets: dns.rrset.RRset objects from one or more answer sections.

    Outputs:
      - AnswerGroup; duplicate records (a CNAME seen in both the A and the
        AAAA answer) collapse.
    """

    group = AnswerGroup()
    for rrset in rrsets:
        owner = _trim(rrset.name)
        if rrset.rdtype == dns.rdatatype.CNAME:
            for rdata in rrset:
                group.cname[owner] = (int(rrset.ttl), _trim(rdata.target))
        elif rrset.rdtype in (dns.rdatatype.A, dns.rdatatype.AAAA):
            typ = dns.rdatatype.to_text(rrset.rdtype)
            records = group.address.setdefault(owner, [])
            for rdata in rrset:
                record = (int(rrset.ttl), typ, rdata.address)
                if record not in records:
                    records.append(record)
    return group


@adapter_aliases("dns")
class DNSAdapter(Adapter):
    """Resolve DNS names into address and CNAME items.

    Inputs:
      - client: dns.resolver.Resolver (see build_resolver()).
      - cache: Shared ResultCachePlugin.
      - ttl: Cache window in seconds (DNS answers change faster than
        registry data).
      - reverse_lookup: When True, SEARCH for an IP follows its PTR records.

    Outputs:
      - DNSAdapter instance.
    """

    source_name = "stdlib-dns"
    item_type = "dns"
    descriptive_name = "DNS Entry"
    unique_attribute = "name"

    def __init__(
        self,
        client: Any,
        cache: ResultCachePlugin,
        ttl: float = DNS_CACHE_TTL,
        reverse_lookup: bool = False,
    ) -> None:
        super().__init__(client, cache, ttl)
        self.reverse_lookup = bool(reverse_lookup)

    @staticmethod
    def _is_ip(query: str) -> bool:
        try:
            ipaddress.ip_address(str(query).strip())
        except ValueError:
            return False
        return True

    def get(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> Item:
        """Brief: Resolve one name and return the item describing it.

        Notes:
          - IP addresses are a cached NOT_FOUND; use SEARCH for reverse
            lookups.
        """

        self.check_scope(scope)
        identity = self.identity(QueryMethod.GET, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit and items:
            return items[0]
        if self._is_ip(query):
            raise self.unsupported(
                QueryMethod.GET,
                scope,
                query,
                f"{query} is already an IP address, no DNS entry will be found",
            )

        items = self._resolve_or_fail(identity, query, scope, cancel)
        wanted = _trim(query).lower()
        chosen = next((i for i in items if i.unique_attribute_value() == wanted), None)
        item = chosen or items[0]
        self.store(identity, [item])
        return item

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
        """Brief: Resolve a name, or an IP through PTR when reverse lookups are on.

        Outputs:
          - list of dns Items (CNAMEs first, then address items); an IP
            query with reverse lookups disabled returns an empty list.
        """

        self.check_scope(scope)
        is_ip = self._is_ip(query)
        if is_ip and not self.reverse_lookup:
            return []
        identity = self.identity(QueryMethod.SEARCH, scope, query)
        hit, items = self.lookup(identity, ignore_cache)
        if hit:
            return list(items)

        if is_ip:
            items = self._reverse(identity, query, scope, cancel)
        else:
            items = self._resolve_or_fail(identity, query, scope, cancel)
        return self.store(identity, items)

    def _resolve_or_fail(
        self,
        identity: QueryIdentity,
        query: str,
        scope: str,
        cancel: Optional[threading.Event],
    ) -> List[Item]:
        try:
            return self.make_query(query, cancel)
        except QueryError as exc:
            check_cancel(cancel, f"DNS {query}")
            err = self.error(exc.error_type, exc.error_string, scope)
            raise self.fail(identity, err) from exc

    def _reverse(
        self,
        identity: QueryIdentity,
        query: str,
        scope: str,
        cancel: Optional[threading.Event],
    ) -> List[Item]:
        check_cancel(cancel, f"DNS PTR {query}")
        arpa = dns.reversename.from_address(str(query).strip())
        try:
            answer = self.client.resolve(arpa, "PTR", raise_on_no_answer=False)
        except dns.resolver.NXDOMAIN:
            check_cancel(cancel, f"DNS PTR {query}")
            err = self.error(ErrorType.NOT_FOUND, f"No PTR record for {query}", scope)
            raise self.fail(identity, err) from None
        except dns.exception.DNSException as exc:
            check_cancel(cancel, f"DNS PTR {query}")
            logger.warning("reverse lookup for %s failed: %s", query, exc)
            err = self.error(ErrorType.OTHER, str(exc), scope)
            raise self.fail(identity, err) from exc
        check_cancel(cancel, f"DNS PTR {query}")

        items: List[Item] = []
        for rrset in answer.response.answer:
            if rrset.rdtype != dns.rdatatype.PTR:
                continue
            for rdata in rrset:
                try:
                    items.extend(self.make_query(_trim(rdata.target), cancel))
                except QueryError as exc:
                    check_cancel(cancel, f"DNS PTR {query}")
                    err = self.error(exc.error_type, exc.error_string, scope)
                    raise self.fail(identity, err) from exc
        return items

    def make_query(
        self, query: str, cancel: Optional[threading.Event] = None
    ) -> List[Item]:
        """Brief: Resolve A and AAAA for query and build the resulting items.

        Inputs:
          - query: Host name.
          - cancel: Optional cancellation event, checked before each lookup.

        Outputs:
          - list[Item]; raises QueryError(NOT_FOUND) for NXDOMAIN or an empty
            answer and QueryError(OTHER) for resolver failures.
        """

        rrsets: List[Any] = []
        for rdtype in ("A", "AAAA"):
            check_cancel(cancel, f"DNS {query}")
            try:
                answer = self.client.resolve(query, rdtype, raise_on_no_answer=False)
            except dns.resolver.NXDOMAIN:
                break
            except dns.resolver.NoAnswer:
                continue
            except dns.exception.DNSException as exc:
                logger.warning("DNS %s lookup for %s failed: %s", rdtype, query, exc)
                raise QueryError(
                    ErrorType.OTHER,
                    str(exc) or exc.__class__.__name__,
                    scope=GLOBAL_SCOPE,
                ) from exc
            rrsets.extend(answer.response.answer)
        check_cancel(cancel, f"DNS {query}")

        if not rrsets:
            raise QueryError(
                ErrorType.NOT_FOUND, f"No DNS records for {query}", scope=GLOBAL_SCOPE
            )
        return self._items(group_answers(rrsets))

    def _items(self, group: AnswerGroup) -> List[Item]:
        items: List[Item] = []
        for name in sorted(group.cname):
            ttl, target = group.cname[name]
            items.append(
                Item(
                    item_type=self.item_type,
                    scope=GLOBAL_SCOPE,
                    unique_attribute=self.unique_attribute,
                    attributes={
                        "name": name,
                        "type": "CNAME",
                        "ttl": ttl,
                        "target": target,
                    },
                    linked_queries=rdap_domain_link(name) + cname_link(target),
                )
            )
        for name in sorted(group.address):
            records = sorted(group.address[name], key=lambda r: (r[1], r[2]))
            ips = [ip for _, _, ip in records]
            items.append(
                Item(
                    item_type=self.item_type,
                    scope=GLOBAL_SCOPE,
                    unique_attribute=self.unique_attribute,
                    attributes={
                        "name": name,
                        "type": "address",
                        "records": [
                            {"ttl": ttl, "type": typ, "ip": ip}
                            for ttl, typ, ip in records
                        ],
                    },
                    linked_queries=ip_links(ips) + rdap_domain_link(name),
                )
            )
        return items
