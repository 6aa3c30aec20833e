from __future__ import annotations

import ipaddress
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar, Union

"""Range-containment cache for IP allocations.

Brief:
  Registries answer an IP query with the whole allocation that contains it
  (for example a /16). Storing that allocation keyed by its network lets
  every other address inside it resolve without another upstream call.

Inputs:
  - Public APIs documented on RangeCache.

Outputs:
  - RangeCache and RangeRecord.
"""

logger = logging.getLogger(__name__)

V = TypeVar("V")

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def _containing(addr: IPAddress, prefixlen: int) -> IPNetwork:
    return ipaddress.ip_network(f"{addr}/{prefixlen}", strict=False)


@dataclass(frozen=True)
class RangeRecord(Generic[V]):
    """Cached registry object for one network.

    Inputs:
      - network: Normalized network the object covers.
      - value: Cached registry object.
      - expires_at: Absolute expiry in epoch seconds.
      - seq: Store sequence number (higher is more recent).

    Outputs:
      - Immutable record.
    """

    network: IPNetwork
    value: V
    expires_at: float
    seq: int


class RangeCache(Generic[V]):
    """Network-keyed cache answered by containment rather than equality.

    Brief:
      Records are grouped by IP version and prefix length. A point or
      sub-network lookup probes each stored prefix length from the longest
      down, so the first live match is the most specific containing network.
      Storing the same network again replaces the older record, so among
      equally specific matches the most recently stored one wins.

    Inputs:
      - now: Optional callable returning current time in epoch seconds.

    Outputs:
      - RangeCache instance.

    Example:
      >>> cache = RangeCache()
      >>> cache.store("1.1.1.0/24", "apnic", 60)
      >>> cache.search_point("1.1.1.254")
      ('apnic', True)
      >>> cache.search_point("1.1.2.1")
      (None, False)
    """

    def __init__(self, *, now: Optional[Callable[[], float]] = None) -> None:
        self._now: Callable[[], float] = now or time.time
        # version -> prefixlen -> network -> record
        self._records: Dict[int, Dict[int, Dict[IPNetwork, RangeRecord[V]]]] = {
            4: {},
            6: {},
        }
        self._seq = 0
        self._lock = threading.Lock()

    @staticmethod
    def _as_network(network: Union[str, IPNetwork]) -> IPNetwork:
        if isinstance(network, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
            return network
        return ipaddress.ip_network(str(network).strip(), strict=False)

    @staticmethod
    def _as_address(address: Union[str, IPAddress]) -> IPAddress:
        if isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            return address
        return ipaddress.ip_address(str(address).strip())

    def store(self, network: Union[str, IPNetwork], value: V, ttl: float) -> None:
        """Brief: Cache value for every address inside network.

        Inputs:
          - network: Network (string or ipaddress object); host bits are cleared.
          - value: Object to return for contained lookups.
          - ttl: Seconds until the record expires; non-positive TTLs are ignored.

        Outputs:
          - None.
        """

        net = self._as_network(network)
        if ttl <= 0:
            return
        expires_at = self._now() + float(ttl)
        with self._lock:
            self._seq += 1
            by_len = self._records[net.version].setdefault(net.prefixlen, {})
            by_len[net] = RangeRecord(
                network=net, value=value, expires_at=expires_at, seq=self._seq
            )
        logger.debug("range cache stored %s (ttl=%ss)", net, ttl)

    def search_point(self, address: Union[str, IPAddress]) -> Tuple[Optional[V], bool]:
        """Brief: Return the value of the narrowest live network containing address.

        Inputs:
          - address: IP address (string or ipaddress object).

        Outputs:
          - (value, True) on a hit, (None, False) otherwise.
        """

        addr = self._as_address(address)
        record = self._search(
            addr.version, addr.max_prefixlen, lambda plen: _containing(addr, plen)
        )
        if record is None:
            return None, False
        return record.value, True

    def search_network(
        self, network: Union[str, IPNetwork]
    ) -> Tuple[Optional[V], bool]:
        """Brief: Return the value of the narrowest live network containing network.

        Inputs:
          - network: Network to cover (string or ipaddress object).

        Outputs:
          - (value, True) when a stored network is a superset of (or equal
            to) the queried one, (None, False) otherwise.
        """

        net = self._as_network(network)
        record = self._search(
            net.version, net.prefixlen, lambda plen: net.supernet(new_prefix=plen)
        )
        if record is None:
            return None, False
        return record.value, True

    def lookup_point(self, address: Union[str, IPAddress]) -> Optional[RangeRecord[V]]:
        """Brief: Like search_point but returns the whole RangeRecord (or None)."""

        addr = self._as_address(address)
        return self._search(
            addr.version, addr.max_prefixlen, lambda plen: _containing(addr, plen)
        )

    def _search(
        self,
        version: int,
        max_prefixlen: int,
        candidate_for: Callable[[int], IPNetwork],
    ) -> Optional[RangeRecord[V]]:
        now = self._now()
        with self._lock:
            by_version = self._records[version]
            for plen in sorted(by_version.keys(), reverse=True):
                if plen > max_prefixlen:
                    continue
                by_len = by_version[plen]
                candidate = candidate_for(plen)
                record = by_len.get(candidate)
                if record is None:
                    continue
                if record.expires_at <= now:
                    # Lazily drop; a wider live network may still match.
                    del by_len[candidate]
                    if not by_len:
                        del by_version[plen]
                    continue
                return record
        return None

    def purge_expired(self) -> int:
        """Brief: Remove every expired record; return how many were removed."""

        now = self._now()
        removed = 0
        with self._lock:
            for by_version in self._records.values():
                for plen in list(by_version.keys()):
                    by_len = by_version[plen]
                    for net, record in list(by_len.items()):
                        if record.expires_at <= now:
                            del by_len[net]
                            removed += 1
                    if not by_len:
                        del by_version[plen]
        return removed

    def __len__(self) -> int:
        with self._lock:
            return sum(
                len(by_len)
                for by_version in self._records.values()
                for by_len in by_version.values()
            )
