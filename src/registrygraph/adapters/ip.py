from __future__ import annotations

import ipaddress
import threading
from typing import Any, Dict, List, Optional, Union

from registrygraph.errors import ErrorType
from registrygraph.items import Item

from .base import Adapter, adapter_aliases

# RFC 1918 and RFC 4193 only; narrower than ipaddress.is_private.
_PRIVATE = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("fc00::/7"),
)
_V4_LINK_LOCAL_MULTICAST = ipaddress.ip_network("224.0.0.0/24")


def ip_properties(
    address: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
) -> Dict[str, Any]:
    """Brief: Inherent properties of an IP address.

    Inputs:
      - address: IPv4Address or IPv6Address.

    Outputs:
      - dict of attribute name to value.

    Example:
      >>> ip_properties(ipaddress.ip_address("10.1.2.3"))["private"]
      True
    """

    v6 = address.version == 6
    multicast = address.is_multicast
    # IPv6 multicast scope lives in the low nibble of the second byte.
    scope_nibble = address.packed[1] & 0x0F if v6 and multicast else None
    if v6:
        link_local_multicast = scope_nibble == 0x02
    else:
        link_local_multicast = address in _V4_LINK_LOCAL_MULTICAST
    return {
        "ip": str(address),
        "version": address.version,
        "unspecified": address.is_unspecified,
        "loopback": address.is_loopback,
        "private": any(
            address in net for net in _PRIVATE if net.version == address.version
        ),
        "multicast": multicast,
        "interfaceLocalMulticast": scope_nibble == 0x01,
        "linkLocalMulticast": link_local_multicast,
        "linkLocalUnicast": address.is_link_local and not multicast,
    }


@adapter_aliases("ip")
class IPAdapter(Adapter):
    """Describe an IP address from the address alone; no upstream calls.

    Inputs:
      - client: Unused; kept for a uniform constructor.
      - cache: Shared ResultCachePlugin (unused, nothing to memoize).
      - ttl: Unused.

    Outputs:
      - IPAdapter instance.
    """

    source_name = "stdlib-ip"
    item_type = "ip"
    descriptive_name = "IP Address"
    unique_attribute = "ip"

    def get(
        self,
        scope: str,
        query: str,
        ignore_cache: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> Item:
        self.check_scope(scope)
        try:
            address = ipaddress.ip_address(str(query).strip())
        except ValueError:
            raise self.error(
                ErrorType.MALFORMED, f"{query} is not a valid IP", scope
            ) from None
        return Item(
            item_type=self.item_type,
            scope=scope,
            unique_attribute=self.unique_attribute,
            attributes=ip_properties(address),
        )

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
        return [self.get(scope, query, ignore_cache, cancel)]
