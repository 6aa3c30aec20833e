from __future__ import annotations

import ipaddress
from typing import Union

IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class CIDRError(ValueError):
    """Brief: Raised when a start/end pair cannot be turned into a network."""


def _parse(
    label: str, value: str
) -> Union[ipaddress.IPv4Address, ipaddress.IPv6Address]:
    try:
        return ipaddress.ip_address(str(value).strip())
    except ValueError as exc:
        raise CIDRError(f"Invalid {label} IP address: {value}") from exc


def common_prefix_length(start: bytes, end: bytes) -> int:
    """Brief: Count the leading bits two equal-length byte strings share.

    Inputs:
      - start: Packed address bytes.
      - end: Packed address bytes of the same length.

    Outputs:
      - int: Number of identical leading bits.

    Example:
      >>> common_prefix_length(bytes([192, 0, 2, 0]), bytes([192, 0, 2, 255]))
      24
    """

    prefix_len = 0
    for start_byte, end_byte in zip(start, end):
        if start_byte == end_byte:
            prefix_len += 8
            continue
        diff = start_byte ^ end_byte
        # Count zero bits from the most significant end of the differing byte.
        for bit in range(7, -1, -1):
            if diff & (1 << bit):
                break
            prefix_len += 1
        break
    return prefix_len


def covering_network(start_address: str, end_address: str) -> IPNetwork:
    """Brief: Derive the network a registry-reported address range belongs to.

    Inputs:
      - start_address: First address of the range (e.g. '192.0.2.0').
      - end_address: Last address of the range (e.g. '192.0.2.255').

    Outputs:
      - IPv4Network or IPv6Network made of start_address and the number of
        leading bits both addresses share (host bits cleared).

    Notes:
      - Registry allocations are not always power-of-two aligned; the longest
        common prefix network always contains the reported range.
      - Raises CIDRError when an address does not parse or the families differ.

    Example:
      >>> covering_network("192.0.2.0", "192.0.2.255")
      IPv4Network('192.0.2.0/24')
      >>> covering_network("2001:db8::", "2001:db8::ffff:ffff:ffff:ffff").prefixlen
      64
    """

    start = _parse("start", start_address)
    end = _parse("end", end_address)
    if start.version != end.version:
        raise CIDRError(
            f"Address family mismatch: {start_address} is IPv{start.version}, "
            f"{end_address} is IPv{end.version}"
        )

    prefix_len = common_prefix_length(start.packed, end.packed)
    return ipaddress.ip_network(f"{start}/{prefix_len}", strict=False)
