from __future__ import annotations

import dataclasses
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from registrygraph.rdap.objects import (
    Autnum,
    Domain,
    Entity,
    Event,
    IPAddresses,
    IPNetwork,
    Link,
    Nameserver,
    Notice,
    PublicID,
    RDAPObject,
    VCard,
)

"""Field selection for RDAP items.

Brief:
  Each item type lists exactly which object fields are copied into the
  item's attributes and under which name. Values are rendered to plain JSON
  types: links collapse to their href, vCards to their detail mapping and
  nested records to camelCase dicts. Empty values are dropped.
"""

FieldTable = Tuple[Tuple[str, str], ...]

FIELD_TABLES: Dict[str, FieldTable] = {
    "rdap-ip-network": (
        ("conformance", "conformance"),
        ("country", "country"),
        ("endAddress", "end_address"),
        ("events", "events"),
        ("handle", "handle"),
        ("ipVersion", "ip_version"),
        ("links", "links"),
        ("name", "name"),
        ("notices", "notices"),
        ("objectClassName", "object_class_name"),
        ("parentHandle", "parent_handle"),
        ("port43", "port43"),
        ("remarks", "remarks"),
        ("startAddress", "start_address"),
        ("status", "status"),
        ("type", "type"),
    ),
    "rdap-domain": (
        ("conformance", "conformance"),
        ("events", "events"),
        ("handle", "handle"),
        ("ldhName", "ldh_name"),
        ("links", "links"),
        ("notices", "notices"),
        ("objectClassName", "object_class_name"),
        ("port43", "port43"),
        ("publicIDs", "public_ids"),
        ("remarks", "remarks"),
        ("secureDNS", "secure_dns"),
        ("status", "status"),
        ("unicodeName", "unicode_name"),
        ("variants", "variants"),
    ),
    "rdap-entity": (
        ("asEventActor", "as_event_actor"),
        ("conformance", "conformance"),
        ("events", "events"),
        ("handle", "handle"),
        ("links", "links"),
        ("notices", "notices"),
        ("objectClassName", "object_class_name"),
        ("port43", "port43"),
        ("publicIDs", "public_ids"),
        ("remarks", "remarks"),
        ("roles", "roles"),
        ("status", "status"),
        ("vCard", "vcard"),
    ),
    "rdap-nameserver": (
        ("conformance", "conformance"),
        ("events", "events"),
        ("handle", "handle"),
        ("ipAddresses", "ip_addresses"),
        ("ldhName", "ldh_name"),
        ("links", "links"),
        ("notices", "notices"),
        ("objectClassName", "object_class_name"),
        ("port43", "port43"),
        ("remarks", "remarks"),
        ("status", "status"),
        ("unicodeName", "unicode_name"),
    ),
    "rdap-asn": (
        ("conformance", "conformance"),
        ("country", "country"),
        ("endAutnum", "end_autnum"),
        ("events", "events"),
        ("handle", "handle"),
        ("ipVersion", "ip_version"),
        ("links", "links"),
        ("name", "name"),
        ("notices", "notices"),
        ("objectClassName", "object_class_name"),
        ("port43", "port43"),
        ("remarks", "remarks"),
        ("startAutnum", "start_autnum"),
        ("status", "status"),
        ("type", "type"),
    ),
}

ITEM_TYPES: Dict[Type[RDAPObject], str] = {
    IPNetwork: "rdap-ip-network",
    Domain: "rdap-domain",
    Entity: "rdap-entity",
    Nameserver: "rdap-nameserver",
    Autnum: "rdap-asn",
}

# Nested records use their RDAP JSON member names.
NESTED_TABLES: Dict[type, FieldTable] = {
    Event: (
        ("eventAction", "action"),
        ("eventActor", "actor"),
        ("eventDate", "date"),
        ("links", "links"),
    ),
    Notice: (
        ("title", "title"),
        ("type", "type"),
        ("description", "description"),
        ("links", "links"),
    ),
    PublicID: (("type", "type"), ("identifier", "identifier")),
    IPAddresses: (("v4", "v4"), ("v6", "v6")),
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, tuple, list, dict)) or isinstance(value, Mapping):
        return len(value) == 0
    return False


def render(value: Any) -> Any:
    """Brief: Convert an RDAP value to plain JSON types.

    Inputs:
      - value: Any field value from an RDAP object.

    Outputs:
      - str/int/bool/list/dict; None when the rendered value is empty.

    Example:
      >>> render(Link(rel="self", href="https://rdap.example/entity/X"))
      'https://rdap.example/entity/X'
      >>> render(("", None)) is None
      True
    """

    if isinstance(value, Link):
        return value.href or None
    if isinstance(value, VCard):
        return value.details() or None
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        table = NESTED_TABLES.get(type(value))
        if table is None:
            table = tuple(
                (_camel(f.name), f.name) for f in dataclasses.fields(value)
            )
        return _render_table(value, table) or None
    if isinstance(value, Mapping):
        out = {}
        for key, inner in value.items():
            rendered = render(inner)
            if not _is_empty(rendered):
                out[str(key)] = rendered
        return out or None
    if isinstance(value, (list, tuple)):
        rendered_list = [render(v) for v in value]
        return [v for v in rendered_list if not _is_empty(v)] or None
    if isinstance(value, str):
        return value or None
    return value


def _render_table(obj: Any, table: FieldTable) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for attribute, field_name in table:
        rendered = render(getattr(obj, field_name, None))
        if not _is_empty(rendered):
            out[attribute] = rendered
    return out


def to_attributes(obj: RDAPObject, item_type: Optional[str] = None) -> Dict[str, Any]:
    """Brief: Copy the fields listed for an object's item type into attributes.

    Inputs:
      - obj: Typed RDAP object.
      - item_type: Optional item type; derived from the object class when omitted.

    Outputs:
      - dict of attribute name to rendered value, empty values dropped.

    Example:
      >>> to_attributes(Autnum(handle="AS15169", start_autnum=15169, end_autnum=15169))
      {'endAutnum': 15169, 'handle': 'AS15169', 'startAutnum': 15169}
    """

    kind = item_type or ITEM_TYPES.get(type(obj))
    if kind is None or kind not in FIELD_TABLES:
        raise KeyError(f"No attribute table for {type(obj).__name__}")
    return _render_table(obj, FIELD_TABLES[kind])
