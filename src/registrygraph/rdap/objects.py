from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

"""Typed RDAP objects (RFC 9083).

Brief:
  One frozen dataclass per registry object kind, plus the shared building
  blocks (links, events, notices, public IDs, jCard). parse_object() is the
  single entry point that turns decoded JSON into the right variant.

Inputs:
  - Decoded RDAP JSON mappings.

Outputs:
  - IPNetwork, Domain, Entity, Nameserver and Autnum instances.
"""


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _strs(data: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = data.get(key) or ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def _int(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _dicts(data: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = data.get(key) or ()
    return [v for v in value if isinstance(v, Mapping)]


@dataclass(frozen=True)
class Link:
    """Brief: RDAP link; only href matters for graph attributes."""

    value: str = ""
    rel: str = ""
    href: str = ""
    hreflang: Tuple[str, ...] = ()
    title: str = ""
    media: str = ""
    type: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Link":
        return cls(
            value=_str(data, "value"),
            rel=_str(data, "rel"),
            href=_str(data, "href"),
            hreflang=_strs(data, "hreflang"),
            title=_str(data, "title"),
            media=_str(data, "media"),
            type=_str(data, "type"),
        )


def _links(data: Mapping[str, Any]) -> Tuple[Link, ...]:
    return tuple(Link.from_json(d) for d in _dicts(data, "links"))


@dataclass(frozen=True)
class Event:
    action: str = ""
    actor: str = ""
    date: str = ""
    links: Tuple[Link, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Event":
        return cls(
            action=_str(data, "eventAction"),
            actor=_str(data, "eventActor"),
            date=_str(data, "eventDate"),
            links=_links(data),
        )


@dataclass(frozen=True)
class Notice:
    """Brief: Notice or remark block (same shape in RDAP)."""

    title: str = ""
    type: str = ""
    description: Tuple[str, ...] = ()
    links: Tuple[Link, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Notice":
        return cls(
            title=_str(data, "title"),
            type=_str(data, "type"),
            description=_strs(data, "description"),
            links=_links(data),
        )


@dataclass(frozen=True)
class PublicID:
    type: str = ""
    identifier: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "PublicID":
        return cls(type=_str(data, "type"), identifier=_str(data, "identifier"))


@dataclass(frozen=True)
class VCardProperty:
    """Brief: One jCard property: [name, parameters, type, value, ...]."""

    name: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    type: str = "text"
    value: Any = None

    def types(self) -> Tuple[str, ...]:
        raw = self.parameters.get("type") or ()
        if isinstance(raw, str):
            raw = (raw,)
        return tuple(str(t).lower() for t in raw)

    def text(self) -> str:
        """Brief: Flatten the value to a single string (lists joined by spaces)."""

        value = self.value
        if isinstance(value, (list, tuple)):
            return " ".join(str(v) for v in _flatten(value) if v not in (None, ""))
        return "" if value is None else str(value)


def _flatten(values: Any) -> List[Any]:
    out: List[Any] = []
    for v in values:
        if isinstance(v, (list, tuple)):
            out.extend(_flatten(v))
        else:
            out.append(v)
    return out


# Position of each structured address component inside an "adr" value.
_ADR_FIELDS = (
    "POBox",
    "ExtendedAddress",
    "StreetAddress",
    "Locality",
    "Region",
    "PostalCode",
    "Country",
)


@dataclass(frozen=True)
class VCard:
    """Parsed jCard (RFC 7095) contact card.

    Inputs:
      - properties: Tuple of VCardProperty in document order.

    Outputs:
      - VCard with accessors for the commonly used properties.

    Example:
      >>> card = VCard.from_json(["vcard", [["fn", {}, "text", "Example Org"]]])
      >>> card.name()
      'Example Org'
    """

    properties: Tuple[VCardProperty, ...] = ()

    @classmethod
    def from_json(cls, data: Any) -> Optional["VCard"]:
        if not isinstance(data, (list, tuple)) or len(data) < 2:
            return None
        if str(data[0]).lower() != "vcard" or not isinstance(data[1], (list, tuple)):
            return None
        props: List[VCardProperty] = []
        for raw in data[1]:
            if not isinstance(raw, (list, tuple)) or len(raw) < 4:
                continue
            params = raw[1] if isinstance(raw[1], Mapping) else {}
            # Multi-valued properties carry extra trailing values.
            value = raw[3] if len(raw) == 4 else list(raw[3:])
            props.append(
                VCardProperty(
                    name=str(raw[0]).lower(),
                    parameters=dict(params),
                    type=str(raw[2]),
                    value=value,
                )
            )
        return cls(properties=tuple(props))

    def get(self, name: str) -> List[VCardProperty]:
        wanted = name.lower()
        return [p for p in self.properties if p.name == wanted]

    def _first_text(self, name: str) -> str:
        for prop in self.get(name):
            text = prop.text()
            if text:
                return text
        return ""

    def name(self) -> str:
        return self._first_text("fn")

    def org(self) -> str:
        return self._first_text("org")

    def email(self) -> str:
        return self._first_text("email")

    def tel(self) -> str:
        for prop in self.get("tel"):
            if "fax" not in prop.types():
                return prop.text()
        return ""

    def fax(self) -> str:
        for prop in self.get("tel"):
            if "fax" in prop.types():
                return prop.text()
        return ""

    def address(self) -> Dict[str, str]:
        """Brief: Structured components of the first 'adr' property."""

        for prop in self.get("adr"):
            value = prop.value
            if not isinstance(value, (list, tuple)):
                continue
            parts: Dict[str, str] = {}
            for label, component in zip(_ADR_FIELDS, value):
                if isinstance(component, (list, tuple)):
                    text = " ".join(str(c) for c in component if c)
                else:
                    text = "" if component is None else str(component)
                if text:
                    parts[label] = text
            return parts
        return {}

    def details(self) -> Dict[str, str]:
        """Brief: Flatten the card to a readable mapping, dropping empty fields.

        Outputs:
          - dict with any of Name, POBox, ExtendedAddress, StreetAddress,
            Locality, Region, PostalCode, Country, Tel, Fax, Email, Org.
        """

        out: Dict[str, str] = {}
        if self.name():
            out["Name"] = self.name()
        out.update(self.address())
        for label, value in (
            ("Tel", self.tel()),
            ("Fax", self.fax()),
            ("Email", self.email()),
            ("Org", self.org()),
        ):
            if value:
                out[label] = value
        return out


@dataclass(frozen=True)
class IPAddresses:
    v4: Tuple[str, ...] = ()
    v6: Tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Any) -> Optional["IPAddresses"]:
        if not isinstance(data, Mapping):
            return None
        return cls(v4=_strs(data, "v4"), v6=_strs(data, "v6"))

    def all(self) -> Tuple[str, ...]:
        return self.v4 + self.v6


@dataclass(frozen=True)
class RDAPObject:
    """Fields shared by every RDAP object class."""

    object_class_name: str = ""
    handle: str = ""
    conformance: Tuple[str, ...] = ()
    notices: Tuple[Notice, ...] = ()
    remarks: Tuple[Notice, ...] = ()
    links: Tuple[Link, ...] = ()
    events: Tuple[Event, ...] = ()
    status: Tuple[str, ...] = ()
    port43: str = ""
    entities: Tuple["Entity", ...] = ()

    @staticmethod
    def _common(data: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "object_class_name": _str(data, "objectClassName"),
            "handle": _str(data, "handle"),
            "conformance": _strs(data, "rdapConformance"),
            "notices": tuple(Notice.from_json(d) for d in _dicts(data, "notices")),
            "remarks": tuple(Notice.from_json(d) for d in _dicts(data, "remarks")),
            "links": _links(data),
            "events": tuple(Event.from_json(d) for d in _dicts(data, "events")),
            "status": _strs(data, "status"),
            "port43": _str(data, "port43"),
            "entities": tuple(Entity.from_json(d) for d in _dicts(data, "entities")),
        }

    def self_link(self) -> str:
        """Brief: Return the href of the link marked rel=self ('' if none)."""

        for link in self.links:
            if link.rel == "self":
                return link.href
        return ""


@dataclass(frozen=True)
class IPNetwork(RDAPObject):
    start_address: str = ""
    end_address: str = ""
    ip_version: str = ""
    name: str = ""
    type: str = ""
    country: str = ""
    parent_handle: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "IPNetwork":
        return cls(
            **cls._common(data),
            start_address=_str(data, "startAddress"),
            end_address=_str(data, "endAddress"),
            ip_version=_str(data, "ipVersion"),
            name=_str(data, "name"),
            type=_str(data, "type"),
            country=_str(data, "country"),
            parent_handle=_str(data, "parentHandle"),
        )


@dataclass(frozen=True)
class Autnum(RDAPObject):
    start_autnum: Optional[int] = None
    end_autnum: Optional[int] = None
    ip_version: str = ""
    name: str = ""
    type: str = ""
    country: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Autnum":
        return cls(
            **cls._common(data),
            start_autnum=_int(data, "startAutnum"),
            end_autnum=_int(data, "endAutnum"),
            ip_version=_str(data, "ipVersion"),
            name=_str(data, "name"),
            type=_str(data, "type"),
            country=_str(data, "country"),
        )


@dataclass(frozen=True)
class Entity(RDAPObject):
    vcard: Optional[VCard] = None
    roles: Tuple[str, ...] = ()
    public_ids: Tuple[PublicID, ...] = ()
    as_event_actor: Tuple[Event, ...] = ()
    autnums: Tuple[Autnum, ...] = ()
    networks: Tuple[IPNetwork, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Entity":
        return cls(
            **cls._common(data),
            vcard=VCard.from_json(data.get("vcardArray")),
            roles=_strs(data, "roles"),
            public_ids=tuple(PublicID.from_json(d) for d in _dicts(data, "publicIds")),
            as_event_actor=tuple(
                Event.from_json(d) for d in _dicts(data, "asEventActor")
            ),
            autnums=tuple(Autnum.from_json(d) for d in _dicts(data, "autnums")),
            networks=tuple(IPNetwork.from_json(d) for d in _dicts(data, "networks")),
        )


@dataclass(frozen=True)
class Nameserver(RDAPObject):
    ldh_name: str = ""
    unicode_name: str = ""
    ip_addresses: Optional[IPAddresses] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Nameserver":
        return cls(
            **cls._common(data),
            ldh_name=_str(data, "ldhName"),
            unicode_name=_str(data, "unicodeName"),
            ip_addresses=IPAddresses.from_json(data.get("ipAddresses")),
        )


@dataclass(frozen=True)
class Domain(RDAPObject):
    ldh_name: str = ""
    unicode_name: str = ""
    variants: Tuple[Mapping[str, Any], ...] = ()
    secure_dns: Optional[Mapping[str, Any]] = None
    nameservers: Tuple[Nameserver, ...] = ()
    public_ids: Tuple[PublicID, ...] = ()
    network: Optional[IPNetwork] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Domain":
        secure_dns = data.get("secureDNS")
        network = data.get("network")
        return cls(
            **cls._common(data),
            ldh_name=_str(data, "ldhName"),
            unicode_name=_str(data, "unicodeName"),
            variants=tuple(dict(d) for d in _dicts(data, "variants")),
            secure_dns=dict(secure_dns) if isinstance(secure_dns, Mapping) else None,
            nameservers=tuple(
                Nameserver.from_json(d) for d in _dicts(data, "nameservers")
            ),
            public_ids=tuple(PublicID.from_json(d) for d in _dicts(data, "publicIds")),
            network=(
                IPNetwork.from_json(network) if isinstance(network, Mapping) else None
            ),
        )


OBJECT_CLASSES: Dict[str, Type[RDAPObject]] = {
    "ip network": IPNetwork,
    "autnum": Autnum,
    "entity": Entity,
    "nameserver": Nameserver,
    "domain": Domain,
}


def parse_object(data: Any) -> RDAPObject:
    """Brief: Build the typed RDAP object for a decoded JSON document.

    Inputs:
      - data: Decoded JSON mapping with an objectClassName member.

    Outputs:
      - IPNetwork, Autnum, Entity, Nameserver or Domain.

    Notes:
      - Raises ValueError for non-mappings and unknown object classes.

    Example:
      >>> parse_object({"objectClassName": "autnum", "handle": "AS15169"}).handle
      'AS15169'
    """

    if not isinstance(data, Mapping):
        raise ValueError(
            f"RDAP object must be a JSON object, got {type(data).__name__}"
        )
    class_name = _str(data, "objectClassName").strip().lower()
    cls = OBJECT_CLASSES.get(class_name)
    if cls is None:
        raise ValueError(f"Unknown RDAP objectClassName: {class_name!r}")
    return cls.from_json(data)  # type: ignore[attr-defined]
