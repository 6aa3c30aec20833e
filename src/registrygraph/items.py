from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Tuple

"""Graph item and query identity types.

Brief:
  These are the values exchanged between adapters, the caches and the
  orchestrating engine. All of them are immutable once constructed.

Inputs:
  - Public APIs documented on individual classes.

Outputs:
  - QueryMethod, QueryIdentity, LinkedQuery and Item.
"""

GLOBAL_SCOPE = "global"


class QueryMethod(str, Enum):
    """Brief: Query methods an adapter can be asked to run."""

    GET = "GET"
    LIST = "LIST"
    SEARCH = "SEARCH"


@dataclass(frozen=True)
class QueryIdentity:
    """Identity of a single query, used verbatim as a cache key.

    Inputs:
      - source: Adapter/source name (e.g. 'rdap').
      - method: QueryMethod used.
      - scope: Scope the query runs in (e.g. 'global').
      - item_type: Item type requested (e.g. 'rdap-domain').
      - query: Query string exactly as supplied by the caller.

    Outputs:
      - Hashable identity; two identities with equal fields are the same
        request for caching purposes.

    Example:
      >>> args = ("rdap", QueryMethod.SEARCH, "global", "rdap-domain", "example.com")
      >>> a, b = QueryIdentity(*args), QueryIdentity(*args)
      >>> a == b and hash(a) == hash(b)
      True
    """

    source: str
    method: QueryMethod
    scope: str
    item_type: str
    query: str


@dataclass(frozen=True)
class LinkedQuery:
    """Edge descriptor pointing from an item to a query for related items.

    Inputs:
      - item_type: Target item type.
      - scope: Target scope.
      - method: Target query method.
      - query: Target query string.
      - propagates_in: A change to the target may affect the source item.
      - propagates_out: A change to the source item may affect the target.

    Outputs:
      - Immutable edge descriptor.
    """

    item_type: str
    scope: str
    method: QueryMethod
    query: str
    propagates_in: bool = False
    propagates_out: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": {
                "type": self.item_type,
                "method": self.method.value,
                "query": self.query,
                "scope": self.scope,
            },
            "blastPropagation": {
                "in": self.propagates_in,
                "out": self.propagates_out,
            },
        }


@dataclass(frozen=True, eq=True)
class Item:
    """A resolved graph node.

    Inputs:
      - item_type: Item type (e.g. 'rdap-ip-network').
      - scope: Scope the item was found in.
      - unique_attribute: Name of the attribute that identifies the item.
      - attributes: Attribute mapping; copied into a read-only view.
      - linked_queries: Outbound edge descriptors.

    Outputs:
      - Immutable Item. (item_type, scope, unique attribute value) identifies
        the item globally.

    Example:
      >>> item = Item("ip", "global", "ip", {"ip": "192.0.2.1"})
      >>> item.unique_attribute_value()
      '192.0.2.1'
    """

    item_type: str
    scope: str
    unique_attribute: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    linked_queries: Tuple[LinkedQuery, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "linked_queries", tuple(self.linked_queries))

    def unique_attribute_value(self) -> str:
        """Brief: Unique attribute value as a string, '' when absent."""

        value = self.attributes.get(self.unique_attribute)
        if value is None:
            return ""
        return str(value)

    def reference(self) -> Tuple[str, str, str]:
        """Brief: Return the (type, scope, unique value) triple naming this item."""

        return (self.item_type, self.scope, self.unique_attribute_value())

    def validate(self) -> None:
        """Brief: Check the item is complete enough to be sent to the engine.

        Inputs:
          - None.

        Outputs:
          - None; raises ValueError describing the first problem found.
        """

        if not self.item_type:
            raise ValueError("item has no type")
        if not self.scope:
            raise ValueError(f"{self.item_type} item has no scope")
        if not self.unique_attribute:
            raise ValueError(f"{self.item_type} item has no unique attribute")
        if not self.unique_attribute_value():
            raise ValueError(
                f"{self.item_type} item has empty unique attribute "
                f"{self.unique_attribute!r}"
            )
        for lq in self.linked_queries:
            if not lq.item_type or not lq.query or not lq.scope:
                raise ValueError(
                    f"{self.item_type} item has incomplete linked query {lq}"
                )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.item_type,
            "scope": self.scope,
            "uniqueAttribute": self.unique_attribute,
            "attributes": dict(self.attributes),
            "linkedItemQueries": [lq.to_dict() for lq in self.linked_queries],
        }


def items_to_dicts(items: Iterable[Item]) -> list[Dict[str, Any]]:
    return [item.to_dict() for item in items]
