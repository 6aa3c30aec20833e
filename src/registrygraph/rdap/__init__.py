"""RDAP client layer.

Brief:
  Typed RDAP objects, URL helpers, IANA bootstrap and a synchronous client.
  Adapters treat RDAPClient as an opaque collaborator and tests replace it
  with canned fakes.
"""

from .bootstrap import Bootstrap, BootstrapError
from .client import (
    ClientErrorType,
    RDAPClient,
    RDAPClientError,
    RDAPRequest,
    RDAPResponse,
    RequestType,
)
from .objects import (
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
    parse_object,
)
from .urls import RDAPUrl, parse_rdap_url

__all__ = [
    "Autnum",
    "Bootstrap",
    "BootstrapError",
    "ClientErrorType",
    "Domain",
    "Entity",
    "Event",
    "IPAddresses",
    "IPNetwork",
    "Link",
    "Nameserver",
    "Notice",
    "PublicID",
    "RDAPClient",
    "RDAPClientError",
    "RDAPObject",
    "RDAPRequest",
    "RDAPResponse",
    "RDAPUrl",
    "RequestType",
    "VCard",
    "parse_object",
    "parse_rdap_url",
]
