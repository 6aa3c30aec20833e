from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import requests

from registrygraph.errors import ResolutionCancelled

from .bootstrap import Bootstrap, BootstrapError
from .objects import RDAPObject, parse_object
from .urls import join_object_url

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "registrygraph/0.1"
RDAP_ACCEPT = "application/rdap+json, application/json;q=0.9"


class RequestType(str, Enum):
    """Brief: RDAP object path segments a request can target."""

    IP = "ip"
    DOMAIN = "domain"
    ENTITY = "entity"
    NAMESERVER = "nameserver"
    AUTNUM = "autnum"


@dataclass
class RDAPRequest:
    """Description of one RDAP lookup.

    Inputs:
      - type: RequestType of the object wanted.
      - query: Object key (address, CIDR, domain, handle, ASN number).
      - server: Optional server root; when omitted the bootstrap picks one.
      - cancel: Optional threading.Event; when set the request is abandoned.

    Outputs:
      - RDAPRequest instance.
    """

    type: RequestType
    query: str
    server: Optional[str] = None
    cancel: Optional[threading.Event] = None


@dataclass(frozen=True)
class RDAPResponse:
    """Brief: Parsed RDAP object plus the URL(s) that produced it."""

    object: Optional[RDAPObject]
    urls: Tuple[str, ...] = ()


class ClientErrorType(str, Enum):
    OBJECT_DOES_NOT_EXIST = "object_does_not_exist"
    TRANSPORT = "transport"
    BAD_RESPONSE = "bad_response"
    NO_SERVERS = "no_servers"


class RDAPClientError(Exception):
    """
    Brief: Upstream RDAP failure with a coarse classification.

    Inputs:
      - error_type: ClientErrorType.
      - message: Description.
      - url: Optional URL that failed.

    Outputs:
      - Exception instance.
    """

    def __init__(
        self, error_type: ClientErrorType, message: str, url: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.url = url

    @property
    def is_not_found(self) -> bool:
        return self.error_type is ClientErrorType.OBJECT_DOES_NOT_EXIST


def _check_cancel(request: RDAPRequest) -> None:
    if request.cancel is not None and request.cancel.is_set():
        raise ResolutionCancelled(
            f"RDAP {request.type.value} {request.query} cancelled"
        )


class RDAPClient:
    """Synchronous RDAP client over a shared requests.Session.

    Brief:
      Builds the object URL for each candidate server, issues one GET per
      server until one answers and parses the body into a typed object.
      There are no retries: every server is tried once.

    Inputs:
      - session: Optional requests.Session (one is created when omitted).
      - bootstrap: Optional Bootstrap; required for requests without a server.
      - timeout: Per-request timeout in seconds.
      - user_agent: User-Agent header value.

    Outputs:
      - RDAPClient instance.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        bootstrap: Optional[Bootstrap] = None,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._session = session or requests.Session()
        self._bootstrap = bootstrap
        self.timeout = float(timeout)
        self.user_agent = user_agent

    def _servers(self, request: RDAPRequest) -> List[str]:
        if request.server:
            return [request.server]
        if self._bootstrap is None:
            return []
        try:
            return self._bootstrap.servers_for(request.type.value, request.query)
        except BootstrapError as exc:
            raise RDAPClientError(ClientErrorType.TRANSPORT, str(exc)) from exc

    def do(self, request: RDAPRequest) -> RDAPResponse:
        """Brief: Execute an RDAP request.

        Inputs:
          - request: RDAPRequest.

        Outputs:
          - RDAPResponse; raises RDAPClientError when no server answers and
            ResolutionCancelled when the request's cancel event is set.

        Notes:
          - A 404 from any server classifies the failure as
            OBJECT_DOES_NOT_EXIST unless a later server answers.
        """

        _check_cancel(request)
        servers = self._servers(request)
        if not servers:
            raise RDAPClientError(
                ClientErrorType.NO_SERVERS,
                f"no RDAP server known for {request.type.value} {request.query}",
            )

        headers = {"Accept": RDAP_ACCEPT, "User-Agent": self.user_agent}
        not_found: Optional[RDAPClientError] = None
        last_error: Optional[RDAPClientError] = None
        for server in servers:
            _check_cancel(request)
            url = join_object_url(server, request.type.value, request.query)
            try:
                return self._fetch(url, headers)
            except RDAPClientError as exc:
                logger.debug("RDAP request %s failed: %s", url, exc)
                if exc.is_not_found:
                    not_found = exc
                else:
                    last_error = exc

        # A definite answer from one registry beats a transport error from another.
        raise not_found or last_error  # type: ignore[misc]

    def _fetch(self, url: str, headers: dict) -> RDAPResponse:
        try:
            resp = self._session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RDAPClientError(ClientErrorType.TRANSPORT, str(exc), url) from exc

        if resp.status_code == 404:
            raise RDAPClientError(
                ClientErrorType.OBJECT_DOES_NOT_EXIST, "object does not exist", url
            )
        if resp.status_code != 200:
            raise RDAPClientError(
                ClientErrorType.TRANSPORT, f"HTTP {resp.status_code} from server", url
            )
        try:
            body = resp.json()
        except ValueError as exc:
            raise RDAPClientError(
                ClientErrorType.BAD_RESPONSE, f"invalid JSON: {exc}", url
            ) from exc
        try:
            obj = parse_object(body)
        except ValueError as exc:
            raise RDAPClientError(ClientErrorType.BAD_RESPONSE, str(exc), url) from exc
        return RDAPResponse(object=obj, urls=(url,))
