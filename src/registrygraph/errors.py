from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    """Brief: Classification carried by every QueryError.

    Values:
      - NOT_FOUND: the object does not exist, or the method cannot resolve it.
      - NO_SCOPE: the adapter does not serve the requested scope.
      - MALFORMED: the query string has the wrong shape.
      - OTHER: upstream or transport failure.
    """

    NOT_FOUND = "NOTFOUND"
    NO_SCOPE = "NOSCOPE"
    MALFORMED = "MALFORMED"
    OTHER = "OTHER"


class QueryError(Exception):
    """
    Brief: Classified error returned from an adapter operation.

    Inputs:
      - error_type: ErrorType classification.
      - error_string: Human readable description.
      - scope: Optional scope of the failing query.
      - source_name: Optional adapter source name.
      - item_type: Optional item type of the failing query.

    Outputs:
      - Exception instance.

    Example:
      >>> err = QueryError(ErrorType.NOT_FOUND, "No ASN found", scope="global")
      >>> err.error_type is ErrorType.NOT_FOUND
      True
    """

    def __init__(
        self,
        error_type: ErrorType,
        error_string: str = "",
        *,
        scope: Optional[str] = None,
        source_name: Optional[str] = None,
        item_type: Optional[str] = None,
    ) -> None:
        super().__init__(error_string or error_type.value)
        self.error_type = error_type
        self.error_string = error_string
        self.scope = scope
        self.source_name = source_name
        self.item_type = item_type

    def __str__(self) -> str:
        if self.error_string:
            return f"{self.error_type.value}: {self.error_string}"
        return self.error_type.value

    def __repr__(self) -> str:
        return (
            f"QueryError({self.error_type.value!r}, {self.error_string!r}, "
            f"scope={self.scope!r}, source_name={self.source_name!r}, "
            f"item_type={self.item_type!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QueryError):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    __hash__ = Exception.__hash__

    def replay(self) -> "QueryError":
        """Brief: Return a fresh copy suitable for raising again.

        Inputs:
          - None.

        Outputs:
          - QueryError with identical fields and no traceback attached.
        """

        return QueryError(
            self.error_type,
            self.error_string,
            scope=self.scope,
            source_name=self.source_name,
            item_type=self.item_type,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errorType": self.error_type.value,
            "errorString": self.error_string,
            "scope": self.scope,
            "sourceName": self.source_name,
            "itemType": self.item_type,
        }


class UnexpectedResponseError(TypeError):
    """Brief: Upstream returned an object of the wrong kind for the request."""


class ResolutionCancelled(Exception):
    """Brief: The caller cancelled a resolution while it was in progress."""
