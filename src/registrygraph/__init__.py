"""registrygraph package"""

from .errors import ErrorType, QueryError
from .items import GLOBAL_SCOPE, Item, LinkedQuery, QueryIdentity, QueryMethod

__all__ = [
    "GLOBAL_SCOPE",
    "ErrorType",
    "Item",
    "LinkedQuery",
    "QueryError",
    "QueryIdentity",
    "QueryMethod",
]
