"""replit_db — async client for the Replit Database key-value store.

Values are JSON.  Batch operations run one item at a time and either stop
at the first failure or, with ``all_settled=True``, raise one aggregate
error once every item has been attempted.
"""

from replit_db._version import __version__
from replit_db.client import DatabaseClient, KeyFilter
from replit_db.config import USER_AGENT_DEFAULT, ClientOptions, RetryOptions
from replit_db.endpoint import Endpoint
from replit_db.exceptions import (
    BatchError,
    ConfigurationError,
    DatabaseError,
    RemoteError,
    TransportError,
    ValidationError,
)

__all__ = [
    "USER_AGENT_DEFAULT",
    "BatchError",
    "ClientOptions",
    "ConfigurationError",
    "DatabaseClient",
    "DatabaseError",
    "Endpoint",
    "KeyFilter",
    "RemoteError",
    "RetryOptions",
    "TransportError",
    "ValidationError",
    "__version__",
]
