"""Networking layer: the Companion request client and its support types."""

from .client import RequestClient, strip_trailing_slash
from .config import CompanionClientConfig
from .errors import (
    AuthError,
    HttpClientError,
    InvalidResponseError,
    RequestCancelledError,
    RequestFailedError,
    RequestTimeoutError,
    TransportError,
)
from .options import CancelToken, RequestOptions
from .state import (
    HostAffinityStore,
    InMemoryHostAffinityStore,
    SharedStateHostAffinity,
)
from .types import Err, Ok, Result

__all__ = [
    "AuthError",
    "CancelToken",
    "CompanionClientConfig",
    "Err",
    "HostAffinityStore",
    "HttpClientError",
    "InMemoryHostAffinityStore",
    "InvalidResponseError",
    "Ok",
    "RequestCancelledError",
    "RequestClient",
    "RequestFailedError",
    "RequestOptions",
    "RequestTimeoutError",
    "Result",
    "SharedStateHostAffinity",
    "TransportError",
    "strip_trailing_slash",
]
