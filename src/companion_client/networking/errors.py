"""Error types returned by the Companion request client."""

from __future__ import annotations


class HttpClientError(Exception):
    """Base class for every error produced by RequestClient."""

    is_auth_error = False


class AuthError(HttpClientError):
    """The Companion server answered 401.

    Flagged with ``is_auth_error`` so wrapping layers pass it through
    unchanged.
    """

    is_auth_error = True

    def __init__(self, message: str = "Authorization required") -> None:
        super().__init__(message)


class RequestFailedError(HttpClientError):
    """Non-2xx, non-401 response."""

    def __init__(self, url: str, status: int, status_text: str) -> None:
        super().__init__(f"Failed request to {url}. {status_text}")
        self.url = url
        self.status = status
        self.status_text = status_text


class InvalidResponseError(HttpClientError):
    """A successful response whose body could not be decoded as JSON."""


class TransportError(HttpClientError):
    """Network-level failure (DNS, refused connection, abort, ...)."""


class RequestTimeoutError(TransportError):
    """The transport gave up waiting for the server."""


class RequestCancelledError(TransportError):
    """The caller cancelled the request through its CancelToken."""
