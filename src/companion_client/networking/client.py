"""HTTP request client for a Companion server.

The client resolves paths against the configured Companion URL (or the
instance the server last pinned us to), negotiates which headers the
server accepts with a one-shot CORS preflight, and classifies responses
into JSON values or typed errors. Verbs return a Result instead of
raising; call ``unwrap()`` to get raise-on-error behavior.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

import requests

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
from .headers import (
    DEFAULT_ALLOWED_HEADERS,
    filter_allowed_headers,
    parse_allowed_headers,
)
from .options import RequestOptions, RequestOptionsLike, normalize_options
from .state import HostAffinityStore, InMemoryHostAffinityStore
from .types import Err, Ok, Result

logger = logging.getLogger(__name__)

LogSink = Callable[[str, str], None]

_ABSOLUTE_URL = re.compile(r"^(https?:|)//")
_LOG_PREFIX = "[CompanionClient]"


def strip_trailing_slash(url: str) -> str:
    """Remove one trailing slash so a path can always be appended."""
    return url[:-1] if url.endswith("/") else url


def _log_to_logger(message: str, level: str = "info") -> None:
    if level == "warning":
        logger.warning(message)
    else:
        logger.info(message)


class RequestClient:
    """Request client for one Companion server.

    Args:
        config: Companion URL, static headers and transport settings.
        store: Host-affinity store; an in-memory one seeded from
            ``config.host_resolution`` is used when omitted.
        log: ``log(message, level)`` sink; defaults to this module's logger.
        session: requests session to send through; the caller keeps
            ownership and ``close`` leaves it open.
    """

    def __init__(
        self,
        config: CompanionClientConfig,
        *,
        store: HostAffinityStore | None = None,
        log: LogSink | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config
        self._store: HostAffinityStore = (
            store
            if store is not None
            else InMemoryHostAffinityStore(config.host_resolution)
        )
        self._log: LogSink = log or _log_to_logger
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        if self._config.user_agent:
            self._session.headers["User-Agent"] = self._config.user_agent
        self.allowed_headers: list[str] = list(DEFAULT_ALLOWED_HEADERS)
        self.preflight_done = False

    @property
    def hostname(self) -> str:
        host = self._config.companion_url
        return strip_trailing_slash(self._store.get(host) or host)

    @property
    def default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Uppy-Versions": self._config.versions,
        }

    def headers(self) -> dict[str, str]:
        """Candidate request headers before filtering.

        Subclasses override this to add credentials such as an auth token.
        """
        merged = self.default_headers
        for name, value in self._config.server_headers.items():
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
        return merged

    def url_for(self, path: str) -> str:
        if _ABSOLUTE_URL.match(path):
            return path
        return f"{self.hostname}/{path}"

    def on_receive_response(
        self, response: requests.Response
    ) -> requests.Response:
        """Record the instance that answered, from its ``i-am`` header."""
        host = self._config.companion_url
        served_by = response.headers.get("i-am")
        if served_by is not None and served_by != self._store.get(host):
            self._store.update(host, served_by)
        return response

    def preflight(self, path: str, options: RequestOptions) -> list[str]:
        """Return the header names the server accepts.

        Only the first call sends an OPTIONS request; any failure there is
        logged and the defaults are kept.
        """
        if self.preflight_done:
            return list(self.allowed_headers)

        try:
            options.raise_if_cancelled()
            response = self._session.options(
                self.url_for(path),
                timeout=self._config.timeout,
                verify=self._config.verify_tls,
            )
        except (
            requests.exceptions.RequestException,
            RequestCancelledError,
        ) as exc:
            self._log(
                f"{_LOG_PREFIX} unable to make preflight request {exc}",
                "warning",
            )
        else:
            allow = response.headers.get("access-control-allow-headers")
            if allow is not None:
                self.allowed_headers = parse_allowed_headers(allow)
        self.preflight_done = True
        return list(self.allowed_headers)

    def preflight_and_headers(
        self, path: str, options: RequestOptions
    ) -> dict[str, str]:
        allowed = self.preflight(path, options)
        return filter_allowed_headers(
            self.headers(),
            allowed,
            on_excluded=lambda name: self._log(
                f"{_LOG_PREFIX} excluding unallowed header {name}", "info"
            ),
        )

    def _build_meta(
        self,
        method: str,
        request_url: str,
        response: requests.Response | None,
        final_error: str | None = None,
    ) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "method": method,
            "url": request_url,
            "timeout_s": self._config.timeout,
        }
        if response is not None:
            meta["status"] = response.status_code
            meta["status_code"] = response.status_code
            meta["reason"] = response.reason
            try:
                meta["elapsed_s"] = response.elapsed.total_seconds()
            except AttributeError:
                pass  # elapsed is missing on hand-built responses
        if final_error is not None:
            meta["final_error"] = final_error
        return meta

    @staticmethod
    def _client_error(
        verb: str, url: str, exc: Exception, options: RequestOptions
    ) -> HttpClientError:
        """Map any failure of a request to the error returned to the caller.

        Errors flagged ``is_auth_error`` pass through untouched; a cancelled
        signal turns whatever the aborted transport raised into
        RequestCancelledError.
        """
        if getattr(exc, "is_auth_error", False):
            return exc  # type: ignore[return-value]
        if options.signal is not None and options.signal.cancelled:
            return RequestCancelledError(
                f"Could not {verb} {url}. {options.signal.reason}"
            )
        if isinstance(exc, HttpClientError):
            return exc
        message = f"Could not {verb} {url}. {exc}"
        if isinstance(exc, requests.exceptions.Timeout):
            return RequestTimeoutError(message)
        return TransportError(message)

    @staticmethod
    def _json(verb: str, url: str, response: requests.Response) -> Any:
        if response.status_code == 401:
            raise AuthError()
        if not 200 <= response.status_code < 300:
            raise RequestFailedError(
                url, response.status_code, response.reason
            )
        try:
            return response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                f"Could not {verb} {url}. Response is not JSON: {exc}"
            ) from exc

    def _request(
        self,
        method: str,
        path: str,
        options: RequestOptionsLike,
        body: str | None = None,
    ) -> Result[Any, HttpClientError]:
        opts = normalize_options(options)
        verb = method.lower()
        headers = self.preflight_and_headers(path, opts)
        url = self.url_for(path)

        response: requests.Response | None = None
        unregister: Callable[[], None] = lambda: None
        try:
            opts.raise_if_cancelled()
            # Streamed so a cancel can close the response mid-body.
            response = self._session.request(
                method,
                url,
                headers=headers,
                data=body,
                timeout=self._config.timeout,
                verify=self._config.verify_tls,
                stream=True,
            )
            if opts.signal is not None:
                unregister = opts.signal.add_callback(response.close)
            opts.raise_if_cancelled()
            if not opts.skip_post_response:
                self.on_receive_response(response)
            value = self._json(verb, url, response)
            opts.raise_if_cancelled()
        except (requests.exceptions.RequestException, HttpClientError) as exc:
            return Err(
                self._client_error(verb, url, exc, opts),
                meta=self._build_meta(
                    method, url, response, final_error=type(exc).__name__
                ),
            )
        finally:
            unregister()
            if response is not None:
                response.close()
        return Ok(value, meta=self._build_meta(method, url, response))

    def get(
        self, path: str, options: RequestOptionsLike = None
    ) -> Result[Any, HttpClientError]:
        """GET ``path`` and return its JSON body.

        Args:
            path: Path relative to the Companion URL, or an absolute URL.
            options: RequestOptions, a mapping of the same fields, or the
                legacy boolean meaning ``skip_post_response``.
        """
        return self._request("GET", path, options)

    def post(
        self,
        path: str,
        data: Any,
        options: RequestOptionsLike = None,
    ) -> Result[Any, HttpClientError]:
        """POST ``data`` as JSON to ``path`` and return the JSON reply."""
        return self._request("POST", path, options, body=json.dumps(data))

    def delete(
        self,
        path: str,
        data: Any = None,
        options: RequestOptionsLike = None,
    ) -> Result[Any, HttpClientError]:
        """DELETE ``path``, sending ``data`` as JSON when given."""
        body = json.dumps(data) if data is not None else None
        return self._request("DELETE", path, options, body=body)

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> RequestClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
