"""Per-request options and cancellation."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union

from .errors import RequestCancelledError


class CancelToken:
    """Thread-safe cancellation flag handed to a request as ``signal``.

    The client checks it before the preflight, before and after the main
    transport call, and registers a callback that closes the live
    response, so cancelling from another thread aborts a body download in
    progress.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._reason = "request cancelled"

    def cancel(self, reason: str | None = None) -> None:
        with self._lock:
            if self._event.is_set():
                return
            if reason:
                self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` on cancel; returns a function that unregisters it.

        An already cancelled token runs the callback immediately.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return lambda: self._remove_callback(callback)
        callback()
        return lambda: None

    def _remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError(self._reason)


@dataclass(frozen=True)
class RequestOptions:
    """Normalized options for a single request."""

    skip_post_response: bool = False
    signal: CancelToken | None = None

    def raise_if_cancelled(self) -> None:
        if self.signal is not None:
            self.signal.raise_if_cancelled()


RequestOptionsLike = Union[RequestOptions, Mapping[str, Any], bool, None]

_OPTION_KEYS = frozenset({"skip_post_response", "signal"})


def normalize_options(options: RequestOptionsLike) -> RequestOptions:
    """Turn any accepted options shape into a RequestOptions.

    A bare boolean is the legacy form and means ``skip_post_response``.
    """
    if options is None:
        return RequestOptions()
    if isinstance(options, RequestOptions):
        return options
    if isinstance(options, bool):
        return RequestOptions(skip_post_response=options)
    if isinstance(options, Mapping):
        unknown = set(options) - _OPTION_KEYS
        if unknown:
            raise ValueError(
                f"unsupported request options: {', '.join(sorted(unknown))}"
            )
        signal = options.get("signal")
        if signal is not None and not isinstance(signal, CancelToken):
            raise TypeError("signal must be a CancelToken")
        return RequestOptions(
            skip_post_response=bool(options.get("skip_post_response", False)),
            signal=signal,
        )
    raise TypeError(
        "options must be a RequestOptions, a mapping, a bool or None, "
        f"got {type(options).__name__}"
    )
