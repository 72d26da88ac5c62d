"""Configuration model for the Companion RequestClient."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

# Version of the companion-client protocol this package speaks; Companion
# reads it from the Uppy-Versions header to toggle features.
COMPANION_CLIENT_VERSION = "1.0.3"
DEFAULT_VERSIONS = f"@uppy/companion-client={COMPANION_CLIENT_VERSION}"


def _empty_mapping() -> Mapping[str, str]:
    """Return immutable empty mapping."""

    return MappingProxyType({})


@dataclass(frozen=True)
class CompanionClientConfig:
    """Configuration for RequestClient behavior.

    ``host_resolution`` only seeds the default in-memory host-affinity
    store; once the client runs, affinity lives in the store.
    """

    companion_url: str
    server_headers: Mapping[str, str] = field(default_factory=_empty_mapping)
    host_resolution: Mapping[str, str] = field(default_factory=_empty_mapping)
    versions: str = DEFAULT_VERSIONS
    user_agent: str | None = None
    verify_tls: bool = True
    connect_timeout_seconds: float | None = None
    read_timeout_seconds: float | None = None
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if not self.companion_url or not self.companion_url.strip():
            raise ValueError("companion_url must be a non-empty URL")

        has_connect_timeout = self.connect_timeout_seconds is not None
        has_read_timeout = self.read_timeout_seconds is not None
        if has_connect_timeout != has_read_timeout:
            raise ValueError(
                "connect_timeout_seconds and read_timeout_seconds "
                "must be set together"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0 when provided")
        if (
            self.connect_timeout_seconds is not None
            and self.connect_timeout_seconds <= 0
        ):
            raise ValueError(
                "connect_timeout_seconds must be > 0 when provided"
            )
        if (
            self.read_timeout_seconds is not None
            and self.read_timeout_seconds <= 0
        ):
            raise ValueError("read_timeout_seconds must be > 0 when provided")

        # Freeze copied mappings so callers cannot mutate them afterwards.
        object.__setattr__(
            self,
            "server_headers",
            MappingProxyType(dict(self.server_headers)),
        )
        object.__setattr__(
            self,
            "host_resolution",
            MappingProxyType(dict(self.host_resolution)),
        )

    @property
    def timeout(self) -> float | tuple[float, float] | None:
        """Timeout value in the shape requests expects."""
        if (
            self.connect_timeout_seconds is not None
            and self.read_timeout_seconds is not None
        ):
            return (self.connect_timeout_seconds, self.read_timeout_seconds)
        return self.timeout_seconds
