"""Header negotiation helpers."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

# Headers Companion accepts even when no preflight answer is available.
DEFAULT_ALLOWED_HEADERS: tuple[str, ...] = (
    "accept",
    "content-type",
    "uppy-auth-token",
)


def parse_allowed_headers(value: str) -> list[str]:
    """Split an ``access-control-allow-headers`` value into header names."""
    names: list[str] = []
    for raw in value.split(","):
        name = raw.strip().lower()
        if name and name not in names:
            names.append(name)
    return names


def filter_allowed_headers(
    headers: Mapping[str, str],
    allowed: Iterable[str],
    on_excluded: Callable[[str], None] | None = None,
) -> dict[str, str]:
    """Keep the headers whose names appear in ``allowed``, ignoring case."""
    allowed_set = {name.lower() for name in allowed}
    kept: dict[str, str] = {}
    for name, value in headers.items():
        if name.lower() in allowed_set:
            kept[name] = value
        elif on_excluded is not None:
            on_excluded(name)
    return kept
