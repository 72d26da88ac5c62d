"""Host-affinity stores.

Companion deployments behind a load balancer answer with an ``i-am`` header
naming the instance that served the request. The client records it per
logical Companion URL so later requests are pinned to the same instance.
The store is owned by the caller and injected into the client.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Protocol


class HostAffinityStore(Protocol):
    """Read/write handle on the host-affinity mapping."""

    def get(self, host: str) -> str | None: ...

    def update(self, host: str, domain: str) -> None: ...


class StateStore(Protocol):
    """Application state container with shallow-merge updates."""

    def get_state(self) -> Mapping[str, Any]: ...

    def set_state(self, partial: Mapping[str, Any]) -> None: ...


class InMemoryHostAffinityStore:
    """Plain dict-backed store, used when the caller injects none."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._hosts: dict[str, str] = dict(initial or {})

    def get(self, host: str) -> str | None:
        return self._hosts.get(host)

    def update(self, host: str, domain: str) -> None:
        self._hosts[host] = domain

    def snapshot(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self._hosts))


class SharedStateHostAffinity:
    """Keep affinity inside an application-wide state store.

    The mapping lives under ``key`` (``"companion"`` by default) of the
    store's state, and updates replace that whole entry through
    ``set_state`` so other keys are left alone.
    """

    def __init__(self, state: StateStore, key: str = "companion") -> None:
        self._state = state
        self._key = key

    def _hosts(self) -> Mapping[str, str]:
        return self._state.get_state().get(self._key) or {}

    def get(self, host: str) -> str | None:
        return self._hosts().get(host)

    def update(self, host: str, domain: str) -> None:
        hosts = dict(self._hosts())
        hosts[host] = domain
        self._state.set_state({self._key: hosts})
