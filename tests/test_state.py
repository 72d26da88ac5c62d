# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
from typing import Any, Mapping
from unittest.mock import Mock, patch

from requests.structures import CaseInsensitiveDict

from companion_client.networking.client import RequestClient
from companion_client.networking.config import CompanionClientConfig
from companion_client.networking.options import RequestOptions
from companion_client.networking.state import (
    InMemoryHostAffinityStore,
    SharedStateHostAffinity,
)


class _AppState:
    """Minimal application store with shallow-merge updates."""

    def __init__(self, **initial: Any) -> None:
        self.state: dict[str, Any] = dict(initial)
        self.set_calls = 0

    def get_state(self) -> Mapping[str, Any]:
        return self.state

    def set_state(self, partial: Mapping[str, Any]) -> None:
        self.set_calls += 1
        self.state = {**self.state, **partial}


def test_in_memory_store_get_and_update():
    store = InMemoryHostAffinityStore({"a": "x"})

    assert store.get("a") == "x"
    assert store.get("b") is None

    store.update("b", "y")

    assert dict(store.snapshot()) == {"a": "x", "b": "y"}


def test_in_memory_store_copies_initial_mapping():
    initial = {"a": "x"}
    store = InMemoryHostAffinityStore(initial)
    initial["a"] = "changed"

    assert store.get("a") == "x"


def test_shared_state_reads_companion_key():
    app = _AppState(companion={"https://c.example": "https://n1.example"})
    store = SharedStateHostAffinity(app)

    assert store.get("https://c.example") == "https://n1.example"
    assert store.get("https://other.example") is None


def test_shared_state_handles_missing_companion_key():
    store = SharedStateHostAffinity(_AppState(files={}))

    assert store.get("https://c.example") is None


def test_shared_state_update_keeps_other_hosts_and_keys():
    app = _AppState(files={"f1": {}}, companion={"h1": "n1"})
    store = SharedStateHostAffinity(app)

    store.update("h2", "n2")

    assert app.state == {
        "files": {"f1": {}},
        "companion": {"h1": "n1", "h2": "n2"},
    }


def test_client_updates_shared_state_once_per_new_domain():
    app = _AppState()
    client = RequestClient(
        CompanionClientConfig(companion_url="https://c.example"),
        store=SharedStateHostAffinity(app),
        log=lambda message, level: None,
    )
    response = Mock()
    response.headers = CaseInsensitiveDict({"i-am": "https://n1.example"})

    client.on_receive_response(response)
    client.on_receive_response(response)

    assert app.state["companion"] == {
        "https://c.example": "https://n1.example"
    }
    assert app.set_calls == 1
    assert client.hostname == "https://n1.example"


def test_client_reads_shared_state_before_each_request():
    app = _AppState()
    client = RequestClient(
        CompanionClientConfig(companion_url="https://c.example"),
        store=SharedStateHostAffinity(app),
        log=lambda message, level: None,
    )
    assert client.url_for("x") == "https://c.example/x"

    with patch("requests.Session.options") as mock_options:
        mock_options.return_value.headers = CaseInsensitiveDict()
        app.set_state(
            {"companion": {"https://c.example": "https://n2.example/"}}
        )
        client.preflight("x", RequestOptions())

    mock_options.assert_called_once()
    assert mock_options.call_args.args[0] == "https://n2.example/x"
