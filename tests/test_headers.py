from companion_client.networking.headers import (
    DEFAULT_ALLOWED_HEADERS,
    filter_allowed_headers,
    parse_allowed_headers,
)


def test_parse_trims_and_lowercases():
    assert parse_allowed_headers(" Accept ,X-Custom,  Uppy-Auth-Token") == [
        "accept",
        "x-custom",
        "uppy-auth-token",
    ]


def test_parse_drops_empty_and_duplicate_names():
    assert parse_allowed_headers("accept,, ACCEPT ,") == ["accept"]
    assert parse_allowed_headers("") == []


def test_filter_is_case_insensitive_and_keeps_original_names():
    headers = {"Accept": "application/json", "X-Custom": "1", "X-Other": "2"}

    kept = filter_allowed_headers(headers, ["accept", "X-CUSTOM"])

    assert kept == {"Accept": "application/json", "X-Custom": "1"}


def test_filter_reports_each_excluded_header():
    excluded = []

    filter_allowed_headers(
        {"Accept": "a", "Uppy-Versions": "v", "X-Other": "o"},
        DEFAULT_ALLOWED_HEADERS,
        on_excluded=excluded.append,
    )

    assert excluded == ["Uppy-Versions", "X-Other"]


def test_filter_does_not_mutate_input():
    headers = {"Accept": "a", "X-Other": "o"}

    filter_allowed_headers(headers, ["accept"])

    assert headers == {"Accept": "a", "X-Other": "o"}
