from __future__ import annotations

from agora_api.features.proxy.service import (
    _client_close_code,
    _strip_access_token,
    filter_request_headers,
    filter_response_headers,
)


def test_request_filter_drops_hop_by_hop_and_host() -> None:
    headers = [
        ("Host", "api.agora.local"),
        ("Connection", "keep-alive, X-Private"),
        ("Keep-Alive", "timeout=5"),
        ("X-Private", "secret"),
        ("Transfer-Encoding", "chunked"),
        ("Authorization", "Bearer abc"),
        ("Content-Type", "application/json"),
        ("X-Custom", "1"),
    ]

    filtered = filter_request_headers(headers)

    assert filtered == [
        ("Authorization", "Bearer abc"),
        ("Content-Type", "application/json"),
        ("X-Custom", "1"),
    ]


def test_request_filter_drops_extra_names() -> None:
    filtered = filter_request_headers(
        [("authorization", "Bearer abc"), ("accept", "*/*")],
        drop={"authorization"},
    )

    assert filtered == [("accept", "*/*")]


def test_response_filter_keeps_repeated_end_to_end_headers() -> None:
    raw = [
        (b"Set-Cookie", b"a=1"),
        (b"Set-Cookie", b"b=2"),
        (b"Transfer-Encoding", b"chunked"),
        (b"Upgrade", b"h2c"),
        (b"Content-Type", b"text/plain"),
    ]

    assert filter_response_headers(raw) == [
        (b"set-cookie", b"a=1"),
        (b"set-cookie", b"b=2"),
        (b"content-type", b"text/plain"),
    ]


def test_access_token_is_removed_from_forwarded_query() -> None:
    assert _strip_access_token("access_token=abc&room=1&flag=") == "room=1&flag="
    assert _strip_access_token("q=a%20b&access_token=abc&tag=x+y") == "q=a%20b&tag=x+y"
    assert _strip_access_token("access%5Ftoken=abc&room=1") == "room=1"
    assert _strip_access_token("") == ""


def test_reserved_close_codes_are_not_echoed() -> None:
    assert _client_close_code(None) == 1000
    assert _client_close_code(1006) == 1000
    assert _client_close_code(1001) == 1001
    assert _client_close_code(4001) == 4001
