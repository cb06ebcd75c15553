# tests/test_api.py
"""
HttpApiClient against a fake requests session: URL building from the
configured endpoints, error mapping and short-link storage.
"""
from __future__ import annotations

from typing import Any

import pytest
import requests

from termsite.api import SHORT_KEY_PREFIX, ApiError, HttpApiClient


class FakeResponse:
    def __init__(self, payload: Any = None, status: int = 200,
                 text: str = "", reason: str = "OK") -> None:
        self.payload = payload
        self.status_code = status
        self.text = text
        self.reason = reason

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self.queue: list[Any] = []

    def _next(self, method: str, url: str, kwargs: dict) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        item = self.queue.pop(0) if self.queue else FakeResponse({})
        if isinstance(item, BaseException):
            raise item
        return item

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("GET", url, kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next("POST", url, kwargs)


class MemoryKV:
    def __init__(self) -> None:
        self.data: dict[str, Any] = {}

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def put(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


@pytest.fixture
def http() -> FakeSession:
    return FakeSession()


@pytest.fixture
def kv() -> MemoryKV:
    return MemoryKV()


@pytest.fixture
def client(cfg, kv, http) -> HttpApiClient:
    return HttpApiClient(cfg, kv, session=http, ai_api_key="k")


def test_user_agent_and_default_timeout(client, http) -> None:
    assert http.headers["User-Agent"] == "Mozilla/5.0 (Termsite)"
    client.github_user("octocat")
    method, url, kwargs = http.calls[-1]
    assert url == "https://api.github.com/users/octocat"
    assert kwargs["timeout"] is None


def test_configured_timeout_is_passed(cfg, kv, http) -> None:
    cfg.api["timeout"] = 5
    HttpApiClient(cfg, kv, session=http).weather("oslo")
    assert http.calls[-1][2]["timeout"] == 5
    assert http.calls[-1][1] == "https://wttr.in/oslo?format=3"


def test_non_success_status_raises(client, http) -> None:
    http.queue.append(FakeResponse(status=404, reason="Not Found"))
    with pytest.raises(ApiError) as exc:
        client.npm_package("missing")
    assert exc.value.status_code == 404


def test_transport_errors_become_api_errors(client, http) -> None:
    http.queue.append(requests.ConnectionError("refused"))
    with pytest.raises(ApiError, match="Request failed"):
        client.hitokoto()


def test_invalid_json_raises(client, http) -> None:
    http.queue.append(FakeResponse(None, text="<html>"))
    with pytest.raises(ApiError, match="invalid JSON"):
        client.devjoke()


def test_curl_returns_body_even_for_errors(client, http) -> None:
    http.queue.append(FakeResponse(status=500, text="oops"))
    assert client.curl("https://x.test") == "oops"


def test_query_parameters(client, http) -> None:
    client.dns("example.com")
    _, url, kwargs = http.calls[-1]
    assert url == "https://cloudflare-dns.com/dns-query"
    assert kwargs["params"] == {"name": "example.com", "type": "A"}
    assert kwargs["headers"]["accept"] == "application/dns-json"

    client.music_search("abc")
    assert http.calls[-1][1].endswith("/search")
    assert http.calls[-1][2]["params"]["keywords"] == "abc"

    client.geoip("")
    assert http.calls[-1][1] == "https://ipapi.co/json/"


def test_missing_endpoint(cfg, kv, http) -> None:
    del cfg.api["endpoints"]["npm"]
    client = HttpApiClient(cfg, kv, session=http)
    with pytest.raises(ApiError, match="No endpoint configured"):
        client.npm_package("x")


# ----------------------------------------------------------------
# AI
# ----------------------------------------------------------------


def test_ai_extracts_candidate_text(client, http) -> None:
    http.queue.append(FakeResponse(
        {"candidates": [{"content": {"parts": [{"text": "42"}]}}]}
    ))
    assert client.ai("meaning?") == "42"
    method, url, kwargs = http.calls[-1]
    assert method == "POST"
    assert "gemini-1.5-flash-latest:generateContent" in url
    assert kwargs["params"] == {"key": "k"}
    assert kwargs["json"]["contents"][0]["parts"][0]["text"] == "meaning?"


def test_ai_malformed_answer(client, http) -> None:
    http.queue.append(FakeResponse({"candidates": []}))
    assert client.ai("x") == "Sorry, I could not generate a response."


def test_ai_requires_key_and_prompt(cfg, kv, http) -> None:
    client = HttpApiClient(cfg, kv, session=http, ai_api_key="")
    with pytest.raises(ApiError, match="not configured"):
        client.ai("x")
    with pytest.raises(ApiError, match="Prompt is required"):
        client.ai("")


def test_ai_upstream_error(client, http) -> None:
    http.queue.append(FakeResponse(status=429, reason="Too Many Requests"))
    with pytest.raises(ApiError, match="Gemini API error: Too Many Requests"):
        client.ai("x")


# ----------------------------------------------------------------
# Short links
# ----------------------------------------------------------------


def test_shorten_and_unshorten(client, kv) -> None:
    short = client.shorten("https://a.test/long")
    assert short.startswith("https://codex.me/s/")
    key = short.rsplit("/", 1)[1]
    assert len(key) == 6
    assert kv.get(f"{SHORT_KEY_PREFIX}{key}")["url"] == "https://a.test/long"
    assert client.unshorten(key) == "https://a.test/long"
    assert client.unshorten("nokey") is None


def test_expired_short_link_is_removed(client, kv) -> None:
    kv.put(f"{SHORT_KEY_PREFIX}old", {"url": "u", "expires_at": 0})
    assert client.unshorten("old") is None
    assert kv.get(f"{SHORT_KEY_PREFIX}old") is None


def test_shorten_requires_url(client) -> None:
    with pytest.raises(ApiError, match="URL is required"):
        client.shorten("")
