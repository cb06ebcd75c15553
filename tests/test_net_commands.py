# tests/test_net_commands.py
"""
Network commands against the canned FakeApi: payload shaping and the
single failure line each command prints when the upstream fails.
"""
from __future__ import annotations

import pytest
import requests


def run(interp, line: str) -> list[str]:
    return interp.execute(line).lines


# ----------------------------------------------------------------
# AI
# ----------------------------------------------------------------


def test_ai_requires_login(interp) -> None:
    assert run(interp, "ai hi") == [
        "Permission denied. AI features require login."
    ]


def test_ai_answers_and_notifies(admin, api) -> None:
    api.responses["ai"] = "Line one\nLine two"
    assert run(admin, "ai what is up") == ["Line one", "Line two"]
    assert api.calls[-1] == ("ai", ("what is up",))
    assert ("Thinking...", "info") in admin.terminal.notices


def test_ai_errors(admin, api) -> None:
    api.responses["ai"] = ""
    assert run(admin, "ai hi") == ["AI returned no response."]
    api.fail.add("ai")
    assert run(admin, "ai hi") == ["AI Error: ai failed"]
    assert run(admin, "ai") == ["Usage: ai <your_question>"]


# ----------------------------------------------------------------
# Lookups
# ----------------------------------------------------------------


def test_curl(interp, api) -> None:
    api.responses["curl"] = "<html>\n</html>"
    assert run(interp, "curl https://x.test") == ["<html>", "</html>"]
    api.fail.add("curl")
    assert run(interp, "curl https://x.test") == [
        "curl: (6) Could not resolve host."
    ]


def test_curl_treats_requests_errors_as_upstream_failure(
    interp, monkeypatch: pytest.MonkeyPatch
) -> None:
    def boom(url):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(interp.api, "curl", boom)
    assert run(interp, "curl https://x.test") == [
        "curl: (6) Could not resolve host."
    ]


def test_dig(interp, api) -> None:
    api.responses["dns"] = {
        "Answer": [
            {"name": "example.com", "TTL": 300, "type": 1,
             "data": "93.184.216.34"},
            {"name": "example.com", "TTL": 300, "type": 99, "data": "?"},
        ]
    }
    out = run(interp, "dig example.com")
    assert out[0] == ";; QUESTION SECTION:"
    assert ";; ANSWER SECTION:" in out
    assert out[-2].split() == [
        "example.com", "300", "IN", "A", "93.184.216.34"
    ]
    assert out[-1].split()[3] == "99"


def test_dig_not_found(interp, api) -> None:
    api.responses["dns"] = {"Status": 3}
    expected = ["dig: couldn't get address for 'nx.test': not found"]
    assert run(interp, "dig nx.test") == expected
    api.fail.add("dns")
    assert run(interp, "dig nx.test") == expected


def test_github(interp, api) -> None:
    api.responses["github_user"] = {
        "name": "The Octocat", "bio": None, "company": "@github",
        "public_repos": 8, "followers": 9000,
    }
    assert run(interp, "github octocat") == [
        "User: The Octocat",
        "Bio: N/A",
        "Company: @github",
        "Public Repos: 8",
        "Followers: 9000",
    ]
    api.fail.add("github_user")
    assert run(interp, "github ghost") == ["User 'ghost' not found."]


def test_npm(interp, api) -> None:
    api.responses["npm_package"] = {
        "name": "left-pad", "dist-tags": {"latest": "1.3.0"},
        "description": "String left pad",
    }
    assert run(interp, "npm left-pad") == [
        "Package: left-pad",
        "Latest Version: 1.3.0",
        "Description: String left pad",
    ]
    api.fail.add("npm_package")
    assert run(interp, "npm nope") == ["Package 'nope' not found."]


def test_weather_defaults_city(interp, api) -> None:
    api.responses["weather"] = "beijing: +20°C\n"
    assert run(interp, "weather") == ["beijing: +20°C"]
    assert api.calls[-1] == ("weather", ("beijing",))
    run(interp, "weather new york")
    assert api.calls[-1] == ("weather", ("new york",))


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"status_code": 1}, "It's just you. a.test is up."),
        (
            {"status_code": 2},
            "It's not just you! a.test looks down from here.",
        ),
        ({"status_code": 3}, "Couldn't determine status for a.test."),
    ],
)
def test_isdown(interp, api, payload, expected) -> None:
    api.responses["isdown"] = payload
    assert run(interp, "isdown a.test") == [expected]


def test_geoip(interp, api) -> None:
    api.responses["geoip"] = {
        "city": "Paris", "country_name": "France", "continent_code": "EU"
    }
    assert run(interp, "geoip 1.2.3.4") == [
        "City: Paris", "Country: France", "Continent: EU"
    ]
    assert run(interp, "geoip")
    assert api.calls[-1] == ("geoip", ("",))


# ----------------------------------------------------------------
# Short links
# ----------------------------------------------------------------


def test_shorten_requires_login(interp) -> None:
    assert run(interp, "shorten https://a.test") == [
        "Permission denied. Please log in to shorten URLs."
    ]


def test_unshorten_requires_login(interp, api) -> None:
    assert run(interp, "unshorten https://codex.me/s/abc") == [
        "Permission denied. Please log in to resolve short URLs."
    ]
    assert api.calls == []


def test_shorten_then_unshorten(admin) -> None:
    (short,) = run(admin, "shorten https://a.test/long")
    assert short == "https://codex.me/s/k0"
    assert run(admin, f"unshorten {short}") == ["https://a.test/long"]
    assert run(admin, "unshorten https://codex.me/s/zzz") == [
        "Short URL not found or expired."
    ]
    assert run(admin, "unshorten https://codex.me/s/") == [
        "Invalid short URL."
    ]


# ----------------------------------------------------------------
# Simulated tools
# ----------------------------------------------------------------


def test_ping_summary(interp) -> None:
    out = run(interp, "ping example.org")
    assert out[0] == "PING example.org (example.org): 56 data bytes"
    assert out[-2] == "--- example.org ping statistics ---"
    assert out[-1].startswith("4 packets transmitted, ")
    received = len([line for line in out if line.startswith("64 bytes")])
    assert f"{received} packets received" in out[-1]


def test_netstat_uses_configured_hostname(interp) -> None:
    out = run(interp, "netstat")
    assert out[0] == "Active Internet connections (w/o servers)"
    assert all("codex.me:https" in line for line in out[2:])
