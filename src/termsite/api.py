# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
HTTP-backed ApiClient.

Thin wrappers over the third-party services used by the network and fun
commands. Endpoints come from ``api.endpoints`` in system.yaml. Short links
live in the KeyValueStore under ``short_<key>``.

No timeout is applied unless ``api.timeout`` is configured: a hung upstream
hangs the command that called it.
"""

from __future__ import annotations

import os
import secrets
import string
import time
from typing import Any

import requests

from .interfaces import ConfigModel, KeyValueStore

SHORT_KEY_PREFIX = "short_"
SHORT_KEY_ALPHABET = string.ascii_lowercase + string.digits


class ApiError(Exception):
    """Raised when an upstream call fails or returns a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# What command handlers treat as "the upstream failed"
UPSTREAM_ERRORS = (ApiError, requests.RequestException)


class HttpApiClient:
    """requests implementation of the ApiClient protocol."""

    def __init__(
        self,
        config: ConfigModel,
        kv: KeyValueStore,
        session: requests.Session | None = None,
        ai_api_key: str | None = None,
    ):
        self.config = config
        self.kv = kv
        self.session = session or requests.Session()
        self.session.headers.setdefault(
            "User-Agent",
            config.get_path("api.user_agent", "Mozilla/5.0"),
        )
        self.timeout = config.get_path("api.timeout", None)
        self.ai_api_key = (
            ai_api_key if ai_api_key is not None
            else os.environ.get("GEMINI_API_KEY", "")
        )

    def _endpoint(self, name: str, **params: str) -> str:
        template = self.config.get_path(f"api.endpoints.{name}", "")
        if not template:
            raise ApiError(f"No endpoint configured for '{name}'")
        return template.format(**params)

    def _get(self, url: str, **kwargs: Any) -> requests.Response:
        try:
            res = self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"Request failed: {e}") from e
        if not res.ok:
            raise ApiError(
                f"{res.status_code} {res.reason}", status_code=res.status_code
            )
        return res

    def _get_json(self, url: str, **kwargs: Any) -> Any:
        res = self._get(url, **kwargs)
        try:
            return res.json()
        except ValueError as e:
            raise ApiError("Upstream returned invalid JSON") from e

    # ----------------------------------------------------------------
    # Music / video
    # ----------------------------------------------------------------

    def music_search(self, keywords: str) -> dict[str, Any]:
        base = self._endpoint("music")
        return self._get_json(
            f"{base}/search", params={"keywords": keywords, "limit": 10}
        )

    def music_url(self, song_id: str) -> dict[str, Any]:
        base = self._endpoint("music")
        return self._get_json(
            f"{base}/song/url/v1", params={"id": song_id, "level": "exhigh"}
        )

    def music_detail(self, song_id: str) -> dict[str, Any]:
        base = self._endpoint("music")
        return self._get_json(f"{base}/song/detail", params={"ids": song_id})

    def video_search(self, keywords: str) -> dict[str, Any]:
        return self._get_json(
            self._endpoint("video_search"),
            params={"search_type": "video", "keyword": keywords},
        )

    # ----------------------------------------------------------------
    # Network tools
    # ----------------------------------------------------------------

    def curl(self, url: str) -> str:
        try:
            res = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(f"Request failed: {e}") from e
        return res.text

    def dns(self, domain: str) -> dict[str, Any]:
        return self._get_json(
            self._endpoint("dns"),
            params={"name": domain, "type": "A"},
            headers={"accept": "application/dns-json"},
        )

    def github_user(self, username: str) -> dict[str, Any]:
        return self._get_json(self._endpoint("github", username=username))

    def npm_package(self, package: str) -> dict[str, Any]:
        return self._get_json(self._endpoint("npm", package=package))

    def weather(self, city: str) -> str:
        return self._get(self._endpoint("weather", city=city)).text

    def isdown(self, url: str) -> dict[str, Any]:
        return self._get_json(self._endpoint("isdown"), params={"host": url})

    def geoip(self, ip: str) -> dict[str, Any]:
        if ip:
            return self._get_json(self._endpoint("geoip", ip=ip))
        return self._get_json(self._endpoint("geoip_self"))

    def hitokoto(self) -> dict[str, Any]:
        return self._get_json(self._endpoint("hitokoto"))

    def devjoke(self) -> dict[str, Any]:
        return self._get_json(self._endpoint("devjoke"))

    # ----------------------------------------------------------------
    # AI
    # ----------------------------------------------------------------

    def ai(self, prompt: str) -> str:
        if not prompt:
            raise ApiError("Prompt is required")
        if not self.ai_api_key:
            raise ApiError("AI service is not configured.")

        model = self.config.get_path("api.ai_model", "gemini-1.5-flash-latest")
        url = self._endpoint("ai", model=model)
        try:
            res = self.session.post(
                url,
                params={"key": self.ai_api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError("Failed to contact AI service.") from e
        if not res.ok:
            raise ApiError(
                f"Gemini API error: {res.reason}", status_code=res.status_code
            )

        data = res.json()
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return "Sorry, I could not generate a response."

    # ----------------------------------------------------------------
    # Short links
    # ----------------------------------------------------------------

    def shorten(self, url: str) -> str:
        if not url:
            raise ApiError("URL is required.")
        key = "".join(secrets.choice(SHORT_KEY_ALPHABET) for _ in range(6))
        ttl_days = int(self.config.get_path("api.short_url_ttl_days", 30))
        self.kv.put(
            f"{SHORT_KEY_PREFIX}{key}",
            {"url": url, "expires_at": time.time() + ttl_days * 86400},
        )
        base = self.config.get_path("api.short_url_base", "").rstrip("/")
        return f"{base}/{key}"

    def unshorten(self, key: str) -> str | None:
        record = self.kv.get(f"{SHORT_KEY_PREFIX}{key}")
        if not isinstance(record, dict):
            return None
        if float(record.get("expires_at", 0)) < time.time():
            self.kv.delete(f"{SHORT_KEY_PREFIX}{key}")
            return None
        return record.get("url")
