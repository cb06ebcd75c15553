# tests/conftest.py
"""
Shared fixtures: a real SQLite-backed session with fake API + terminal.

The interpreter under test is wired exactly like cli.build_interpreter(),
except that saves are synchronous, pings do not sleep and the API client is
a canned fake.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from termsite import config
from termsite.auth import LocalAuthService, hash_password
from termsite.db import ensure_admin, ensure_schema
from termsite.interpreter import Interpreter
from termsite.store import SQLiteStore
from termsite.vfs import VfsStore

# Few iterations keep the suite fast; verify_password reads them back
FAST_ITERATIONS = 1000


@dataclass
class RecordingTerminal:
    """Terminal that records everything commands do to the display."""

    secrets: list[str] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)
    clears: int = 0
    themes: list[str] = field(default_factory=list)
    audio: list[tuple[Any, Any]] = field(default_factory=list)
    notices: list[tuple[str, str]] = field(default_factory=list)
    secret_prompts: list[str] = field(default_factory=list)

    def clear(self) -> None:
        self.clears += 1
        self.lines.clear()

    def write_lines(self, lines: list[str]) -> None:
        self.lines.extend(lines)

    def read_secret(self, prompt: str) -> str:
        self.secret_prompts.append(prompt)
        return self.secrets.pop(0) if self.secrets else ""

    def change_theme(self, name: str) -> None:
        self.themes.append(name)

    def set_audio(self, url, details) -> None:
        self.audio.append((url, details))

    def notify(self, message: str, level: str = "info") -> None:
        self.notices.append((message, level))


class FakeApi:
    """ApiClient returning canned payloads; set `fail` to raise instead."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple]] = []
        self.responses: dict[str, Any] = {}
        self.fail: set[str] = set()
        self.short_links: dict[str, str] = {}

    def _answer(self, name: str, *args: Any) -> Any:
        from termsite.api import ApiError

        self.calls.append((name, args))
        if name in self.fail:
            raise ApiError(f"{name} failed", status_code=500)
        return self.responses.get(name)

    def music_search(self, keywords):
        return self._answer("music_search", keywords)

    def music_url(self, song_id):
        return self._answer("music_url", song_id)

    def music_detail(self, song_id):
        return self._answer("music_detail", song_id)

    def video_search(self, keywords):
        return self._answer("video_search", keywords)

    def curl(self, url):
        return self._answer("curl", url)

    def dns(self, domain):
        return self._answer("dns", domain)

    def github_user(self, username):
        return self._answer("github_user", username)

    def npm_package(self, package):
        return self._answer("npm_package", package)

    def weather(self, city):
        return self._answer("weather", city)

    def isdown(self, url):
        return self._answer("isdown", url)

    def geoip(self, ip):
        return self._answer("geoip", ip)

    def hitokoto(self):
        return self._answer("hitokoto")

    def devjoke(self):
        return self._answer("devjoke")

    def ai(self, prompt):
        return self._answer("ai", prompt)

    def shorten(self, url):
        self._answer("shorten", url)
        key = f"k{len(self.short_links)}"
        self.short_links[key] = url
        return f"https://codex.me/s/{key}"

    def unshorten(self, key):
        self._answer("unshorten", key)
        return self.short_links.get(key)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "termsite.db"
    ensure_schema(path)
    ensure_admin(path, hash_password("admin", iterations=FAST_ITERATIONS))
    return path


@pytest.fixture
def store(db_path: Path) -> SQLiteStore:
    return SQLiteStore(db_path)


@pytest.fixture
def auth(store: SQLiteStore) -> LocalAuthService:
    return LocalAuthService(store, store, store, secret=b"test-secret")


@pytest.fixture
def terminal() -> RecordingTerminal:
    return RecordingTerminal()


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def cfg() -> config.YAMLConfig:
    cfg = config.load_system_config()
    cfg.system["ping_delay"] = 0
    return cfg


@pytest.fixture
def interp(
    tmp_path: Path,
    store: SQLiteStore,
    auth: LocalAuthService,
    terminal: RecordingTerminal,
    api: FakeApi,
    cfg: config.YAMLConfig,
) -> Interpreter:
    vfs = VfsStore(store, notify=terminal.notify)
    interp = Interpreter(
        auth=auth,
        vfs=vfs,
        api=api,
        config=cfg,
        terminal=terminal,
        settings=store,
        logs_dir=tmp_path / "logs",
    )
    yield interp
    interp.cancel_watch()
    vfs.close()


def login(interp: Interpreter, username: str, password: str) -> list[str]:
    """Log in through the `login` command, answering the password prompt."""
    interp.terminal.secrets.append(password)
    return interp.execute(f"login {username}").lines


def add_user(store: SQLiteStore, username: str, password: str,
             role: str = "guest") -> None:
    store.insert(
        username, hash_password(password, iterations=FAST_ITERATIONS), role
    )


@pytest.fixture
def admin(interp: Interpreter) -> Interpreter:
    """Interpreter with the bootstrap admin logged in."""
    assert login(interp, "admin", "admin") == ["Welcome, admin!"]
    return interp


@pytest.fixture
def alice(interp: Interpreter, store: SQLiteStore) -> Interpreter:
    """Interpreter with a non-admin user logged in."""
    add_user(store, "alice", "wonderland")
    assert login(interp, "alice", "wonderland") == ["Welcome, alice!"]
    return interp
