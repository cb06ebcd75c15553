# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the interpreter independent of the storage backend,
the authentication scheme, the HTTP layer and the presentation layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

ROLE_ADMIN = "admin"
ROLE_GUEST = "guest"
ROLES = (ROLE_ADMIN, ROLE_GUEST)


@dataclass(frozen=True)
class User:
    """An authenticated session identity."""

    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class KeyValueStore(Protocol):
    """Protocol for the JSON blob store backing the VFS and short links."""

    def get(self, key: str) -> Any | None:
        """Return the decoded JSON value for key, or None."""
        ...

    def put(self, key: str, value: Any) -> None:
        """Store value (JSON-serialisable) under key, replacing it."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...


class UserStore(Protocol):
    """Protocol for the relational user table."""

    def find_by_username(self, username: str) -> dict[str, Any] | None:
        """Return {"id", "username", "password_hash", "role"} or None."""
        ...

    def insert(self, username: str, password_hash: str, role: str) -> None:
        """Insert a user. Raises if the username already exists."""
        ...

    def update_password(self, username: str, password_hash: str) -> bool:
        """Update a password hash. Returns False if the user is unknown."""
        ...

    def delete_user(self, username: str) -> bool:
        """Delete a user. Returns False if the user is unknown."""
        ...

    def count_users(self) -> int:
        """Number of registered users."""
        ...


class SettingsStore(Protocol):
    """Protocol for persistent session settings."""

    def get_setting(self, key: str, default: str) -> str:
        """Get a setting from persistent storage."""
        ...

    def set_setting(self, key: str, value: str) -> None:
        """Set a setting in persistent storage."""
        ...


class AuthService(Protocol):
    """Protocol for authentication as consumed by the interpreter."""

    def login(self, username: str, password: str) -> str:
        """Authenticate and return a session token. Raises AuthError."""
        ...

    def verify(self, token: str) -> dict[str, Any]:
        """Return the claims of a valid token. Raises AuthError."""
        ...

    def logout(self) -> None:
        """Forget the current session."""
        ...

    def current_user(self) -> User | None:
        """The authenticated user, or None for a guest session."""
        ...

    def has_role(self, role: str) -> bool:
        """True when the current user holds role."""
        ...

    def change_password(self, username: str, new_password: str) -> str:
        """Change a password. Returns a message. Raises AuthError."""
        ...

    def add_user(self, username: str, password: str, role: str) -> str:
        """Create a user. Returns a message. Raises AuthError."""
        ...

    def delete_user(self, username: str) -> str:
        """Delete a user and their data. Raises AuthError."""
        ...


class ApiClient(Protocol):
    """Protocol for the third-party HTTP collaborators."""

    def music_search(self, keywords: str) -> dict[str, Any]: ...

    def music_url(self, song_id: str) -> dict[str, Any]: ...

    def music_detail(self, song_id: str) -> dict[str, Any]: ...

    def video_search(self, keywords: str) -> dict[str, Any]: ...

    def curl(self, url: str) -> str: ...

    def dns(self, domain: str) -> dict[str, Any]: ...

    def github_user(self, username: str) -> dict[str, Any]: ...

    def npm_package(self, package: str) -> dict[str, Any]: ...

    def weather(self, city: str) -> str: ...

    def isdown(self, url: str) -> dict[str, Any]: ...

    def geoip(self, ip: str) -> dict[str, Any]: ...

    def hitokoto(self) -> dict[str, Any]: ...

    def devjoke(self) -> dict[str, Any]: ...

    def ai(self, prompt: str) -> str: ...

    def shorten(self, url: str) -> str: ...

    def unshorten(self, key: str) -> str | None: ...


class Terminal(Protocol):
    """Protocol for the presentation controller handed to commands."""

    def clear(self) -> None:
        """Wipe displayed history."""
        ...

    def write_lines(self, lines: list[str]) -> None:
        """Append lines to displayed history."""
        ...

    def read_secret(self, prompt: str) -> str:
        """Read a line without echoing it (passwords)."""
        ...

    def change_theme(self, name: str) -> None:
        """Apply a theme to the display."""
        ...

    def set_audio(
        self, url: str | None, details: dict[str, str] | None
    ) -> None:
        """Start (or stop, with None) background audio."""
        ...

    def notify(self, message: str, level: str = "info") -> None:
        """Side-channel notification (toast)."""
        ...


class ConfigModel(Protocol):
    """Protocol for configuration access."""

    @property
    def system(self) -> dict[str, Any]:
        """System configuration."""
        ...

    @property
    def themes(self) -> dict[str, dict[str, str]]:
        """Theme definitions."""
        ...

    def get_path(self, path: str, default: Any = None) -> Any:
        """Dotted lookup."""
        ...


class NullTerminal:
    """Terminal that discards everything (nested watch executions)."""

    def clear(self) -> None:
        pass

    def write_lines(self, lines: list[str]) -> None:
        pass

    def read_secret(self, prompt: str) -> str:
        return ""

    def change_theme(self, name: str) -> None:
        pass

    def set_audio(
        self, url: str | None, details: dict[str, str] | None
    ) -> None:
        pass

    def notify(self, message: str, level: str = "info") -> None:
        pass
