# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Local authentication service.

- Passwords are stored as salted PBKDF2-SHA256 hashes.
- Sessions are HMAC-SHA256 signed tokens carrying {sub, username, role,
  iat, exp}; the active token is kept in settings so a restarted CLI
  resumes the session.
- Admin operations (useradd/userdel/passwd for others) are re-checked here
  even though the interpreter gates them first.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from collections.abc import Callable
from typing import Any

from .interfaces import (
    ROLE_ADMIN,
    ROLES,
    KeyValueStore,
    SettingsStore,
    User,
    UserStore,
)
from .vfs import vfs_key

PBKDF2_ITERATIONS = 120_000
TOKEN_TTL_SECONDS = 60 * 60 * 24
SESSION_TOKEN_SETTING = "session_token"
SECRET_SETTING = "token_secret"


class AuthError(Exception):
    """Raised for failed logins, bad tokens and forbidden operations."""


def hash_password(password: str, salt: str | None = None,
                  iterations: int = PBKDF2_ITERATIONS) -> str:
    """Return 'pbkdf2_sha256$<iterations>$<salt>$<hex digest>'."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations
    )
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, _digest = encoded.split("$", 3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    candidate = hash_password(password, salt, int(iterations))
    return hmac.compare_digest(candidate, encoded)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def load_or_create_secret(settings: SettingsStore) -> bytes:
    """Token signing key persisted in settings (generated on first use)."""
    secret = settings.get_setting(SECRET_SETTING, "")
    if not secret:
        secret = secrets.token_hex(32)
        settings.set_setting(SECRET_SETTING, secret)
    return secret.encode("utf-8")


class LocalAuthService:
    """AuthService backed by a UserStore and signed session tokens."""

    def __init__(
        self,
        users: UserStore,
        kv: KeyValueStore,
        settings: SettingsStore,
        secret: bytes,
        token_ttl: int = TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.users = users
        self.kv = kv
        self.settings = settings
        self._secret = secret
        self.token_ttl = token_ttl
        self._clock = clock

        self.token: str | None = None
        self._user: User | None = None

    # ----------------------------------------------------------------
    # Tokens
    # ----------------------------------------------------------------

    def _sign(self, body: str) -> str:
        mac = hmac.new(self._secret, body.encode("ascii"), hashlib.sha256)
        return _b64encode(mac.digest())

    def issue(self, record: dict[str, Any]) -> str:
        now = int(self._clock())
        payload = {
            "sub": record["id"],
            "username": record["username"],
            "role": record["role"],
            "iat": now,
            "exp": now + self.token_ttl,
        }
        body = _b64encode(
            json.dumps(payload, separators=(",", ":")).encode("utf-8")
        )
        return f"{body}.{self._sign(body)}"

    def verify(self, token: str) -> dict[str, Any]:
        """Return the claims of token or raise AuthError."""
        body, sep, signature = (token or "").partition(".")
        if not sep or not body:
            raise AuthError("Unauthorized: Invalid token")
        if not hmac.compare_digest(self._sign(body), signature):
            raise AuthError("Unauthorized: Invalid token")
        try:
            claims = json.loads(_b64decode(body))
        except ValueError as e:
            raise AuthError("Unauthorized: Invalid token") from e
        if (not isinstance(claims, dict) or
                int(claims.get("exp", 0)) < self._clock()):
            raise AuthError("Session expired. Please log in again.")
        return claims

    # ----------------------------------------------------------------
    # Session
    # ----------------------------------------------------------------

    def restore(self) -> User | None:
        """Resume the session whose token is stored in settings."""
        token = self.settings.get_setting(SESSION_TOKEN_SETTING, "")
        if not token:
            return None
        try:
            claims = self.verify(token)
        except AuthError:
            self.settings.set_setting(SESSION_TOKEN_SETTING, "")
            return None
        self.token = token
        self._user = User(claims["username"], claims["role"])
        return self._user

    def login(self, username: str, password: str) -> str:
        if not username or not password:
            raise AuthError("Missing required fields")
        record = self.users.find_by_username(username)
        if record is None or not verify_password(
            password, record["password_hash"]
        ):
            self.logout()
            raise AuthError("Invalid username or password")

        self.token = self.issue(record)
        self._user = User(record["username"], record["role"])
        self.settings.set_setting(SESSION_TOKEN_SETTING, self.token)
        return self.token

    def logout(self) -> None:
        self.token = None
        self._user = None
        self.settings.set_setting(SESSION_TOKEN_SETTING, "")

    def current_user(self) -> User | None:
        return self._user

    def has_role(self, role: str) -> bool:
        return self._user is not None and self._user.role == role

    # ----------------------------------------------------------------
    # User administration
    # ----------------------------------------------------------------

    def _require_admin(self) -> None:
        if not self.has_role(ROLE_ADMIN):
            raise AuthError("Forbidden: Admin access required")

    def add_user(self, username: str, password: str, role: str) -> str:
        self._require_admin()
        if not username or not password or role not in ROLES:
            raise AuthError("Invalid parameters")
        if self.users.find_by_username(username) is not None:
            raise AuthError(f"User '{username}' already exists.")
        self.users.insert(username, hash_password(password), role)
        return f"User '{username}' created successfully."

    def delete_user(self, username: str) -> str:
        self._require_admin()
        if username == "admin":
            raise AuthError("Cannot delete the primary admin account")
        # The live session would write the deleted tree back
        if username == self._user.username:
            raise AuthError("Cannot delete the account you are logged in as")
        if not self.users.delete_user(username):
            raise AuthError(f"User '{username}' not found.")
        self.kv.delete(vfs_key(username))
        return f"User '{username}' and their data have been deleted."

    def change_password(self, username: str, new_password: str) -> str:
        user = self._user
        if user is None:
            raise AuthError("Permission denied. Please log in.")
        if not user.is_admin and user.username != username:
            raise AuthError("Permission denied.")
        if not username or not new_password:
            raise AuthError("Missing parameters")
        new_hash = hash_password(new_password)
        if not self.users.update_password(username, new_hash):
            raise AuthError(f"User '{username}' not found.")
        return f"Password for '{username}' updated."
