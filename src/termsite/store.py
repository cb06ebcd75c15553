# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
SQLite-backed storage implementation for Termsite.

Handles all database operations: users, key-value blobs and settings.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any


class SQLiteStore:
    """SQLite implementation of KeyValueStore, UserStore and SettingsStore."""

    def __init__(self, db_path: Path):
        """Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (must have schema)

        Note:
            Store does NOT create schema. Schema must be created by
            db.ensure_schema() before constructing SQLiteStore.
        """
        self.db_path = db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)

    # ----------------------------------------------------------------
    # Key-value blobs
    # ----------------------------------------------------------------

    def get(self, key: str) -> Any | None:
        """Return the decoded JSON stored under key, or None."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            row = conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        return json.loads(row[0]) if row else None

    def put(self, key: str, value: Any) -> None:
        """Store value as JSON under key (full replacement)."""
        payload = json.dumps(value, ensure_ascii=False)
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, payload, datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    # ----------------------------------------------------------------
    # Users
    # ----------------------------------------------------------------

    def find_by_username(self, username: str) -> dict[str, Any] | None:
        conn = sqlite3.connect(str(self.db_path))
        try:
            row = conn.execute(
                """
                SELECT id, username, password_hash, role
                FROM users WHERE username = ?
                """,
                (username,),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        return {
            "id": row[0],
            "username": row[1],
            "password_hash": row[2],
            "role": row[3],
        }

    def insert(self, username: str, password_hash: str, role: str) -> None:
        """Insert a user (raises sqlite3.IntegrityError on duplicates)."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.execute(
                """
                INSERT INTO users (username, password_hash, role, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (username, password_hash, role, datetime.now().isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def update_password(self, username: str, password_hash: str) -> bool:
        conn = sqlite3.connect(str(self.db_path))
        try:
            cur = conn.execute(
                "UPDATE users SET password_hash = ? WHERE username = ?",
                (password_hash, username),
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def delete_user(self, username: str) -> bool:
        conn = sqlite3.connect(str(self.db_path))
        try:
            cur = conn.execute(
                "DELETE FROM users WHERE username = ?", (username,)
            )
            conn.commit()
            return cur.rowcount > 0
        finally:
            conn.close()

    def count_users(self) -> int:
        conn = sqlite3.connect(str(self.db_path))
        try:
            row = conn.execute("SELECT COUNT(*) FROM users").fetchone()
            return int(row[0]) if row else 0
        finally:
            conn.close()

    # ----------------------------------------------------------------
    # Settings operations
    # ----------------------------------------------------------------

    def get_setting(self, key: str, default: str) -> str:
        """Get a setting from persistent storage."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            cur = conn.execute(
                "SELECT value FROM settings WHERE key = ?",
                (key,),
            )
            row = cur.fetchone()
            return row[0] if row else default
        finally:
            conn.close()

    def set_setting(self, key: str, value: str) -> None:
        """Set a setting in persistent storage."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """
                INSERT OR REPLACE INTO settings (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, value, now),
            )
            conn.commit()
        finally:
            conn.close()
