# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Low-level database schema helpers for Termsite.

Handles:
- Schema creation (users, kv, settings)
- Bootstrap of the primary admin account
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path


def ensure_schema(db_path: Path) -> None:
    """Create database schema.

    Creates required tables if they don't exist:
    - users: credentials and roles
    - kv: JSON blobs (per-user VFS trees, short links)
    - settings: persistent session configuration

    Args:
        db_path: Path to SQLite database file

    This function is idempotent - safe to call multiple times.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                role TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

        conn.commit()
    finally:
        conn.close()


def ensure_admin(db_path: Path, password_hash: str) -> bool:
    """Insert the primary 'admin' account if no users exist yet.

    Returns:
        True if the account was created
    """
    conn = sqlite3.connect(str(db_path))
    try:
        row = conn.execute("SELECT COUNT(*) FROM users").fetchone()
        if row and row[0] > 0:
            return False
        conn.execute(
            """
            INSERT INTO users (username, password_hash, role, created_at)
            VALUES (?, ?, ?, ?)
            """,
            ("admin", password_hash, "admin", datetime.now().isoformat()),
        )
        conn.commit()
        return True
    finally:
        conn.close()
