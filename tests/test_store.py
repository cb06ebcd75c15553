# tests/test_store.py
"""
Tests for the SQLite implementation of KeyValueStore, UserStore and
SettingsStore.

IMPORTANT ARCHITECTURE RULE (enforced here):
- termsite.db is the *only* entry point that creates/ensures schema.
- termsite.store (SQLiteStore) must NOT create schema. It assumes schema
  exists and only performs CRUD against existing tables.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from termsite import db as termsite_db
from termsite.session import SessionConfig
from termsite.store import SQLiteStore


@pytest.fixture
def tmp_db(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def ensured_db(tmp_db: Path) -> Path:
    """Ensure schema via termsite.db (the sole schema authority)."""
    termsite_db.ensure_schema(tmp_db)
    return tmp_db


@pytest.fixture
def store(ensured_db: Path) -> SQLiteStore:
    return SQLiteStore(ensured_db)


def _tables(db_path: Path) -> set[str]:
    conn = sqlite3.connect(str(db_path))
    try:
        rows = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
        return {r[0] for r in rows}
    finally:
        conn.close()


# ----------------------------------------------------------------
# Schema authority / initialization boundaries
# ----------------------------------------------------------------


def test_store_does_not_create_schema_on_init(tmp_db: Path) -> None:
    _ = SQLiteStore(tmp_db)
    tables = _tables(tmp_db) if tmp_db.exists() else set()
    assert not {"users", "kv", "settings"} & tables


def test_store_operations_fail_without_schema(tmp_db: Path) -> None:
    """Without ensure_schema, CRUD fails loudly."""
    s = SQLiteStore(tmp_db)
    with pytest.raises(sqlite3.OperationalError):
        s.get("vfs_alice")


def test_store_source_contains_no_ddl() -> None:
    import termsite.store as store_mod

    text = Path(store_mod.__file__).read_text(encoding="utf-8")
    for ddl in ("CREATE TABLE", "ALTER TABLE", "DROP TABLE"):
        assert ddl not in text


# ----------------------------------------------------------------
# Key-value blobs
# ----------------------------------------------------------------


def test_kv_round_trips_json(store: SQLiteStore) -> None:
    tree = {"~": {"README.md": "héllo", "docs": {}}}
    store.put("vfs_alice", tree)
    assert store.get("vfs_alice") == tree


def test_kv_put_replaces_whole_value(store: SQLiteStore) -> None:
    store.put("k", {"a": 1, "b": 2})
    store.put("k", {"c": 3})
    assert store.get("k") == {"c": 3}


def test_kv_get_missing_and_delete(store: SQLiteStore) -> None:
    assert store.get("missing") is None
    store.put("k", [1, 2])
    store.delete("k")
    store.delete("k")
    assert store.get("k") is None


# ----------------------------------------------------------------
# Users
# ----------------------------------------------------------------


def test_user_crud(store: SQLiteStore) -> None:
    assert store.count_users() == 0
    store.insert("bob", "hash1", "guest")

    record = store.find_by_username("bob")
    assert record is not None
    assert record["username"] == "bob"
    assert record["role"] == "guest"
    assert record["password_hash"] == "hash1"
    assert store.count_users() == 1

    assert store.update_password("bob", "hash2")
    assert store.find_by_username("bob")["password_hash"] == "hash2"
    assert not store.update_password("nobody", "x")

    assert store.delete_user("bob")
    assert not store.delete_user("bob")
    assert store.find_by_username("bob") is None


def test_duplicate_username_is_rejected(store: SQLiteStore) -> None:
    store.insert("bob", "h", "guest")
    with pytest.raises(sqlite3.IntegrityError):
        store.insert("bob", "h", "admin")


# ----------------------------------------------------------------
# Settings + session config
# ----------------------------------------------------------------


def test_settings_default_and_overwrite(store: SQLiteStore) -> None:
    assert store.get_setting("theme", "dracula") == "dracula"
    store.set_setting("theme", "gruvbox")
    store.set_setting("theme", "solarized")
    assert store.get_setting("theme", "dracula") == "solarized"


def test_session_config_round_trip(store: SQLiteStore) -> None:
    SessionConfig(aliases={"ll": "ls"}, theme="gruvbox").save(store)
    loaded = SessionConfig.load(store)
    assert loaded.aliases == {"ll": "ls"}
    assert loaded.theme == "gruvbox"


def test_session_config_ignores_corrupt_aliases(store: SQLiteStore) -> None:
    store.set_setting("aliases", "{not json")
    assert SessionConfig.load(store, "solarized") == SessionConfig(
        aliases={}, theme="solarized"
    )
