# tests/test_interfaces.py
"""
Structural checks: the concrete classes satisfy the Protocols the
interpreter depends on.
"""
from __future__ import annotations

import inspect

from conftest import FakeApi, RecordingTerminal
from termsite import interfaces
from termsite.api import HttpApiClient
from termsite.auth import LocalAuthService
from termsite.cli import StreamTerminal
from termsite.config import YAMLConfig
from termsite.interfaces import ROLE_ADMIN, ROLE_GUEST, NullTerminal, User
from termsite.store import SQLiteStore
from termsite.ui import PromptToolkitUI


def protocol_methods(proto) -> set[str]:
    return {
        name
        for name, value in vars(proto).items()
        if not name.startswith("_") and (
            callable(value) or isinstance(value, property)
        )
    }


def assert_implements(cls, proto) -> None:
    missing = protocol_methods(proto) - {
        name for name, _ in inspect.getmembers(cls)
    }
    assert not missing, f"{cls.__name__} lacks {sorted(missing)}"


def test_sqlite_store_implements_storage_protocols() -> None:
    for proto in (
        interfaces.KeyValueStore,
        interfaces.UserStore,
        interfaces.SettingsStore,
    ):
        assert_implements(SQLiteStore, proto)


def test_service_implementations() -> None:
    assert_implements(LocalAuthService, interfaces.AuthService)
    assert_implements(HttpApiClient, interfaces.ApiClient)
    assert_implements(FakeApi, interfaces.ApiClient)
    assert_implements(YAMLConfig, interfaces.ConfigModel)


def test_terminal_implementations() -> None:
    for cls in (NullTerminal, StreamTerminal, PromptToolkitUI,
                RecordingTerminal):
        assert_implements(cls, interfaces.Terminal)


def test_null_terminal_is_silent() -> None:
    term = NullTerminal()
    assert term.clear() is None
    assert term.write_lines(["x"]) is None
    assert term.read_secret("Password: ") == ""
    assert term.notify("x") is None


def test_user_roles() -> None:
    assert User("a", ROLE_ADMIN).is_admin
    assert not User("b", ROLE_GUEST).is_admin
