# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Per-session configuration: aliases and the active theme.

Loaded from the SettingsStore when a session starts and written back on
every change and when the session ends.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from .interfaces import SettingsStore

ALIASES_SETTING = "aliases"
THEME_SETTING = "theme"


@dataclass
class SessionConfig:
    aliases: dict[str, str] = field(default_factory=dict)
    theme: str = "dracula"

    @classmethod
    def load(cls, store: SettingsStore, default_theme: str = "dracula"
             ) -> SessionConfig:
        raw = store.get_setting(ALIASES_SETTING, "{}")
        try:
            aliases = json.loads(raw)
        except ValueError:
            aliases = {}
        if not isinstance(aliases, dict):
            aliases = {}
        return cls(
            aliases={str(k): str(v) for k, v in aliases.items()},
            theme=store.get_setting(THEME_SETTING, default_theme),
        )

    def save(self, store: SettingsStore) -> None:
        store.set_setting(ALIASES_SETTING, json.dumps(self.aliases))
        store.set_setting(THEME_SETTING, self.theme)
