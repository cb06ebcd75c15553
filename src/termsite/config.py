# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Configuration and data root resolution for Termsite.

Handles:
- Data root resolution (TERMSITE_DATA_HOME, ~/.local/share)
- DB path helpers
- Packaged YAML defaults loading (termsite/defaults/system.yaml)
- ANSI coloring constants + output envelope special tokens
"""

from __future__ import annotations

import os
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml

# -----------------------
# UI + branding constants
# -----------------------

ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[38;5;69;1m",
    "pink": "\033[38;5;169;1m",
    "magenta": "\033[38;5;126;1m",
    "yellow": "\033[38;5;226;1m",
    "orange": "\033[38;2;255;165;1;1m",
    "purple": "\033[38;5;96;1m",
    "green": "\033[32m",
    "red": "\033[31m",
    "blue": "\033[34m",
    "highlight": "\033[30;48;5;226m",
    "reset": "\033[0m",
    "dim": "\033[2m",
}

# Special control tokens carried by the output envelope
SPECIAL_CLEAR = "clear"
SPECIAL_REPL = "enter-repl"
SPECIAL_FULLSCREEN = "fullscreen-effect"

SPECIALS = frozenset({SPECIAL_CLEAR, SPECIAL_REPL, SPECIAL_FULLSCREEN})


def paint(text: str, color: str, enabled: bool = True) -> str:
    """Wrap text in an ANSI color, or return it unchanged when disabled."""
    if not enabled or color not in ANSI_COLORS:
        return text
    return f"{ANSI_COLORS[color]}{text}{ANSI_COLORS['reset']}"


# -----------------------
# Config model wrapper
# -----------------------


class YAMLConfig:
    """Simple config wrapper that implements ConfigModel protocol."""

    def __init__(self, config_dict: dict[str, Any]):
        self._config = config_dict

    @property
    def system(self) -> dict[str, Any]:
        return self._config.get("system", {})

    @property
    def themes(self) -> dict[str, dict[str, str]]:
        themes = self._config.get("themes", {})
        return themes if isinstance(themes, dict) else {}

    @property
    def help(self) -> dict[str, Any]:
        return self._config.get("help", {})

    @property
    def api(self) -> dict[str, Any]:
        return self._config.get("api", {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """
        Nested lookup using dot-separated path.
        Example: get_path("api.endpoints.github", "") -> URL template
        """
        if not path:
            return default

        cur: Any = self._config
        for part in path.split("."):
            if not isinstance(cur, dict):
                return default
            if part not in cur:
                return default
            cur = cur[part]
        return cur


# -----------------------
# Data root + DB helpers
# -----------------------


def get_data_root() -> Path:
    """Get the data root directory for Termsite.

    Resolution order:
    1. TERMSITE_DATA_HOME environment variable (if set)
    2. ~/.local/share (default, XDG_DATA_HOME is ignored)
    """
    data_home = os.getenv("TERMSITE_DATA_HOME")
    if data_home:
        root = Path(data_home)
    else:
        root = Path.home() / ".local" / "share"

    root.mkdir(parents=True, exist_ok=True)
    return root


def core_db_path(data_root: Path) -> Path:
    """<data_root>/termsite/termsite.db"""
    return data_root / "termsite" / "termsite.db"


def logs_dir(data_root: Path) -> Path:
    """<data_root>/termsite/logs"""
    return data_root / "termsite" / "logs"


# -----------------------
# Packaged defaults loading
# -----------------------


def _defaults_dir() -> Path:
    """Return the installed path to the packaged defaults directory."""
    return Path(
        importlib_resources.files("termsite.defaults")
    )  # type: ignore[arg-type]


def load_defaults_yaml(filename: str) -> dict[str, Any]:
    """
    Load a YAML file from termsite/defaults/.
    """
    defaults_dir = _defaults_dir()
    path = defaults_dir / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Missing defaults YAML: {filename} "
            f"(looked in {defaults_dir})"
        )

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(
            f"Defaults YAML {filename} must load to a mapping/dict."
        )
    return data


def load_system_config() -> YAMLConfig:
    """
    Load system.yaml from packaged defaults and return a YAMLConfig wrapper.
    """
    return YAMLConfig(load_defaults_yaml("system.yaml"))
