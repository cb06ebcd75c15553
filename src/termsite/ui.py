# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

from __future__ import annotations

import random
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import clear as pt_clear
from prompt_toolkit.shortcuts import print_formatted_text
from prompt_toolkit.styles import Style

from .config import ANSI_COLORS, paint
from .paths import resolve_path
from .vfs import Directory

if TYPE_CHECKING:
    from .interpreter import Interpreter  # pragma: no cover

NOTIFY_COLORS = {"info": "cyan", "success": "green", "error": "red"}

EFFECT_GLYPHS = "01アイウエオカキクケコサシスセソタチツテト#$%&*+=<>"


# ----------------------------
# Config helpers (via interpreter.config.get_path)
# ----------------------------


def _cfg_get_path(interp: Interpreter | None, path: str, default):
    if interp is None:
        return default
    cfg = getattr(interp, "config", None)
    if cfg is None or not hasattr(cfg, "get_path"):
        return default
    return cfg.get_path(path, default)


def _cfg_dict(interp: Interpreter | None, path: str, default: dict) -> dict:
    val = _cfg_get_path(interp, path, default)
    return val if isinstance(val, dict) else default


# ----------------------------
# Theme / Style
# ----------------------------


def _default_style_dict() -> dict[str, str]:
    return {
        # completion menu
        "completion-menu": "bg:#111111 #d0d0d0",
        "completion-menu.completion": "bg:#111111 #d0d0d0",
        "completion-menu.completion.current": "bg:#303030 #ffffff bold",
        "completion-menu.meta.completion": "bg:#111111 #808080",
        "completion-menu.meta.completion.current": "bg:#303030 #a0a0a0",
        "scrollbar.background": "bg:#202020",
        "scrollbar.button": "bg:#505050",
        "bottom-toolbar": "bg:#0b0b0b #d0d0d0",
        "termsite.toolbar.label": "bg:#0b0b0b #a0a0a0",
        "termsite.toolbar.value": "bg:#0b0b0b #d0d0d0",
    }


def _build_style(interp: Interpreter | None, theme: str) -> Style:
    base = _default_style_dict()
    overrides = _cfg_dict(interp, f"ui.styles.{theme}", {})
    # only keep string->string
    for k, v in overrides.items():
        if isinstance(k, str) and isinstance(v, str):
            base[k] = v
    return Style.from_dict(base)


# ----------------------------
# Completion
# ----------------------------


class TermsiteCompleter(Completer):
    """Completes verbs and aliases on the first token, VFS paths after it."""

    def __init__(self, interp: Interpreter | None) -> None:
        self.interp = interp

    def _verbs(self) -> list[tuple[str, str]]:
        interp = self.interp
        if interp is None:
            return []
        items = [(name, "built-in") for name in interp.registry.names()]
        items += [
            (name, expansion)
            for name, expansion in sorted(interp.session.aliases.items())
        ]
        return items

    def _paths(self, token: str) -> Iterable[Completion]:
        interp = self.interp
        if interp is None or interp.auth.current_user() is None:
            return

        head, sep, prefix = token.rpartition("/")
        base = head + sep
        cwd = interp.vfs.current_path
        # "/x" has an empty head, which names the root
        directory = interp.vfs.get(
            resolve_path(head or "/", cwd) if sep else cwd
        )
        if not isinstance(directory, Directory):
            return

        for name, child in sorted(directory.children.items()):
            if not name.startswith(prefix):
                continue
            is_dir = isinstance(child, Directory)
            yield Completion(
                f"{base}{name}" + ("/" if is_dir else ""),
                start_position=-len(token),
                display_meta="dir" if is_dir else "file",
            )

    def get_completions(
        self, document, complete_event
    ) -> Iterable[Completion]:
        before = (document.text_before_cursor or "").lstrip()

        # First token: verbs and aliases
        if " " not in before:
            for name, meta in self._verbs():
                if name.startswith(before):
                    yield Completion(
                        name, start_position=-len(before), display_meta=meta
                    )
            return

        token = "" if before.endswith(" ") else before.split()[-1]
        yield from self._paths(token)


# ----------------------------
# PromptSession UI + bottom toolbar
# ----------------------------


class PromptToolkitUI:
    """
    Terminal-friendly UI implementing the Terminal protocol:
      - Keeps normal terminal scrollback + drag-select copy.
      - Uses PromptSession for completion menus and history.
      - Adds a themed bottom toolbar showing:
          * alias expansion for the first token
          * the track set by `music play`
          * the active `watch`
    """

    def __init__(self, interp: Interpreter | None = None) -> None:
        self.interp = interp
        self.session: PromptSession[str] | None = None
        self.theme = "dracula"
        self._style = _build_style(interp, self.theme)

        self.now_playing: dict[str, str] | None = None
        self.audio_url: str | None = None

        # Track whether we ended on a newline (to prevent prompt mangling)
        self._needs_newline_before_prompt = False

    # ---------- toolbar rendering ----------

    def _alias_tokens(self) -> list[tuple[str, str]]:
        if self.session is None or self.interp is None:
            return []
        raw = (self.session.default_buffer.text or "").strip()
        if not raw:
            return []
        first = raw.split(maxsplit=1)[0]
        expanded = self.interp.session.aliases.get(first)
        if not expanded:
            return []
        return [
            ("class:termsite.toolbar.label", " alias "),
            ("class:termsite.toolbar.value", f"{first} → {expanded} "),
        ]

    def _status_tokens(self) -> list[tuple[str, str]]:
        out: list[tuple[str, str]] = []
        if self.now_playing:
            out += [
                ("class:termsite.toolbar.label", " ♪ "),
                (
                    "class:termsite.toolbar.value",
                    f"{self.now_playing.get('name', 'Unknown')} - "
                    f"{self.now_playing.get('artist', 'Unknown')} ",
                ),
            ]
        watch = self.interp.active_watch if self.interp else None
        if watch is not None and not watch.finished:
            out += [
                ("class:termsite.toolbar.label", " watch "),
                (
                    "class:termsite.toolbar.value",
                    f"{watch.command} (Ctrl+C to stop) ",
                ),
            ]
        return out

    def _bottom_toolbar(self):
        enabled = _cfg_get_path(self.interp, "ui.toolbar.enabled", True)
        if not enabled:
            return ""
        return self._alias_tokens() + self._status_tokens()

    # ---------- session ----------

    def _ensure_session(self) -> None:
        if self.session is not None:
            return

        self.session = PromptSession(
            key_bindings=self.build_key_bindings(),
            completer=TermsiteCompleter(self.interp),
            complete_while_typing=True,
            style=self._style,
            bottom_toolbar=self._bottom_toolbar,
        )

    # ---------- input/output ----------

    def read(self, prompt: str) -> str:
        self._ensure_session()
        assert self.session is not None

        # If last output didn't end with newline, insert one
        # before prompt redraw
        if self._needs_newline_before_prompt:
            print_formatted_text(ANSI("\n"), style=self._style, end="")
            self._needs_newline_before_prompt = False

        # Watch ticks print from another thread while the prompt is live
        with patch_stdout():
            return self.session.prompt(ANSI(prompt + " "), style=self._style)

    def write(self, text: str) -> None:
        """Write EXACTLY what we receive (no extra newline)."""
        if not text:
            return
        print_formatted_text(ANSI(text), style=self._style, end="")
        self._needs_newline_before_prompt = not text.endswith("\n")

    # ---------- Terminal protocol ----------

    def clear(self) -> None:
        pt_clear()
        self._needs_newline_before_prompt = False

    def write_lines(self, lines: list[str]) -> None:
        if lines:
            self.write("\n".join(lines) + "\n")

    def read_secret(self, prompt: str) -> str:
        try:
            return pt_prompt(prompt, is_password=True)
        except (KeyboardInterrupt, EOFError):
            return ""

    def change_theme(self, name: str) -> None:
        self.theme = name
        self._style = _build_style(self.interp, name)
        if self.session is not None:
            self.session.style = self._style

    def set_audio(
        self, url: str | None, details: dict[str, str] | None
    ) -> None:
        # Playback is left to the user's player; the toolbar shows the track
        self.audio_url = url
        self.now_playing = details if url else None
        if url:
            self.write_lines([paint(url, "dim")])

    def notify(self, message: str, level: str = "info") -> None:
        color = NOTIFY_COLORS.get(level, "cyan")
        self.write_lines([paint(f"[{level}] {message}", color)])

    # ---------- fullscreen effect ----------

    def run_effect(self, frames: int = 40, delay: float = 0.05) -> None:
        """Scroll random glyph rain until done or interrupted."""
        width = 80
        if self.session is not None:
            width = self.session.app.output.get_size().columns
        green = ANSI_COLORS["green"]
        reset = ANSI_COLORS["reset"]
        try:
            for _ in range(frames):
                row = "".join(
                    random.choice(EFFECT_GLYPHS) if random.random() > 0.6
                    else " "
                    for _ in range(max(width // 2, 1))
                )
                self.write(f"{green}{row}{reset}\n")
                time.sleep(delay)
        except KeyboardInterrupt:
            pass
        self.clear()

    # ---------- keybindings ----------

    def build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("c-l")
        def _(event):
            event.app.renderer.clear()
            event.current_buffer.reset()
            event.app.invalidate()

        return kb
