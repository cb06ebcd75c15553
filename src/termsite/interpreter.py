# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Termsite interpreter.

Turns one submitted line into an Output envelope:
- whitespace tokenizing (no quoting)
- alias expansion with cycle + depth protection
- privilege checks, including sudo re-dispatch
- handler invocation and result normalisation

Important boundary:
- No exception escapes execute(); handler failures become a single
  "Error: ..." line plus a crash-log entry.
- Dispatch is serialised by a re-entrant lock so the watch thread and the
  REPL never run two commands at once.
"""

from __future__ import annotations

import threading
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from . import config as cfg_module
from .commands import default_registry
from .config import paint
from .interfaces import (
    ApiClient,
    AuthService,
    ConfigModel,
    NullTerminal,
    SettingsStore,
    Terminal,
)
from .registry import (
    Command,
    CommandContext,
    CommandRegistry,
    HandlerResult,
    Output,
    Privilege,
)
from .session import SessionConfig
from .vfs import VfsStore
from .watch import WatchTimer

__all__ = ["Interpreter", "Output", "write_crash_log"]


def write_crash_log(
    error: Exception,
    username: str = "",
    raw_command: str = "",
    logs_dir: Path | None = None,
) -> None:
    """Write an entry to the crash log.

    Logs unhandled handler exceptions.
    Only creates the log directory when actually needed.
    Appends to crash.log (never overwrites).
    """
    try:
        if logs_dir is None:
            logs_dir = cfg_module.logs_dir(cfg_module.get_data_root())

        logs_dir.mkdir(parents=True, exist_ok=True)
        crash_log_path = logs_dir / "crash.log"

        lines = [
            f"{datetime.now().isoformat()}",
            f"user={username or 'guest'}",
        ]
        if raw_command:
            lines.append(f"raw={raw_command}")
        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(
            "".join(
                traceback.format_exception(
                    type(error), error, error.__traceback__
                )
            )
        )
        lines.append("----")

        with crash_log_path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # Already reporting a failure; the log is best effort
        pass


def normalize(result: HandlerResult) -> Output:
    """Coerce a handler's return value into the output envelope."""
    if result is None:
        return Output()
    if isinstance(result, Output):
        return result
    if isinstance(result, (list, tuple)):
        return Output([str(line) for line in result])
    return Output([str(result)])


@dataclass
class Interpreter:
    """Session command engine."""

    auth: AuthService
    vfs: VfsStore
    api: ApiClient
    config: ConfigModel
    session: SessionConfig = field(default_factory=SessionConfig)
    terminal: Terminal = field(default_factory=NullTerminal)
    registry: CommandRegistry = field(default_factory=default_registry)
    settings: SettingsStore | None = None

    color: bool = False
    logs_dir: Path | None = None
    history: list[str] = field(default_factory=list)

    # Alias expansion recursion tracking
    _alias_expansion_stack: list[str] = field(default_factory=list)
    max_alias_depth: int = 10

    active_watch: WatchTimer | None = None
    _detached_depth: int = 0
    _lock: threading.RLock = field(default_factory=threading.RLock)

    # -----------------------
    # Session
    # -----------------------

    def start(self) -> list[str]:
        """Load the session's VFS and return the boot banner lines."""
        user = self.auth.current_user()
        self.vfs.load(user.username if user else None)
        self.terminal.change_theme(self.session.theme)
        lines = list(self.config.system.get("boot_sequence", []) or [])
        welcome = self.config.system.get("welcome")
        if user is not None:
            lines.append(f"Welcome back, {user.username}!")
        elif welcome:
            lines.append(welcome)
        return lines

    def reload(self) -> None:
        """Re-read session configuration and the current user's tree."""
        if self.settings is not None:
            self.session = SessionConfig.load(
                self.settings,
                self.config.system.get("default_theme", "dracula"),
            )
        user = self.auth.current_user()
        self.vfs.load(user.username if user else None)

    def save_session(self) -> None:
        if self.settings is not None:
            self.session.save(self.settings)

    def prompt(self) -> str:
        user = self.auth.current_user()
        name = user.username if user else "guest"
        host = self.config.system.get("hostname", "localhost")
        path = self.vfs.current_path if user else "/"
        theme = self.config.themes.get(self.session.theme, {})
        left = paint(f"{name}@{host}", theme.get("user", "pink"), self.color)
        right = paint(f":{path}$", theme.get("path", "purple"), self.color)
        return f"{left}{right}"

    # -----------------------
    # Watch tracking
    # -----------------------

    def set_active_interval(self, handle: WatchTimer | None) -> None:
        """Track the single outstanding watch, cancelling any other."""
        current = self.active_watch
        if current is not None and current is not handle:
            current.cancel()
        self.active_watch = handle

    def cancel_watch(self) -> bool:
        """Interrupt the active watch. Returns False if none was running."""
        if self.active_watch is None:
            return False
        self.set_active_interval(None)
        return True

    def _watch_finished(self, timer: WatchTimer) -> None:
        if self.active_watch is timer:
            self.active_watch = None

    def start_watch(
        self, command: str, interval: float, count: int | None
    ) -> WatchTimer:
        timer = WatchTimer(
            command,
            run_command=self.run_detached,
            terminal=self.terminal,
            interval=interval,
            count=count,
            on_finish=self._watch_finished,
            lock=self._lock,
        )
        timer.tick()
        if not timer.finished:
            self.set_active_interval(timer)
            timer.start()
        return timer

    # -----------------------
    # Command handling
    # -----------------------

    def execute(self, line: str) -> Output:
        """Handle a single submitted line."""
        with self._lock:
            stripped = line.strip()
            if stripped:
                self.history.append(stripped)
            return self._run(stripped)

    def run_detached(self, line: str) -> Output:
        """Execute line with a terminal that discards side output."""
        with self._lock:
            terminal = self.terminal
            self.terminal = NullTerminal()
            self._detached_depth += 1
            try:
                return self._run(line.strip())
            finally:
                self._detached_depth -= 1
                self.terminal = terminal

    @property
    def detached(self) -> bool:
        """True while a watch tick is running a nested command."""
        return self._detached_depth > 0

    def _run(self, line: str) -> Output:
        parts = line.split()
        if not parts:
            return Output()

        verb, args = parts[0], parts[1:]

        # A name already being expanded refers to the built-in, as in sh
        expansion = self.session.aliases.get(verb)
        if expansion is not None and verb not in self._alias_expansion_stack:
            return self._expand_alias(verb, expansion, args)

        command = self.registry.get(verb)
        if command is None:
            if verb in self._alias_expansion_stack:
                chain = " -> ".join(self._alias_expansion_stack + [verb])
                return Output([f"alias: expansion cycle detected: {chain}"])
            return Output([f"zsh: command not found: {verb}"])

        return self.dispatch(command, args, elevated=False, raw=line)

    def _expand_alias(
        self, name: str, expansion: str, args: list[str]
    ) -> Output:
        if len(self._alias_expansion_stack) >= self.max_alias_depth:
            stack_str = " -> ".join(self._alias_expansion_stack)
            return Output(
                [
                    f"alias: max expansion depth "
                    f"({self.max_alias_depth}) exceeded: {stack_str}"
                ]
            )

        self._alias_expansion_stack.append(name)
        try:
            return self._run(" ".join([expansion, *args]))
        finally:
            self._alias_expansion_stack.pop()

    def _denial(self, command: Command) -> str | None:
        user = self.auth.current_user()
        if command.privilege is Privilege.AUTHENTICATED and user is None:
            return command.denied
        if command.privilege is Privilege.ADMIN and (
            user is None or not user.is_admin
        ):
            return command.denied
        return None

    def dispatch(
        self,
        command: Command,
        args: list[str],
        elevated: bool = False,
        raw: str = "",
    ) -> Output:
        """Check privilege, run the handler and normalise its result."""
        denial = self._denial(command)
        if denial is not None:
            return Output([denial])

        ctx = CommandContext(self, command.name, list(args), elevated)
        try:
            result = command.handler(ctx)
        except Exception as e:
            user = self.auth.current_user()
            write_crash_log(
                e,
                username=user.username if user else "",
                raw_command=raw or " ".join([command.name, *args]),
                logs_dir=self.logs_dir,
            )
            return Output([f"Error: {e}"])

        return normalize(result)
