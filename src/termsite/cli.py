# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Termsite CLI entry point and REPL loop.

Design:
- CLI owns process startup, DB resolution and wiring.
- Interpreter is the session engine (auth+vfs+api+config injected).
- UI is terminal-friendly PromptSession (keeps scrollback + copy/select).
"""

from __future__ import annotations

import getpass
import os
from collections.abc import Callable
from pathlib import Path

from . import config
from .api import HttpApiClient
from .auth import LocalAuthService, hash_password, load_or_create_secret
from .calc import CalcError, evaluate
from .db import ensure_admin, ensure_schema
from .interpreter import Interpreter, write_crash_log
from .registry import Output
from .session import SessionConfig
from .store import SQLiteStore
from .ui import PromptToolkitUI
from .vfs import VfsStore

REPL_PROMPT = ">"
REPL_EXIT = ".exit"


class StreamTerminal:
    """Terminal for the plain input/print loop (TERMSITE_LEGACY_UI=1)."""

    def __init__(
        self,
        output_fn: Callable[[str], None] = print,
        secret_fn: Callable[[str], str] = getpass.getpass,
    ) -> None:
        self.output_fn = output_fn
        self.secret_fn = secret_fn
        self.theme = "dracula"

    def clear(self) -> None:
        self.output_fn("\033[2J\033[H")

    def write_lines(self, lines: list[str]) -> None:
        for line in lines:
            self.output_fn(line)

    def read_secret(self, prompt: str) -> str:
        try:
            return self.secret_fn(prompt)
        except (KeyboardInterrupt, EOFError):
            return ""

    def change_theme(self, name: str) -> None:
        self.theme = name

    def set_audio(
        self, url: str | None, details: dict[str, str] | None
    ) -> None:
        if url:
            self.output_fn(url)

    def notify(self, message: str, level: str = "info") -> None:
        self.output_fn(f"[{level}] {message}")


def run_expression_repl(
    read: Callable[[str], str], write: Callable[[str], None]
) -> None:
    """Evaluate arithmetic lines until `.exit`, Ctrl+C or EOF."""
    while True:
        try:
            line = read(REPL_PROMPT).strip()
        except (KeyboardInterrupt, EOFError):
            return
        if line == REPL_EXIT:
            return
        if not line:
            continue
        try:
            write(evaluate(line))
        except CalcError as e:
            write(str(e))


def run_repl(
    interpreter: Interpreter,
    ui: PromptToolkitUI | None = None,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    """Run the standard Termsite REPL loop."""

    def read(prompt: str) -> str:
        if ui is not None:
            return ui.read(prompt)
        return input_fn(prompt + " ")

    def write_lines(lines: list[str]) -> None:
        if not lines:
            return
        if ui is not None:
            ui.write_lines(lines)
        else:
            for line in lines:
                output_fn(line)

    def clear() -> None:
        if ui is not None:
            ui.clear()
        else:
            output_fn("\033[2J\033[H")

    def render(result: Output) -> None:
        if result.special == config.SPECIAL_CLEAR:
            clear()
        write_lines(result.lines)

        if result.special == config.SPECIAL_REPL:
            run_expression_repl(read, lambda text: write_lines([text]))
        elif result.special == config.SPECIAL_FULLSCREEN:
            if ui is not None:
                ui.run_effect(
                    frames=int(
                        interpreter.config.system.get("effect_frames", 40)
                    ),
                    delay=float(
                        interpreter.config.system.get(
                            "effect_frame_delay", 0.05
                        )
                    ),
                )
            else:
                write_lines(["(fullscreen effects need the interactive UI)"])

    while True:
        try:
            line = read(interpreter.prompt())
        except KeyboardInterrupt:
            # Ctrl+C stops a running watch; otherwise it just drops the line
            if interpreter.cancel_watch():
                write_lines(["^C"])
            continue
        except EOFError:
            write_lines(["", "Bye!"])
            break

        line = (line or "").strip()
        if not line:
            continue

        try:
            render(interpreter.execute(line))
        except Exception as e:
            # Unhandled exception - write crash log
            user = interpreter.auth.current_user()
            write_crash_log(
                e,
                username=user.username if user else "",
                raw_command=line,
                logs_dir=interpreter.logs_dir,
            )
            write_lines(
                [f"[ERROR] Unhandled exception: {type(e).__name__}: {e}"]
            )
            # Continue session

    interpreter.cancel_watch()


def build_interpreter(
    cfg: config.YAMLConfig | None = None,
    data_root: Path | None = None,
    persist_in_background: bool = True,
) -> Interpreter:
    """Wire stores, auth, VFS and API client into an Interpreter."""
    cfg = cfg or config.load_system_config()
    root = data_root or config.get_data_root()

    db_path = config.core_db_path(root)
    ensure_schema(db_path)
    ensure_admin(
        db_path,
        hash_password(os.environ.get("TERMSITE_ADMIN_PASSWORD", "admin")),
    )
    store = SQLiteStore(db_path)

    secret_env = os.environ.get("TERMSITE_SECRET")
    secret = (
        secret_env.encode("utf-8") if secret_env
        else load_or_create_secret(store)
    )
    auth = LocalAuthService(store, store, store, secret=secret)
    auth.restore()

    vfs = VfsStore(store, persist_in_background=persist_in_background)
    api = HttpApiClient(
        cfg, store, ai_api_key=os.environ.get("GEMINI_API_KEY")
    )
    session = SessionConfig.load(
        store, cfg.system.get("default_theme", "dracula")
    )

    return Interpreter(
        auth=auth,
        vfs=vfs,
        api=api,
        config=cfg,
        session=session,
        settings=store,
        logs_dir=config.logs_dir(root),
    )


def main() -> None:
    """Main entry point for Termsite CLI."""
    interpreter = build_interpreter()

    try:
        # If user explicitly disables prompt_toolkit UI:
        if os.environ.get("TERMSITE_LEGACY_UI") == "1":
            terminal = StreamTerminal()
            interpreter.terminal = terminal
            interpreter.vfs.notify = terminal.notify
            terminal.write_lines(interpreter.start())
            run_repl(interpreter)
            return

        # Default: PromptToolkitUI (keeps terminal scrollback/copy/select)
        ui = PromptToolkitUI(interpreter)
        interpreter.terminal = ui
        interpreter.vfs.notify = ui.notify
        interpreter.color = True

        ui.write_lines(interpreter.start())
        run_repl(interpreter, ui=ui)
    finally:
        interpreter.save_session()
        interpreter.vfs.close()
