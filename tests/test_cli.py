# tests/test_cli.py
from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from pathlib import Path

import pytest

import termsite.cli as cli
from termsite import config
from termsite.registry import CommandRegistry


@dataclass
class FakeUI:
    """
    UI abstraction used by run_repl:
      - read(prompt) -> str (raises EOFError when out of input)
      - write_lines(lines) / clear() / run_effect(frames, delay)
    """

    inputs: list = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    clears: int = 0
    effects: int = 0
    prompts: list[str] = field(default_factory=list)

    def read(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.inputs:
            raise EOFError
        item = self.inputs.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def write_lines(self, lines: list[str]) -> None:
        self.outputs.extend(lines)

    def clear(self) -> None:
        self.clears += 1

    def run_effect(self, frames: int = 40, delay: float = 0.05) -> None:
        self.effects += 1


def test_run_repl_signature() -> None:
    params = inspect.signature(cli.run_repl).parameters
    assert list(params)[:2] == ["interpreter", "ui"]


def test_eof_says_bye(interp) -> None:
    ui = FakeUI(inputs=["echo hi"])
    cli.run_repl(interp, ui=ui)
    assert ui.outputs == ["hi", "", "Bye!"]
    assert ui.prompts[0] == "guest@codex.me:/$"


def test_blank_lines_are_skipped(interp) -> None:
    ui = FakeUI(inputs=["", "   "])
    cli.run_repl(interp, ui=ui)
    assert ui.outputs == ["", "Bye!"]
    assert interp.history == []


def test_clear_special_clears_screen(interp) -> None:
    ui = FakeUI(inputs=["clear"])
    cli.run_repl(interp, ui=ui)
    assert ui.clears == 1


def test_repl_special_runs_expression_loop(interp) -> None:
    ui = FakeUI(inputs=["js", "1+2", "", "2*", ".exit", "echo back"])
    cli.run_repl(interp, ui=ui)
    assert ui.outputs == [
        "Expression REPL. Type .exit to return to the shell.",
        "3",
        "Invalid expression.",
        "back",
        "",
        "Bye!",
    ]
    assert ui.prompts[1:4] == [">", ">", ">"]


def test_expression_loop_survives_oversized_input(interp) -> None:
    chain = "+".join(["1"] * 5000)
    ui = FakeUI(inputs=["js", chain, "1" + "0" * 400 + "/1", "4/2", ".exit"])
    cli.run_repl(interp, ui=ui)
    assert ui.outputs[1:4] == [
        "Expression is too complex.",
        "Result is too large.",
        "2",
    ]


def test_fullscreen_effect_runs_in_ui(interp) -> None:
    ui = FakeUI(inputs=["hollywood"])
    cli.run_repl(interp, ui=ui)
    assert ui.effects == 1


def test_ctrl_c_cancels_watch_and_continues(interp) -> None:
    ui = FakeUI(
        inputs=["watch -n 60 date", KeyboardInterrupt(), KeyboardInterrupt(),
                "echo still here"]
    )
    cli.run_repl(interp, ui=ui)
    assert interp.active_watch is None
    assert ui.outputs.count("^C") == 1
    assert "still here" in ui.outputs


def test_unhandled_exception_is_logged_and_session_continues(
    interp, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def explode(line):
        raise RuntimeError("render failed")

    monkeypatch.setattr(interp, "execute", explode)
    ui = FakeUI(inputs=["anything"])
    cli.run_repl(interp, ui=ui)

    assert ui.outputs[0] == (
        "[ERROR] Unhandled exception: RuntimeError: render failed"
    )
    assert ui.outputs[-1] == "Bye!"
    log = (tmp_path / "logs" / "crash.log").read_text(encoding="utf-8")
    assert "raw=anything" in log


def test_legacy_loop_uses_input_and_print(interp) -> None:
    lines = iter(["whoami"])
    printed: list[str] = []

    def fake_input(prompt: str) -> str:
        try:
            return next(lines)
        except StopIteration:
            raise EOFError from None

    cli.run_repl(interp, input_fn=fake_input, output_fn=printed.append)
    assert printed == ["guest", "", "Bye!"]


def test_legacy_loop_skips_fullscreen(interp) -> None:
    printed: list[str] = []
    inputs = iter(["hollywood"])

    def fake_input(prompt: str) -> str:
        try:
            return next(inputs)
        except StopIteration:
            raise EOFError from None

    cli.run_repl(interp, input_fn=fake_input, output_fn=printed.append)
    assert printed[0] == "(fullscreen effects need the interactive UI)"


def test_stream_terminal() -> None:
    out: list[str] = []
    term = cli.StreamTerminal(output_fn=out.append, secret_fn=lambda p: "pw")
    term.write_lines(["a", "b"])
    term.notify("saved", "success")
    term.set_audio("https://m.test/x.mp3", {"name": "x", "artist": "y"})
    term.change_theme("gruvbox")
    assert out == ["a", "b", "[success] saved", "https://m.test/x.mp3"]
    assert term.read_secret("Password: ") == "pw"
    assert term.theme == "gruvbox"


def test_stream_terminal_secret_interrupt_is_empty() -> None:
    def interrupted(prompt: str) -> str:
        raise KeyboardInterrupt

    term = cli.StreamTerminal(output_fn=lambda s: None, secret_fn=interrupted)
    assert term.read_secret("Password: ") == ""


# ----------------------------------------------------------------
# Wiring
# ----------------------------------------------------------------


def test_build_interpreter_bootstraps_data_root(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TERMSITE_ADMIN_PASSWORD", "letmein")
    monkeypatch.setenv("TERMSITE_SECRET", "fixed")

    interp = cli.build_interpreter(
        cfg=config.load_system_config(),
        data_root=tmp_path,
        persist_in_background=False,
    )
    try:
        assert config.core_db_path(tmp_path).exists()
        assert interp.logs_dir == config.logs_dir(tmp_path)
        assert interp.auth.current_user() is None

        interp.auth.login("admin", "letmein")
        interp.vfs.load("admin")
        interp.execute("mkdir keep")
    finally:
        interp.vfs.close()

    # A second process resumes the signed session and the saved tree
    again = cli.build_interpreter(data_root=tmp_path,
                                  persist_in_background=False)
    try:
        assert again.auth.current_user().username == "admin"
        again.start()
        assert "keep/" in again.execute("ls").lines
    finally:
        again.vfs.close()


def test_registry_module_is_importable_alone() -> None:
    assert CommandRegistry().names() == []
