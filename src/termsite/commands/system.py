# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""System simulation and shell utilities."""

from __future__ import annotations

import random
from datetime import datetime

from ..config import SPECIAL_CLEAR
from ..registry import CommandContext, HandlerResult, Output
from ..watch import DEFAULT_INTERVAL
from . import REGISTRY

WATCH_USAGE = "Usage: watch [-n seconds] [-c count] <command>"


@REGISTRY.command("top", "sys", usage="top", summary="Process snapshot")
def top(ctx: CommandContext) -> HandlerResult:
    user = ctx.username
    processes = []
    for pid, owner, cmd in (
        (1, "root", "systemd"),
        (432, user, "zsh"),
        (1024, user, "python -m termsite"),
        (1130, "root", "sshd"),
        (9876, user, "top"),
    ):
        cpu = random.random() * (5 if cmd == "top" else 2)
        mem = random.random() * 2
        elapsed = f"{random.randint(0, 1)}:{random.random() * 60:05.2f}"
        processes.append((pid, owner, cpu, mem, elapsed, cmd))
    processes.sort(key=lambda p: round(p[2], 1), reverse=True)

    header = "  PID USER      %CPU %MEM     TIME+ COMMAND"
    return [ctx.color(header, "accent")] + [
        f"{pid:>5} {owner:<9} {cpu:>4.1f} {mem:>4.1f} {elapsed:>9} {cmd}"
        for pid, owner, cpu, mem, elapsed, cmd in processes
    ]


def parse_watch_args(
    args: list[str],
) -> tuple[float, int | None, list[str]]:
    """Split watch arguments into (interval, count, command words).

    Unparseable or non-positive values fall back to the defaults: a two
    second interval and an unlimited count.
    """
    interval: float = DEFAULT_INTERVAL
    count: int | None = None
    words: list[str] = []

    it = iter(args)
    for arg in it:
        if arg == "-n":
            try:
                interval = float(next(it, ""))
            except ValueError:
                interval = DEFAULT_INTERVAL
            if interval <= 0:
                interval = DEFAULT_INTERVAL
        elif arg == "-c":
            try:
                count = int(next(it, ""))
            except ValueError:
                count = None
            if count is not None and count <= 0:
                count = None
        else:
            words.append(arg)
    return interval, count, words


@REGISTRY.command(
    "watch", "sys", usage="watch [-n seconds] [-c count] <command>",
    summary="Re-run a command periodically (Ctrl+C stops)",
)
def watch(ctx: CommandContext) -> HandlerResult:
    interval, count, words = parse_watch_args(ctx.args)
    if not words:
        return [WATCH_USAGE]
    # Also covers watch reached through an alias or sudo inside a tick
    if words[0].lower() == "watch" or ctx.interpreter.detached:
        return ['watch: cannot watch "watch".']
    ctx.interpreter.start_watch(" ".join(words), interval, count)
    return []


@REGISTRY.command("date", "sys", usage="date", summary="Current date and time")
def date(ctx: CommandContext) -> HandlerResult:
    now = datetime.now().astimezone()
    return [now.strftime("%a %b %d %Y %H:%M:%S GMT%z (%Z)")]


@REGISTRY.command("clear", "sys", usage="clear", summary="Clear the screen")
def clear(ctx: CommandContext) -> HandlerResult:
    return Output(special=SPECIAL_CLEAR)


@REGISTRY.command(
    "history", "sys", usage="history", summary="Commands run this session"
)
def history(ctx: CommandContext) -> HandlerResult:
    return [
        f"{i:>5}  {line}"
        for i, line in enumerate(ctx.interpreter.history, start=1)
    ]


@REGISTRY.command("echo", "sys", usage="echo [text]", summary="Print text")
def echo(ctx: CommandContext) -> HandlerResult:
    return [ctx.rest()]


@REGISTRY.command("uname", "sys", usage="uname", summary="System name")
def uname(ctx: CommandContext) -> HandlerResult:
    return [ctx.config.system.get("uname", "Termsite")]


@REGISTRY.command(
    "reboot", "sys", usage="reboot", summary="Restart the session"
)
def reboot(ctx: CommandContext) -> HandlerResult:
    interpreter = ctx.interpreter
    interpreter.cancel_watch()
    interpreter.reload()
    return Output(interpreter.start(), special=SPECIAL_CLEAR)


@REGISTRY.command(
    "theme", "sys", usage="theme <name>", summary="Change the color theme"
)
def theme(ctx: CommandContext) -> HandlerResult:
    name = ctx.arg(0)
    themes = ctx.config.themes
    if not name:
        return [f"Usage: theme <{'|'.join(themes)}>"]
    if name not in themes:
        return [f"Theme '{name}' not found."]

    ctx.session.theme = name
    ctx.terminal.change_theme(name)
    ctx.interpreter.save_session()
    return [f"Theme changed to {name}."]


def help_overview(ctx: CommandContext) -> list[str]:
    help_cfg = ctx.config.get_path("help", {}) or {}
    descriptions = help_cfg.get("categories", {})
    lines = [ctx.color("Available Command Categories:", "highlight")]
    for category in help_cfg.get("order", list(descriptions)):
        label = f"`{category}`"
        lines.append(f"  {label:<11} - {descriptions.get(category, '')}")
    lines.append("Type `help <category>` for more details. Example: `help fs`")
    return lines


@REGISTRY.command(
    "help", "sys", usage="help [category|command]", summary="Show help"
)
def help_(ctx: CommandContext) -> HandlerResult:
    topic = ctx.arg(0).lower()
    if not topic:
        return help_overview(ctx)

    registry = ctx.interpreter.registry
    commands = registry.by_category(topic)
    if commands:
        width = max(len(c.usage or c.name) for c in commands)
        return [ctx.color(f"{topic} commands:", "highlight")] + [
            f"  {(c.usage or c.name):<{width}}  {c.summary}" for c in commands
        ]

    command = registry.get(topic)
    if command is not None:
        return [f"Usage: {command.usage or command.name}", command.summary]
    return [f"help: no help topics match '{topic}'. Try `help`."]
