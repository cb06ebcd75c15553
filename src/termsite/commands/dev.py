# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""Developer and efficiency tools, including alias management."""

from __future__ import annotations

import json
import re
import secrets
import string
import uuid as uuid_module

from ..calc import CalcError, evaluate
from ..config import SPECIAL_REPL
from ..registry import CommandContext, HandlerResult, Output
from . import REGISTRY

PASSWORD_CHARSET = string.ascii_letters + string.digits + "!@#$%^&*()-_=+"
DEFAULT_PASSWORD_LENGTH = 16
MAX_PASSWORD_LENGTH = 4096

ALIAS_RE = re.compile(r"^([^=\s]+)='([^']*)'$")


@REGISTRY.command(
    "js", "dev", usage="js", summary="Arithmetic REPL (.exit to leave)"
)
def js(ctx: CommandContext) -> HandlerResult:
    return Output(
        ["Expression REPL. Type .exit to return to the shell."],
        special=SPECIAL_REPL,
    )


@REGISTRY.command(
    "jsonlint", "dev", usage="jsonlint <json>",
    summary="Validate and pretty-print JSON",
)
def jsonlint(ctx: CommandContext) -> HandlerResult:
    try:
        data = json.loads(ctx.rest())
    except json.JSONDecodeError as e:
        return [f"JSON Error: {e}"]
    return json.dumps(data, indent=2, ensure_ascii=False).split("\n")


@REGISTRY.command("uuid", "dev", usage="uuid", summary="Random UUID v4")
def uuid(ctx: CommandContext) -> HandlerResult:
    return [str(uuid_module.uuid4())]


@REGISTRY.command(
    "password", "dev", usage="password [length]",
    summary="Generate a random password",
)
def password(ctx: CommandContext) -> HandlerResult:
    try:
        length = int(ctx.arg(0))
    except ValueError:
        length = DEFAULT_PASSWORD_LENGTH
    if length <= 0:
        length = DEFAULT_PASSWORD_LENGTH
    length = min(length, MAX_PASSWORD_LENGTH)
    return ["".join(secrets.choice(PASSWORD_CHARSET) for _ in range(length))]


@REGISTRY.command(
    "calc", "dev", usage="calc <expression>", summary="Evaluate arithmetic"
)
def calc(ctx: CommandContext) -> HandlerResult:
    expression = "".join(ctx.args)
    if not expression:
        return ["Usage: calc <expression>"]
    try:
        return [evaluate(expression)]
    except CalcError as e:
        return [str(e)]


@REGISTRY.command("env", "dev", usage="env", summary="Session variables")
def env(ctx: CommandContext) -> HandlerResult:
    user = ctx.user
    return [
        f"THEME={ctx.session.theme}",
        f"USER={ctx.username}",
        f"ROLE={user.role if user else 'guest'}",
    ]


@REGISTRY.command(
    "which", "dev", usage="which <command>", summary="Locate a command"
)
def which(ctx: CommandContext) -> HandlerResult:
    name = ctx.arg(0)
    if not name:
        return ["Usage: which <command>"]
    # Aliases shadow built-ins at dispatch time
    expansion = ctx.session.aliases.get(name)
    if expansion is not None:
        return [f"{name}: aliased to '{expansion}'"]
    if name in ctx.interpreter.registry:
        return [f"{name}: shell built-in command"]
    return [f"{name} not found"]


@REGISTRY.command(
    "alias", "dev", usage="alias [name='command'] | alias -c",
    summary="List, define or clear aliases",
)
def alias(ctx: CommandContext) -> HandlerResult:
    aliases = ctx.session.aliases
    if not ctx.args:
        return [f"alias {name}='{value}'" for name, value in aliases.items()]

    if ctx.arg(0) == "-c":
        aliases.clear()
        ctx.interpreter.save_session()
        return ["All aliases cleared."]

    match = ALIAS_RE.match(ctx.rest())
    if match is None:
        return ["Usage: alias <name='command'> or alias -c to clear"]
    name, expansion = match.groups()
    aliases[name] = expansion
    ctx.interpreter.save_session()
    return []


@REGISTRY.command(
    "unalias", "dev", usage="unalias <name>", summary="Remove an alias"
)
def unalias(ctx: CommandContext) -> HandlerResult:
    name = ctx.arg(0)
    if not name:
        return ["Usage: unalias <name>"]
    if ctx.session.aliases.pop(name, None) is None:
        return [f"unalias: {name}: not found"]
    ctx.interpreter.save_session()
    return []
