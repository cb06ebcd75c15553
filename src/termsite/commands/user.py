# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""User and authentication commands."""

from __future__ import annotations

from ..auth import AuthError
from ..registry import CommandContext, HandlerResult, Privilege
from . import REGISTRY

SUDOERS_DENIED = (
    "sudo: user not in sudoers file. This incident will be reported."
)
ADMIN_DENIED = "Permission denied. This command requires admin rights."


@REGISTRY.command(
    "login", "user", usage="login <username>", summary="Log in to your account"
)
def login(ctx: CommandContext) -> HandlerResult:
    username = ctx.arg(0)
    if not username:
        return ["Usage: login <username>"]
    if ctx.user is not None:
        return [
            f"You are already logged in as {ctx.user.username}. "
            "Type 'logout' first."
        ]

    password = ctx.terminal.read_secret("Password: ")
    try:
        ctx.auth.login(username, password)
    except AuthError as e:
        ctx.terminal.notify("Login failed.", "error")
        return [f"Login failed: {e}"]

    ctx.vfs.load(username)
    ctx.terminal.notify(f"Welcome, {username}!", "success")
    return [f"Welcome, {username}!"]


@REGISTRY.command("logout", "user", usage="logout", summary="End the session")
def logout(ctx: CommandContext) -> HandlerResult:
    if ctx.user is None:
        return ["You are not logged in."]
    ctx.auth.logout()
    ctx.vfs.load(None)
    ctx.terminal.notify("You have been logged out.", "info")
    return []


@REGISTRY.command("whoami", "user", usage="whoami", summary="Print user name")
def whoami(ctx: CommandContext) -> HandlerResult:
    return [ctx.username]


@REGISTRY.command(
    "passwd",
    "user",
    privilege=Privilege.AUTHENTICATED,
    usage="passwd <new_password>",
    summary="Change your password (sudo passwd <user> <pw> for others)",
    denied="Permission denied. Please log in.",
)
def passwd(ctx: CommandContext) -> HandlerResult:
    if ctx.elevated:
        target, new_password = ctx.arg(0), ctx.arg(1)
    else:
        target, new_password = ctx.username, ctx.arg(0)

    if not target or not new_password:
        return [
            "Usage: passwd [new_password] "
            "(or sudo passwd <user> <new_password>)"
        ]

    user = ctx.user
    if not user.is_admin and target != user.username:
        return ["passwd: Permission denied."]

    try:
        message = ctx.auth.change_password(target, new_password)
    except AuthError as e:
        return [str(e)]
    ctx.terminal.notify(f"Password for {target} changed.", "success")
    return [message]


@REGISTRY.command(
    "useradd",
    "user",
    privilege=Privilege.ADMIN,
    usage="sudo useradd <username> <password> <admin|guest>",
    summary="Create a user",
    denied=ADMIN_DENIED,
)
def useradd(ctx: CommandContext) -> HandlerResult:
    username, password, role = ctx.arg(0), ctx.arg(1), ctx.arg(2)
    if not username or not password or not role:
        return [
            "Usage: sudo useradd <username> <password> <role (admin|guest)>"
        ]
    try:
        return [ctx.auth.add_user(username, password, role)]
    except AuthError as e:
        return [str(e)]


@REGISTRY.command(
    "userdel",
    "user",
    privilege=Privilege.ADMIN,
    usage="sudo userdel <username>",
    summary="Delete a user and their files",
    denied=ADMIN_DENIED,
)
def userdel(ctx: CommandContext) -> HandlerResult:
    username = ctx.arg(0)
    if not username:
        return ["Usage: sudo userdel <username>"]
    try:
        return [ctx.auth.delete_user(username)]
    except AuthError as e:
        return [str(e)]


@REGISTRY.command(
    "sudo", "user", usage="sudo <command> [args...]",
    summary="Run a command with admin rights",
)
def sudo(ctx: CommandContext) -> HandlerResult:
    user = ctx.user
    if user is None or not user.is_admin:
        return [SUDOERS_DENIED]

    sub = ctx.arg(0)
    if not sub:
        return ["Usage: sudo <command> [args...]"]

    command = ctx.interpreter.registry.get(sub)
    if command is None:
        return [f"sudo: command not found: {sub}"]
    return ctx.interpreter.dispatch(
        command, ctx.args[1:], elevated=True, raw="sudo " + ctx.rest()
    )
