# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""Text processing over VFS files, and small encoders."""

from __future__ import annotations

import base64 as b64
import binascii
import hashlib
import re
from urllib.parse import quote, unquote

from ..registry import CommandContext, HandlerResult
from ..vfs import File
from . import REGISTRY
from .fs import fs_command, resolve

DEFAULT_HEAD_LINES = 10


def read_file(ctx: CommandContext, target: str) -> File | None:
    entry = ctx.vfs.get(resolve(ctx, target))
    return entry if isinstance(entry, File) else None


@fs_command("grep", "grep <pattern> <file>", "Search a file", category="text")
def grep(ctx: CommandContext) -> HandlerResult:
    if len(ctx.args) < 2:
        return ["Usage: grep <pattern> <file>"]
    pattern, target = ctx.args[0], ctx.args[1]

    entry = read_file(ctx, target)
    if entry is None:
        return [f"grep: {target}: No such file"]
    try:
        regex = re.compile(pattern)
    except re.error:
        return [f"grep: invalid pattern: {pattern}"]

    def highlight(match: re.Match[str]) -> str:
        text = match.group(0)
        return ctx.color(text, "highlight") if text else text

    return [
        regex.sub(highlight, line)
        for line in entry.content.split("\n")
        if regex.search(line)
    ]


@fs_command("wc", "wc <file>", "Count lines, words and characters",
            category="text")
def wc(ctx: CommandContext) -> HandlerResult:
    target = ctx.arg(0)
    if not target:
        return ["Usage: wc <file>"]
    entry = read_file(ctx, target)
    if entry is None:
        return [f"wc: {target}: No such file"]

    content = entry.content
    lines = len(content.split("\n"))
    words = len(content.split())
    return [f"{lines:>7} {words:>7} {len(content):>7} {target}"]


@fs_command("head", "head [-n N] <file>", "Print the first lines of a file",
            category="text")
def head(ctx: CommandContext) -> HandlerResult:
    usage = ["Usage: head [-n lines] <file>"]
    count = DEFAULT_HEAD_LINES
    target = ctx.arg(0)
    if target == "-n":
        try:
            count = int(ctx.arg(1))
        except ValueError:
            count = DEFAULT_HEAD_LINES
        if count <= 0:
            count = DEFAULT_HEAD_LINES
        target = ctx.arg(2)
    if not target:
        return usage

    entry = read_file(ctx, target)
    if entry is None:
        return [f"head: {target}: No such file"]
    return entry.content.split("\n")[:count]


@REGISTRY.command(
    "base64", "text", usage="base64 <encode|decode> <text>",
    summary="Base64 encode or decode text",
)
def base64(ctx: CommandContext) -> HandlerResult:
    mode, text = ctx.arg(0), ctx.rest(1)
    if mode not in ("encode", "decode") or not text:
        return ["Usage: base64 <encode|decode> <text>"]

    if mode == "encode":
        return [b64.b64encode(text.encode("utf-8")).decode("ascii")]
    try:
        return [b64.b64decode(text, validate=True).decode("utf-8")]
    except (binascii.Error, UnicodeDecodeError):
        return ["Invalid base64 string."]


@REGISTRY.command(
    "urlencode", "text", usage="urlencode <encode|decode> <text>",
    summary="Percent-encode or decode URL components",
)
def urlencode(ctx: CommandContext) -> HandlerResult:
    mode, text = ctx.arg(0), ctx.rest(1)
    if mode == "encode":
        return [quote(text, safe="-_.!~*'()")]
    if mode == "decode":
        return [unquote(text)]
    return ["Usage: urlencode <encode|decode> <text>"]


@REGISTRY.command(
    "hash", "text", usage="hash sha256 <text>", summary="Hash text"
)
def hash_(ctx: CommandContext) -> HandlerResult:
    algorithm, text = ctx.arg(0).lower(), ctx.rest(1)
    if algorithm != "sha256" or not text:
        return ["Usage: hash <sha256> <text>"]
    return [hashlib.sha256(text.encode("utf-8")).hexdigest()]
