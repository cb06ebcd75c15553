# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
File system commands.

Every command except pwd requires a logged-in user. Mutations go through
VfsStore.mutate so a failed change never touches the live tree.
"""

from __future__ import annotations

from ..paths import ROOT, resolve_path
from ..registry import CommandContext, HandlerResult, Privilege
from ..vfs import Directory, File, VfsTree, render_tree
from . import REGISTRY

FS_DENIED = "Permission denied. Please log in to use the file system."


def fs_command(name: str, usage: str, summary: str, category: str = "fs"):
    return REGISTRY.command(
        name,
        category,
        privilege=Privilege.AUTHENTICATED,
        usage=usage,
        summary=summary,
        denied=FS_DENIED,
    )


def resolve(ctx: CommandContext, path: str | None) -> str:
    return resolve_path(path, ctx.vfs.current_path)


@fs_command("ls", "ls [path]", "List directory contents")
def ls(ctx: CommandContext) -> HandlerResult:
    path = resolve(ctx, ctx.arg(0))
    entry = ctx.vfs.get(path)
    if not isinstance(entry, Directory):
        return [
            f"ls: cannot access '{path}': Not a directory or does not exist"
        ]
    return [
        ctx.color(f"{name}/", "accent") if isinstance(child, Directory)
        else name
        for name, child in entry.children.items()
    ]


@fs_command("cat", "cat <file>", "Print a file")
def cat(ctx: CommandContext) -> HandlerResult:
    target = ctx.arg(0)
    if not target:
        return ["Usage: cat <file>"]
    entry = ctx.vfs.get(resolve(ctx, target))
    if not isinstance(entry, File):
        return [f"cat: '{target}': Not a file or does not exist"]
    return entry.content.split("\n")


@fs_command("cd", "cd [path]", "Change directory (default ~)")
def cd(ctx: CommandContext) -> HandlerResult:
    target = ctx.arg(0) or ROOT
    path = resolve(ctx, target)
    if not isinstance(ctx.vfs.get(path), Directory):
        return [f"cd: no such file or directory: {target}"]
    ctx.vfs.current_path = path
    return []


@REGISTRY.command("pwd", "fs", usage="pwd", summary="Print working directory")
def pwd(ctx: CommandContext) -> HandlerResult:
    return [ctx.vfs.current_path if ctx.user is not None else "/"]


@fs_command("mkdir", "mkdir <directory>", "Create a directory")
def mkdir(ctx: CommandContext) -> HandlerResult:
    target = ctx.arg(0)
    if not target:
        return ["Usage: mkdir <directory_name>"]
    path = resolve(ctx, target)
    if ctx.vfs.get(path) is not None:
        return [f"mkdir: cannot create directory '{target}': File exists"]
    if not ctx.vfs.mutate(lambda tree: tree.set(path, Directory())):
        return [f"mkdir: cannot create directory '{target}': Invalid path"]
    return []


@fs_command("touch", "touch <file>", "Create an empty file")
def touch(ctx: CommandContext) -> HandlerResult:
    target = ctx.arg(0)
    if not target:
        return ["Usage: touch <file_name>"]
    path = resolve(ctx, target)
    existing = ctx.vfs.get(path)
    if isinstance(existing, Directory):
        return [f"touch: cannot touch '{target}': Is a directory"]
    if existing is not None:
        # Existing files keep their content
        return []
    if not ctx.vfs.mutate(lambda tree: tree.set(path, File(""))):
        return [f"touch: cannot create file '{target}': Invalid path"]
    return []


@fs_command("rm", "rm [-r] <path>", "Remove a file or directory")
def rm(ctx: CommandContext) -> HandlerResult:
    usage = ["Usage: rm [-r] <file_or_directory>"]
    recursive = ctx.arg(0) == "-r"
    target = ctx.arg(1) if recursive else ctx.arg(0)
    if not target:
        return usage

    path = resolve(ctx, target)
    entry = ctx.vfs.get(path)
    if entry is None:
        return [f"rm: cannot remove '{target}': No such file or directory"]
    if path == ROOT:
        return [f"rm: cannot remove '{target}': Operation not permitted"]
    if isinstance(entry, Directory) and entry.children and not recursive:
        return [
            f"rm: cannot remove '{target}': Directory not empty. "
            "Use -r to remove recursively."
        ]

    def remove(tree: VfsTree) -> bool:
        return tree.delete(path)

    if not ctx.vfs.mutate(remove):
        return [f"rm: cannot remove '{target}': No such file or directory"]

    cwd = ctx.vfs.current_path
    if cwd == path or cwd.startswith(path + "/"):
        ctx.vfs.current_path = resolve_path("..", path)
    return []


@fs_command("tree", "tree [path]", "Show the directory tree")
def tree(ctx: CommandContext) -> HandlerResult:
    path = resolve(ctx, ctx.arg(0))
    entry = ctx.vfs.get(path)
    if not isinstance(entry, Directory):
        return [f"tree: '{ctx.arg(0) or path}': Not a directory"]
    return [path, *render_tree(entry)]
