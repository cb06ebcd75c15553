# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Per-user virtual filesystem.

- VfsTree: path-addressed get/set/delete over a File | Directory tree
- VfsStore: keeps the tree in sync with the injected KeyValueStore

Important boundary:
- VfsTree never does I/O.
- VfsStore persists the whole tree after every successful mutation
  (last-writer-wins, no version check across sessions).
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Union

from .interfaces import KeyValueStore
from .paths import ROOT, split_path

VFS_KEY_PREFIX = "vfs_"


class VfsError(Exception):
    """Raised when a stored tree cannot be decoded."""


@dataclass
class File:
    content: str = ""


@dataclass
class Directory:
    children: dict[str, Entry] = field(default_factory=dict)


Entry = Union[File, Directory]


def vfs_key(username: str) -> str:
    return f"{VFS_KEY_PREFIX}{username}"


def default_tree_json(username: str) -> dict[str, Any]:
    return {
        ROOT: {
            "README.md": (
                f"# Welcome, {username}!\n\n"
                "This is your personal file system."
            )
        }
    }


def _entry_from_json(value: Any) -> Entry:
    if isinstance(value, dict):
        return Directory(
            {str(k): _entry_from_json(v) for k, v in value.items()}
        )
    if value is None:
        return File("")
    return File(value if isinstance(value, str) else str(value))


def _entry_to_json(entry: Entry) -> Any:
    if isinstance(entry, Directory):
        return {
            name: _entry_to_json(child)
            for name, child in entry.children.items()
        }
    return entry.content


class VfsTree:
    """Rooted File/Directory tree addressed by canonical paths."""

    def __init__(self, root: Directory | None = None):
        self.root = root if root is not None else Directory()

    @classmethod
    def from_json(cls, data: Any) -> VfsTree:
        if not isinstance(data, dict) or not isinstance(data.get(ROOT), dict):
            raise VfsError("stored tree has no '~' directory")
        root = _entry_from_json(data[ROOT])
        assert isinstance(root, Directory)
        return cls(root)

    def to_json(self) -> dict[str, Any]:
        return {ROOT: _entry_to_json(self.root)}

    def copy(self) -> VfsTree:
        return VfsTree(copy.deepcopy(self.root))

    # -----------------------
    # Path-addressed operations
    # -----------------------

    def get(self, path: str) -> Entry | None:
        """Return the entry at path, or None if it does not resolve."""
        current: Entry = self.root
        for part in split_path(path):
            if not isinstance(current, Directory):
                return None
            child = current.children.get(part)
            if child is None:
                return None
            current = child
        return current

    def _parent_of(self, path: str) -> tuple[Directory, str] | None:
        parts = split_path(path)
        if not parts:
            return None
        name = parts.pop()
        parent: Entry = self.root
        for part in parts:
            if not isinstance(parent, Directory):
                return None
            child = parent.children.get(part)
            if not isinstance(child, Directory):
                return None
            parent = child
        return parent, name

    def set(self, path: str, entry: Entry) -> bool:
        """Attach entry at path. Parents must already exist."""
        found = self._parent_of(path)
        if found is None:
            return False
        parent, name = found
        parent.children[name] = entry
        return True

    def delete(self, path: str) -> bool:
        """Remove the entry at path. The root can never be removed."""
        found = self._parent_of(path)
        if found is None:
            return False
        parent, name = found
        if name not in parent.children:
            return False
        del parent.children[name]
        return True


def render_tree(directory: Directory, prefix: str = "") -> list[str]:
    """Box-drawing listing of a directory, directories suffixed with '/'."""
    lines: list[str] = []
    names = list(directory.children)
    for index, name in enumerate(names):
        is_last = index == len(names) - 1
        connector = "└── " if is_last else "├── "
        child = directory.children[name]
        if isinstance(child, Directory):
            lines.append(f"{prefix}{connector}{name}/")
            lines.extend(
                render_tree(child, prefix + ("    " if is_last else "│   "))
            )
        else:
            lines.append(f"{prefix}{connector}{name}")
    return lines


Notifier = Callable[[str, str], None]


def _silent(message: str, level: str) -> None:
    pass


@dataclass
class VfsStore:
    """Session view of one user's tree, persisted through a KeyValueStore."""

    kv: KeyValueStore
    notify: Notifier = _silent
    persist_in_background: bool = False

    tree: VfsTree = field(default_factory=VfsTree)
    current_path: str = ROOT
    username: str | None = None

    _pool: ThreadPoolExecutor | None = field(default=None, repr=False)
    _pending: list[Future] = field(default_factory=list, repr=False)

    def load(self, username: str | None) -> None:
        """(Re)load the tree for username; guests get an empty tree."""
        self.flush()
        self.username = username
        self.current_path = ROOT

        if username is None:
            self.tree = VfsTree()
            return

        key = vfs_key(username)
        data = self.kv.get(key)
        if data is None:
            data = default_tree_json(username)
            self.kv.put(key, data)

        try:
            self.tree = VfsTree.from_json(data)
        except VfsError:
            self.notify(
                "Stored file system is corrupt; starting from defaults.",
                "error",
            )
            self.tree = VfsTree.from_json(default_tree_json(username))

    def get(self, path: str) -> Entry | None:
        return self.tree.get(path)

    def mutate(self, change: Callable[[VfsTree], bool]) -> bool:
        """Apply change to a private copy; swap in and persist on success."""
        draft = self.tree.copy()
        if not change(draft):
            return False
        self.tree = draft
        self._save(draft.to_json())
        return True

    # -----------------------
    # Persistence
    # -----------------------

    def _save(self, data: dict[str, Any]) -> None:
        if self.username is None:
            self.notify(
                "Cannot save file system. You are not logged in.", "error"
            )
            return

        key = vfs_key(self.username)
        if not self.persist_in_background:
            self._write(key, data)
            return

        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="vfs-save"
            )
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._pool.submit(self._write, key, data))

    def _write(self, key: str, data: dict[str, Any]) -> None:
        try:
            self.kv.put(key, data)
        except Exception as e:
            self.notify(f"Failed to save changes: {e}", "error")

    def flush(self) -> None:
        """Block until every queued save has been written."""
        pending, self._pending = self._pending, []
        for future in pending:
            future.result()

    def close(self) -> None:
        self.flush()
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
