# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Path resolution for the virtual filesystem.

Canonical paths are either ``~`` (the root) or ``/seg1/seg2/...`` with no
``.``/``..`` or empty segments.
"""

from __future__ import annotations

ROOT = "~"


def split_path(canonical: str) -> list[str]:
    """Return the segment list of a canonical path ([] for the root)."""
    if not canonical or canonical == ROOT:
        return []
    return [part for part in canonical.split("/") if part]


def join_path(segments: list[str]) -> str:
    """Build a canonical path from already-folded segments."""
    if not segments:
        return ROOT
    return "/" + "/".join(segments)


def _fold(segments: list[str]) -> list[str]:
    folded: list[str] = []
    for part in segments:
        if part == "..":
            # Popping past the root is a no-op
            if folded:
                folded.pop()
        elif part not in (".", ""):
            folded.append(part)
    return folded


def resolve_path(input_path: str | None, current_path: str) -> str:
    """Resolve a user-supplied path against the current directory.

    Args:
        input_path: Path as typed (absolute, relative, ``~`` or empty)
        current_path: Canonical current working path

    Returns:
        Canonical path. Never raises.
    """
    if not input_path:
        return current_path

    if input_path == ROOT:
        return ROOT

    if input_path.startswith("/"):
        return join_path(_fold(input_path.split("/")))

    if input_path.startswith(ROOT + "/"):
        return join_path(_fold(input_path[2:].split("/")))

    return join_path(_fold(split_path(current_path) + input_path.split("/")))
