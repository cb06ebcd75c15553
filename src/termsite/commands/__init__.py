# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Built-in commands, one module per help category.

Importing this package registers every handler on REGISTRY.
"""

from ..registry import CommandRegistry

REGISTRY = CommandRegistry()

from . import dev, fs, fun, net, system, text, user  # noqa: E402,F401


def default_registry() -> CommandRegistry:
    return REGISTRY
