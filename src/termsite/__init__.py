# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Termsite core package.

A simulated shell: one line in, an Output envelope out, backed by a
per-user virtual file system persisted in SQLite.
"""
from .interpreter import Interpreter as Interpreter  # noqa: F401 (re-export)
from .registry import Output as Output  # noqa: F401 (re-export)
