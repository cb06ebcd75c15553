# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Repeating re-invocation of a command line (``watch``).

The first tick runs in the caller; the remaining ticks run on a daemon
thread that sleeps on a stop event, so ``cancel()`` takes effect between
ticks. A tick that is already running always completes.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime

from .interfaces import Terminal
from .registry import Output

DEFAULT_INTERVAL = 2.0


class WatchTimer(threading.Thread):
    """Runs command every interval seconds, at most count times."""

    def __init__(
        self,
        command: str,
        run_command: Callable[[str], Output],
        terminal: Terminal,
        interval: float = DEFAULT_INTERVAL,
        count: int | None = None,
        on_finish: Callable[[WatchTimer], None] | None = None,
        lock: threading.RLock | None = None,
    ):
        super().__init__(name="watch", daemon=True)
        self.command = command
        self.run_command = run_command
        self.terminal = terminal
        self.interval = interval
        self.count = count
        self.on_finish = on_finish
        # Shared with the command runner so a tick draws as one unit
        self.lock = lock if lock is not None else threading.RLock()

        self.executions = 0
        self._stop_event = threading.Event()

    @property
    def finished(self) -> bool:
        if self._stop_event.is_set():
            return True
        return self.count is not None and self.executions >= self.count

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def header(self) -> str:
        total = "∞" if self.count is None else str(self.count)
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return (
            f"Every {self.interval:.1f}s: {self.command}     "
            f"Count: {self.executions}/{total}     [{stamp}]"
        )

    def tick(self) -> None:
        """Clear the display and rewrite it with one fresh execution.

        A tick that was cancelled while waiting for the lock draws nothing.
        """
        with self.lock:
            if self.cancelled:
                return
            self.executions += 1
            self.terminal.clear()
            self.terminal.write_lines([self.header(), ""])
            result = self.run_command(self.command)
            self.terminal.write_lines(
                result.lines or ["(Command produced no output)"]
            )

    def run(self) -> None:
        try:
            while not self.finished:
                if self._stop_event.wait(self.interval):
                    break
                self.tick()
        finally:
            if self.on_finish is not None:
                self.on_finish(self)

    def cancel(self) -> None:
        self._stop_event.set()
