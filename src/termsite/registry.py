# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Command registry and privilege model.

Every built-in is a Command: a lowercase verb, a help category, the
privilege it needs and the handler. Handlers receive a CommandContext and
return a list of lines, an Output, or None.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Union

from .config import SPECIALS, paint
from .interfaces import User

if TYPE_CHECKING:
    from .interpreter import Interpreter  # pragma: no cover


class Privilege(Enum):
    NONE = auto()
    AUTHENTICATED = auto()
    ADMIN = auto()


@dataclass
class Output:
    """Uniform result envelope: text lines and an optional control token."""

    lines: list[str] = field(default_factory=list)
    special: str | None = None

    def __post_init__(self) -> None:
        if self.special is not None and self.special not in SPECIALS:
            raise ValueError(f"Unknown special token: {self.special}")


HandlerResult = Union[list[str], Output, None]
Handler = Callable[["CommandContext"], HandlerResult]


@dataclass(frozen=True)
class Command:
    name: str
    category: str
    handler: Handler
    privilege: Privilege = Privilege.NONE
    usage: str = ""
    summary: str = ""
    denied: str = "Permission denied."


@dataclass
class CommandContext:
    """Everything a handler may touch for one invocation."""

    interpreter: Interpreter
    name: str
    args: list[str] = field(default_factory=list)
    elevated: bool = False

    @property
    def user(self) -> User | None:
        return self.interpreter.auth.current_user()

    @property
    def username(self) -> str:
        user = self.user
        return user.username if user else "guest"

    @property
    def auth(self) -> Any:
        return self.interpreter.auth

    @property
    def vfs(self) -> Any:
        return self.interpreter.vfs

    @property
    def api(self) -> Any:
        return self.interpreter.api

    @property
    def terminal(self) -> Any:
        return self.interpreter.terminal

    @property
    def session(self) -> Any:
        return self.interpreter.session

    @property
    def config(self) -> Any:
        return self.interpreter.config

    def arg(self, index: int, default: str = "") -> str:
        return self.args[index] if index < len(self.args) else default

    def rest(self, start: int = 0) -> str:
        return " ".join(self.args[start:])

    def color(self, text: str, role: str) -> str:
        """Paint text with the active theme's color for role."""
        interp = self.interpreter
        theme = interp.config.themes.get(interp.session.theme, {})
        return paint(text, theme.get(role, role), enabled=interp.color)


class CommandRegistry:
    """Mapping from lowercase verb to Command."""

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def command(
        self,
        name: str,
        category: str,
        privilege: Privilege = Privilege.NONE,
        usage: str = "",
        summary: str = "",
        denied: str = "Permission denied.",
    ) -> Callable[[Handler], Handler]:
        """Decorator registering a handler under name."""

        def decorator(handler: Handler) -> Handler:
            self.add(
                Command(
                    name=name.lower(),
                    category=category,
                    handler=handler,
                    privilege=privilege,
                    usage=usage,
                    summary=summary,
                    denied=denied,
                )
            )
            return handler

        return decorator

    def add(self, command: Command) -> None:
        if command.name in self._commands:
            raise ValueError(f"Command already registered: {command.name}")
        self._commands[command.name] = command

    def get(self, name: str) -> Command | None:
        return self._commands.get(name.lower())

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._commands

    def names(self) -> list[str]:
        return sorted(self._commands)

    def by_category(self, category: str) -> list[Command]:
        return sorted(
            (c for c in self._commands.values() if c.category == category),
            key=lambda c: c.name,
        )
