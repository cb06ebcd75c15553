# Termsite™ — Fake Terminal Environment with a Virtual Filesystem
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Arithmetic-only expression evaluator used by ``calc`` and the REPL mode.

Only numbers, ``+ - * /``, unary signs and parentheses are evaluated. The
expression is parsed with ``ast`` and walked node by node; nothing is ever
passed to ``eval``.
"""

from __future__ import annotations

import ast
import operator
import re

_ALLOWED_CHARS = re.compile(r"^[-()\d/*+.\s]*$")

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


class CalcError(ValueError):
    """Raised for expressions the evaluator refuses or cannot compute."""


def _walk(node: ast.AST) -> float | int:
    if isinstance(node, ast.Expression):
        return _walk(node.body)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY:
        left = _walk(node.left)
        right = _walk(node.right)
        try:
            return _BINARY[type(node.op)](left, right)
        except ZeroDivisionError as e:
            raise CalcError("Division by zero.") from e
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY:
        return _UNARY[type(node.op)](_walk(node.operand))
    raise CalcError("Invalid expression.")


def format_number(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def evaluate(expression: str) -> str:
    """Evaluate expression and return the formatted result.

    Raises:
        CalcError: with a user-facing message
    """
    if not _ALLOWED_CHARS.match(expression):
        raise CalcError("Invalid characters in expression.")
    if not expression.strip():
        raise CalcError("Invalid expression.")
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise CalcError("Invalid expression.") from e
    except RecursionError as e:
        raise CalcError("Expression is too complex.") from e

    try:
        return format_number(_walk(tree))
    except CalcError:
        raise
    except RecursionError as e:
        raise CalcError("Expression is too complex.") from e
    except (OverflowError, ValueError) as e:
        # ValueError: int too long for str()
        raise CalcError("Result is too large.") from e
