#!/usr/bin/env python3
# Copyright (C) 2026 Alex Stoyanov
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with this program.
# If not, see <https://www.gnu.org/licenses/>.

"""Expressions embedded in ``{{ }}`` tokens.

The language is intentionally tiny::

    expr     := compare ( "?" expr ":" expr )?
    compare  := operand ( ("===" | "==" | "!==" | "!=") operand )?
    operand  := STRING | NUMBER | true | false | null | itemIndex | PATH

It covers the template idioms ``{{title}}``, ``{{itemIndex}}`` and equality
ternaries such as ``{{dangerLevel === "high" ? "#dc2626" : "#16a34a"}}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Union

ITEM_INDEX = "itemIndex"

_TOKEN_RE = re.compile(
    r"""
    \s*(?:
        (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<number>-?\d+(?:\.\d+)?)
      | (?P<op>===|!==|==|!=|\?|:)
      | (?P<name>[A-Za-z_$][\w$]*(?:\.[\w$]+)*)
    )
    """,
    re.VERBOSE,
)

_KEYWORDS: dict[str, object] = {"true": True, "false": False, "null": None}


class ExpressionError(ValueError):
    pass


@dataclass(frozen=True)
class Literal:
    value: object


@dataclass(frozen=True)
class PathRef:
    path: str


@dataclass(frozen=True)
class ItemIndex:
    pass


@dataclass(frozen=True)
class Compare:
    left: "Expression"
    operator: str
    right: "Expression"


@dataclass(frozen=True)
class Ternary:
    condition: "Expression"
    when_true: "Expression"
    when_false: "Expression"


Expression = Union[Literal, PathRef, ItemIndex, Compare, Ternary]


def _tokenize(source: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    end = len(source.rstrip())
    while pos < end:
        match = _TOKEN_RE.match(source, pos)
        if match is None or match.end() == pos:
            raise ExpressionError(f"unexpected input at {pos}: {source[pos:pos + 10]!r}")
        kind = match.lastgroup
        if kind is None:
            raise ExpressionError(f"unexpected input at {pos}")
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, tokens: list[tuple[str, str]]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> Expression:
        if not self._tokens:
            raise ExpressionError("empty expression")
        expr = self._expr()
        if self._pos != len(self._tokens):
            raise ExpressionError(f"unexpected token {self._tokens[self._pos][1]!r}")
        return expr

    def _peek(self) -> tuple[str, str] | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _take(self) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise ExpressionError("unexpected end of expression")
        self._pos += 1
        return token

    def _expect_op(self, op: str) -> None:
        kind, value = self._take()
        if kind != "op" or value != op:
            raise ExpressionError(f"expected {op!r}, got {value!r}")

    def _expr(self) -> Expression:
        condition = self._compare()
        token = self._peek()
        if token == ("op", "?"):
            self._pos += 1
            when_true = self._expr()
            self._expect_op(":")
            when_false = self._expr()
            return Ternary(condition, when_true, when_false)
        return condition

    def _compare(self) -> Expression:
        left = self._operand()
        token = self._peek()
        if token is not None and token[0] == "op" and token[1] in {"===", "==", "!==", "!="}:
            self._pos += 1
            right = self._operand()
            return Compare(left, token[1], right)
        return left

    def _operand(self) -> Expression:
        kind, value = self._take()
        if kind == "string":
            return Literal(_unquote(value))
        if kind == "number":
            return Literal(float(value) if "." in value else int(value))
        if kind == "name":
            if value in _KEYWORDS:
                return Literal(_KEYWORDS[value])
            if value == ITEM_INDEX:
                return ItemIndex()
            return PathRef(value)
        raise ExpressionError(f"unexpected operator {value!r}")


def _unquote(token: str) -> str:
    body = token[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


@lru_cache(maxsize=256)
def parse_expression(source: str) -> Expression:
    return _Parser(_tokenize(source)).parse()


def evaluate(
    expr: Expression,
    lookup: Callable[[str], object],
    *,
    repeat_index: int | None = None,
    missing: object = None,
) -> object:
    """Evaluate ``expr``; ``lookup`` resolves paths and returns ``missing`` on a miss."""
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, PathRef):
        return lookup(expr.path)
    if isinstance(expr, ItemIndex):
        if repeat_index is None:
            return lookup(ITEM_INDEX)
        return repeat_index + 1
    if isinstance(expr, Compare):
        left = evaluate(expr.left, lookup, repeat_index=repeat_index, missing=missing)
        right = evaluate(expr.right, lookup, repeat_index=repeat_index, missing=missing)
        if left is missing:
            left = None
        if right is missing:
            right = None
        if expr.operator == "===":
            return strict_equals(left, right)
        if expr.operator == "!==":
            return not strict_equals(left, right)
        if expr.operator == "==":
            return loose_equals(left, right)
        return not loose_equals(left, right)
    if isinstance(expr, Ternary):
        condition = evaluate(expr.condition, lookup, repeat_index=repeat_index, missing=missing)
        branch = expr.when_true if is_truthy(condition, missing=missing) else expr.when_false
        return evaluate(branch, lookup, repeat_index=repeat_index, missing=missing)
    raise ExpressionError(f"unknown expression node: {expr!r}")


def strict_equals(left: object, right: object) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def loose_equals(left: object, right: object) -> bool:
    if strict_equals(left, right):
        return True
    if left is None or right is None:
        return False
    return str(left) == str(right)


def is_truthy(value: object, *, missing: object = None) -> bool:
    if value is missing or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value != ""
    # Containers are truthy even when empty.
    return True


__all__ = [
    "Compare",
    "Expression",
    "ExpressionError",
    "ITEM_INDEX",
    "ItemIndex",
    "Literal",
    "PathRef",
    "Ternary",
    "evaluate",
    "is_truthy",
    "loose_equals",
    "parse_expression",
    "strict_equals",
]
