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

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

from .expressions import (
    ITEM_INDEX,
    ExpressionError,
    evaluate,
    parse_expression,
    strict_equals,
)
from .template_model import Condition

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\{\{([^}]+)\}\}")


class _Unresolved:
    _instance: "_Unresolved | None" = None

    def __new__(cls) -> "_Unresolved":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = _Unresolved()


def resolve(record: object, path: str | None) -> object:
    if not path:
        return record
    current = record
    for key in path.split("."):
        if isinstance(current, Mapping):
            if key not in current:
                return UNRESOLVED
            current = current[key]
        elif _is_sequence(current) and key.isdigit():
            index = int(key)
            if index >= len(current):
                return UNRESOLVED
            current = current[index]
        else:
            return UNRESOLVED
    return current


def is_resolved(value: object) -> bool:
    return value is not UNRESOLVED


def stringify(value: object) -> str:
    if value is UNRESOLVED or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if _is_sequence(value):
        return ", ".join(stringify(item) for item in value)
    return str(value)


def has_tokens(text: str) -> bool:
    return _TOKEN_RE.search(text) is not None


def evaluate_token(expr: str, scope: object, repeat_index: int | None = None) -> object:
    source = expr.strip()
    if source == ITEM_INDEX and repeat_index is not None:
        return repeat_index + 1
    try:
        parsed = parse_expression(source)
    except ExpressionError:
        return resolve(scope, source)
    return evaluate(
        parsed,
        lambda path: resolve(scope, path),
        repeat_index=repeat_index,
        missing=UNRESOLVED,
    )


def substitute_tokens(text: str, scope: object, repeat_index: int | None = None) -> str:
    return _TOKEN_RE.sub(
        lambda match: stringify(evaluate_token(match.group(1), scope, repeat_index)),
        text,
    )


def resolve_style_value(
    value: object,
    scope: object,
    *,
    repeat_index: int | None = None,
    palette: Mapping[str, str] | None = None,
) -> object:
    """Evaluate a style value that may hold a token or name a palette colour."""
    result = value
    if isinstance(value, str) and has_tokens(value):
        whole = _TOKEN_RE.fullmatch(value.strip())
        if whole is not None:
            result = evaluate_token(whole.group(1), scope, repeat_index)
            if result is UNRESOLVED:
                result = None
        else:
            result = substitute_tokens(value, scope, repeat_index)
    if palette and isinstance(result, str) and result in palette:
        return palette[result]
    return result


def evaluate_condition(condition: Condition, scope: object, *, fallback: object = UNRESOLVED) -> bool:
    """Test ``condition`` against ``scope``.

    A field ``scope`` does not resolve is looked up in ``fallback`` when one is
    given, so an element-level condition can also gate on the root record.
    """
    field_value = resolve(scope, condition.field)
    if field_value is UNRESOLVED and fallback is not UNRESOLVED:
        field_value = resolve(fallback, condition.field)
    operator = condition.operator
    if operator == "equals":
        return strict_equals(field_value, condition.value)
    if operator == "not_equals":
        return not strict_equals(field_value, condition.value)
    if operator == "exists":
        return field_value is not UNRESOLVED and field_value is not None
    if operator == "not_exists":
        return field_value is UNRESOLVED or field_value is None
    if operator == "contains":
        if isinstance(field_value, str):
            return isinstance(condition.value, str) and condition.value in field_value
        if _is_sequence(field_value):
            return any(strict_equals(item, condition.value) for item in field_value)
        return False
    logger.warning("Unknown condition operator %r on field %r; treating as true", operator, condition.field)
    return True


def evaluate_conditions(
    conditions: Sequence[Condition],
    scope: object,
    *,
    fallback: object = UNRESOLVED,
) -> bool:
    return all(evaluate_condition(condition, scope, fallback=fallback) for condition in conditions)


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


__all__ = [
    "UNRESOLVED",
    "evaluate_condition",
    "evaluate_conditions",
    "evaluate_token",
    "has_tokens",
    "is_resolved",
    "resolve",
    "resolve_style_value",
    "stringify",
    "substitute_tokens",
]
