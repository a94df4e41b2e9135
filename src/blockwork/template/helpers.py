"""Pure runtime helper functions used while rendering.

Path resolution never raises: anything that cannot be resolved renders as
an empty string. None of these functions touch Environment state.

"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from blockwork.compiler.nodes import (
    Arg,
    Compare,
    Condition,
    Equals,
    Not,
    NotEquals,
    NumberArg,
    PathArg,
    StringArg,
    Truthy,
)
from blockwork.utils.html import to_text

_INDEXED = re.compile(r"^([^\[\]]+)\[(\d+)\]$")

_MISSING = object()


def is_sequence(value: Any) -> bool:
    """True for list-like values that templates may loop over."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, _MISSING)
    if is_sequence(obj) and name.isdigit():
        index = int(name)
        return obj[index] if index < len(obj) else _MISSING
    if name.startswith("_"):
        return _MISSING
    return getattr(obj, name, _MISSING)


def resolve_path(ctx: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted path against the render context.

    Supports ``a.b.c``, one ``[N]`` index per segment (``items[0].title``)
    and purely numeric segments on sequences (``items.0``). Unresolvable
    paths yield ``""``; a resolved ``None`` is returned as-is.

    Example:
        >>> resolve_path({"user": {"tags": ["a", "b"]}}, "user.tags[1]")
        'b'
        >>> resolve_path({}, "user.name")
        ''
    """
    path = path.strip()
    if not path:
        return ""
    if path.startswith("@"):
        return ctx.get(path, "")

    current: Any = ctx
    for segment in path.split("."):
        if current is None or current is _MISSING:
            return ""
        match = _INDEXED.match(segment)
        if match:
            container = _field(current, match.group(1))
            index = int(match.group(2))
            if not is_sequence(container) or index >= len(container):
                return ""
            current = container[index]
        else:
            current = _field(current, segment)

    return "" if current is _MISSING else current


def resolve_arg(arg: Arg, ctx: Mapping[str, Any]) -> Any:
    """Turn a tagged argument into the value passed to a helper or filter."""
    if isinstance(arg, StringArg):
        return arg.value
    if isinstance(arg, NumberArg):
        return arg.value
    if isinstance(arg, PathArg):
        return resolve_path(ctx, arg.path)
    raise TypeError(f"Unknown argument type: {type(arg).__name__}")


def to_number(value: Any) -> float | None:
    """Numeric view of a value for comparisons (None when not numeric).

    Empty strings and None count as 0, booleans as 0/1.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return 0.0
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return None


def loose_equals(value: Any, literal: str) -> bool:
    """Compare a resolved value with a string literal, coercing numbers.

    Booleans compare as 0/1 (``true`` never equals ``'true'``) and None
    equals no literal.
    """
    if isinstance(value, str):
        return value == literal
    if value is None:
        return False
    if isinstance(value, (int, float)):
        number = to_number(literal)
        return number is not None and float(value) == number
    return to_text(value) == literal


def evaluate_condition(test: Condition, ctx: Mapping[str, Any]) -> bool:
    """Evaluate a parsed ``{{#if}}`` condition against the context."""
    if isinstance(test, Truthy):
        return bool(resolve_path(ctx, test.path))
    if isinstance(test, Not):
        return not evaluate_condition(test.operand, ctx)
    if isinstance(test, Equals):
        value = resolve_path(ctx, test.path)
        if test.strict:
            return isinstance(value, str) and value == test.literal
        return loose_equals(value, test.literal)
    if isinstance(test, NotEquals):
        value = resolve_path(ctx, test.path)
        return not (isinstance(value, str) and value == test.literal)
    if isinstance(test, Compare):
        number = to_number(resolve_path(ctx, test.path))
        if number is None:
            return False
        if test.operator == ">":
            return number > test.number
        if test.operator == ">=":
            return number >= test.number
        if test.operator == "<":
            return number < test.number
        return number <= test.number
    raise TypeError(f"Unknown condition type: {type(test).__name__}")
