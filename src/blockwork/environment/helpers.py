"""Default helper functions available in every environment.

Helpers are invoked with positional arguments: ``{{formatSize 1.5 "rem"}}``.
Their results are HTML-escaped like any other output.

Formatting:
    formatPercent, formatSize, formatId

Logic:
    equals, notEquals, greaterThan, lessThan

Text:
    britishSpelling

"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from typing import Any

from blockwork.template.helpers import to_number
from blockwork.utils.html import to_text

_NON_ID_CHARS = re.compile(r"[^a-z0-9]")
_DASH_RUNS = re.compile(r"-+")

_BRITISH_SPELLINGS = (
    (re.compile(r"color"), "colour"),
    (re.compile(r"Color"), "Colour"),
    (re.compile(r"ize(?![a-z])"), "ise"),
    (re.compile(r"izing(?![a-z])"), "ising"),
    (re.compile(r"ized(?![a-z])"), "ised"),
    (re.compile(r"customize"), "customise"),
    (re.compile(r"Customize"), "Customise"),
)


def format_percent(value: Any) -> str:
    """Render a ratio as a whole percentage, rounding halves up.

    Example:
        >>> format_percent(0.125)
        '13%'
    """
    return f"{math.floor(float(value) * 100 + 0.5)}%"


def format_size(value: Any, unit: str = "em") -> str:
    return f"{to_text(value)}{unit}"


def format_id(text: Any) -> str:
    """Slug suitable for an ``id`` attribute: ``"Font Size"`` → ``font-size``."""
    slug = _NON_ID_CHARS.sub("-", to_text(text).lower())
    return _DASH_RUNS.sub("-", slug).strip("-")


def equals(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


def not_equals(a: Any, b: Any) -> bool:
    return not equals(a, b)


def _ordered(a: Any, b: Any) -> tuple[Any, Any]:
    if isinstance(a, str) and isinstance(b, str):
        return a, b
    left, right = to_number(a), to_number(b)
    if left is None or right is None:
        raise TypeError(f"Cannot compare {type(a).__name__} with {type(b).__name__}")
    return left, right


def greater_than(a: Any, b: Any) -> bool:
    left, right = _ordered(a, b)
    return left > right


def less_than(a: Any, b: Any) -> bool:
    left, right = _ordered(a, b)
    return left < right


def british_spelling(text: Any) -> str:
    result = to_text(text)
    for pattern, replacement in _BRITISH_SPELLINGS:
        result = pattern.sub(replacement, result)
    return result


DEFAULT_HELPERS: dict[str, Callable[..., Any]] = {
    "formatPercent": format_percent,
    "formatSize": format_size,
    "formatId": format_id,
    "equals": equals,
    "notEquals": not_equals,
    "greaterThan": greater_than,
    "lessThan": less_than,
    "britishSpelling": british_spelling,
}
