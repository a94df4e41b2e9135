"""Default filters available in every environment.

Filters take the piped value first, then any ``:arg`` values:
``{{description | default:"None given" | truncate:40}}``.

"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sized
from typing import Any

from blockwork.utils.html import to_text

logger = logging.getLogger(__name__)


def uppercase(value: Any) -> str:
    return to_text(value).upper()


def lowercase(value: Any) -> str:
    return to_text(value).lower()


def capitalise(value: Any) -> str:
    """Upper-case the first character only; the rest is left alone."""
    text = to_text(value)
    return text[:1].upper() + text[1:]


def truncate(value: Any, length: Any = 50) -> str:
    """Cut text to ``length`` characters and append ``...`` when cut.

    Example:
        >>> truncate("Long description here", 9)
        'Long desc...'
    """
    text = to_text(value)
    limit = int(length)
    return text[:limit] + "..." if len(text) > limit else text


def default(value: Any, fallback: Any = "") -> Any:
    return value or fallback


def to_json(value: Any) -> str:
    try:
        return json.dumps(value, indent=2, default=str)
    except (TypeError, ValueError) as exc:
        logger.warning(f"json filter could not serialise {type(value).__name__}: {exc}")
        return to_text(value)


def length(value: Any) -> int:
    if isinstance(value, Sized):
        return len(value)
    return 0


DEFAULT_FILTERS: dict[str, Callable[..., Any]] = {
    "uppercase": uppercase,
    "lowercase": lowercase,
    "capitalise": capitalise,
    "truncate": truncate,
    "default": default,
    "json": to_json,
    "length": length,
}
