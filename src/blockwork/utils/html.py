"""HTML output helpers for blockwork.

Escaping uses a single-pass ``str.translate()`` over a precomputed table.
Values are converted to text with template-friendly rules: booleans render
as ``true``/``false``, integral floats drop their trailing ``.0`` and
``None`` renders as nothing.

"""

from __future__ import annotations

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


def number_text(value: int | float) -> str:
    """Decimal text for a number (``2.0`` renders as ``2``)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_text(value: Any) -> str:
    """Convert a value to output text without escaping."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return number_text(value)
    return str(value)


def html_escape(value: Any) -> str:
    """Convert a value to text and escape the five HTML-reserved characters.

    Example:
        >>> html_escape('<script>alert("x")</script>')
        '&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;'
        >>> html_escape(True)
        'true'
        >>> html_escape(None)
        ''
    """
    if value is None or isinstance(value, (bool, int, float)):
        return to_text(value)
    return str(value).translate(_ESCAPE_TABLE)


def diagnostic(message: str) -> str:
    """Build an inline HTML comment used for degraded output.

    ``--`` sequences are broken up so the message cannot close the comment.
    """
    safe = message.replace("--", "- -")
    return f"<!-- {safe} -->"
