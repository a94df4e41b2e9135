"""Shared utilities for blockwork."""

from blockwork.utils.html import diagnostic, html_escape, number_text, to_text

__all__ = ["diagnostic", "html_escape", "number_text", "to_text"]
