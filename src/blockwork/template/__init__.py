"""Compiled template object and its runtime support."""

from blockwork.template.core import Template
from blockwork.template.helpers import (
    evaluate_condition,
    is_sequence,
    resolve_arg,
    resolve_path,
    to_number,
)
from blockwork.template.loop_context import LoopContext

__all__ = [
    "LoopContext",
    "Template",
    "evaluate_condition",
    "is_sequence",
    "resolve_arg",
    "resolve_path",
    "to_number",
]
