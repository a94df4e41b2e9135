"""blockwork compiler: template text → parse tree.

Architecture:
    Template text → PassCompiler (6 fixed passes) → tuple[Node, ...]

The resulting nodes are wrapped in a ``Template`` (``blockwork.template``)
which walks them against a data context.
"""

from blockwork.compiler.expressions import (
    parse_arg,
    parse_condition,
    parse_filter,
    parse_output,
    split_unquoted,
    tokenize,
)
from blockwork.compiler.passes import PassCompiler, compile_source

__all__ = [
    "PassCompiler",
    "compile_source",
    "parse_arg",
    "parse_condition",
    "parse_filter",
    "parse_output",
    "split_unquoted",
    "tokenize",
]
