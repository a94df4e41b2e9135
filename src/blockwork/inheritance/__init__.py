"""Template inheritance: block parsing and chain resolution."""

from blockwork.inheritance.blocks import (
    Block,
    ParsedTemplate,
    parse_blocks,
    parse_parent,
    parse_template,
    strip_directives,
)
from blockwork.inheritance.resolver import (
    DEFAULT_MAX_PASSES,
    ChainLink,
    InheritanceResolver,
    Resolution,
    collect_blocks,
    substitute_blocks,
)

__all__ = [
    "DEFAULT_MAX_PASSES",
    "Block",
    "ChainLink",
    "InheritanceResolver",
    "ParsedTemplate",
    "Resolution",
    "collect_blocks",
    "parse_blocks",
    "parse_parent",
    "parse_template",
    "strip_directives",
    "substitute_blocks",
]
