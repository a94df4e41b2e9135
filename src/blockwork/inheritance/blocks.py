"""Block parsing for template inheritance.

Extracts the ``{{#extend "parent"}}`` link and every
``{{#block "name"}}...{{/block}}`` region from a template body. Nested
blocks are extracted too, each carrying its nesting depth, so a mid-chain
template can override a block that its ancestor only defines inside
another block.

Duplicate names within one body resolve to the region that starts last in
document order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from blockwork.environment.exceptions import MalformedBlockError
from blockwork.utils.regions import (
    BLOCK_CLOSE,
    BLOCK_OPEN,
    EXTEND_CLOSE,
    EXTEND_TAG,
    scan_regions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Block:
    """Named region of a template body (depth 0 = top level)."""

    name: str
    content: str
    depth: int


@dataclass(frozen=True, slots=True)
class ParsedTemplate:
    """Result of parsing one template body.

    Attributes:
        parent: Name from the first ``{{#extend}}`` directive, or None for a
            base template
        blocks: Block name → Block, in document order of first appearance
        errors: Unterminated block markers found in the body
    """

    parent: str | None
    blocks: dict[str, Block] = field(default_factory=dict)
    errors: tuple[MalformedBlockError, ...] = ()

    @property
    def is_base(self) -> bool:
        return self.parent is None

    def block_map(self) -> dict[str, str]:
        return {name: block.content for name, block in self.blocks.items()}


def parse_parent(body: str) -> str | None:
    """Name of the template this body extends (first match wins)."""
    match = EXTEND_TAG.search(body)
    return match.group(1) if match else None


def parse_blocks(body: str, template_name: str | None = None) -> ParsedTemplate:
    """Extract all block regions from ``body``, depth-aware.

    Unterminated blocks are logged as errors and left out of the result.
    """
    scan = scan_regions(body, BLOCK_OPEN, BLOCK_CLOSE)

    blocks: dict[str, Block] = {}
    for region in scan.regions:
        blocks[region.argument] = Block(region.argument, region.body, region.depth)
        if "{{#block" in region.body:
            logger.debug(f"Block {region.argument!r} contains nested blocks")

    errors = []
    for unclosed in scan.unclosed:
        error = MalformedBlockError(unclosed.argument, unclosed.start, template_name)
        logger.error(error.format_compact())
        errors.append(error)

    return ParsedTemplate(parent=None, blocks=blocks, errors=tuple(errors))


def parse_template(body: str, template_name: str | None = None) -> ParsedTemplate:
    """Parse the inheritance link and blocks of a template body.

    Example:
        >>> parsed = parse_template('{{#extend "base"}}{{#block "x"}}B{{/block}}')
        >>> parsed.parent, parsed.block_map()
        ('base', {'x': 'B'})
    """
    parsed = parse_blocks(body, template_name)
    return ParsedTemplate(parent=parse_parent(body), blocks=parsed.blocks, errors=parsed.errors)


def strip_directives(body: str) -> str:
    """Remove inheritance markers, keeping block content literally.

    ``{{#extend}}`` and ``{{/extend}}`` tags are dropped; each block region is
    replaced by its (stripped) inner content, recursively.
    """
    body = EXTEND_TAG.sub("", body).replace(EXTEND_CLOSE, "")
    scan = scan_regions(body, BLOCK_OPEN, BLOCK_CLOSE)
    top = scan.top_level()
    if not top:
        return body

    parts: list[str] = []
    cursor = 0
    for region in top:
        parts.append(body[cursor : region.start])
        parts.append(strip_directives(region.body).strip())
        cursor = region.end
    parts.append(body[cursor:])
    return "".join(parts)
