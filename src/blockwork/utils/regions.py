"""Depth-aware region scanning for paired directives.

Both the block parser and the compiler need to pair an opening directive
(``{{#block "x"}}``, ``{{#each items}}``, ``{{#if cond}}``) with its closing
tag. A naive "first close after the open" match mis-pairs nested regions, so
opens and closes are walked in document order with a stack: every close pops
the most recent open, and the stack height at that point is the region's
nesting depth.

Example:
    >>> text = '{{#block "a"}}1{{#block "b"}}2{{/block}}3{{/block}}'
    >>> result = scan_regions(text, BLOCK_OPEN, BLOCK_CLOSE)
    >>> [(r.argument, r.depth, r.body) for r in result.regions]
    [('a', 0, '1{{#block "b"}}2{{/block}}3'), ('b', 1, '2')]

"""

from __future__ import annotations

import re
from dataclasses import dataclass

BLOCK_OPEN = re.compile(r'\{\{#block\s+"([^"]+)"\}\}')
BLOCK_CLOSE = "{{/block}}"

EXTEND_TAG = re.compile(r'\{\{#extend\s+"([^"]+)"\}\}')
EXTEND_CLOSE = "{{/extend}}"

EACH_OPEN = re.compile(r"\{\{#each\s+([^}]+)\}\}")
EACH_CLOSE = "{{/each}}"

IF_OPEN = re.compile(r"\{\{#if\s+([^}]+)\}\}")
IF_CLOSE = "{{/if}}"
ELSE_TAG = "{{else}}"


@dataclass(frozen=True, slots=True)
class Region:
    """A matched open/close pair within a piece of text.

    Attributes:
        argument: First capture group of the opening directive
        start: Offset of the opening directive
        end: Offset just past the closing tag
        body_start: Offset just past the opening directive
        body_end: Offset of the closing tag
        depth: Nesting level among regions of the same kind (0 = top)
        body: Text between the opening directive and the closing tag
    """

    argument: str
    start: int
    end: int
    body_start: int
    body_end: int
    depth: int
    body: str


@dataclass(frozen=True, slots=True)
class Unclosed:
    """An opening directive that never found its closing tag."""

    argument: str
    start: int


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Regions in document order (by start offset) plus unmatched opens."""

    regions: tuple[Region, ...]
    unclosed: tuple[Unclosed, ...]

    def top_level(self) -> list[Region]:
        """Regions that are not nested inside another region of the same kind."""
        return [r for r in self.regions if r.depth == 0]


def scan_regions(text: str, opener: re.Pattern[str], closer: str) -> ScanResult:
    """Pair every ``opener`` match with its ``closer`` tag, depth-aware.

    Closing tags with no open region are ignored. Opens left on the stack
    when the text runs out are reported as ``Unclosed``.
    """
    events: list[tuple[int, int, re.Match[str] | None]] = []
    for match in opener.finditer(text):
        events.append((match.start(), 0, match))
    pos = text.find(closer)
    while pos != -1:
        events.append((pos, 1, None))
        pos = text.find(closer, pos + len(closer))
    events.sort(key=lambda event: (event[0], event[1]))

    stack: list[re.Match[str]] = []
    regions: list[Region] = []
    for offset, kind, match in events:
        if kind == 0:
            assert match is not None
            stack.append(match)
            continue
        if not stack:
            continue
        opened = stack.pop()
        regions.append(
            Region(
                argument=opened.group(1).strip(),
                start=opened.start(),
                end=offset + len(closer),
                body_start=opened.end(),
                body_end=offset,
                depth=len(stack),
                body=text[opened.end() : offset],
            )
        )

    regions.sort(key=lambda region: region.start)
    unclosed = tuple(Unclosed(m.group(1).strip(), m.start()) for m in stack)
    return ScanResult(regions=tuple(regions), unclosed=unclosed)


def find_top_level(text: str, needle: str, regions: list[Region]) -> int:
    """Offset of the first ``needle`` not inside any of ``regions``, or -1."""
    pos = text.find(needle)
    while pos != -1:
        if not any(r.start <= pos < r.end for r in regions):
            return pos
        pos = text.find(needle, pos + len(needle))
    return -1
