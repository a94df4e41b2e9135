"""Pass-based compiler for blockwork templates.

Template text is compiled by six passes applied in a fixed order. Each pass
scans the whole text for its directive kind, turns every match into a node
and leaves an opaque placeholder in its place. Regions with inner content
(loops, conditionals, blocks) hand that content back to the full pipeline,
so a loop body can itself hold conditionals, partials and output tags.

Pass order:
1. ``{{#each path}}...{{/each}}``     → Each
2. ``{{> name}}``                     → Partial
3. ``{{#if cond}}...{{else}}...{{/if}}`` → If
4. ``{{#block "name"}}...{{/block}}`` → BlockRegion (content only)
5. ``{{{path}}}``                     → Raw
6. ``{{expression}}``                 → Output / HelperCall

Placeholders are never matched by any directive pattern, so a later pass
cannot re-read what an earlier pass produced. Whatever text remains
between placeholders becomes Text nodes. Placeholder characters already
present in the source are turned into Text nodes before the first pass.

Example:
    >>> compile_source("Hi {{name}}!")
    (Text(value='Hi '), Output(path='name', filters=()), Text(value='!'))

"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from blockwork.compiler.expressions import parse_condition, parse_output
from blockwork.compiler.nodes import BlockRegion, Each, If, Node, Partial, Raw, Text
from blockwork.utils.regions import (
    BLOCK_CLOSE,
    BLOCK_OPEN,
    EACH_CLOSE,
    EACH_OPEN,
    ELSE_TAG,
    EXTEND_CLOSE,
    EXTEND_TAG,
    IF_CLOSE,
    IF_OPEN,
    Region,
    find_top_level,
    scan_regions,
)

logger = logging.getLogger(__name__)

_MARK_OPEN = "\ue000"
_MARK_CLOSE = "\ue001"
_PLACEHOLDER = re.compile(f"{_MARK_OPEN}(\\d+){_MARK_CLOSE}")
_MARK_CHARS = re.compile(f"[{_MARK_OPEN}{_MARK_CLOSE}]")

_PARTIAL = re.compile(r"\{\{>\s*([^}\ue000\ue001]+)\}\}")
_RAW = re.compile(r"\{\{\{([^}\ue000\ue001]+)\}\}\}")
_OUTPUT = re.compile(r"\{\{([^}#/\ue000\ue001]+)\}\}")


class PassCompiler:
    """Compile template text into a tuple of nodes.

    One instance compiles one source. Nodes created by any pass (at any
    recursion level) live in a shared table, and placeholders index into it.

    Attributes:
        _nodes: Node table indexed by placeholder number
    """

    __slots__ = ("_nodes",)

    def __init__(self) -> None:
        self._nodes: list[Node] = []

    def compile(self, source: str) -> tuple[Node, ...]:
        """Run all passes over ``source`` and assemble the node tuple."""
        text = source
        for run_pass in self._passes():
            text = run_pass(text)
        return self._assemble(text)

    def _passes(self) -> tuple[Callable[[str], str], ...]:
        return (
            self._loop_pass,
            self._partial_pass,
            self._conditional_pass,
            self._block_pass,
            self._raw_pass,
            self._output_pass,
        )

    # -- placeholder plumbing ------------------------------------------------

    def protect_marks(self, source: str) -> str:
        """Replace literal placeholder characters in ``source`` with Text nodes."""
        return _MARK_CHARS.sub(lambda m: self._placeholder(Text(m.group(0))), source)

    def _placeholder(self, node: Node) -> str:
        self._nodes.append(node)
        return f"{_MARK_OPEN}{len(self._nodes) - 1}{_MARK_CLOSE}"

    def _assemble(self, text: str) -> tuple[Node, ...]:
        nodes: list[Node] = []
        cursor = 0
        for match in _PLACEHOLDER.finditer(text):
            if match.start() > cursor:
                nodes.append(Text(text[cursor : match.start()]))
            nodes.append(self._nodes[int(match.group(1))])
            cursor = match.end()
        if cursor < len(text):
            nodes.append(Text(text[cursor:]))
        return tuple(nodes)

    def _replace_regions(
        self,
        text: str,
        opener: re.Pattern[str],
        closer: str,
        build: Callable[[Region], Node],
        kind: str,
    ) -> str:
        scan = scan_regions(text, opener, closer)
        for unclosed in scan.unclosed:
            logger.warning(f"Unterminated {kind} directive {unclosed.argument!r} left as text")
        top = scan.top_level()
        if not top:
            return text

        parts: list[str] = []
        cursor = 0
        for region in top:
            parts.append(text[cursor : region.start])
            parts.append(self._placeholder(build(region)))
            cursor = region.end
        parts.append(text[cursor:])
        return "".join(parts)

    # -- passes --------------------------------------------------------------

    def _loop_pass(self, text: str) -> str:
        def build(region: Region) -> Node:
            return Each(path=region.argument, body=self.compile(region.body))

        return self._replace_regions(text, EACH_OPEN, EACH_CLOSE, build, "each")

    def _partial_pass(self, text: str) -> str:
        return _PARTIAL.sub(lambda m: self._placeholder(Partial(m.group(1).strip())), text)

    def _conditional_pass(self, text: str) -> str:
        def build(region: Region) -> Node:
            inner = region.body
            nested = scan_regions(inner, IF_OPEN, IF_CLOSE).top_level()
            split = find_top_level(inner, ELSE_TAG, nested)
            if split == -1:
                truthy, falsy = inner, ""
            else:
                truthy, falsy = inner[:split], inner[split + len(ELSE_TAG) :]
            return If(
                test=parse_condition(region.argument),
                source=region.argument,
                body=self.compile(truthy),
                else_=self.compile(falsy) if falsy else (),
            )

        return self._replace_regions(text, IF_OPEN, IF_CLOSE, build, "if")

    def _block_pass(self, text: str) -> str:
        text = EXTEND_TAG.sub("", text).replace(EXTEND_CLOSE, "")

        def build(region: Region) -> Node:
            logger.debug(f"Rendering leftover block {region.argument!r} as content")
            return BlockRegion(name=region.argument, body=self.compile(region.body.strip()))

        return self._replace_regions(text, BLOCK_OPEN, BLOCK_CLOSE, build, "block")

    def _raw_pass(self, text: str) -> str:
        return _RAW.sub(lambda m: self._placeholder(Raw(m.group(1).strip())), text)

    def _output_pass(self, text: str) -> str:
        def build(match: re.Match[str]) -> str:
            expression = match.group(1).strip()
            if not expression:
                return match.group(0)
            return self._placeholder(parse_output(expression))

        return _OUTPUT.sub(build, text)


def compile_source(source: str) -> tuple[Node, ...]:
    """Compile template text into its node tuple."""
    compiler = PassCompiler()
    return compiler.compile(compiler.protect_marks(source))
