"""Inheritance resolution for blockwork templates.

Turns a template name into fully resolved body text: all ``{{#extend}}``
directives removed and every ``{{#block}}`` region of the base template
replaced by the most-derived definition found along the chain.

Pipeline:
1. **Chain walk**: follow ``{{#extend}}`` from the requested template up to a
   base template, guarding against cycles
2. **Block collection**: fold each link's blocks base → derived so that the
   most derived definition wins
3. **Substitution**: starting from the base body, replace block regions with
   merged content, re-scanning until a pass changes nothing (bounded)

Example:
    ```
    base:  <main>{{#block "content"}}default{{/block}}</main>
    page:  {{#extend "base"}}{{#block "content"}}Hello{{/block}}
    ```
    ``resolve("page").body == "<main>Hello</main>"``

Failure Handling:
- Missing template → ``Resolution(found=False)`` with an empty body
- Cycle or missing ancestor → leaf body with directives stripped
- Pass limit reached → best-effort body, warning logged

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from blockwork.cache.store import SourceStore
from blockwork.environment.exceptions import (
    CircularInheritanceError,
    ErrorCode,
    TemplateNotFoundError,
)
from blockwork.inheritance.blocks import ParsedTemplate, parse_template, strip_directives
from blockwork.utils.regions import BLOCK_CLOSE, BLOCK_OPEN, EXTEND_CLOSE, EXTEND_TAG, scan_regions

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 10


@dataclass(frozen=True, slots=True)
class ChainLink:
    """One template in an inheritance chain."""

    template_name: str
    body: str
    parsed: ParsedTemplate = field(compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of resolving a template name.

    Attributes:
        name: Requested template name
        body: Resolved body text ("" when not found)
        chain: Template names base → derived that took part
        found: False when the requested template does not exist
        degraded: True when resolution fell back to the stripped leaf body
    """

    name: str
    body: str
    chain: tuple[str, ...] = ()
    found: bool = True
    degraded: bool = False


def collect_blocks(chain: list[ChainLink]) -> dict[str, str]:
    """Fold block definitions base → derived; later links win."""
    merged: dict[str, str] = {}
    for link in chain:
        for name, block in link.parsed.blocks.items():
            if name in merged:
                logger.debug(f"Block {name!r} overridden by {link.template_name!r}")
            merged[name] = block.content
    return merged


def substitute_blocks(
    base_body: str,
    blocks: dict[str, str],
    max_passes: int = DEFAULT_MAX_PASSES,
) -> str:
    """Fill the block regions of ``base_body`` from ``blocks``.

    Each pass replaces every top-level region whose name is in ``blocks``
    with that content (stripped). Substituted content may itself carry block
    markers, so the text is re-scanned until a pass changes nothing. When a
    pass makes no named replacement, regions with unknown names are reduced
    to their literal content.
    """
    result = EXTEND_TAG.sub("", base_body).replace(EXTEND_CLOSE, "")

    passes = 0
    changed = True
    while changed and passes < max_passes:
        passes += 1
        changed = False
        top = scan_regions(result, BLOCK_OPEN, BLOCK_CLOSE).top_level()
        if not top:
            break

        named = [r for r in top if r.argument in blocks]
        parts: list[str] = []
        cursor = 0
        for region in top:
            parts.append(result[cursor : region.start])
            if region.argument in blocks:
                parts.append(blocks[region.argument].strip())
            elif named:
                parts.append(result[region.start : region.end])
            else:
                logger.debug(f"Cleaning orphaned block {region.argument!r}")
                parts.append(region.body.strip())
            cursor = region.end
        parts.append(result[cursor:])

        updated = "".join(parts)
        changed = updated != result
        result = updated
        logger.debug(f"Block substitution pass {passes} (changed={changed})")

    if changed and passes >= max_passes:
        logger.warning(
            f"{ErrorCode.PASS_LIMIT.value}: block substitution stopped after "
            f"{max_passes} passes; returning partially resolved output"
        )

    if "{{#block" in result or BLOCK_CLOSE in result:
        logger.warning("Some block directives remain after inheritance resolution")
    return result


class InheritanceResolver:
    """Resolve template inheritance against a SourceStore.

    Attributes:
        _store: Source of raw template bodies
        _max_passes: Substitution pass limit (guards malformed templates)

    Example:
            >>> store = SourceStore({
            ...     "base": '<p>{{#block "x"}}A{{/block}}</p>',
            ...     "leaf": '{{#extend "base"}}{{#block "x"}}B{{/block}}',
            ... })
            >>> InheritanceResolver(store).resolve("leaf").body
            '<p>B</p>'

    """

    __slots__ = ("_max_passes", "_store")

    def __init__(self, store: SourceStore, max_passes: int = DEFAULT_MAX_PASSES):
        self._store = store
        self._max_passes = max_passes

    def chain(self, name: str) -> list[ChainLink]:
        """Walk ``{{#extend}}`` links from ``name`` to its base template.

        Returns links ordered base → derived.

        Raises:
            TemplateNotFoundError: If any template along the chain is missing
            CircularInheritanceError: If a template name recurs
        """
        body = self._store.get(name)
        if body is None:
            raise TemplateNotFoundError(f"Template '{name}' not found")
        return self._walk(ChainLink(name, body, parse_template(body, name)))

    def _walk(self, leaf: ChainLink) -> list[ChainLink]:
        links = [leaf]
        seen = [leaf.template_name]
        current = leaf.parsed.parent
        while current is not None:
            if current in seen:
                raise CircularInheritanceError([*seen, current])
            body = self._store.get(current)
            if body is None:
                raise TemplateNotFoundError(f"Template '{current}' not found")
            seen.append(current)
            link = ChainLink(current, body, parse_template(body, current))
            links.insert(0, link)
            current = link.parsed.parent

        logger.debug(f"Inheritance chain: {' -> '.join(link.template_name for link in links)}")
        return links

    def resolve(self, name: str) -> Resolution:
        """Resolve ``name`` to body text with inheritance applied."""
        body = self._store.get(name)
        if body is None:
            logger.error(f"Template {name!r} not found for inheritance")
            return Resolution(name=name, body="", found=False)

        parsed = parse_template(body, name)
        if parsed.is_base:
            return Resolution(name=name, body=strip_directives(body), chain=(name,))

        try:
            links = self._walk(ChainLink(name, body, parsed))
        except CircularInheritanceError as exc:
            logger.warning(exc.format_compact())
            return Resolution(name=name, body=strip_directives(body), chain=(name,), degraded=True)
        except TemplateNotFoundError as exc:
            logger.error(f"Error resolving inheritance chain for {name!r}: {exc}")
            return Resolution(name=name, body=strip_directives(body), chain=(name,), degraded=True)

        merged = collect_blocks(links)
        logger.debug(f"Collected {len(merged)} unique blocks for {name!r}")
        resolved = substitute_blocks(links[0].body, merged, self._max_passes)
        return Resolution(
            name=name,
            body=resolved,
            chain=tuple(link.template_name for link in links),
        )
