"""Core Environment class for blockwork.

The Environment is the central coordination point for template operations:
- Source storage and (optionally) single-flight loading from a provider
- Inheritance resolution and compilation, with a compiled-template cache
- Helper, filter, partial and default-data registration
- Render statistics and template validation

Copy-on-Write:
Helper and filter registries use copy-on-write, so a registration never
disturbs a render that is already walking its template.

Never Raises:
``render()`` always returns a string. Missing templates, partials, helpers
and filters become inline HTML comments; unexpected failures are logged and
turned into a diagnostic for the whole template.

"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from blockwork.cache import (
    CacheKey,
    LoadCoordinator,
    LoadResult,
    RenderCache,
    SourceStore,
    TemplateProvider,
)
from blockwork.compiler import compile_source
from blockwork.environment.exceptions import ErrorCode, TemplateLoadError
from blockwork.environment.filters import DEFAULT_FILTERS
from blockwork.environment.helpers import DEFAULT_HELPERS
from blockwork.environment.registry import FunctionRegistry
from blockwork.inheritance import DEFAULT_MAX_PASSES, InheritanceResolver, collect_blocks
from blockwork.inheritance.blocks import parse_blocks
from blockwork.render_state import DEFAULT_MAX_PARTIAL_DEPTH, render_state
from blockwork.template import Template
from blockwork.utils.html import diagnostic

logger = logging.getLogger(__name__)

DefaultsSupplier = Mapping[str, Mapping[str, Any]] | Callable[[str], Mapping[str, Any] | None]

_OPEN_CONTROL = re.compile(r"\{\{#(if|each)[^}]*\}\}")
_CLOSE_CONTROL = re.compile(r"\{\{/(if|each)\}\}")
_NESTED_MUSTACHE = re.compile(r"\{\{[^}]*\{\{")


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Structural checks on a template source."""

    valid: bool
    errors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PerformanceReport:
    """Render and cache statistics for one environment.

    Times are in milliseconds; ``cache_hit_rate`` is a percentage.
    """

    total_renders: int
    average_render_ms: float
    cache_hits: int
    cache_misses: int
    cache_hit_rate: float
    templates_loaded: int
    compiled_templates: int
    loader_state: str | None


class Environment:
    """Central configuration and template management hub.

    Attributes:
        store: Template sources by name
        coordinator: Single-flight loader (None without a ``loader``)
        helpers: Helper registry (``{{name arg ...}}``)
        filters: Filter registry (``{{value | name:arg}}``)
        max_block_passes: Substitution pass cap for inheritance
        max_partial_depth: Partial nesting limit
        slow_render_ms: Renders slower than this are logged as warnings

    Example:
            >>> env = Environment(templates={
            ...     "base": '<main>{{#block "content"}}Default{{/block}}</main>',
            ...     "page": '{{#extend "base"}}{{#block "content"}}Hi {{name}}{{/block}}',
            ... })
            >>> env.render("page", {"name": "Ada"})
            '<main>Hi Ada</main>'

    Loading from a provider:
            >>> env = Environment(loader=FileSystemLoader("templates/"))
            >>> await env.ensure_loaded()
            >>> env.render("report", data)

    """

    def __init__(
        self,
        loader: TemplateProvider | None = None,
        *,
        templates: Mapping[str, str] | None = None,
        defaults: DefaultsSupplier | None = None,
        partials: Mapping[str, str] | None = None,
        helpers: Mapping[str, Callable[..., Any]] | None = None,
        filters: Mapping[str, Callable[..., Any]] | None = None,
        aliases: Mapping[str, str] | None = None,
        names: Iterable[str] | None = None,
        max_block_passes: int = DEFAULT_MAX_PASSES,
        max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH,
        cache_size: int | None = None,
        slow_render_ms: float = 10.0,
        builtins: bool = True,
    ):
        self.store = SourceStore()
        self.coordinator = (
            LoadCoordinator(loader, self.store, names=names, aliases=aliases)
            if loader is not None
            else None
        )
        self.max_block_passes = max_block_passes
        self.max_partial_depth = max_partial_depth
        self.slow_render_ms = slow_render_ms

        self._resolver = InheritanceResolver(self.store, max_block_passes)
        self._cache = RenderCache(cache_size)
        self.store.subscribe(self._on_store_changed)

        self.helpers = FunctionRegistry("helper", DEFAULT_HELPERS if builtins else None)
        self.filters = FunctionRegistry("filter", DEFAULT_FILTERS if builtins else None)
        if helpers:
            self.helpers.update(helpers)
        if filters:
            self.filters.update(filters)

        self._partials: dict[str, str] = dict(partials or {})
        self._defaults: DefaultsSupplier = defaults if defaults is not None else {}

        self._render_count = 0
        self._render_time_ms = 0.0

        if templates:
            self.store.update(templates)

    # -- registration --------------------------------------------------------

    def register_helper(self, name: str, func: Callable[..., Any]) -> None:
        self.helpers[name] = func

    def register_filter(self, name: str, func: Callable[..., Any]) -> None:
        self.filters[name] = func

    def register_partial(self, name: str, body: str) -> None:
        """Register (or replace) a partial body under ``name``."""
        self._partials[name] = body
        self._cache.discard(CacheKey(name, "partial"))

    def add_template(self, name: str, body: str) -> None:
        """Add an inline template source (clears compiled templates)."""
        self.store.put(name, body)

    def get_source(self, name: str) -> str | None:
        return self.store.get(name)

    def list_templates(self) -> list[str]:
        return self.store.names()

    def default_data(self, name: str) -> dict[str, Any]:
        """Default context registered for a template or partial name."""
        if callable(self._defaults):
            data = self._defaults(name)
        else:
            data = self._defaults.get(name)
        return dict(data) if data else {}

    # -- loading -------------------------------------------------------------

    async def ensure_loaded(self) -> LoadResult:
        """Load all provider sources once (no-op without a loader)."""
        if self.coordinator is None:
            return LoadResult(loaded=tuple(self.store.names()))
        return await self.coordinator.ensure_loaded()

    # -- compilation ---------------------------------------------------------

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Compile template text directly (no inheritance, not cached).

        Example:
            >>> env.from_string("{{#each items}}{{this}},{{/each}}").render(items=[1, 2])
            '1,2,'
        """
        return Template(self, compile_source(source), name)

    def get_template(self, name: str) -> Template | None:
        """Resolved and compiled template, or None when ``name`` is unknown."""
        key = CacheKey(name, "inheritance")
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        resolution = self._resolver.resolve(name)
        if not resolution.found:
            return None
        template = Template(self, compile_source(resolution.body), name)
        self._cache.put(key, template)
        return template

    def _partial_template(self, name: str) -> Template | None:
        key = CacheKey(name, "partial")
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        body = self._partials.get(name)
        if body is None:
            body = self.store.get(name)
        if body is None:
            return None
        template = Template(self, compile_source(body), name)
        self._cache.put(key, template)
        return template

    # -- rendering -----------------------------------------------------------

    def render(self, name: str, data: Mapping[str, Any] | None = None, /, **kwargs: Any) -> str:
        """Render a named template; never raises.

        Args:
            name: Template name
            data: Context mapping; merged over the template's default data
            **kwargs: Additional context (wins over ``data``)

        Returns:
            Rendered text, or an inline ``<!-- ... -->`` diagnostic
        """
        start = time.perf_counter()
        try:
            ctx = self.default_data(name)
            if data:
                ctx.update(data)
            ctx.update(kwargs)

            template = self.get_template(name)
            if template is None:
                return diagnostic(f'Template "{name}" not found')

            with render_state(name, self.max_partial_depth):
                return template.render(ctx)
        except Exception as exc:
            logger.error(f"{ErrorCode.RENDER_ERROR.value}: error rendering template {name!r}: {exc}")
            return diagnostic(f'Error rendering template "{name}": {exc}')
        finally:
            self._record_render(name, (time.perf_counter() - start) * 1000)

    async def render_async(
        self, name: str, data: Mapping[str, Any] | None = None, /, **kwargs: Any
    ) -> str:
        """Make sure sources are loaded, then render; never raises.

        A provider that cannot even list its templates is logged, and the
        render proceeds against whatever the store already holds.
        """
        try:
            await self.ensure_loaded()
        except TemplateLoadError as exc:
            logger.error(f"{ErrorCode.LOAD_FAILURE.value}: {exc}")
        return self.render(name, data, **kwargs)

    def render_partial(self, name: str, ctx: Mapping[str, Any]) -> str:
        """Render a partial inline with the caller's context.

        The partial's default data is merged under ``ctx``. Unknown partials
        and runaway nesting produce diagnostics instead of output.
        """
        with render_state(max_partial_depth=self.max_partial_depth) as state:
            message = state.depth_exceeded_message(name)
            if message is not None:
                logger.warning(message)
                return diagnostic(
                    f'Partial "{name}" exceeded maximum depth ({state.max_partial_depth})'
                )

            template = self._partial_template(name)
            if template is None:
                logger.warning(f"{ErrorCode.PARTIAL_NOT_FOUND.value}: partial {name!r} not found")
                return diagnostic(f'Partial "{name}" not found')

            merged = self.default_data(name)
            merged.update(ctx)
            with state.entering(name):
                return template.render(merged)

    def debug_render(self, name: str, data: Mapping[str, Any] | None = None) -> str | None:
        """Validate then render, logging each step. None if validation fails."""
        logger.info(f"Debug render for template {name!r} with keys {sorted(data or {})}")
        validation = self.validate_template(name)
        if not validation.valid:
            logger.error(f"Template {name!r} failed validation: {'; '.join(validation.errors)}")
            return None
        result = self.render(name, data)
        logger.info(f"Rendered {name!r}: {len(result)} characters")
        logger.debug(f"Output preview: {result[:200]}")
        return result

    def _record_render(self, name: str, elapsed_ms: float) -> None:
        self._render_count += 1
        self._render_time_ms += elapsed_ms
        if elapsed_ms > self.slow_render_ms:
            logger.warning(f"Slow render for {name!r}: {elapsed_ms:.2f}ms")

    # -- validation & introspection ------------------------------------------

    def validate_template(self, name: str) -> ValidationResult:
        """Check a template source for unbalanced or malformed directives."""
        body = self.store.get(name)
        if body is None:
            return ValidationResult(False, (f'Template "{name}" not found',))

        errors: list[str] = []
        opens = len(_OPEN_CONTROL.findall(body))
        closes = len(_CLOSE_CONTROL.findall(body))
        if opens != closes:
            errors.append(
                f"Mismatched {{{{#if}}}} or {{{{#each}}}} tags ({opens} open, {closes} close)"
            )
        if _NESTED_MUSTACHE.search(body):
            errors.append("Invalid nested template syntax found")
        errors.extend(str(error) for error in parse_blocks(body, name).errors)
        return ValidationResult(not errors, tuple(errors))

    def inheritance_chain(self, name: str) -> list[str]:
        """Template names from the base template down to ``name``.

        Raises:
            TemplateNotFoundError: ``name`` or an ancestor is missing
            CircularInheritanceError: the chain loops
        """
        return [link.template_name for link in self._resolver.chain(name)]

    def block_names(self, name: str) -> list[str]:
        """Names of all blocks defined anywhere along ``name``'s chain."""
        return sorted(collect_blocks(self._resolver.chain(name)))

    def performance_report(self) -> PerformanceReport:
        stats = self._cache.stats()
        average = self._render_time_ms / self._render_count if self._render_count else 0.0
        return PerformanceReport(
            total_renders=self._render_count,
            average_render_ms=round(average, 2),
            cache_hits=stats.hits,
            cache_misses=stats.misses,
            cache_hit_rate=round(stats.hit_rate * 100, 1),
            templates_loaded=len(self.store),
            compiled_templates=stats.size,
            loader_state=self.coordinator.state.value if self.coordinator else None,
        )

    # -- cache management ----------------------------------------------------

    def _on_store_changed(self) -> None:
        self._cache.clear()

    def clear_cache(self) -> None:
        """Drop compiled templates and reset statistics."""
        logger.info("Clearing compiled template cache")
        self._cache.clear()
        self._cache.reset_stats()
        self._render_count = 0
        self._render_time_ms = 0.0

    def clear_all_caches(self) -> None:
        """Also forget loaded sources so the next load starts from scratch."""
        logger.warning("Clearing all template caches")
        if self.coordinator is not None:
            self.coordinator.clear_cache()
        else:
            self.store.clear()
        self.clear_cache()

    def cache_info(self) -> dict[str, Any]:
        stats = self._cache.stats()
        return {
            "hits": stats.hits,
            "misses": stats.misses,
            "size": stats.size,
            "maxsize": stats.maxsize,
        }

    def __repr__(self) -> str:
        return (
            f"<Environment templates={len(self.store)} "
            f"helpers={len(self.helpers)} filters={len(self.filters)}>"
        )
