"""blockwork Template: compiled template object ready for rendering.

The Template wraps the node tuple produced by the compiler and walks it
against a data context, writing into a local buffer.

Architecture:
    ```
    Template
    ├── _env_ref: WeakRef[Environment]  # Helpers, filters, partials
    ├── _nodes: tuple[Node, ...]        # Compiled parse tree
    └── _name                           # For log messages
    ```

StringBuilder Pattern:
Every node writes through ``buf.append`` and the output is joined once at
the end, O(n) in output size.

Degraded Output:
Missing helpers, filters and partials, and exceptions raised by helper or
filter functions, are turned into inline HTML comments. Rendering carries
on with the rest of the template.

"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from blockwork.compiler.nodes import (
    BlockRegion,
    Each,
    FilterCall,
    HelperCall,
    If,
    Node,
    Output,
    Partial,
    Raw,
    Text,
)
from blockwork.environment.exceptions import ErrorCode
from blockwork.template.helpers import (
    evaluate_condition,
    is_sequence,
    resolve_arg,
    resolve_path,
)
from blockwork.template.loop_context import LoopContext
from blockwork.utils.html import diagnostic, html_escape, to_text

if TYPE_CHECKING:
    from blockwork.environment import Environment

logger = logging.getLogger(__name__)


class _Diagnostic(str):
    """Marker for filter-pipeline results that must not be escaped."""

    __slots__ = ()


class Template:
    """Compiled template ready for rendering.

    Templates are immutable after construction and may be rendered any
    number of times; each ``render()`` call only creates local state.

    Attributes:
        name: Template identifier (for log messages)
        nodes: Compiled parse tree

    Example:
            >>> from blockwork import Environment
            >>> env = Environment()
            >>> t = env.from_string("Hello, {{name | uppercase}}!")
            >>> t.render(name="World")
            'Hello, WORLD!'

            >>> t.render({"name": "World"})  # Dict context also works
            'Hello, WORLD!'

    """

    __slots__ = ("_dispatch", "_env_ref", "_name", "_nodes")

    def __init__(self, env: Environment, nodes: Sequence[Node], name: str | None = None):
        # Use weakref to prevent circular reference: Template <-> Environment
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._nodes = tuple(nodes)
        self._name = name
        self._dispatch: dict[type, Callable[[Any, dict[str, Any], list[str]], None]] = {
            Text: self._render_text,
            Each: self._render_each,
            Partial: self._render_partial,
            If: self._render_if,
            BlockRegion: self._render_block,
            Raw: self._render_raw,
            Output: self._render_output,
            HelperCall: self._render_helper,
        }

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    @property
    def _env(self) -> Environment:
        env = self._env_ref()
        if env is None:
            raise RuntimeError("Environment has been garbage collected")
        return env

    def render(self, data: Mapping[str, Any] | None = None, /, **kwargs: Any) -> str:
        """Render the template with the given context.

        Args:
            data: Mapping of template variables
            **kwargs: Additional variables (override ``data`` on conflict)
        """
        ctx: dict[str, Any] = dict(data) if data else {}
        if kwargs:
            ctx.update(kwargs)
        buf: list[str] = []
        self._render_nodes(self._nodes, ctx, buf)
        return "".join(buf)

    __call__ = render

    def _render_nodes(self, nodes: Sequence[Node], ctx: dict[str, Any], buf: list[str]) -> None:
        dispatch = self._dispatch
        for node in nodes:
            dispatch[type(node)](node, ctx, buf)

    # -- node handlers -------------------------------------------------------

    def _render_text(self, node: Text, ctx: dict[str, Any], buf: list[str]) -> None:
        buf.append(node.value)

    def _render_each(self, node: Each, ctx: dict[str, Any], buf: list[str]) -> None:
        items = resolve_path(ctx, node.path)
        if not is_sequence(items):
            return
        for item_ctx in LoopContext(items, ctx):
            self._render_nodes(node.body, item_ctx, buf)

    def _render_partial(self, node: Partial, ctx: dict[str, Any], buf: list[str]) -> None:
        buf.append(self._env.render_partial(node.name, ctx))

    def _render_if(self, node: If, ctx: dict[str, Any], buf: list[str]) -> None:
        branch = node.body if evaluate_condition(node.test, ctx) else node.else_
        self._render_nodes(branch, ctx, buf)

    def _render_block(self, node: BlockRegion, ctx: dict[str, Any], buf: list[str]) -> None:
        self._render_nodes(node.body, ctx, buf)

    def _render_raw(self, node: Raw, ctx: dict[str, Any], buf: list[str]) -> None:
        buf.append(to_text(resolve_path(ctx, node.path)))

    def _render_output(self, node: Output, ctx: dict[str, Any], buf: list[str]) -> None:
        value = resolve_path(ctx, node.path)
        buf.append(self._finish(value, node.filters, ctx))

    def _render_helper(self, node: HelperCall, ctx: dict[str, Any], buf: list[str]) -> None:
        helper = self._env.helpers.get(node.name)
        if helper is None:
            logger.warning(f"{ErrorCode.HELPER_NOT_FOUND.value}: helper {node.name!r} not found")
            buf.append(diagnostic(f'Helper "{node.name}" not found'))
            return

        args = [resolve_arg(arg, ctx) for arg in node.args]
        try:
            value = helper(*args)
        except Exception as exc:
            logger.error(f"{ErrorCode.HELPER_ERROR.value}: error in helper {node.name!r}: {exc}")
            buf.append(diagnostic(f'Error in helper "{node.name}"'))
            return
        buf.append(self._finish(value, node.filters, ctx))

    # -- filter pipeline -----------------------------------------------------

    def _finish(self, value: Any, filters: Sequence[FilterCall], ctx: dict[str, Any]) -> str:
        if filters:
            value = self._apply_filters(value, filters, ctx)
            if isinstance(value, _Diagnostic):
                return str(value)
        return html_escape(value)

    def _apply_filters(self, value: Any, filters: Sequence[FilterCall], ctx: dict[str, Any]) -> Any:
        registry = self._env.filters
        for stage in filters:
            func = registry.get(stage.name)
            if func is None:
                logger.warning(f"{ErrorCode.FILTER_NOT_FOUND.value}: filter {stage.name!r} not found")
                return _Diagnostic(diagnostic(f'Filter "{stage.name}" not found'))
            args = [resolve_arg(arg, ctx) for arg in stage.args]
            try:
                value = func(value, *args)
            except Exception as exc:
                logger.error(f"{ErrorCode.FILTER_ERROR.value}: error in filter {stage.name!r}: {exc}")
                return _Diagnostic(diagnostic(f'Error in filter "{stage.name}"'))
        return value

    def __repr__(self) -> str:
        return f"<Template {self._name or '<string>'!r}>"
