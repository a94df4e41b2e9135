"""Per-render state isolated from the user's data context.

Holds the template being rendered and the partial-inclusion stack in a
ContextVar, so recursion limits and diagnostics never need private keys
injected into the caller's data.

"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field

from blockwork.environment.exceptions import ErrorCode

DEFAULT_MAX_PARTIAL_DEPTH = 50


@dataclass
class RenderState:
    """State for one top-level render call.

    Attributes:
        template_name: Template being rendered (for log messages)
        partial_stack: Names of partials currently being rendered, outermost
            first
        max_partial_depth: Nesting limit for partial inclusion; 50 is deep
            enough for real templates while stopping self-including partials
    """

    template_name: str | None = None
    partial_stack: list[str] = field(default_factory=list)
    max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH

    @property
    def partial_depth(self) -> int:
        return len(self.partial_stack)

    def depth_exceeded_message(self, partial_name: str) -> str | None:
        """Message describing a blown partial limit, or None if within limits."""
        if self.partial_depth < self.max_partial_depth:
            return None
        chain = " -> ".join([*self.partial_stack[-3:], partial_name])
        return (
            f"{ErrorCode.PARTIAL_DEPTH.value}: partial {partial_name!r} exceeded "
            f"maximum depth ({self.max_partial_depth}) via {chain}"
        )

    @contextmanager
    def entering(self, partial_name: str) -> Iterator[None]:
        self.partial_stack.append(partial_name)
        try:
            yield
        finally:
            self.partial_stack.pop()


_render_state: ContextVar[RenderState | None] = ContextVar("blockwork_render_state", default=None)


def get_render_state() -> RenderState | None:
    """Current render state, or None outside of a render."""
    return _render_state.get()


@contextmanager
def render_state(
    template_name: str | None = None,
    max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH,
) -> Iterator[RenderState]:
    """Reuse the active render state, or install a fresh one for this render.

    Nested renders (partials) keep the outer state so depth accumulates.

    Example:
        with render_state("page") as state:
            html = template.render(data)
    """
    current = _render_state.get()
    if current is not None:
        yield current
        return

    state = RenderState(template_name=template_name, max_partial_depth=max_partial_depth)
    token = _render_state.set(state)
    try:
        yield state
    finally:
        _render_state.reset(token)
