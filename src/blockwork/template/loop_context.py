"""Loop iteration metadata for blockwork ``{{#each}}`` blocks."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any


class LoopContext:
    """Iteration state for one ``{{#each}}`` loop.

    Builds the per-item render context: the enclosing context, the item's
    own fields (for mapping items), ``this`` bound to the item, and the
    implicit ``@index``/``@first``/``@last`` fields.

    Example:
            ```handlebars
            <ul>
            {{#each fruits}}
                <li>{{@index}}: {{this}}{{#if @last}} (last){{/if}}</li>
            {{/each}}
            </ul>
            ```

    Output:
            ```html
            <ul>
                <li>0: Apple</li>
                <li>1: Banana</li>
                <li>2: Cherry (last)</li>
            </ul>
            ```

    """

    __slots__ = ("_index", "_items", "_length", "_parent")

    def __init__(self, items: Sequence[Any], parent: Mapping[str, Any]) -> None:
        self._items = items
        self._length = len(items)
        self._parent = parent
        self._index = 0

    def __iter__(self) -> Iterator[dict[str, Any]]:
        """Yield one render context per item."""
        for i, item in enumerate(self._items):
            self._index = i
            yield self.context_for(item)

    @property
    def index(self) -> int:
        """0-based iteration count."""
        return self._index

    @property
    def first(self) -> bool:
        return self._index == 0

    @property
    def last(self) -> bool:
        return self._index == self._length - 1

    @property
    def length(self) -> int:
        return self._length

    def context_for(self, item: Any) -> dict[str, Any]:
        ctx = dict(self._parent)
        if isinstance(item, Mapping):
            ctx.update(item)
        ctx["this"] = item
        ctx["@index"] = self.index
        ctx["@first"] = self.first
        ctx["@last"] = self.last
        return ctx

    def __repr__(self) -> str:
        return f"LoopContext(index={self._index}, length={self._length})"
