"""Helper and filter registry for the blockwork environment.

Provides a dict-like interface for registered functions.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any


class FunctionRegistry:
    """Dict-like name → callable mapping for helpers or filters.

    Supports:
        - env.filters['name'] = func
        - env.filters.update({'name': func})
        - func = env.filters['name']
        - 'name' in env.filters

    All mutations use copy-on-write, so a render that already looked up
    the current mapping never sees a half-applied ``update()``. Last
    registration for a name wins.
    """

    __slots__ = ("_funcs", "_kind")

    def __init__(self, kind: str, funcs: Mapping[str, Callable[..., Any]] | None = None):
        self._kind = kind
        self._funcs: dict[str, Callable[..., Any]] = dict(funcs or {})

    @property
    def kind(self) -> str:
        """``"helper"`` or ``"filter"`` (for messages)."""
        return self._kind

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._funcs[name]

    def __setitem__(self, name: str, func: Callable[..., Any]) -> None:
        if not callable(func):
            raise TypeError(f"{self._kind} {name!r} must be callable, got {type(func).__name__}")
        new = self._funcs.copy()
        new[name] = func
        self._funcs = new

    def __delitem__(self, name: str) -> None:
        new = self._funcs.copy()
        del new[name]
        self._funcs = new

    def __contains__(self, name: object) -> bool:
        return name in self._funcs

    def __iter__(self) -> Iterator[str]:
        return iter(self._funcs)

    def __len__(self) -> int:
        return len(self._funcs)

    def get(
        self, name: str, default: Callable[..., Any] | None = None
    ) -> Callable[..., Any] | None:
        return self._funcs.get(name, default)

    def update(self, mapping: Mapping[str, Callable[..., Any]]) -> None:
        """Batch registration."""
        for name, func in mapping.items():
            if not callable(func):
                raise TypeError(
                    f"{self._kind} {name!r} must be callable, got {type(func).__name__}"
                )
        new = self._funcs.copy()
        new.update(mapping)
        self._funcs = new

    def copy(self) -> dict[str, Callable[..., Any]]:
        """Return a copy of the underlying dict."""
        return self._funcs.copy()

    def keys(self):
        return self._funcs.keys()

    def values(self):
        return self._funcs.values()

    def items(self):
        return self._funcs.items()

    def __repr__(self) -> str:
        return f"<FunctionRegistry {self._kind}s={sorted(self._funcs)}>"
