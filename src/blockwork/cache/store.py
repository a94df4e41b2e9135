"""In-memory template source store.

Maps template names to raw template text. Written by the load coordinator
(and by inline registration), read by the resolver and by partial lookup
at render time. Readers must tolerate a store that is still being filled:
``get()`` returns None for names that have not arrived yet.

Change Notification:
Every mutation bumps ``version`` and calls the registered listeners once.
The environment subscribes its render cache so compiled templates never
outlive the sources they were compiled from.

"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TemplateSource:
    """Raw template text under its logical name."""

    name: str
    body: str


class SourceStore:
    """Name → TemplateSource mapping with change notification."""

    __slots__ = ("_listeners", "_sources", "_version")

    def __init__(self, sources: Mapping[str, str] | None = None):
        self._sources: dict[str, TemplateSource] = {}
        self._listeners: list[Callable[[], None]] = []
        self._version = 0
        if sources:
            self.update(sources)

    @property
    def version(self) -> int:
        """Monotonic counter bumped on every change."""
        return self._version

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` after every change to the store."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        self._version += 1
        for listener in self._listeners:
            listener()

    def get(self, name: str) -> str | None:
        source = self._sources.get(name)
        return source.body if source is not None else None

    def get_source(self, name: str) -> TemplateSource | None:
        return self._sources.get(name)

    def put(self, name: str, body: str) -> None:
        self._sources[name] = TemplateSource(name, body)
        self._changed()

    def update(self, sources: Mapping[str, str]) -> None:
        """Commit several sources at once (one change notification)."""
        if not sources:
            return
        for name, body in sources.items():
            self._sources[name] = TemplateSource(name, body)
        self._changed()

    def remove(self, name: str) -> bool:
        if self._sources.pop(name, None) is None:
            return False
        self._changed()
        return True

    def clear(self) -> None:
        self._sources.clear()
        self._changed()

    def names(self) -> list[str]:
        return sorted(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sources))
