"""Compiled-template cache with optional LRU bound.

Stores ``Template`` objects under a ``CacheKey`` so that a repeated render
of the same template skips inheritance resolution and compilation.

Keys:
- ``CacheKey(name, "inheritance")`` for top-level renders (resolved body)
- ``CacheKey(name, "partial")`` for partial bodies

The environment clears the whole cache whenever its source store changes.

"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, NamedTuple

if TYPE_CHECKING:
    from blockwork.template import Template

logger = logging.getLogger(__name__)

CacheKind = Literal["inheritance", "partial"]


class CacheKey(NamedTuple):
    """Identity of a compiled template in the cache."""

    name: str
    kind: CacheKind = "inheritance"


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of cache counters."""

    hits: int
    misses: int
    size: int
    maxsize: int | None

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class RenderCache:
    """Key → compiled Template mapping.

    Args:
        maxsize: Maximum number of entries, least recently used evicted
            first. ``None`` means unbounded.

    Example:
            >>> cache = RenderCache(maxsize=2)
            >>> cache.put(CacheKey("page"), template)
            >>> cache.get(CacheKey("page")) is template
            True

    """

    __slots__ = ("_entries", "_hits", "_maxsize", "_misses")

    def __init__(self, maxsize: int | None = None):
        if maxsize is not None and maxsize < 1:
            raise ValueError(f"maxsize must be positive or None, got {maxsize}")
        self._entries: OrderedDict[CacheKey, Template] = OrderedDict()
        self._maxsize = maxsize
        self._hits = 0
        self._misses = 0

    def get(self, key: CacheKey) -> Template | None:
        template = self._entries.get(key)
        if template is None:
            self._misses += 1
            logger.debug(f"Cache miss for {key.kind} template {key.name!r}")
            return None
        self._hits += 1
        self._entries.move_to_end(key)
        logger.debug(f"Cache hit for {key.kind} template {key.name!r}")
        return template

    def put(self, key: CacheKey, template: Template) -> None:
        self._entries[key] = template
        self._entries.move_to_end(key)
        if self._maxsize is not None:
            while len(self._entries) > self._maxsize:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted {evicted.kind} template {evicted.name!r}")

    def discard(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every compiled template (counters are kept)."""
        self._entries.clear()

    def reset_stats(self) -> None:
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            size=len(self._entries),
            maxsize=self._maxsize,
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
