"""Source storage, compiled-template caching and single-flight loading."""

from blockwork.cache.coordinator import (
    LoadCoordinator,
    LoadFailure,
    LoadResult,
    LoadState,
    TemplateProvider,
)
from blockwork.cache.render_cache import CacheKey, CacheStats, RenderCache
from blockwork.cache.store import SourceStore, TemplateSource

__all__ = [
    "CacheKey",
    "CacheStats",
    "LoadCoordinator",
    "LoadFailure",
    "LoadResult",
    "LoadState",
    "RenderCache",
    "SourceStore",
    "TemplateProvider",
    "TemplateSource",
]
