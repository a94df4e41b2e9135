"""Single-flight loading of template sources.

The ``LoadCoordinator`` fetches every template source from a provider
exactly once, however many callers ask for it concurrently, and commits
the results to a ``SourceStore`` in one step.

State Machine:
    ```
    UNLOADED ──ensure_loaded()──▶ LOADING ──▶ LOADED    (≥ 1 source obtained)
        ▲                            │
        └────────────────────────────┘                  (nothing obtained)
    ```

Concurrency:
The first caller starts one ``asyncio.Task``; every caller (including the
first) awaits it through ``asyncio.shield`` so a cancelled waiter never
cancels the shared load. All waiters receive the same ``LoadResult``.

``clear_cache()`` bumps a generation counter. A load that was started under
an older generation finishes normally for its waiters but does not commit.

"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from blockwork.cache.store import SourceStore
from blockwork.environment.exceptions import ErrorCode, TemplateLoadError
from blockwork.environment.loaders import template_name_for

logger = logging.getLogger(__name__)


@runtime_checkable
class TemplateProvider(Protocol):
    """Anything that can fetch a template source by file name."""

    async def fetch_one(self, name: str) -> str: ...


class LoadState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


@dataclass(frozen=True, slots=True)
class LoadFailure:
    """A source the provider could not deliver."""

    name: str
    error: str


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of one load attempt.

    Attributes:
        loaded: Template names committed to the store
        failed: Per-source failures (file names as asked of the provider)
    """

    loaded: tuple[str, ...] = ()
    failed: tuple[LoadFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return bool(self.loaded)


class LoadCoordinator:
    """Loads all template sources once and commits them to a store.

    Args:
        provider: Source provider (see ``blockwork.environment.loaders``)
        store: Store to commit into; a fresh one is created if omitted
        names: File names to fetch. Defaults to ``provider.list_templates()``
        aliases: File name → template name overrides for
            ``template_name_for``

    Example:
            >>> coordinator = LoadCoordinator(DictLoader({"page.html": "<p>hi</p>"}))
            >>> result = await coordinator.ensure_loaded()
            >>> result.loaded
            ('page',)
            >>> coordinator.store.get("page")
            '<p>hi</p>'

    """

    def __init__(
        self,
        provider: TemplateProvider,
        store: SourceStore | None = None,
        names: Iterable[str] | None = None,
        aliases: Mapping[str, str] | None = None,
    ):
        self.provider = provider
        self.store = store if store is not None else SourceStore()
        self._names = list(names) if names is not None else None
        self._aliases = dict(aliases or {})
        self._state = LoadState.UNLOADED
        self._load_attempted = False
        self._task: asyncio.Task[LoadResult] | None = None
        self._result: LoadResult | None = None
        self._generation = 0

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_loaded(self) -> bool:
        return self._state is LoadState.LOADED

    @property
    def load_attempted(self) -> bool:
        return self._load_attempted

    @property
    def in_flight(self) -> bool:
        return self._task is not None

    @property
    def last_result(self) -> LoadResult | None:
        return self._result

    async def ensure_loaded(self) -> LoadResult:
        """Load every source once; concurrent callers share one load.

        Returns immediately once loaded. Raises ``TemplateLoadError`` if the
        provider cannot list its templates.
        """
        if self._state is LoadState.LOADED and self._result is not None:
            return self._result

        if self._task is None:
            self._state = LoadState.LOADING
            self._load_attempted = True
            self._task = asyncio.create_task(self._load(self._generation))
        else:
            logger.debug("Template load already in flight, waiting")

        return await asyncio.shield(self._task)

    def clear_cache(self) -> None:
        """Forget everything loaded; an in-flight load will not commit."""
        self._generation += 1
        self._task = None
        self._result = None
        self._state = LoadState.UNLOADED
        self._load_attempted = False
        self.store.clear()
        logger.debug("Template load state cleared")

    def map_name(self, filename: str) -> str:
        return template_name_for(filename, self._aliases)

    async def _discover(self) -> list[str]:
        if self._names is not None:
            return list(self._names)
        list_templates = getattr(self.provider, "list_templates", None)
        if list_templates is None:
            raise TemplateLoadError(
                f"{type(self.provider).__name__} cannot list templates; pass names= explicitly"
            )
        try:
            names = list_templates()
            if inspect.isawaitable(names):
                names = await names
        except Exception as exc:
            raise TemplateLoadError(f"Could not list templates: {exc}") from exc
        return list(names)

    async def _fetch(self, filename: str) -> tuple[str, str | None, LoadFailure | None]:
        try:
            body = await self.provider.fetch_one(filename)
        except Exception as exc:
            logger.warning(f"{ErrorCode.LOAD_FAILURE.value}: failed to load {filename!r}: {exc}")
            return filename, None, LoadFailure(filename, str(exc))
        return filename, body, None

    async def _load(self, generation: int) -> LoadResult:
        try:
            filenames = await self._discover()
            fetched = await asyncio.gather(*(self._fetch(name) for name in filenames))

            sources: dict[str, str] = {}
            failures: list[LoadFailure] = []
            for filename, body, failure in fetched:
                if failure is not None:
                    failures.append(failure)
                elif body is not None:
                    sources[self.map_name(filename)] = body
            result = LoadResult(loaded=tuple(sources), failed=tuple(failures))

            if generation != self._generation:
                logger.debug("Discarding template load started before cache clear")
                return result

            self.store.update(sources)
            self._result = result
            self._state = LoadState.LOADED if result.ok else LoadState.UNLOADED
            logger.info(
                f"Loaded {len(result.loaded)} templates ({len(result.failed)} failed)"
            )
            return result
        except BaseException:
            if generation == self._generation:
                self._state = LoadState.UNLOADED
            raise
        finally:
            if generation == self._generation:
                self._task = None
