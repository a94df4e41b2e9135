"""Tests for single-flight loading through the LoadCoordinator."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

import pytest

from blockwork import (
    DictLoader,
    Environment,
    LoadCoordinator,
    LoadState,
    SourceStore,
    TemplateLoadError,
    TemplateNotFoundError,
)


class CountingProvider:
    """Provider that records every fetch and can be held open or made to fail."""

    def __init__(self, sources: dict[str, str], fail: set[str] | None = None):
        self.sources = dict(sources)
        self.fail = set(fail or ())
        self.calls: Counter[str] = Counter()
        self.gate: asyncio.Event | None = None

    async def fetch_one(self, name: str) -> str:
        self.calls[name] += 1
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if name in self.fail:
            raise OSError(f"cannot read {name}")
        if name not in self.sources:
            raise TemplateNotFoundError(f"Template '{name}' not found")
        return self.sources[name]

    def list_templates(self) -> list[str]:
        return sorted(self.sources)


SOURCES = {
    "base.html": '<main>{{#block "content"}}{{/block}}</main>',
    "page.html": '{{#extend "base"}}{{#block "content"}}Hi {{name}}{{/block}}',
    "partials/card.hbs": "<b>{{title}}</b>",
}


class TestSingleFlight:
    """Concurrent callers share one load."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_fetch_once(self) -> None:
        provider = CountingProvider(SOURCES)
        coordinator = LoadCoordinator(provider)

        results = await asyncio.gather(*(coordinator.ensure_loaded() for _ in range(10)))

        assert all(result is results[0] for result in results)
        assert set(provider.calls.values()) == {1}
        assert sorted(results[0].loaded) == ["base", "page", "partials/card"]
        assert coordinator.is_loaded
        assert coordinator.state is LoadState.LOADED
        assert not coordinator.in_flight

    @pytest.mark.asyncio
    async def test_loaded_state_short_circuits(self) -> None:
        provider = CountingProvider(SOURCES)
        coordinator = LoadCoordinator(provider)
        first = await coordinator.ensure_loaded()
        second = await coordinator.ensure_loaded()
        assert second is first
        assert sum(provider.calls.values()) == len(SOURCES)

    @pytest.mark.asyncio
    async def test_in_flight_flag_during_load(self) -> None:
        provider = CountingProvider(SOURCES)
        provider.gate = asyncio.Event()
        coordinator = LoadCoordinator(provider)

        waiter = asyncio.create_task(coordinator.ensure_loaded())
        await asyncio.sleep(0)
        assert coordinator.in_flight
        assert coordinator.state is LoadState.LOADING
        assert coordinator.load_attempted

        provider.gate.set()
        await waiter
        assert not coordinator.in_flight

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_load(self) -> None:
        provider = CountingProvider(SOURCES)
        provider.gate = asyncio.Event()
        coordinator = LoadCoordinator(provider)

        waiter = asyncio.create_task(coordinator.ensure_loaded())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        provider.gate.set()
        result = await coordinator.ensure_loaded()
        assert len(result.loaded) == 3
        assert set(provider.calls.values()) == {1}


class TestCommit:
    """Results are committed to the store in one step."""

    @pytest.mark.asyncio
    async def test_sources_committed_under_template_names(self) -> None:
        store = SourceStore()
        coordinator = LoadCoordinator(CountingProvider(SOURCES), store)
        await coordinator.ensure_loaded()
        assert store.names() == ["base", "page", "partials/card"]
        assert store.get("partials/card") == "<b>{{title}}</b>"

    @pytest.mark.asyncio
    async def test_one_store_notification_per_load(self) -> None:
        store = SourceStore()
        notifications: list[int] = []
        store.subscribe(lambda: notifications.append(store.version))
        await LoadCoordinator(CountingProvider(SOURCES), store).ensure_loaded()
        assert notifications == [1]

    @pytest.mark.asyncio
    async def test_aliases_and_explicit_names(self) -> None:
        provider = CountingProvider({"table-of-contents.html": "<ol></ol>", "x.html": "x"})
        coordinator = LoadCoordinator(
            provider,
            names=["table-of-contents.html"],
            aliases={"table-of-contents.html": "toc"},
        )
        result = await coordinator.ensure_loaded()
        assert result.loaded == ("toc",)
        assert "x.html" not in provider.calls


class TestFailures:
    """Per-source failures and retry after a failed load."""

    @pytest.mark.asyncio
    async def test_partial_failure_is_recorded(self) -> None:
        provider = CountingProvider(SOURCES, fail={"page.html"})
        coordinator = LoadCoordinator(provider)
        result = await coordinator.ensure_loaded()
        assert sorted(result.loaded) == ["base", "partials/card"]
        assert [failure.name for failure in result.failed] == ["page.html"]
        assert "cannot read page.html" in result.failed[0].error
        assert coordinator.is_loaded

    @pytest.mark.asyncio
    async def test_total_failure_allows_retry(self) -> None:
        provider = CountingProvider({"a.html": "A"}, fail={"a.html"})
        coordinator = LoadCoordinator(provider)

        result = await coordinator.ensure_loaded()
        assert result.loaded == ()
        assert coordinator.state is LoadState.UNLOADED
        assert coordinator.load_attempted

        provider.fail.clear()
        result = await coordinator.ensure_loaded()
        assert result.loaded == ("a",)
        assert provider.calls["a.html"] == 2

    @pytest.mark.asyncio
    async def test_listing_failure_raises_load_error(self) -> None:
        class BrokenListing(CountingProvider):
            def list_templates(self) -> list[str]:
                raise OSError("index unavailable")

        coordinator = LoadCoordinator(BrokenListing({}))
        with pytest.raises(TemplateLoadError, match="index unavailable"):
            await coordinator.ensure_loaded()
        assert coordinator.state is LoadState.UNLOADED
        assert not coordinator.in_flight


class TestClearCache:
    """Clearing while loaded or in flight."""

    @pytest.mark.asyncio
    async def test_clear_after_load_reloads(self) -> None:
        provider = CountingProvider(SOURCES)
        coordinator = LoadCoordinator(provider)
        await coordinator.ensure_loaded()
        coordinator.clear_cache()
        assert len(coordinator.store) == 0
        assert not coordinator.load_attempted

        await coordinator.ensure_loaded()
        assert set(provider.calls.values()) == {2}

    @pytest.mark.asyncio
    async def test_in_flight_load_does_not_commit_after_clear(self) -> None:
        provider = CountingProvider(SOURCES)
        provider.gate = asyncio.Event()
        coordinator = LoadCoordinator(provider)

        waiter = asyncio.create_task(coordinator.ensure_loaded())
        await asyncio.sleep(0)
        coordinator.clear_cache()
        provider.gate.set()
        result = await waiter

        assert len(result.loaded) == 3
        assert len(coordinator.store) == 0
        assert coordinator.state is LoadState.UNLOADED
        assert not coordinator.is_loaded


class TestEnvironmentLoading:
    """Environment integration with a loader."""

    @pytest.mark.asyncio
    async def test_render_async_loads_first(self, env_with_loader: Environment) -> None:
        result = await env_with_loader.render_async("child", {"name": "Ada"})
        assert result == "<html><head><title>Site</title></head><body>Hello Ada</body></html>"

    @pytest.mark.asyncio
    async def test_render_before_load_degrades(self, env_with_loader: Environment) -> None:
        assert env_with_loader.render("child") == '<!-- Template "child" not found -->'
        await env_with_loader.ensure_loaded()
        assert env_with_loader.render("card", title="T") == '<div class="card">T</div>'

    @pytest.mark.asyncio
    async def test_loader_state_in_report(self, env_with_loader: Environment) -> None:
        assert env_with_loader.performance_report().loader_state == "unloaded"
        await env_with_loader.ensure_loaded()
        assert env_with_loader.performance_report().loader_state == "loaded"

    @pytest.mark.asyncio
    async def test_clear_all_caches_resets_loader(self) -> None:
        env = Environment(loader=DictLoader({"t.html": "T"}))
        await env.ensure_loaded()
        env.clear_all_caches()
        assert env.render("t") == '<!-- Template "t" not found -->'
        assert await env.render_async("t") == "T"

    @pytest.mark.asyncio
    async def test_ensure_loaded_without_loader(self) -> None:
        env = Environment(templates={"a": "A"})
        result = await env.ensure_loaded()
        assert result.loaded == ("a",)

    @pytest.mark.asyncio
    async def test_render_async_survives_listing_failure(self, caplog) -> None:
        class BrokenListing(CountingProvider):
            def list_templates(self) -> list[str]:
                raise OSError("index down")

        env = Environment(loader=BrokenListing({}), templates={"inline": "<p>{{x}}</p>"})
        with caplog.at_level(logging.ERROR):
            assert await env.render_async("inline", x=1) == "<p>1</p>"
            assert await env.render_async("x") == '<!-- Template "x" not found -->'
        assert "BW-LOD-001" in caplog.text
        assert "index down" in caplog.text
