"""Tests for inheritance chain walking and block substitution."""

from __future__ import annotations

import logging

import pytest

from blockwork import CircularInheritanceError, SourceStore, TemplateNotFoundError
from blockwork.inheritance import InheritanceResolver, substitute_blocks

BASE = '[{{#block "a"}}A0{{/block}}|{{#block "b"}}B0{{/block}}]'


def resolver_for(**sources: str) -> InheritanceResolver:
    return InheritanceResolver(SourceStore(sources))


class TestChain:
    """Walking extend links."""

    def test_chain_is_base_first(self) -> None:
        resolver = resolver_for(
            base=BASE,
            mid='{{#extend "base"}}',
            leaf='{{#extend "mid"}}',
        )
        assert [link.template_name for link in resolver.chain("leaf")] == ["base", "mid", "leaf"]

    def test_cycle_raises_with_path(self) -> None:
        resolver = resolver_for(a='{{#extend "b"}}', b='{{#extend "a"}}')
        with pytest.raises(CircularInheritanceError) as exc_info:
            resolver.chain("a")
        assert exc_info.value.chain == ("a", "b", "a")
        assert "a -> b -> a" in str(exc_info.value)

    def test_self_extend_is_a_cycle(self) -> None:
        resolver = resolver_for(me='{{#extend "me"}}')
        with pytest.raises(CircularInheritanceError):
            resolver.chain("me")

    def test_missing_ancestor_raises(self) -> None:
        resolver = resolver_for(leaf='{{#extend "ghost"}}')
        with pytest.raises(TemplateNotFoundError):
            resolver.chain("leaf")


class TestResolve:
    """Full resolution of a template name."""

    def test_single_level_override(self) -> None:
        resolver = resolver_for(
            base='<main>{{#block "content"}}Default{{/block}}</main>',
            page='{{#extend "base"}}{{#block "content"}}Hi {{name}}{{/block}}',
        )
        resolution = resolver.resolve("page")
        assert resolution.body == "<main>Hi {{name}}</main>"
        assert resolution.chain == ("base", "page")
        assert resolution.found
        assert not resolution.degraded

    def test_most_derived_definition_wins(self) -> None:
        resolver = resolver_for(
            base=BASE,
            mid='{{#extend "base"}}{{#block "a"}}A1{{/block}}{{#block "b"}}B1{{/block}}',
            leaf='{{#extend "mid"}}{{#block "b"}}B2{{/block}}',
        )
        assert resolver.resolve("leaf").body == "[A1|B2]"

    def test_replacement_content_is_stripped(self) -> None:
        resolver = resolver_for(
            base=BASE,
            leaf='{{#extend "base"}}{{#block "a"}}\n   spaced   \n{{/block}}',
        )
        assert resolver.resolve("leaf").body == "[spaced|B0]"

    def test_nested_blocks_override_inner_only(self) -> None:
        resolver = resolver_for(
            base=(
                '<body>{{#block "layout"}}<nav>{{#block "nav"}}N{{/block}}</nav>'
                '<main>{{#block "main"}}M{{/block}}</main>{{/block}}</body>'
            ),
            child='{{#extend "base"}}{{#block "main"}}Child{{/block}}',
        )
        assert resolver.resolve("child").body == "<body><nav>N</nav><main>Child</main></body>"

    def test_mid_level_block_introduces_new_block(self) -> None:
        resolver = resolver_for(
            base=BASE,
            mid='{{#extend "base"}}{{#block "a"}}<x>{{#block "inner"}}I1{{/block}}</x>{{/block}}',
            leaf='{{#extend "mid"}}{{#block "inner"}}I2{{/block}}',
        )
        assert resolver.resolve("leaf").body == "[<x>I2</x>|B0]"

    def test_orphaned_mid_chain_block_is_dropped(self) -> None:
        resolver = resolver_for(
            base='<p>{{#block "a"}}A{{/block}}</p>',
            mid='{{#extend "base"}}{{#block "extra"}}E{{/block}}',
            leaf='{{#extend "mid"}}',
        )
        body = resolver.resolve("leaf").body
        assert body == "<p>A</p>"
        assert "E" not in body

    def test_base_template_markers_are_stripped(self) -> None:
        resolver = resolver_for(base=BASE)
        assert resolver.resolve("base").body == "[A0|B0]"

    def test_missing_template(self, caplog) -> None:
        with caplog.at_level(logging.ERROR):
            resolution = resolver_for().resolve("nope")
        assert not resolution.found
        assert resolution.body == ""
        assert "nope" in caplog.text

    def test_cycle_falls_back_to_leaf_body(self, caplog) -> None:
        resolver = resolver_for(
            a='{{#extend "b"}}{{#block "x"}}A{{/block}}',
            b='{{#extend "a"}}{{#block "x"}}B{{/block}}',
        )
        with caplog.at_level(logging.WARNING):
            resolution = resolver.resolve("a")
        assert resolution.body == "A"
        assert resolution.degraded
        assert "Circular inheritance detected" in caplog.text

    def test_missing_ancestor_falls_back_to_leaf_body(self, caplog) -> None:
        resolver = resolver_for(leaf='{{#extend "ghost"}}{{#block "x"}}L{{/block}}')
        with caplog.at_level(logging.ERROR):
            resolution = resolver.resolve("leaf")
        assert resolution.body == "L"
        assert resolution.degraded
        assert "ghost" in caplog.text

    def test_resolution_is_repeatable(self) -> None:
        resolver = resolver_for(base=BASE, leaf='{{#extend "base"}}{{#block "a"}}Z{{/block}}')
        assert resolver.resolve("leaf") == resolver.resolve("leaf")

    def test_unterminated_block_logged_once_per_resolve(self, caplog) -> None:
        resolver = resolver_for(
            base=BASE,
            leaf='{{#extend "base"}}{{#block "a"}}Z{{/block}}{{#block "b"}}open',
        )
        with caplog.at_level(logging.ERROR):
            assert resolver.resolve("leaf").body == "[Z|B0]"
        malformed = [r for r in caplog.records if "BW-INH-001" in r.getMessage()]
        assert len(malformed) == 1


class TestSubstituteBlocks:
    """The bounded substitution loop."""

    def test_unknown_regions_reduced_to_content(self) -> None:
        assert substitute_blocks('<p>{{#block "x"}} X {{/block}}</p>', {}) == "<p>X</p>"

    def test_unknown_region_kept_while_named_replacements_happen(self) -> None:
        result = substitute_blocks(
            '{{#block "known"}}k{{/block}}{{#block "other"}}o{{/block}}',
            {"known": "K"},
        )
        assert result == "Ko"

    def test_pass_limit_returns_best_effort(self, caplog) -> None:
        base = '{{#block "a"}}x{{/block}}'
        growing = {"a": '+{{#block "a"}}{{/block}}'}
        with caplog.at_level(logging.WARNING):
            result = substitute_blocks(base, growing, max_passes=3)
        assert result == '+++{{#block "a"}}{{/block}}'
        assert "BW-INH-003" in caplog.text

    def test_extend_markers_removed(self) -> None:
        assert substitute_blocks('{{#extend "x"}}plain{{/extend}}', {}) == "plain"
