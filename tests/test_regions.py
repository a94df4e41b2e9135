"""Tests for depth-aware directive pairing and block parsing."""

from __future__ import annotations

import logging

from blockwork.inheritance import parse_blocks, parse_parent, parse_template, strip_directives
from blockwork.utils.regions import BLOCK_CLOSE, BLOCK_OPEN, find_top_level, scan_regions


class TestScanRegions:
    """Pairing of open and close markers."""

    def test_nested_regions_pair_correctly(self) -> None:
        text = '{{#block "a"}}1{{#block "b"}}2{{/block}}3{{/block}}'
        result = scan_regions(text, BLOCK_OPEN, BLOCK_CLOSE)
        assert [(r.argument, r.depth, r.body) for r in result.regions] == [
            ("a", 0, '1{{#block "b"}}2{{/block}}3'),
            ("b", 1, "2"),
        ]
        assert result.unclosed == ()

    def test_siblings_are_both_top_level(self) -> None:
        text = '{{#block "a"}}A{{/block}}-{{#block "b"}}B{{/block}}'
        result = scan_regions(text, BLOCK_OPEN, BLOCK_CLOSE)
        assert [r.argument for r in result.top_level()] == ["a", "b"]

    def test_region_offsets_cover_markers(self) -> None:
        text = 'x{{#block "a"}}A{{/block}}y'
        (region,) = scan_regions(text, BLOCK_OPEN, BLOCK_CLOSE).regions
        assert text[region.start : region.end] == '{{#block "a"}}A{{/block}}'
        assert text[region.body_start : region.body_end] == "A"

    def test_stray_close_is_ignored(self) -> None:
        text = '{{/block}}x{{#block "a"}}y{{/block}}'
        result = scan_regions(text, BLOCK_OPEN, BLOCK_CLOSE)
        assert [r.body for r in result.regions] == ["y"]

    def test_unclosed_open_is_reported(self) -> None:
        result = scan_regions('{{#block "a"}}never closed', BLOCK_OPEN, BLOCK_CLOSE)
        assert result.regions == ()
        assert [(u.argument, u.start) for u in result.unclosed] == [("a", 0)]

    def test_find_top_level_skips_nested(self) -> None:
        text = '{{#block "a"}}needle{{/block}}needle'
        regions = scan_regions(text, BLOCK_OPEN, BLOCK_CLOSE).top_level()
        assert find_top_level(text, "needle", regions) == text.rindex("needle")
        assert find_top_level("nothing here", "needle", []) == -1


class TestParseBlocks:
    """Block extraction from a single template body."""

    def test_content_kept_verbatim(self) -> None:
        parsed = parse_blocks('{{#block "x"}} X {{/block}}')
        assert parsed.blocks["x"].content == " X "
        assert parsed.blocks["x"].depth == 0

    def test_nested_blocks_extracted_with_depth(self) -> None:
        parsed = parse_blocks('{{#block "outer"}}<{{#block "inner"}}i{{/block}}>{{/block}}')
        assert parsed.blocks["outer"].content == '<{{#block "inner"}}i{{/block}}>'
        assert parsed.blocks["inner"].content == "i"
        assert parsed.blocks["inner"].depth == 1

    def test_later_duplicate_wins(self) -> None:
        parsed = parse_blocks('{{#block "x"}}1{{/block}}{{#block "x"}}2{{/block}}')
        assert parsed.block_map() == {"x": "2"}

    def test_unterminated_block_is_dropped_and_logged(self, caplog) -> None:
        with caplog.at_level(logging.ERROR):
            parsed = parse_blocks('{{#block "ok"}}fine{{/block}}{{#block "x"}}broken', "page")
        assert "x" not in parsed.blocks
        assert parsed.blocks["ok"].content == "fine"
        assert parsed.errors[0].block_name == "x"
        assert parsed.errors[0].template_name == "page"
        assert "BW-INH-001" in caplog.text


class TestParseTemplate:
    """Inheritance link detection."""

    def test_first_extend_wins(self) -> None:
        assert parse_parent('{{#extend "a"}}{{#extend "b"}}') == "a"

    def test_no_extend_means_base(self) -> None:
        parsed = parse_template('{{#block "x"}}X{{/block}}')
        assert parsed.parent is None
        assert parsed.is_base

    def test_extend_anywhere_in_body(self) -> None:
        parsed = parse_template('{{#block "x"}}B{{/block}}\n{{#extend "layout"}}')
        assert parsed.parent == "layout"
        assert parsed.block_map() == {"x": "B"}


class TestStripDirectives:
    """Removing inheritance markers while keeping content."""

    def test_strips_extend_and_block_markers(self) -> None:
        body = (
            '{{#extend "base"}}<p>{{#block "x"}}  Hi {{#block "y"}} Y {{/block}}'
            "{{/block}}</p>{{/extend}}"
        )
        assert strip_directives(body) == "<p>Hi Y</p>"

    def test_plain_text_untouched(self) -> None:
        assert strip_directives("<p>{{name}}</p>") == "<p>{{name}}</p>"
