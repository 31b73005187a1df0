"""Tests for inline formatting."""

from __future__ import annotations

from typing import Optional

import pytest

from notionmd.inline import MAX_INLINE_DEPTH, InlineFormatter, link, wrap
from notionmd.nodes import ElementNode, TextNode, parse_html
from notionmd.style import NullStyleProbe, StyleInfo


def _format(html: str, formatter: Optional[InlineFormatter] = None) -> str:
    root = parse_html(html)
    return (formatter or InlineFormatter()).format(root.element_children[0])


class TestWrap:
    def test_whitespace_stays_outside(self):
        assert wrap("  bold ", "**") == "  **bold** "

    def test_blank_content_unchanged(self):
        assert wrap("   ", "**") == "   "
        assert wrap("", "_") == ""

    def test_already_wrapped_unchanged(self):
        assert wrap("**x**", "**") == "**x**"
        assert wrap(" _x_ ", "_") == " _x_ "

    def test_link_keeps_whitespace_outside(self):
        assert link(" site ", "https://e.com") == " [site](https://e.com) "


class TestTags:
    @pytest.mark.parametrize(
        "html, expected",
        [
            ("<span><b>bold</b> and <i>it</i></span>", "**bold** and _it_"),
            ("<strong>x</strong>", "**x**"),
            ("<em>x</em>", "_x_"),
            ("<del>x</del>", "~~x~~"),
            ("<s>x</s>", "~~x~~"),
            ("<code>x = 1</code>", "`x = 1`"),
            ('<span class="notion-inline-code">x</span>', "`x`"),
        ],
    )
    def test_markers(self, html, expected):
        assert _format(html) == expected

    def test_whitespace_outside_markers(self):
        assert _format("<span>a<b> bold </b>b</span>") == "a **bold** b"

    def test_nested_same_marker_is_idempotent(self):
        assert _format("<b><strong>x</strong></b>") == "**x**"

    def test_blank_element_adds_no_markers(self):
        assert _format("<span>a<b> </b>b</span>") == "a b"

    def test_plain_text_untouched(self):
        assert _format("<span>just text</span>") == "just text"


class TestStyles:
    def test_inline_style_bold(self):
        assert _format('<span style="font-weight: 600">w</span>') == "**w**"

    def test_computed_style_italic(self):
        assert _format('<span data-md-style="font-style: italic">w</span>') == "_w_"

    def test_strikethrough_decoration(self):
        assert _format('<span style="text-decoration: line-through">w</span>') == "~~w~~"

    def test_monospace_family(self):
        assert _format('<span style="font-family: Menlo, monospace">w</span>') == "`w`"

    def test_marker_order(self):
        html = '<span style="font-weight: 700; font-style: italic">x</span>'
        assert _format(html) == "_**x**_"

    def test_bold_tag_with_bold_style_wraps_once(self):
        assert _format('<b style="font-weight: 700">x</b>') == "**x**"

    def test_null_probe_ignores_style(self):
        formatter = InlineFormatter(style_probe=NullStyleProbe())
        assert _format('<span style="font-weight: 700">x</span>', formatter) == "x"

    def test_failing_probe_treated_as_no_style(self):
        class Boom:
            def probe(self, element: ElementNode) -> Optional[StyleInfo]:
                raise RuntimeError("detached")

        formatter = InlineFormatter(style_probe=Boom())
        assert _format("<span>a <b>b</b></span>", formatter) == "a **b**"


class TestLinks:
    def test_absolute_link(self):
        assert _format('<a href="https://e.com">site</a>') == "[site](https://e.com)"

    def test_formatted_link_text(self):
        assert _format('<a href="https://e.com"><b>x</b></a>') == "[**x**](https://e.com)"

    def test_relative_link_resolved_against_base(self):
        formatter = InlineFormatter(base_url="https://www.notion.so/ws/Page-1")
        assert (
            _format('<a href="/Other-2">x</a>', formatter)
            == "[x](https://www.notion.so/Other-2)"
        )

    def test_relative_link_without_base_kept(self):
        assert _format('<a href="/Other-2">x</a>') == "[x](/Other-2)"

    @pytest.mark.parametrize("href", ["", "   ", "javascript:void(0)", "data:text/plain,x"])
    def test_unusable_targets_render_plain_text(self, href):
        assert _format(f'<a href="{href}">x</a>') == "x"

    def test_anchor_without_href(self):
        assert _format("<a>x</a>") == "x"


def test_discussion_markers_dropped() -> None:
    html = '<span>text<span class="notion-margin-discussion-item">3 comments</span></span>'
    assert _format(html) == "text"


def test_format_none() -> None:
    assert InlineFormatter().format(None) == ""


def test_text_node_returns_raw_text() -> None:
    assert InlineFormatter().format(TextNode(" a ")) == " a "


def test_very_deep_nesting_flattens_to_text() -> None:
    root = ElementNode("span")
    current = root
    for _ in range(MAX_INLINE_DEPTH * 2):
        current = current.append(ElementNode("span"))
    current.append(TextNode("deep"))
    assert InlineFormatter().format(root) == "deep"


def test_cycle_in_inline_tree_terminates() -> None:
    root = ElementNode("span")
    bold = root.append(ElementNode("b"))
    bold.append(TextNode("x"))
    bold.children.append(root)
    assert InlineFormatter().format(root) == "**x**"
