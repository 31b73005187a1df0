"""Tests for notionmd.nodes."""

from __future__ import annotations

from notionmd.nodes import ElementNode, TextNode, parse_html


class TestParseHtml:
    def test_root_exposes_title(self):
        root = parse_html("<html><head><title> My Page </title></head><body></body></html>")
        assert root.tag == "#document"
        assert root.get("title") == "My Page"

    def test_classes_and_attributes(self):
        root = parse_html('<div class="a b" data-x="1" contenteditable="true">hi</div>')
        div = root.element_children[0]
        assert div.classes == frozenset({"a", "b"})
        assert div.get("data-x") == "1"
        assert div.get("contenteditable") == "true"
        assert div.get("class") is None

    def test_valueless_attribute_is_empty_string(self):
        root = parse_html('<input type="checkbox" checked>')
        checkbox = root.element_children[0]
        assert checkbox.get("checked") == ""

    def test_skips_scripts_styles_and_comments(self):
        root = parse_html(
            "<div>a<script>var x;</script><style>p{}</style><!-- note -->b</div>"
        )
        div = root.element_children[0]
        assert div.text_content() == "ab"
        assert [c.tag for c in div.element_children] == []

    def test_parent_links(self):
        root = parse_html("<div><span>x</span></div>")
        div = root.element_children[0]
        span = div.element_children[0]
        assert span.parent is div
        assert isinstance(span.children[0], TextNode)
        assert span.children[0].parent is span

    def test_deep_markup_does_not_hit_recursion_limit(self):
        depth = 2000
        html = "<div>" * depth + "deep" + "</div>" * depth
        root = parse_html(html)
        assert root.text_content() == "deep"

    def test_empty_input(self):
        root = parse_html("")
        assert root.children == []


def test_find_first_does_not_enter_skipped_nodes() -> None:
    root = parse_html('<div><section><b>inner</b></section><p><b>outer</b></p></div>')
    found = root.find_first(lambda n: n.tag == "b", skip=lambda n: n.tag == "section")
    assert found is not None
    assert found.text_content() == "outer"
    assert root.find_first(lambda n: n.tag == "section", skip=lambda n: n.tag == "section") is None


class TestElementNode:
    def test_tag_is_lowercased(self):
        assert ElementNode("DIV").tag == "div"

    def test_href_is_stripped(self):
        assert ElementNode("a", attributes={"href": "  /x  "}).href == "/x"
        assert ElementNode("a", attributes={"href": "   "}).href is None
        assert ElementNode("a").href is None

    def test_find_first_in_document_order(self):
        root = parse_html('<div><p id="1"><span id="2"></span></p><span id="3"></span></div>')
        span = root.find_first(lambda n: n.tag == "span")
        assert span is not None
        assert span.get("id") == "2"

    def test_find_all(self):
        root = parse_html("<ul><li>a</li><li>b</li></ul>")
        assert [n.text_content() for n in root.find_all(lambda n: n.tag == "li")] == ["a", "b"]

    def test_iteration_survives_cycles(self):
        parent = ElementNode("div")
        child = parent.append(ElementNode("span"))
        child.children.append(parent)
        assert [n.tag for n in parent.iter_descendants()] == ["span"]
        assert parent.text_content() == ""

    def test_contains(self):
        parent = ElementNode("div")
        child = parent.append(ElementNode("span"))
        text = child.append(TextNode("x"))
        other = ElementNode("p")
        assert parent.contains(parent)
        assert parent.contains(text)
        assert not child.contains(parent)
        assert not parent.contains(other)

    def test_contains_survives_parent_cycle(self):
        a = ElementNode("div")
        b = ElementNode("div")
        a.parent = b
        b.parent = a
        assert not ElementNode("p").contains(a)
