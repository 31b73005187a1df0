"""Inline Markdown formatting of text-bearing subtrees."""

from __future__ import annotations

import logging
from typing import Optional, Set
from urllib.parse import urljoin

from .nodes import DocumentNode, ElementNode, TextNode
from .options import MarkerConfig
from .style import AttributeStyleProbe, StyleInfo, StyleProbe

LOGGER = logging.getLogger(__name__)

BOLD = "**"
ITALIC = "_"
STRIKETHROUGH = "~~"
INLINE_CODE = "`"

BOLD_TAGS = frozenset({"b", "strong"})
ITALIC_TAGS = frozenset({"i", "em"})
STRIKE_TAGS = frozenset({"s", "strike", "del"})
CODE_TAGS = frozenset({"code"})

# Deeper inline nesting than this is flattened to plain text.
MAX_INLINE_DEPTH = 100

_UNRESOLVABLE_SCHEMES = ("javascript:", "data:")


def wrap(content: str, marker: str) -> str:
    """Wrap the non-blank core of ``content`` in ``marker``.

    Surrounding whitespace stays outside the markers. Content that is blank,
    or already starts and ends with ``marker``, is returned unchanged.
    """
    core = content.strip()
    if not core:
        return content
    if len(core) >= 2 * len(marker) and core.startswith(marker) and core.endswith(marker):
        return content
    lead = content[: len(content) - len(content.lstrip())]
    trail = content[len(content.rstrip()) :]
    return f"{lead}{marker}{core}{marker}{trail}"


def link(content: str, target: str) -> str:
    core = content.strip()
    if not core:
        return content
    lead = content[: len(content) - len(content.lstrip())]
    trail = content[len(content.rstrip()) :]
    return f"{lead}[{core}]({target}){trail}"


class InlineFormatter:
    """Turn an inline-context subtree into a Markdown string."""

    def __init__(
        self,
        markers: Optional[MarkerConfig] = None,
        style_probe: Optional[StyleProbe] = None,
        base_url: Optional[str] = None,
    ) -> None:
        self.markers = markers or MarkerConfig()
        self.style_probe = style_probe if style_probe is not None else AttributeStyleProbe()
        self.base_url = base_url

    def format(self, node: Optional[DocumentNode]) -> str:
        if node is None:
            return ""
        return self._format(node, 0, set())

    def _format(self, node: DocumentNode, depth: int, seen: Set[int]) -> str:
        if isinstance(node, TextNode):
            return node.text
        if id(node) in seen:
            return ""
        if node.has_class(self.markers.discussion):
            return ""
        if depth >= MAX_INLINE_DEPTH:
            LOGGER.debug("Inline nesting limit reached at <%s>", node.tag)
            return node.text_content()
        seen.add(id(node))

        content = "".join(self._format(child, depth + 1, seen) for child in node.children)
        if not content.strip():
            return content
        return self._apply(node, content)

    def _apply(self, node: ElementNode, content: str) -> str:
        style = self._probe(node)
        tag = node.tag

        if tag in BOLD_TAGS or (style is not None and style.is_bold):
            content = wrap(content, BOLD)
        if tag in ITALIC_TAGS or (style is not None and style.is_italic):
            content = wrap(content, ITALIC)
        if tag in STRIKE_TAGS or (style is not None and style.is_strikethrough):
            content = wrap(content, STRIKETHROUGH)
        if (
            tag in CODE_TAGS
            or (style is not None and style.is_monospace)
            or node.has_class(self.markers.inline_code)
        ):
            content = wrap(content, INLINE_CODE)
        if tag == "a":
            target = self.resolve_link(node)
            if target:
                content = link(content, target)
        return content

    def _probe(self, node: ElementNode) -> Optional[StyleInfo]:
        try:
            return self.style_probe.probe(node)
        except Exception as exc:
            LOGGER.debug("Style probe failed for <%s>: %s", node.tag, exc)
            return None

    def resolve_link(self, node: ElementNode) -> Optional[str]:
        href = node.href
        if not href or href.lower().startswith(_UNRESOLVABLE_SCHEMES):
            return None
        if self.base_url:
            return urljoin(self.base_url, href)
        return href
