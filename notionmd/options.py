"""Converter options and the marker vocabulary."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from .nodes import ElementNode

LOGGER = logging.getLogger(__name__)

NO_CONTENT_SENTINEL = "Error: No content found"

DEFAULT_INDENT = "  "
DEFAULT_MAX_DEPTH = 32
DEFAULT_MAX_DESCENT = 200
DEFAULT_MAX_ROW_HOPS = 64


@dataclass(frozen=True)
class MarkerConfig:
    """Structural markers identifying blocks and regions in the page DOM.

    Defaults match the class names and attributes Notion renders; another
    block editor can be supported by supplying its own vocabulary.
    """

    selectable: str = "notion-selectable"
    header: str = "notion-header-block"
    sub_header: str = "notion-sub_header-block"
    sub_sub_header: str = "notion-sub_sub_header-block"
    text: str = "notion-text-block"
    bulleted_list: str = "notion-bulleted_list-block"
    numbered_list: str = "notion-numbered_list-block"
    to_do: str = "notion-to_do-block"
    toggle: str = "notion-toggle-block"
    quote: str = "notion-quote-block"
    callout: str = "notion-callout-block"
    code: str = "notion-code-block"
    divider: str = "notion-divider-block"
    inline_code: str = "notion-inline-code"
    record_icon: str = "notion-record-icon"
    discussion: str = "notion-margin-discussion-item"
    layout_content: str = "layout-content"
    page_block: str = "notion-page-block"
    # (attribute, value) pairs marking the element that holds a block's text
    editable_markers: Tuple[Tuple[str, str], ...] = (
        ("contenteditable", "true"),
        ("data-content-editable-leaf", "true"),
    )
    # inline style fragments marking the flex item that holds the text line
    content_region_styles: Tuple[str, ...] = ("flex-grow", "flex: 1")

    def is_selectable(self, node: ElementNode) -> bool:
        return node.has_class(self.selectable)

    def is_discussion(self, node: ElementNode) -> bool:
        return node.has_class(self.discussion)

    def is_editable(self, node: ElementNode) -> bool:
        return any(
            (node.get(name) or "").strip().lower() == value
            for name, value in self.editable_markers
        )

    def is_text_block(self, node: ElementNode) -> bool:
        return node.has_class(self.text)

    def is_content_region(self, node: ElementNode) -> bool:
        style = node.get("style") or ""
        return any(fragment in style for fragment in self.content_region_styles)


@dataclass
class ConverterOptions:
    """Options for a single conversion."""

    markers: MarkerConfig = field(default_factory=MarkerConfig)
    indent: str = DEFAULT_INDENT
    max_depth: int = DEFAULT_MAX_DEPTH
    max_descent: int = DEFAULT_MAX_DESCENT
    max_row_hops: int = DEFAULT_MAX_ROW_HOPS
    base_url: Optional[str] = None


def _read_int(name: str, minimum: int) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        LOGGER.warning("Ignoring %s=%r: not an integer.", name, raw)
        return None
    if value < minimum:
        LOGGER.warning("Ignoring %s=%d: must be >= %d.", name, value, minimum)
        return None
    return value


def load_options_from_env(base: Optional[ConverterOptions] = None) -> ConverterOptions:
    """Apply NOTIONMD_* environment variables on top of ``base``.

    Supported variables:
        NOTIONMD_INDENT: Number of spaces per nesting level.
        NOTIONMD_MAX_DEPTH: Maximum nesting depth rendered.
        NOTIONMD_BASE_URL: Base URL used to resolve relative links.
    """
    options = replace(base) if base is not None else ConverterOptions()

    spaces = _read_int("NOTIONMD_INDENT", minimum=1)
    if spaces is not None:
        options.indent = " " * spaces

    max_depth = _read_int("NOTIONMD_MAX_DEPTH", minimum=0)
    if max_depth is not None:
        options.max_depth = max_depth

    base_url = os.environ.get("NOTIONMD_BASE_URL")
    if base_url and base_url.strip():
        options.base_url = base_url.strip()

    return options
