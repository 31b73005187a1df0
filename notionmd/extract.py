"""Top-level conversion of a page tree into a Markdown document."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .nodes import DEFAULT_HTML_PARSER, DocumentNode, ElementNode, parse_html
from .options import NO_CONTENT_SENTINEL, ConverterOptions
from .render import MarkdownRenderer
from .style import StyleProbe

LOGGER = logging.getLogger(__name__)


class DocumentExtractor:
    """Locate the title and body regions of a page and render them.

    The result is always a string: ``"# <title>\\n\\n<body>"``, or
    :data:`NO_CONTENT_SENTINEL` when the page has no content container.
    """

    def __init__(
        self,
        options: Optional[ConverterOptions] = None,
        style_probe: Optional[StyleProbe] = None,
    ) -> None:
        self.options = options or ConverterOptions()
        self.markers = self.options.markers
        self.renderer = MarkdownRenderer(self.options, style_probe=style_probe)

    def extract(self, root: Optional[DocumentNode]) -> str:
        regions = self.locate_regions(root)
        if regions is None:
            return NO_CONTENT_SENTINEL
        title, body = regions
        try:
            markdown_body = self.renderer.walk(body, self.renderer.new_context())
        except Exception:
            LOGGER.warning("Rendering the page body failed; returning title only", exc_info=True)
            markdown_body = ""
        return f"# {title}\n\n{markdown_body}"

    def locate_regions(
        self, root: Optional[DocumentNode]
    ) -> Optional[Tuple[str, ElementNode]]:
        """Return ``(title, body)`` or None when no container exists."""
        if not isinstance(root, ElementNode):
            return None
        containers = self._containers(root)
        if not containers:
            LOGGER.debug("No '.%s' container found", self.markers.layout_content)
            return None

        if len(containers) == 1:
            return self._fallback_title(root), containers[0]

        title_region = containers[0]
        editable = title_region.find_first(self.markers.is_editable)
        source = editable if editable is not None else title_region
        return source.text_content().strip(), containers[1]

    def _containers(self, root: ElementNode) -> List[ElementNode]:
        def is_container(node: ElementNode) -> bool:
            return node.has_class(self.markers.layout_content)

        containers = [root] if is_container(root) else []
        containers.extend(root.find_all(is_container))
        return containers

    def _fallback_title(self, root: ElementNode) -> str:
        for page_block in root.find_all(lambda n: n.has_class(self.markers.page_block)):
            heading = page_block.find_first(lambda n: n.tag == "h1")
            if heading is not None:
                return heading.text_content().strip()
        return page_title(root)


def page_title(root: ElementNode) -> str:
    """Page-level title: the root's ``title`` attribute or ``<title>`` text."""
    title = root.get("title")
    if title:
        return title.strip()
    element = root.find_first(lambda n: n.tag == "title")
    return element.text_content().strip() if element is not None else ""


def convert_tree(
    root: Optional[ElementNode],
    options: Optional[ConverterOptions] = None,
    *,
    style_probe: Optional[StyleProbe] = None,
) -> str:
    """Convert a document tree into Markdown."""
    return DocumentExtractor(options, style_probe=style_probe).extract(root)


def convert_html(
    html: str,
    options: Optional[ConverterOptions] = None,
    *,
    style_probe: Optional[StyleProbe] = None,
    parser: str = DEFAULT_HTML_PARSER,
) -> str:
    """Parse ``html`` and convert it into Markdown."""
    return convert_tree(parse_html(html, parser=parser), options, style_probe=style_probe)
