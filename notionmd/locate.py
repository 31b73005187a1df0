"""Separate a block's own text from the blocks nested under it.

The page DOM has no field naming "the children of this list item". A block
element holds a *row* (the direct child containing the visible text line)
and, somewhere around it, the nested blocks. The locator recovers that
partition:

1. The *content carrier* is the first descendant carrying an editable-text
   marker, else the first text-block descendant. The search never enters
   nested selectable blocks.
2. The own text is the inline-formatted carrier, trimmed.
3. The row is the direct child of the block that contains the carrier.
4. Nested blocks are the other direct children holding selectable blocks or,
   when there are none, the selectable blocks found inside the row's
   content region (the flex item holding the text) outside the carrier.

The carrier subtree and the nested blocks never overlap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .inline import InlineFormatter
from .nodes import ElementNode
from .options import DEFAULT_MAX_ROW_HOPS, MarkerConfig

LOGGER = logging.getLogger(__name__)


@dataclass
class LocatedContent:
    """Own text and nested blocks of one block element."""

    own_text: str = ""
    nested_blocks: List[ElementNode] = field(default_factory=list)
    carrier: Optional[ElementNode] = None
    row: Optional[ElementNode] = None


class NestedContentLocator:
    def __init__(
        self,
        formatter: Optional[InlineFormatter] = None,
        markers: Optional[MarkerConfig] = None,
        max_row_hops: int = DEFAULT_MAX_ROW_HOPS,
    ) -> None:
        self.markers = markers or MarkerConfig()
        self.formatter = formatter or InlineFormatter(markers=self.markers)
        self.max_row_hops = max_row_hops

    def locate(self, node: ElementNode) -> LocatedContent:
        carrier = self.find_carrier(node)
        if carrier is None:
            LOGGER.debug("No content carrier in <%s %s>", node.tag, sorted(node.classes))
            return LocatedContent(nested_blocks=self._block_children(node, None, None))

        own_text = self.formatter.format(carrier).strip()
        row = self.find_row(node, carrier)
        nested = self._block_children(node, row, carrier)
        if not nested and row is not None:
            nested = self._blocks_in_content_region(row, carrier)
        return LocatedContent(own_text=own_text, nested_blocks=nested, carrier=carrier, row=row)

    def find_carrier(self, node: ElementNode) -> Optional[ElementNode]:
        """First editable descendant, else first text-block descendant.

        Nested selectable blocks are neither searched nor taken as the text
        block; they own their text themselves.
        """
        text_block: Optional[ElementNode] = None
        seen = {id(node)}
        stack = list(reversed(node.element_children))
        while stack:
            current = stack.pop()
            if id(current) in seen:
                continue
            seen.add(id(current))
            if self.markers.is_editable(current):
                return current
            if self.markers.is_selectable(current):
                continue
            if text_block is None and self.markers.is_text_block(current):
                text_block = current
            stack.extend(reversed(current.element_children))
        return text_block

    def find_row(self, node: ElementNode, carrier: ElementNode) -> Optional[ElementNode]:
        """Direct child of ``node`` that contains ``carrier``.

        Falls back to the first element child when the parent chain does not
        reach ``node`` within ``max_row_hops`` steps.
        """
        current: Optional[ElementNode] = carrier
        hops = 0
        while current is not None and hops <= self.max_row_hops:
            if current.parent is node:
                return current
            current = current.parent
            hops += 1
        LOGGER.debug("Row lookup fell back to first child of <%s>", node.tag)
        children = node.element_children
        return children[0] if children else None

    def holds_blocks(self, node: ElementNode) -> bool:
        if self.markers.is_selectable(node):
            return True
        return node.find_first(self.markers.is_selectable) is not None

    def _block_children(
        self,
        node: ElementNode,
        row: Optional[ElementNode],
        carrier: Optional[ElementNode],
    ) -> List[ElementNode]:
        nested = []
        for child in node.element_children:
            if child is row or self.markers.is_discussion(child):
                continue
            # Only reachable through the row fallback, but the carrier is
            # already consumed as text.
            if carrier is not None and child.contains(carrier):
                continue
            if self.holds_blocks(child):
                nested.append(child)
        return nested

    def content_region(self, row: ElementNode, carrier: ElementNode) -> ElementNode:
        """Closest flex item around the carrier within the row, else the row."""
        current: Optional[ElementNode] = carrier
        hops = 0
        while current is not None and hops <= self.max_row_hops:
            if self.markers.is_content_region(current):
                return current
            if current is row:
                break
            current = current.parent
            hops += 1
        return row

    def _blocks_in_content_region(
        self, row: ElementNode, carrier: ElementNode
    ) -> List[ElementNode]:
        region = self.content_region(row, carrier)
        if region is carrier:
            return []
        found: List[ElementNode] = []
        seen = {id(region)}
        stack = list(reversed(region.element_children))
        while stack:
            current = stack.pop()
            if current is carrier or id(current) in seen:
                continue
            seen.add(id(current))
            if self.markers.is_selectable(current):
                found.append(current)
                continue
            stack.extend(reversed(current.element_children))
        return found
