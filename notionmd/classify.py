"""Block classification by structural markers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .locate import NestedContentLocator
from .nodes import ElementNode
from .options import MarkerConfig

MERMAID_PREFIXES = ("flowchart", "graph", "sequenceDiagram")


class BlockKind(str, Enum):
    """Markdown-rendering unit a block element represents."""

    HEADING = "heading"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TODO_ITEM = "todo_item"
    TOGGLE_ITEM = "toggle_item"
    QUOTE = "quote"
    CALLOUT = "callout"
    CODE_BLOCK = "code_block"
    DIVIDER = "divider"
    GENERIC_TEXT = "generic_text"
    NOT_A_BLOCK = "not_a_block"


LIST_KINDS = frozenset(
    {BlockKind.BULLETED_LIST_ITEM, BlockKind.NUMBERED_LIST_ITEM, BlockKind.TODO_ITEM}
)


@dataclass(frozen=True)
class Classification:
    kind: BlockKind
    level: int = 0  # headings only
    checked: bool = False  # to-dos only
    icon: str = ""  # callouts only
    language: Optional[str] = None  # code blocks only


def infer_code_language(code: str) -> Optional[str]:
    """Return ``"mermaid"`` for diagram sources, otherwise None."""
    if code.strip().startswith(MERMAID_PREFIXES):
        return "mermaid"
    return None


class BlockClassifier:
    """First-match classification of selectable block elements.

    Dividers are checked first since they carry no text; a node matching no
    block marker is generic text when it has own text, else a pure grouping
    node.
    """

    def __init__(
        self,
        markers: Optional[MarkerConfig] = None,
        locator: Optional[NestedContentLocator] = None,
    ) -> None:
        self.markers = markers or MarkerConfig()
        self.locator = locator or NestedContentLocator(markers=self.markers)

    def classify(self, node: ElementNode, own_text: Optional[str] = None) -> Classification:
        m = self.markers
        if node.has_class(m.divider):
            return Classification(BlockKind.DIVIDER)

        for level, marker in ((1, m.header), (2, m.sub_header), (3, m.sub_sub_header)):
            if node.has_class(marker):
                return Classification(BlockKind.HEADING, level=level)

        if node.has_class(m.bulleted_list):
            return Classification(BlockKind.BULLETED_LIST_ITEM)
        if node.has_class(m.numbered_list):
            return Classification(BlockKind.NUMBERED_LIST_ITEM)
        if node.has_class(m.to_do):
            return Classification(BlockKind.TODO_ITEM, checked=self.is_checked(node))
        if node.has_class(m.code):
            return Classification(
                BlockKind.CODE_BLOCK, language=infer_code_language(self.raw_code(node))
            )
        if node.has_class(m.quote):
            return Classification(BlockKind.QUOTE)
        if node.has_class(m.callout):
            return Classification(BlockKind.CALLOUT, icon=self.callout_icon(node))
        if node.has_class(m.toggle):
            return Classification(BlockKind.TOGGLE_ITEM)

        if own_text is None:
            own_text = self.locator.locate(node).own_text
        if own_text:
            return Classification(BlockKind.GENERIC_TEXT)
        return Classification(BlockKind.NOT_A_BLOCK)

    def is_checked(self, node: ElementNode) -> bool:
        """Checkbox state of the to-do itself, never of a nested to-do."""
        if _flag_checked(node):
            return True
        checkbox = node.find_first(_is_checkbox, skip=self.markers.is_selectable)
        return checkbox is not None and _flag_checked(checkbox)

    def raw_code(self, node: ElementNode) -> str:
        """Unformatted code text of a code block."""
        source = node.find_first(lambda n: n.tag == "code", skip=self.markers.is_selectable)
        if source is None:
            source = self.locator.find_carrier(node) or node
        return source.text_content()

    def callout_icon(self, node: ElementNode) -> str:
        """Icon of the callout itself; nested blocks keep their own icons."""
        holder = node.find_first(
            lambda n: n.has_class(self.markers.record_icon), skip=self.markers.is_selectable
        )
        if holder is None:
            return ""
        icon = holder if holder.tag in ("img", "span") else None
        if icon is None:
            icon = holder.find_first(lambda n: n.tag in ("img", "span"))
        if icon is None:
            return ""
        alt = (icon.get("alt") or "").strip()
        return alt or icon.text_content().strip()


def _is_checkbox(node: ElementNode) -> bool:
    if node.tag == "input" and (node.get("type") or "").lower() == "checkbox":
        return True
    return (node.get("role") or "").lower() == "checkbox"


def _flag_checked(node: ElementNode) -> bool:
    if (node.get("aria-checked") or "").strip().lower() == "true":
        return True
    checked = node.get("checked")
    return checked is not None and checked.strip().lower() != "false"
