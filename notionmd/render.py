"""Block emission and tree walking.

``MarkdownRenderer.walk`` descends through layout wrappers until it reaches
selectable blocks, which ``MarkdownRenderer.emit`` renders according to their
classification, recursing into their nested blocks. A ``RenderContext``
carries the indentation depth and the per-conversion visited set through
every call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Set

from .classify import LIST_KINDS, BlockClassifier, BlockKind, Classification
from .inline import InlineFormatter
from .locate import LocatedContent, NestedContentLocator
from .nodes import ElementNode
from .options import DEFAULT_MAX_DEPTH, DEFAULT_MAX_DESCENT, ConverterOptions
from .style import StyleProbe

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderContext:
    """Indentation depth plus cycle and runaway guards for one conversion."""

    depth: int = 0
    descent: int = 0
    visited: Set[int] = field(default_factory=set, compare=False, repr=False)
    max_depth: int = DEFAULT_MAX_DEPTH
    max_descent: int = DEFAULT_MAX_DESCENT

    def nest(self) -> "RenderContext":
        """Context one indentation level deeper."""
        return replace(self, depth=self.depth + 1, descent=self.descent + 1)

    def descend(self) -> "RenderContext":
        """Context one structural level deeper at the same indentation."""
        return replace(self, descent=self.descent + 1)

    @property
    def exhausted(self) -> bool:
        return self.depth > self.max_depth or self.descent > self.max_descent

    def enter(self, node: ElementNode) -> bool:
        """Mark ``node`` visited; False if it was already visited or limits are hit."""
        if self.exhausted:
            LOGGER.debug(
                "Depth limit reached (depth=%d, descent=%d) at <%s>",
                self.depth,
                self.descent,
                node.tag,
            )
            return False
        if id(node) in self.visited:
            LOGGER.debug("Skipping already visited <%s>", node.tag)
            return False
        self.visited.add(id(node))
        return True


@dataclass(frozen=True)
class _Rendered:
    """Markdown for a run of blocks and whether it opens or closes on a list item.

    A list left open at the end of a run is not yet terminated; whoever
    places the next sibling decides whether a blank line is needed.
    """

    markdown: str = ""
    starts_list: bool = False
    ends_list: bool = False

    def then(self, nested: "_Rendered") -> "_Rendered":
        """This block's own lines followed by its nested blocks."""
        if not nested.markdown:
            return self
        return _Rendered(self.markdown + nested.markdown, self.starts_list, nested.ends_list)

    def terminated(self) -> str:
        return self.markdown + "\n" if self.ends_list else self.markdown


_NOTHING = _Rendered()


class MarkdownRenderer:
    def __init__(
        self,
        options: Optional[ConverterOptions] = None,
        style_probe: Optional[StyleProbe] = None,
    ) -> None:
        self.options = options or ConverterOptions()
        self.markers = self.options.markers
        self.formatter = InlineFormatter(
            markers=self.markers,
            style_probe=style_probe,
            base_url=self.options.base_url,
        )
        self.locator = NestedContentLocator(
            self.formatter, markers=self.markers, max_row_hops=self.options.max_row_hops
        )
        self.classifier = BlockClassifier(markers=self.markers, locator=self.locator)

    def new_context(self) -> RenderContext:
        return RenderContext(
            max_depth=self.options.max_depth,
            max_descent=self.options.max_descent,
        )

    def walk(self, node: ElementNode, context: RenderContext) -> str:
        """Render the blocks found below a layout wrapper."""
        return self._walk(node, context).terminated()

    def emit(self, node: ElementNode, context: RenderContext) -> str:
        """Render one selectable block and its nested blocks."""
        return self._emit(node, context).terminated()

    def _walk(self, node: ElementNode, context: RenderContext) -> _Rendered:
        if not context.enter(node):
            return _NOTHING
        return self._render_sequence(node.element_children, context.descend())

    def _render_sequence(self, nodes: List[ElementNode], context: RenderContext) -> _Rendered:
        parts: List[str] = []
        first: Optional[_Rendered] = None
        last = _NOTHING
        for node in nodes:
            if self.markers.is_discussion(node):
                continue
            if self.markers.is_selectable(node):
                piece = self._emit(node, context)
            else:
                piece = self._walk(node, context)
            if not piece.markdown:
                continue
            # A blank line ends a list so following text is not folded into it.
            if last.ends_list and not piece.starts_list:
                parts.append("\n")
            parts.append(piece.markdown)
            first = first or piece
            last = piece
        if first is None:
            return _NOTHING
        return _Rendered("".join(parts), first.starts_list, last.ends_list)

    def _emit(self, node: ElementNode, context: RenderContext) -> _Rendered:
        if not context.enter(node):
            return _NOTHING

        located = self.locator.locate(node)
        block = self.classifier.classify(node, own_text=located.own_text)
        kind = block.kind

        if kind is BlockKind.DIVIDER:
            return _Rendered("\n---\n\n")
        if kind is BlockKind.NOT_A_BLOCK:
            return self._render_sequence(node.element_children, context.descend())
        if kind is BlockKind.CODE_BLOCK:
            return self._emit_code(node, block, located, context)
        if not located.own_text and not located.nested_blocks:
            return _NOTHING

        indent = self.options.indent * context.depth
        text = located.own_text

        if kind is BlockKind.HEADING:
            head = _Rendered(f"\n{'#' * block.level} {text}\n\n")
            return head.then(self._nested(located, context.descend()))

        if kind in LIST_KINDS:
            if kind is BlockKind.BULLETED_LIST_ITEM:
                line = f"{indent}- {text}\n"
            elif kind is BlockKind.NUMBERED_LIST_ITEM:
                line = f"{indent}1. {text}\n"
            else:
                line = f"{indent}- [{'x' if block.checked else ' '}] {text}\n"
            item = _Rendered(line, starts_list=True, ends_list=True)
            return item.then(self._nested(located, context.nest()))

        if kind is BlockKind.TOGGLE_ITEM:
            nested = self._nested(located, context.nest())
            markdown = (
                f"\n{indent}<details>\n{indent}<summary>{text}</summary>\n\n"
                + nested.terminated()
                + f"{indent}</details>\n\n"
            )
            return _Rendered(markdown)

        if kind is BlockKind.QUOTE:
            quote = _Rendered(f"\n{indent}> {text}\n\n")
            return quote.then(self._nested(located, context.descend()))
        if kind is BlockKind.CALLOUT:
            line = " ".join(part for part in (block.icon, text) if part)
            callout = _Rendered(f"\n{indent}> {line}\n\n")
            return callout.then(self._nested(located, context.descend()))

        paragraph = _Rendered(f"{indent}{text}\n\n")
        return paragraph.then(self._nested(located, context.nest()))

    def _emit_code(
        self,
        node: ElementNode,
        block: Classification,
        located: LocatedContent,
        context: RenderContext,
    ) -> _Rendered:
        code = self.classifier.raw_code(node).rstrip("\n")
        nested = self._nested(located, context.descend())
        if not code.strip() and not nested.markdown:
            return _NOTHING
        indent = self.options.indent * context.depth
        body = "\n".join(indent + line for line in code.split("\n"))
        fence = f"\n{indent}```{block.language or ''}\n{body}\n{indent}```\n\n"
        return _Rendered(fence).then(nested)

    def _nested(self, located: LocatedContent, context: RenderContext) -> _Rendered:
        if not located.nested_blocks:
            return _NOTHING
        return self._render_sequence(located.nested_blocks, context)
