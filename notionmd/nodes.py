"""Read-only document tree consumed by the converter.

Nodes mirror the subset of the browser DOM the converter looks at: text
nodes, and elements with a tag name, class tags, attributes and ordered
children. Every node keeps a ``parent`` back-reference for upward walks.

Trees usually come from :func:`parse_html`, which snapshots HTML (for
example the page source captured by crawl4ai) through BeautifulSoup.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterator, List, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)

DEFAULT_HTML_PARSER = "html.parser"

# bs4 string subclasses that never carry visible text
_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)
_SKIPPED_TAGS = frozenset({"script", "style", "noscript", "template"})


@dataclass(eq=False)
class TextNode:
    """Character data."""

    text: str
    parent: Optional["ElementNode"] = field(default=None, repr=False)


@dataclass(eq=False)
class ElementNode:
    """An element with tag, class tags, attributes and children."""

    tag: str
    classes: FrozenSet[str] = frozenset()
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["DocumentNode"] = field(default_factory=list, repr=False)
    parent: Optional["ElementNode"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()
        self.classes = frozenset(self.classes)

    def append(self, child: "DocumentNode") -> "DocumentNode":
        """Attach ``child`` as the last child and return it."""
        child.parent = self
        self.children.append(child)
        return child

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    @property
    def element_children(self) -> List["ElementNode"]:
        return [child for child in self.children if isinstance(child, ElementNode)]

    @property
    def href(self) -> Optional[str]:
        value = self.attributes.get("href")
        if value is None:
            return None
        value = value.strip()
        return value or None

    def iter_descendants(
        self, skip: Optional[Callable[["ElementNode"], bool]] = None
    ) -> Iterator["ElementNode"]:
        """Yield descendant elements in document order.

        Iterative and cycle-safe: a node reachable twice is yielded once.
        Nodes matching ``skip`` are neither yielded nor entered.
        """
        seen = {id(self)}
        stack: List[ElementNode] = list(reversed(self.element_children))
        while stack:
            node = stack.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))
            if skip is not None and skip(node):
                continue
            yield node
            stack.extend(reversed(node.element_children))

    def find_first(
        self,
        predicate: Callable[["ElementNode"], bool],
        skip: Optional[Callable[["ElementNode"], bool]] = None,
    ) -> Optional["ElementNode"]:
        for node in self.iter_descendants(skip):
            if predicate(node):
                return node
        return None

    def find_all(
        self, predicate: Callable[["ElementNode"], bool]
    ) -> List["ElementNode"]:
        return [node for node in self.iter_descendants() if predicate(node)]

    def contains(self, other: "DocumentNode") -> bool:
        """Return True if ``other`` is this node or one of its descendants."""
        current: Optional[DocumentNode] = other
        hops = 0
        while current is not None and hops < _MAX_ANCESTRY:
            if current is self:
                return True
            current = current.parent
            hops += 1
        return False

    def text_content(self) -> str:
        """Concatenated raw text of all descendant text nodes."""
        parts: List[str] = []
        seen = {id(self)}
        stack: List[DocumentNode] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if isinstance(node, TextNode):
                parts.append(node.text)
                continue
            if id(node) in seen:
                continue
            seen.add(id(node))
            stack.extend(reversed(node.children))
        return "".join(parts)


DocumentNode = Union[TextNode, ElementNode]

# Upper bound for parent-chain walks; protects against parent cycles.
_MAX_ANCESTRY = 10_000


def parse_html(html: str, *, parser: str = DEFAULT_HTML_PARSER) -> ElementNode:
    """Parse HTML into a document tree rooted at a ``#document`` element.

    The ``<title>`` text, when present, is exposed as the root's ``title``
    attribute.
    """
    soup = BeautifulSoup(html or "", parser)
    root = ElementNode(tag="#document")
    title_tag = soup.find("title")
    if isinstance(title_tag, Tag):
        root.attributes["title"] = title_tag.get_text().strip()
    _copy_children(soup, root)
    return root


def _copy_children(source: Tag, target: ElementNode) -> None:
    # Explicit stack keeps arbitrarily deep markup clear of the recursion limit.
    stack = [(source, target)]
    while stack:
        tag, node = stack.pop()
        for child in tag.children:
            if isinstance(child, Tag):
                if child.name in _SKIPPED_TAGS:
                    continue
                element = _element_from_tag(child)
                node.append(element)
                stack.append((child, element))
            elif isinstance(child, NavigableString):
                if isinstance(child, _SKIPPED_STRINGS):
                    continue
                node.append(TextNode(str(child)))


def _element_from_tag(tag: Tag) -> ElementNode:
    attributes: Dict[str, str] = {}
    classes: FrozenSet[str] = frozenset()
    for name, value in tag.attrs.items():
        if name == "class":
            classes = frozenset(value if isinstance(value, list) else str(value).split())
            continue
        if isinstance(value, list):
            value = " ".join(value)
        attributes[name] = "" if value is None else str(value)
    return ElementNode(tag=tag.name or "", classes=classes, attributes=attributes)
