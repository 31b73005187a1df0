"""Style probe capability.

The converter never talks to a rendering engine. Style information is an
optional capability of the tree provider: a probe returns the weight,
slant, decoration and font family of an element, or ``None`` when it
knows nothing about it.

:class:`AttributeStyleProbe` reads the ``data-md-style`` attribute that the
capture script (see :data:`notionmd.config.ANNOTATE_STYLES_JS`) writes on
elements whose computed style differs from their parent, then falls back to
the inline ``style`` attribute.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from .nodes import ElementNode

COMPUTED_STYLE_ATTRIBUTE = "data-md-style"

_FONT_WEIGHT_KEYWORDS = {"normal": 400, "bold": 700, "bolder": 700, "lighter": 300}
_DECLARATION = re.compile(r"\s*([-\w]+)\s*:\s*([^;]*)")


@dataclass(frozen=True)
class StyleInfo:
    """Subset of computed style the inline formatter cares about."""

    font_weight: Optional[int] = None
    font_style: str = ""
    text_decoration: str = ""
    font_family: str = ""

    @property
    def is_bold(self) -> bool:
        return self.font_weight is not None and self.font_weight >= 600

    @property
    def is_italic(self) -> bool:
        return self.font_style.strip().lower() in {"italic", "oblique"}

    @property
    def is_strikethrough(self) -> bool:
        return "line-through" in self.text_decoration.lower()

    @property
    def is_monospace(self) -> bool:
        return "monospace" in self.font_family.lower()


class StyleProbe(Protocol):
    def probe(self, element: ElementNode) -> Optional[StyleInfo]:
        ...


class NullStyleProbe:
    """Probe for providers without style information."""

    def probe(self, element: ElementNode) -> Optional[StyleInfo]:
        return None


class AttributeStyleProbe:
    """Read styles recorded as CSS declarations on the element."""

    def __init__(self, attributes=(COMPUTED_STYLE_ATTRIBUTE, "style")):
        self.attributes = tuple(attributes)

    def probe(self, element: ElementNode) -> Optional[StyleInfo]:
        declarations: Dict[str, str] = {}
        # Later sources only fill gaps left by earlier ones.
        for name in self.attributes:
            raw = element.get(name)
            if not raw:
                continue
            for key, value in parse_declarations(raw).items():
                declarations.setdefault(key, value)
        if not declarations:
            return None
        return style_from_declarations(declarations)


def parse_declarations(text: str) -> Dict[str, str]:
    """Parse ``"font-weight: 600; font-style: italic"`` into a dict."""
    declarations: Dict[str, str] = {}
    for chunk in text.split(";"):
        match = _DECLARATION.match(chunk)
        if not match:
            continue
        value = match.group(2).strip()
        if value:
            declarations[match.group(1).lower()] = value
    return declarations


def style_from_declarations(declarations: Dict[str, str]) -> StyleInfo:
    decoration = declarations.get("text-decoration-line") or declarations.get(
        "text-decoration", ""
    )
    return StyleInfo(
        font_weight=parse_font_weight(declarations.get("font-weight")),
        font_style=declarations.get("font-style", ""),
        text_decoration=decoration,
        font_family=declarations.get("font-family", ""),
    )


def parse_font_weight(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    candidate = value.strip().lower()
    if candidate in _FONT_WEIGHT_KEYWORDS:
        return _FONT_WEIGHT_KEYWORDS[candidate]
    try:
        return int(float(candidate))
    except ValueError:
        return None
