"""Factory functions for Crawl4AI page-capture run configurations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from crawl4ai import CrawlerRunConfig
from crawl4ai.async_configs import CacheMode

from .options import MarkerConfig

LOGGER = logging.getLogger(__name__)

# Runs in the page before the HTML snapshot is taken. Records computed
# styles that differ from the parent element and reflects live checkbox
# state into attributes, so the snapshot answers the style probe.
ANNOTATE_STYLES_JS = """
(() => {
  const props = ["font-weight", "font-style", "text-decoration-line", "font-family"];
  const root = document.querySelector(".notion-frame") || document.body;
  if (!root) return;
  root.querySelectorAll("*").forEach((el) => {
    let style;
    let parentStyle = null;
    try {
      style = window.getComputedStyle(el);
      if (el.parentElement) parentStyle = window.getComputedStyle(el.parentElement);
    } catch (e) {
      return;
    }
    const parts = [];
    props.forEach((name) => {
      const value = style.getPropertyValue(name);
      if (value && (!parentStyle || parentStyle.getPropertyValue(name) !== value)) {
        parts.push(name + ": " + value);
      }
    });
    if (parts.length) el.setAttribute("data-md-style", parts.join("; "));
    if (el.matches('input[type="checkbox"]') && el.checked) el.setAttribute("checked", "");
    if (el.tagName === "A" && el.href) el.setAttribute("href", el.href);
  });
})();
"""


@dataclass
class CaptureOverrides:
    """Optional overrides for page capture runs."""

    verbose: Optional[bool] = None
    wait_until: Optional[str] = None
    wait_for: Optional[str] = None
    delay_before_return_html: Optional[float] = None
    page_timeout: Optional[int] = None
    cache_mode: Optional[str] = None
    scan_full_page: Optional[bool] = None
    annotate_styles: Optional[bool] = None
    extra_js: List[str] = field(default_factory=list)


# Overrides copied onto the run config as they are.
_DIRECT_OVERRIDES = (
    "verbose",
    "wait_until",
    "wait_for",
    "delay_before_return_html",
    "page_timeout",
    "scan_full_page",
)


def _convert_cache_mode(value: Optional[str], default: CacheMode) -> CacheMode:
    """Accept ``ENABLED``, ``enabled`` or ``CacheMode.ENABLED``."""
    if not value:
        return default
    name = value.strip().rsplit(".", 1)[-1]
    for mode in CacheMode:
        if name.upper() == mode.name or name.lower() == mode.value:
            return mode
    LOGGER.warning("Unknown cache_mode %r; using %s", value, default.name)
    return default


def _build_js_code(overrides: Optional[CaptureOverrides]) -> List[str]:
    scripts: List[str] = []
    if overrides is None or overrides.annotate_styles is not False:
        scripts.append(ANNOTATE_STYLES_JS)
    if overrides and overrides.extra_js:
        scripts.extend(overrides.extra_js)
    return scripts


def _apply_overrides(config: CrawlerRunConfig, overrides: CaptureOverrides) -> None:
    for name in _DIRECT_OVERRIDES:
        value = getattr(overrides, name)
        if value is not None:
            setattr(config, name, value)
    if overrides.cache_mode:
        config.cache_mode = _convert_cache_mode(overrides.cache_mode, config.cache_mode)


def build_capture_run_config(
    overrides: Optional[CaptureOverrides] = None,
    markers: Optional[MarkerConfig] = None,
) -> CrawlerRunConfig:
    """RunConfig that renders a Notion page and keeps its full HTML."""
    markers = markers or MarkerConfig()
    config = CrawlerRunConfig(
        verbose=False,
        wait_until="domcontentloaded",
        wait_for=f"css:.{markers.layout_content}",
        delay_before_return_html=1.0,
        page_timeout=60000,
        cache_mode=CacheMode.BYPASS,
        scan_full_page=True,
        js_code=_build_js_code(overrides),
    )
    if overrides:
        _apply_overrides(config, overrides)
    return config
