"""Export Notion pages as Markdown.

This package converts the rendered DOM of a Notion page into Markdown,
keeping block structure (headings, lists, to-dos, toggles, quotes, callouts,
code blocks, dividers) and inline formatting. It supports:

- Converting saved page HTML or an already-built document tree
- Rendering live pages in a headless browser (crawl4ai) and converting them
- Authenticated rendering of private workspaces via cookies or storage state

Example usage:

    from notionmd import convert_html, export_page_async

    # Saved HTML
    markdown = convert_html(open("page.html").read())

    # Live page
    doc = await export_page_async("https://www.notion.so/My-Page-0123abcd")
    print(doc.markdown)

    # Private page
    from notionmd.auth import NotionSession
    session = NotionSession(notion_token="v02%3Auser_token...")
    doc = await export_page_async("https://www.notion.so/Private-0123abcd", session=session)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict, deque
from pathlib import Path
from typing import Deque, Dict, List, Optional, Tuple, Union

from crawl4ai import AsyncWebCrawler, BrowserConfig, CrawlerRunConfig
from crawl4ai.async_dispatcher import SemaphoreDispatcher
from crawl4ai.models import CrawlResultContainer

from .auth import NotionSession, build_browser_config
from .builder import build_document_from_html, build_document_from_result
from .classify import BlockClassifier, BlockKind, Classification
from .config import CaptureOverrides, build_capture_run_config
from .document import ExportedDocument
from .extract import DocumentExtractor, convert_html, convert_tree
from .inline import InlineFormatter
from .locate import LocatedContent, NestedContentLocator
from .nodes import ElementNode, TextNode, parse_html
from .options import NO_CONTENT_SENTINEL, ConverterOptions, MarkerConfig
from .render import MarkdownRenderer, RenderContext
from .style import AttributeStyleProbe, NullStyleProbe, StyleInfo, StyleProbe

LOGGER = logging.getLogger(__name__)

__all__ = [
    # Conversion
    "convert_html",
    "convert_tree",
    "DocumentExtractor",
    "MarkdownRenderer",
    "RenderContext",
    "BlockClassifier",
    "BlockKind",
    "Classification",
    "NestedContentLocator",
    "LocatedContent",
    "InlineFormatter",
    "NO_CONTENT_SENTINEL",
    # Document tree
    "ElementNode",
    "TextNode",
    "parse_html",
    "StyleInfo",
    "StyleProbe",
    "AttributeStyleProbe",
    "NullStyleProbe",
    # Options
    "ConverterOptions",
    "MarkerConfig",
    "CaptureOverrides",
    "build_capture_run_config",
    # Results
    "ExportedDocument",
    # Auth
    "NotionSession",
    "build_browser_config",
    # Export
    "export_file",
    "export_page",
    "export_page_async",
    "export_pages",
    "export_pages_async",
]


def export_file(
    path: Union[str, Path],
    *,
    options: Optional[ConverterOptions] = None,
) -> ExportedDocument:
    """Convert a saved HTML page from disk."""
    source = Path(path).expanduser()
    html = source.read_text(encoding="utf-8", errors="replace")
    uri = source.resolve().as_uri()
    return build_document_from_html(html, request_url=uri, options=options)


def _capture_configs(
    config: Optional[CrawlerRunConfig],
    session: Optional[NotionSession],
    options: Optional[ConverterOptions],
) -> Tuple[CrawlerRunConfig, BrowserConfig]:
    markers = options.markers if options else None
    return config or build_capture_run_config(markers=markers), build_browser_config(session)


async def export_page_async(
    url: str,
    *,
    config: Optional[CrawlerRunConfig] = None,
    session: Optional[NotionSession] = None,
    options: Optional[ConverterOptions] = None,
) -> ExportedDocument:
    """
    Render a single page and return its Markdown export.

    Args:
        url: The page URL.
        config: Optional CrawlerRunConfig replacing the default capture config.
        session: Optional NotionSession for private pages.
        options: Optional ConverterOptions for the conversion.

    Returns:
        ExportedDocument with markdown content and metadata.

    Raises:
        ValueError: If the crawler returns no results.
    """
    run_config, browser_cfg = _capture_configs(config, session, options)
    async with AsyncWebCrawler(config=browser_cfg) as crawler:
        container = await crawler.arun(url=url, config=run_config)

    try:
        result = container[0]
    except (IndexError, TypeError):
        raise ValueError(f"Crawler returned no results for {url}") from None
    return build_document_from_result(result, options=options)


def export_page(
    url: str,
    *,
    config: Optional[CrawlerRunConfig] = None,
    session: Optional[NotionSession] = None,
    options: Optional[ConverterOptions] = None,
) -> ExportedDocument:
    """Synchronous wrapper for export_page_async."""
    return asyncio.run(export_page_async(url, config=config, session=session, options=options))


class _RequestOrder:
    """Places batch results back at the position their URL was requested.

    The crawler yields results in completion order and may report a
    redirected URL, so results are matched by URL first and otherwise take
    the earliest position still waiting.
    """

    def __init__(self, urls: List[str]) -> None:
        self.urls = urls
        self.docs: List[Optional[ExportedDocument]] = [None] * len(urls)
        self._waiting: Dict[str, Deque[int]] = defaultdict(deque)
        for index, url in enumerate(urls):
            self._waiting[url].append(index)

    def claim(self, result_url: str) -> Optional[int]:
        queue = self._waiting.get(result_url)
        if queue:
            return queue.popleft()
        for index, url in enumerate(self.urls):
            if index in self._waiting[url]:
                self._waiting[url].remove(index)
                return index
        return None

    def documents(self) -> List[ExportedDocument]:
        return [
            doc if doc is not None else ExportedDocument.failed(url, "Crawler returned no result")
            for url, doc in zip(self.urls, self.docs)
        ]


async def export_pages_async(
    urls: List[str],
    *,
    config: Optional[CrawlerRunConfig] = None,
    session: Optional[NotionSession] = None,
    options: Optional[ConverterOptions] = None,
    concurrency: int = 3,
) -> List[ExportedDocument]:
    """
    Render several pages and return their Markdown exports.

    Never raises: a page that fails (or a browser that fails to start) yields
    a document with status="failed" and error_message set.

    Returns:
        List of ExportedDocument objects in the order of ``urls``.
    """
    if not urls:
        return []

    run_config, browser_cfg = _capture_configs(config, session, options)
    dispatcher = SemaphoreDispatcher(semaphore_count=max(1, concurrency))
    order = _RequestOrder(urls)

    try:
        async with AsyncWebCrawler(config=browser_cfg) as crawler:
            results = await crawler.arun_many(urls=urls, config=run_config, dispatcher=dispatcher)
            async for result in _flatten_results(results):
                slot = order.claim(str(getattr(result, "url", "") or ""))
                if slot is None:
                    LOGGER.debug("Dropping unexpected result for %s", getattr(result, "url", None))
                    continue
                try:
                    order.docs[slot] = build_document_from_result(result, options=options)
                except Exception as exc:
                    LOGGER.warning("Could not convert %s: %s", urls[slot], exc)
                    order.docs[slot] = ExportedDocument.failed(urls[slot], str(exc))
    except Exception as exc:
        LOGGER.error("Batch export failed: %s", exc)
        return [ExportedDocument.failed(url, str(exc)) for url in urls]

    return order.documents()


async def _flatten_results(results):
    """Yield single CrawlResults from whatever ``arun_many`` returned."""
    if inspect.isasyncgen(results):
        async for item in results:
            yield item
        return

    for item in results if isinstance(results, list) else [results]:
        if isinstance(item, CrawlResultContainer):
            for inner in item:
                yield inner
        else:
            yield item


def export_pages(
    urls: List[str],
    *,
    config: Optional[CrawlerRunConfig] = None,
    session: Optional[NotionSession] = None,
    options: Optional[ConverterOptions] = None,
    concurrency: int = 3,
) -> List[ExportedDocument]:
    """Synchronous wrapper for export_pages_async."""
    return asyncio.run(
        export_pages_async(
            urls, config=config, session=session, options=options, concurrency=concurrency
        )
    )
