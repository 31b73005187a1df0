"""Turn captured page HTML (or a Crawl4AI result) into ExportedDocument instances."""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import replace
from typing import Any, Dict, Optional

from crawl4ai.models import CrawlResult

from .document import ExportedDocument
from .extract import convert_tree
from .nodes import parse_html
from .options import NO_CONTENT_SENTINEL, ConverterOptions

LOGGER = logging.getLogger(__name__)


def build_document_from_html(
    html: str,
    *,
    request_url: str,
    final_url: Optional[str] = None,
    options: Optional[ConverterOptions] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> ExportedDocument:
    """Convert page HTML into an ExportedDocument.

    Relative links resolve against ``options.base_url`` or, when unset,
    against ``final_url`` if that is an http(s) URL.
    """
    final_url = final_url or request_url
    options = options or ConverterOptions()
    if options.base_url is None and final_url.startswith(("http://", "https://")):
        options = replace(options, base_url=final_url)

    meta: Dict[str, Any] = dict(metadata or {})
    meta["html_length"] = len(html or "")

    markdown = convert_tree(parse_html(html or ""), options)
    if markdown == NO_CONTENT_SENTINEL:
        LOGGER.warning("No page content found in %s", final_url)
        return ExportedDocument.failed(
            request_url, NO_CONTENT_SENTINEL, final_url=final_url, html=html, metadata=meta
        )

    title = _title_from_markdown(markdown)
    meta["title"] = title
    meta["markdown_length"] = len(markdown)
    return ExportedDocument(
        request_url=request_url,
        final_url=final_url,
        status="success",
        markdown=markdown,
        title=title,
        html=html,
        metadata=meta,
    )


def build_document_from_result(
    result: CrawlResult, *, options: Optional[ConverterOptions] = None
) -> ExportedDocument:
    """Convert a Crawl4AI CrawlResult into our internal representation."""
    metadata = deepcopy(result.metadata or {})
    request_url = _extract_requested_url(metadata, result.url)
    final_url = str(result.url or request_url)
    metadata.setdefault("status_code", result.status_code)
    metadata["requested_url"] = request_url
    metadata["resolved_url"] = final_url

    if not result.success:
        return ExportedDocument.failed(
            request_url,
            _derive_failure_reason(result),
            final_url=final_url,
            html=result.html or None,
            metadata=metadata,
        )

    html = result.html or ""
    if not html.strip():
        return ExportedDocument.failed(
            request_url,
            f"Crawler returned no HTML for {request_url}",
            final_url=final_url,
            metadata=metadata,
        )

    return build_document_from_html(
        html,
        request_url=request_url,
        final_url=final_url,
        options=options,
        metadata=metadata,
    )


def _title_from_markdown(markdown: str) -> str:
    first_line = markdown.split("\n", 1)[0]
    if first_line.startswith("# "):
        return first_line[2:].strip()
    return ""


def _derive_failure_reason(result: CrawlResult) -> str:
    if result.error_message:
        return result.error_message
    metadata = result.metadata or {}
    status_code = result.status_code or metadata.get("status_code")
    if status_code:
        return f"HTTP {status_code}"
    if metadata.get("requested_url"):
        return f"Crawler returned no content for {metadata['requested_url']}"
    return "Crawler returned no content"


def _extract_requested_url(metadata: Dict[str, Any], default: Optional[str]) -> str:
    for key in ("requested_url", "request_url", "source_url"):
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return str(default or "")
