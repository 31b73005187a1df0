"""MCP server exposing the Notion-to-Markdown exporter.

Provides tools for:
- Rendering Notion pages and exporting them as Markdown
- Converting page HTML the client already holds

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m notionmd.mcp_server

    # HTTP (for remote access)
    python -m notionmd.mcp_server --transport http --port 8000

Environment Variables:
    NOTIONMD_TOKEN_V2: Notion session cookie for private pages
    NOTIONMD_AUTH_STORAGE_STATE: Playwright storage state for private pages
    NOTIONMD_INDENT / NOTIONMD_MAX_DEPTH: Converter options
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .auth import NotionSession, load_session_from_env
from .builder import build_document_from_html
from .cli_output import doc_to_dict
from .document import ExportedDocument
from .options import load_options_from_env

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

mcp = FastMCP(
    name="Notion Markdown Export",
    instructions="""
    Exports Notion pages as Markdown, keeping headings, lists, to-dos,
    toggles, quotes, callouts, code blocks and inline formatting.

    Tools:
    - export_notion_page: Render one or more Notion page URLs and export them
    - convert_notion_html: Convert Notion page HTML you already have

    Output formats for export_notion_page:
    - markdown: Concatenated Markdown documents (default)
    - json: Full details including title and metadata
    """,
)


class OutputFormat(str, Enum):
    """Output format for export results."""

    markdown = "markdown"
    json = "json"

    @classmethod
    def parse(cls, value: str) -> OutputFormat:
        try:
            return cls(value.lower())
        except ValueError:
            LOGGER.warning("Unknown output format %r, using markdown", value)
            return cls.markdown


def _summary(docs: List[ExportedDocument]) -> Dict[str, int]:
    successful = sum(1 for d in docs if d.status == "success")
    return {"total": len(docs), "successful": successful, "failed": len(docs) - successful}


def _format_markdown(docs: List[ExportedDocument]) -> str:
    """Join the pages with a rule; failed pages show their URL and error."""
    sections = [
        doc.markdown
        if doc.status == "success"
        else f"<!-- {doc.final_url} -->\n**Error:** {doc.error_message}"
        for doc in docs
    ]
    return "\n\n---\n\n".join(sections)


def _format_json(docs: List[ExportedDocument]) -> str:
    payload = {
        "exported_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "documents": [doc_to_dict(doc) for doc in docs],
        "summary": _summary(docs),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _resolve_session(storage_state: Optional[str]) -> Optional[NotionSession]:
    """Environment session, with ``storage_state`` taking precedence."""
    session = load_session_from_env()
    if storage_state:
        session = session or NotionSession()
        session.storage_state = storage_state
    return session


async def export_notion_page(
    urls: List[str],
    output_format: str = "markdown",
    concurrency: int = 3,
    storage_state: Optional[str] = None,
) -> str:
    """
    Render Notion pages in a headless browser and export them as Markdown.

    Args:
        urls: Notion page URLs (a single URL is fine)
        output_format: "markdown" (default) or "json"
        concurrency: Maximum concurrent page renders (default: 3)
        storage_state: Path to a Playwright storage_state JSON for private pages

    Returns:
        The exported pages in the requested format.
    """
    from . import export_page_async, export_pages_async

    fmt = OutputFormat.parse(output_format)
    session = _resolve_session(storage_state)
    options = load_options_from_env()
    LOGGER.info("Exporting %d page(s)...", len(urls))

    if len(urls) == 1:
        try:
            docs = [await export_page_async(urls[0], session=session, options=options)]
        except Exception as exc:
            LOGGER.error("Export of %s failed: %s", urls[0], exc)
            docs = [ExportedDocument.failed(urls[0], str(exc))]
    else:
        docs = await export_pages_async(
            urls, session=session, options=options, concurrency=concurrency
        )

    summary = _summary(docs)
    LOGGER.info("Completed: %d/%d successful", summary["successful"], summary["total"])
    return _format_json(docs) if fmt is OutputFormat.json else _format_markdown(docs)


def convert_notion_html(html: str, base_url: Optional[str] = None) -> str:
    """
    Convert the HTML of a rendered Notion page into Markdown.

    Args:
        html: Page HTML (e.g. document.documentElement.outerHTML)
        base_url: Optional URL used to resolve relative links

    Returns:
        Markdown starting with "# <title>", or "Error: No content found".
    """
    options = load_options_from_env()
    if base_url:
        options.base_url = base_url
    doc = build_document_from_html(html, request_url=base_url or "about:blank", options=options)
    if doc.status == "failed":
        return doc.error_message or ""
    return doc.markdown


mcp.tool(export_notion_page)
mcp.tool(convert_notion_html)


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the Notion Markdown export MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # STDIO transport (default)
    python -m notionmd.mcp_server

    # HTTP transport
    python -m notionmd.mcp_server --transport http --host 0.0.0.0 --port 9000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args(argv)

    run_kwargs = {"transport": args.transport}
    if args.transport == "http":
        run_kwargs.update(host=args.host, port=args.port)
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
    mcp.run(**run_kwargs)


if __name__ == "__main__":
    main()
