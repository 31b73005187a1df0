"""Command-line interface for exporting Notion pages as Markdown."""

from __future__ import annotations

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

from .auth import (
    NotionSession,
    load_cookies_file,
    load_session_from_env,
    load_session_from_file,
)
from .cli_config import load_config
from .cli_output import write_output
from .config import CaptureOverrides, build_capture_run_config
from .document import ExportedDocument
from .options import ConverterOptions, load_options_from_env

# Configuration directory for global CLI usage
CONFIG_DIR = Path.home() / ".config" / "notionmd"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"


def _load_config() -> None:
    load_config(
        config_dir=CONFIG_DIR,
        config_env_file=CONFIG_ENV_FILE,
        cwd=Path.cwd(),
        load_env=load_dotenv,
        copy_file=shutil.copy,
    )


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="notion-md",
        description="Export Notion pages as Markdown.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Public page to stdout
  notion-md https://www.notion.so/Team-Handbook-0123456789abcdef0123456789abcdef

  # Saved page HTML to a file
  notion-md page.html -o page.md

  # Several pages into a directory
  notion-md https://www.notion.so/A-... https://www.notion.so/B-... -o export/

  # Private page with the token_v2 session cookie
  NOTIONMD_TOKEN_V2=... notion-md https://www.notion.so/Private-...

  # Four-space indentation, JSON output
  notion-md page.html --indent 4 --json
""",
    )

    parser.add_argument(
        "sources",
        nargs="+",
        help="Page URL(s) or saved HTML file(s) to export",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output file (single source) or directory (multiple sources)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output as JSON (includes title and metadata)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=3,
        help="Concurrent page renders for multiple URLs (default: 3)",
    )

    md_group = parser.add_argument_group("Markdown")
    md_group.add_argument(
        "--indent",
        type=int,
        default=None,
        help="Spaces per nesting level (default: 2)",
    )
    md_group.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum nesting depth rendered (default: 32)",
    )
    md_group.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Base URL for resolving relative links (default: the page URL)",
    )

    render_group = parser.add_argument_group("Page rendering")
    render_group.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait after the page content appears (default: 1.0)",
    )
    render_group.add_argument(
        "--wait-until",
        type=str,
        default=None,
        choices=["load", "domcontentloaded", "networkidle", "commit"],
        help="Page load event to wait for (default: domcontentloaded)",
    )
    render_group.add_argument(
        "--no-styles",
        action="store_true",
        help="Do not record computed styles before capturing the page",
    )

    session_group = parser.add_argument_group("Private pages")
    session_group.add_argument(
        "--token",
        type=str,
        default=None,
        help="Notion token_v2 cookie value (or set NOTIONMD_TOKEN_V2)",
    )
    session_group.add_argument(
        "--storage-state",
        type=str,
        default=None,
        help="Path to a Playwright storage_state JSON file",
    )
    session_group.add_argument(
        "--cookies-file",
        type=str,
        default=None,
        help="Path to a JSON list of cookies",
    )
    session_group.add_argument(
        "--session-file",
        type=str,
        default=None,
        help="Path to a JSON file with notion_token, cookies, storage_state or profile_dir",
    )
    session_group.add_argument(
        "--profile",
        type=str,
        default=None,
        help="Path to a persistent browser profile directory",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def _is_url(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


def _build_options(args: argparse.Namespace) -> ConverterOptions:
    options = load_options_from_env()
    if args.indent is not None:
        options.indent = " " * max(1, args.indent)
    if args.max_depth is not None:
        options.max_depth = max(0, args.max_depth)
    if args.base_url:
        options.base_url = args.base_url
    return options


def _build_session(args: argparse.Namespace) -> Optional[NotionSession]:
    """Flags override the session file, which replaces the environment."""
    if args.session_file:
        session = load_session_from_file(args.session_file)
    else:
        session = load_session_from_env() or NotionSession()

    session.notion_token = args.token or session.notion_token
    session.storage_state = args.storage_state or session.storage_state
    session.profile_dir = args.profile or session.profile_dir
    if args.cookies_file:
        session.cookies = load_cookies_file(args.cookies_file)

    return None if session.is_empty else session


def _build_overrides(args: argparse.Namespace) -> CaptureOverrides:
    return CaptureOverrides(
        delay_before_return_html=args.delay,
        wait_until=args.wait_until,
        annotate_styles=False if args.no_styles else None,
        verbose=True if args.verbose else None,
    )


async def _run_export_async(args: argparse.Namespace) -> int:
    """Main async entry point for export."""
    from . import export_file, export_pages_async

    options = _build_options(args)
    results: Dict[int, ExportedDocument] = {}

    urls = [(i, s) for i, s in enumerate(args.sources) if _is_url(s)]
    files = [(i, s) for i, s in enumerate(args.sources) if not _is_url(s)]

    for index, source in files:
        logging.info("Converting file: %s", source)
        try:
            results[index] = export_file(source, options=options)
        except OSError as exc:
            results[index] = ExportedDocument.failed(source, str(exc))

    if urls:
        logging.info("Rendering %d page(s)...", len(urls))
        run_config = build_capture_run_config(_build_overrides(args), options.markers)
        docs = await export_pages_async(
            [url for _, url in urls],
            config=run_config,
            session=_build_session(args),
            options=options,
            concurrency=args.concurrency,
        )
        for (index, _), doc in zip(urls, docs):
            results[index] = doc

    ordered = [results[index] for index in sorted(results)]
    successful = [d for d in ordered if d.status == "success"]
    failed = [d for d in ordered if d.status == "failed"]

    for doc in failed:
        logging.warning("Failed: %s - %s", doc.request_url, doc.error_message)

    if not successful and not args.json_output:
        logging.error("All exports failed")
        return 1

    write_output(ordered if args.json_output else successful, args.output, args.json_output)
    return 0 if successful else 1


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the notion-md command."""
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    _load_config()

    try:
        return asyncio.run(_run_export_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
