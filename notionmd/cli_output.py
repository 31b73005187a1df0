"""Output and formatting helpers for CLI commands."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote, urlparse

from .document import ExportedDocument

# Notion page paths end in a 32 hex digit block id: /Title-Words-0123abcd...
_NOTION_ID_SUFFIX = re.compile(r"-?[0-9a-f]{32}$", re.IGNORECASE)
_UNSAFE_CHARS = re.compile(r"[^\w.-]+")


def doc_to_dict(doc: ExportedDocument) -> dict:
    """Convert document to JSON-serializable dict."""
    return {
        "request_url": doc.request_url,
        "final_url": doc.final_url,
        "status": doc.status,
        "title": doc.title,
        "markdown": doc.markdown,
        "error_message": doc.error_message,
        "metadata": doc.metadata,
    }


def source_to_filename(source: str) -> str:
    """Convert a page URL or file URI to a safe file name stem."""
    parsed = urlparse(source)
    last_segment = unquote(parsed.path.rstrip("/").rsplit("/", 1)[-1])
    if parsed.scheme == "file":
        stem = last_segment.rsplit(".", 1)[0] if "." in last_segment else last_segment
    else:
        stem = _NOTION_ID_SUFFIX.sub("", last_segment)
    stem = _UNSAFE_CHARS.sub("_", stem).strip("_")
    if not stem:
        stem = _UNSAFE_CHARS.sub("_", parsed.netloc).strip("_") or "page"
    return stem[:100]


def write_output(
    docs: List[ExportedDocument],
    output: Optional[str],
    json_output: bool,
) -> None:
    """Write documents to output destination."""
    if len(docs) == 1 and output is None:
        doc = docs[0]
        if json_output:
            print(json.dumps(doc_to_dict(doc), indent=2, ensure_ascii=False))
        else:
            print(doc.markdown)
        return

    if len(docs) == 1 and output and not output.endswith("/"):
        doc = docs[0]
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        if json_output:
            path.write_text(
                json.dumps(doc_to_dict(doc), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        else:
            path.write_text(doc.markdown, encoding="utf-8")
        logging.info("Wrote %s", path)
        return

    out_dir = Path(output) if output else Path(".")
    out_dir.mkdir(parents=True, exist_ok=True)

    if json_output:
        out_path = out_dir / "notion_export.json"
        out_path.write_text(
            json.dumps([doc_to_dict(doc) for doc in docs], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logging.info("Wrote %d documents to %s", len(docs), out_path)
        return

    used: set[str] = set()
    for doc in docs:
        stem = source_to_filename(doc.final_url)
        candidate = stem
        counter = 2
        while candidate in used:
            candidate = f"{stem}_{counter}"
            counter += 1
        used.add(candidate)
        path = out_dir / f"{candidate}.md"
        path.write_text(doc.markdown, encoding="utf-8")
        logging.info("Wrote %s", path)
