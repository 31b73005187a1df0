"""Data structures representing exported pages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(slots=True)
class ExportedDocument:
    """Markdown export of one page plus capture metadata."""

    request_url: str
    final_url: str
    status: str  # success, failed
    markdown: str
    title: str = ""
    html: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, url: str, error_message: str, **fields: Any) -> ExportedDocument:
        """A failed export of ``url``; ``fields`` set the remaining attributes."""
        fields.setdefault("final_url", url)
        return cls(
            request_url=url,
            status="failed",
            markdown="",
            error_message=error_message,
            **fields,
        )
