"""The per-URL record returned to callers of the orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from backend.scraper.models import Heading, ImageRef, LinkRef, Metadata

RecordStatus = Literal["processing", "completed", "error"]
Provenance = Literal["live", "synthetic"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ScrapeRecord:
    """Immutable snapshot of one URL's journey through the pipeline.

    A record is first published as ``processing`` and replaced exactly once
    by a ``completed`` or ``error`` record carrying the same ``id``.
    """

    id: str
    url: str
    status: RecordStatus
    title: str = ""
    content: str = ""
    summary: str = ""
    category: str = ""
    extracted_at: str = field(default_factory=_now_iso)
    load_time_ms: int = 0
    response_size_bytes: int = 0
    provenance: Optional[Provenance] = None
    error: Optional[str] = None
    metadata: Metadata = field(default_factory=Metadata)
    images: List[ImageRef] = field(default_factory=list)
    links: List[LinkRef] = field(default_factory=list)
    headings: List[Heading] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    raw_html: Optional[str] = None

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def processing(cls, record_id: str, url: str) -> "ScrapeRecord":
        return cls(id=record_id, url=url, status="processing")

    @classmethod
    def failed(cls, record_id: str, url: str, message: str, load_time_ms: int = 0) -> "ScrapeRecord":
        """An ``error`` record: content, summary, category and collections empty."""
        return cls(
            id=record_id,
            url=url,
            status="error",
            error=message,
            load_time_ms=load_time_ms,
        )

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def word_count(self) -> int:
        """Whitespace-delimited token count of ``content``."""
        return len(self.content.split())

    @property
    def is_terminal(self) -> bool:
        return self.status != "processing"

    def to_dict(self, include_raw_html: bool = True) -> dict[str, Any]:
        """Serialise to the camelCase shape used by exports and the API."""
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "summary": self.summary,
            "category": self.category,
            "extractedAt": self.extracted_at,
            "wordCount": self.word_count,
            "status": self.status,
            "provenance": self.provenance,
            "metadata": self.metadata.to_dict(),
            "images": [asdict(i) for i in self.images],
            "links": [{"url": l.url, "text": l.text, "type": l.kind} for l in self.links],
            "headings": [asdict(h) for h in self.headings],
            "paragraphs": list(self.paragraphs),
            "loadTime": self.load_time_ms,
            "responseSize": self.response_size_bytes,
        }
        if self.error is not None:
            data["error"] = self.error
        if include_raw_html and self.raw_html is not None:
            data["rawHtml"] = self.raw_html
        return data
