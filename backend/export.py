"""Read-only views over finished records: JSON / CSV export and batch stats.

Only ``completed`` records are exported; statistics cover every record.
"""

from __future__ import annotations

import csv
import io
import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from backend.llm.summarizer import display_category
from backend.pipeline.models import ScrapeRecord

CSV_HEADERS = ["Title", "URL", "Category", "Summary", "Word Count", "Extracted At"]


def completed_only(records: Iterable[ScrapeRecord]) -> list[ScrapeRecord]:
    return [r for r in records if r.status == "completed"]


def to_json(records: Iterable[ScrapeRecord], include_raw_html: bool = True) -> str:
    """Return an indented JSON array of the completed records."""
    payload = [r.to_dict(include_raw_html=include_raw_html) for r in completed_only(records)]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def to_csv(records: Iterable[ScrapeRecord]) -> str:
    """Return the completed records as CSV with a header row.

    Fields containing the delimiter, quotes or line breaks are quoted and
    embedded quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for record in completed_only(records):
        writer.writerow(
            [
                record.title,
                record.url,
                record.category,
                record.summary,
                record.word_count,
                record.extracted_at,
            ]
        )
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass
class BatchStats:
    total: int = 0
    completed: int = 0
    processing: int = 0
    errors: int = 0
    synthetic: int = 0
    total_words: int = 0
    total_images: int = 0
    total_links: int = 0
    avg_load_time_ms: int = 0
    total_size_bytes: int = 0
    categories: dict[str, int] = field(default_factory=dict)


def compute_stats(records: Iterable[ScrapeRecord]) -> BatchStats:
    items = list(records)
    stats = BatchStats(total=len(items))
    if not items:
        return stats

    categories: Counter[str] = Counter()
    for record in items:
        if record.status == "completed":
            stats.completed += 1
            categories[display_category(record.category)] += 1
        elif record.status == "processing":
            stats.processing += 1
        else:
            stats.errors += 1
        if record.provenance == "synthetic":
            stats.synthetic += 1
        stats.total_words += record.word_count
        stats.total_images += len(record.images)
        stats.total_links += len(record.links)
        stats.total_size_bytes += record.response_size_bytes

    stats.avg_load_time_ms = round(sum(r.load_time_ms for r in items) / len(items))
    stats.categories = dict(categories.most_common())
    return stats


def format_bytes(size: int) -> str:
    """Human-readable size: ``0 B``, ``512 B``, ``1.5 KB``, ``2 MB``."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    value = round(size / 1024**exponent, 1)
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {units[exponent]}"
