"""Synthetic substitute documents used when live retrieval or parsing fails.

The pool is small and pre-authored.  Selection is deterministic per URL
unless a ``random.Random`` is supplied, so repeated runs over the same input
produce the same record.
"""

from __future__ import annotations

import hashlib
import html
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from backend.scraper.models import ExtractedDocument, Heading, ImageRef, LinkRef, Metadata
from backend.scraper.urls import classify_link

FALLBACK_BYTE_SIZE = 2048
_DESCRIPTION_CHARS = 160
_KEYWORDS = ["technology", "innovation", "future", "AI"]
_AUTHOR = "Tech News Team"


@dataclass(frozen=True)
class _PoolEntry:
    title: str
    body: str
    images: tuple[ImageRef, ...]
    headings: tuple[Heading, ...]


FALLBACK_POOL: tuple[_PoolEntry, ...] = (
    _PoolEntry(
        title="Revolutionary AI Breakthrough in 2025",
        body=(
            "Scientists have achieved a major breakthrough in artificial intelligence, "
            "developing systems that can reason and learn more like humans. This "
            "advancement promises to transform industries from healthcare to autonomous "
            "vehicles. The new AI models demonstrate unprecedented capabilities in "
            "understanding context, making logical inferences, and adapting to new "
            "situations without extensive retraining."
        ),
        images=(
            ImageRef(
                src="https://images.pexels.com/photos/8386440/pexels-photo-8386440.jpeg",
                alt="AI Robot",
                title="Advanced AI System",
            ),
            ImageRef(
                src="https://images.pexels.com/photos/3861969/pexels-photo-3861969.jpeg",
                alt="Neural Network",
                title="Neural Network Visualization",
            ),
        ),
        headings=(
            Heading(1, "Revolutionary AI Breakthrough in 2025"),
            Heading(2, "Key Innovations"),
            Heading(2, "Industry Impact"),
        ),
    ),
    _PoolEntry(
        title="Sustainable Technology Trends Shaping the Future",
        body=(
            "The technology industry is embracing sustainability with innovative "
            "solutions for clean energy, efficient computing, and environmental "
            "monitoring. Companies are developing carbon-neutral data centers, "
            "biodegradable electronics, and AI-powered systems for optimizing resource "
            "usage. These advances represent a fundamental shift toward environmentally "
            "responsible technology development."
        ),
        images=(
            ImageRef(
                src="https://images.pexels.com/photos/9800029/pexels-photo-9800029.jpeg",
                alt="Solar Panels",
                title="Renewable Energy Technology",
            ),
            ImageRef(
                src="https://images.pexels.com/photos/414837/pexels-photo-414837.jpeg",
                alt="Wind Turbines",
                title="Wind Energy Farm",
            ),
        ),
        headings=(
            Heading(1, "Sustainable Technology Trends Shaping the Future"),
            Heading(2, "Clean Energy Solutions"),
            Heading(2, "Green Computing"),
        ),
    ),
    _PoolEntry(
        title="The Evolution of Remote Work Technologies",
        body=(
            "Remote work technologies have evolved dramatically, offering seamless "
            "collaboration tools, virtual reality meeting spaces, and AI-powered "
            "productivity assistants. These innovations are reshaping how teams "
            "communicate, collaborate, and maintain company culture across distributed "
            "workforces. The integration of immersive technologies is creating new "
            "possibilities for remote engagement and creativity."
        ),
        images=(
            ImageRef(
                src="https://images.pexels.com/photos/4050315/pexels-photo-4050315.jpeg",
                alt="Remote Work Setup",
                title="Modern Home Office",
            ),
            ImageRef(
                src="https://images.pexels.com/photos/3184360/pexels-photo-3184360.jpeg",
                alt="Video Conference",
                title="Virtual Team Meeting",
            ),
        ),
        headings=(
            Heading(1, "The Evolution of Remote Work Technologies"),
            Heading(2, "Collaboration Tools"),
            Heading(2, "Virtual Reality Integration"),
        ),
    ),
)


def _pick_index(url: str, rng: Optional[random.Random]) -> int:
    if rng is not None:
        return rng.randrange(len(FALLBACK_POOL))
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()
    return int(digest, 16) % len(FALLBACK_POOL)


def split_sentences(text: str) -> List[str]:
    """Naive ``". "`` split; every piece ends with a period."""
    sentences: List[str] = []
    for piece in text.split(". "):
        piece = piece.strip()
        if piece:
            sentences.append(piece if piece.endswith(".") else f"{piece}.")
    return sentences


def _placeholder_links(url: str) -> List[LinkRef]:
    targets = [
        ("https://example.com/related-1", "Related Article 1"),
        ("https://example.com/related-2", "Related Article 2"),
        (f"{url.rstrip('/')}/section1", "Section 1"),
    ]
    return [LinkRef(url=t, text=text, kind=classify_link(t, url)) for t, text in targets]


def generate_fallback(url: str, *, rng: Optional[random.Random] = None) -> ExtractedDocument:
    """Return a synthetic :class:`ExtractedDocument` for *url*.

    Never raises for a well-formed URL string.
    """
    entry = FALLBACK_POOL[_pick_index(url, rng)]
    description = f"{entry.body[:_DESCRIPTION_CHARS]}..."
    images = [
        ImageRef(src=i.src, alt=i.alt, title=i.title, width=i.width, height=i.height)
        for i in entry.images
    ]

    metadata = Metadata(
        title=entry.title,
        description=description,
        keywords=list(_KEYWORDS),
        author=_AUTHOR,
        publish_date=datetime.now(timezone.utc).isoformat(),
        language="en",
        canonical=url,
        og_title=entry.title,
        og_description=description,
        og_image=images[0].src if images else None,
    )

    title = html.escape(entry.title)
    raw_html = (
        f"<html><head><title>{title}</title></head>"
        f"<body><h1>{title}</h1><p>{html.escape(entry.body)}</p></body></html>"
    )

    return ExtractedDocument(
        title=entry.title,
        main_text=entry.body,
        metadata=metadata,
        images=images,
        links=_placeholder_links(url),
        headings=[Heading(h.level, h.text) for h in entry.headings],
        paragraphs=split_sentences(entry.body),
        raw_html=raw_html,
        byte_size=FALLBACK_BYTE_SIZE,
    )
