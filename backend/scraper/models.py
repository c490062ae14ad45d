"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, List, Literal, Optional

LinkKind = Literal["internal", "external"]


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int
    byte_size: int = 0


@dataclass
class Metadata:
    """Page-level metadata.  Only ``title`` is always present."""

    title: str = ""
    description: Optional[str] = None
    keywords: Optional[List[str]] = None
    author: Optional[str] = None
    publish_date: Optional[str] = None
    language: Optional[str] = None
    canonical: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None
    twitter_image: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping used by exports, unset fields omitted."""
        names = {
            "publish_date": "publishDate",
            "og_title": "ogTitle",
            "og_description": "ogDescription",
            "og_image": "ogImage",
            "twitter_title": "twitterTitle",
            "twitter_description": "twitterDescription",
            "twitter_image": "twitterImage",
        }
        return {
            names.get(key, key): value
            for key, value in asdict(self).items()
            if value is not None
        }


@dataclass
class ImageRef:
    src: str
    alt: str = ""
    title: Optional[str] = None
    width: int = 0
    height: int = 0


@dataclass
class LinkRef:
    url: str
    text: str
    kind: LinkKind


@dataclass
class Heading:
    level: int
    text: str


@dataclass
class ExtractedDocument:
    """Structured content for one page, live or synthetic."""

    title: str
    main_text: str
    metadata: Metadata
    images: List[ImageRef] = field(default_factory=list)
    links: List[LinkRef] = field(default_factory=list)
    headings: List[Heading] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    raw_html: str = ""
    byte_size: int = 0
