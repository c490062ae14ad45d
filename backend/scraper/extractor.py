"""Structured extraction: turns a :class:`RawPage` into an :class:`ExtractedDocument`.

Each sub-extraction (metadata, images, links, headings, paragraphs, main
text) is an independent function over the parsed tree.  They are run through
:func:`_best_effort` so a failure in one only empties that field and never
aborts its siblings.
"""

from __future__ import annotations

import copy
import logging
import re
from typing import Callable, List, Optional, TypeVar

from bs4 import BeautifulSoup, Tag

from backend.config import settings
from backend.errors import ParseFailed
from backend.scraper.models import (
    ExtractedDocument,
    Heading,
    ImageRef,
    LinkRef,
    Metadata,
    RawPage,
)
from backend.scraper.sanitizer import clean_content
from backend.scraper.urls import classify_link, resolve_reference

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_TITLE = "No title found"

# Stripped from the working copy before main-content selection.
NON_CONTENT_SELECTORS = [
    "script",
    "style",
    "nav",
    "footer",
    "header",
    "aside",
    ".advertisement",
    ".ads",
    ".social-share",
    ".comments",
]

# First match wins.
CONTENT_SELECTORS = [
    "main",
    "article",
    ".content",
    ".post-content",
    ".entry-content",
    ".article-body",
    ".story-body",
    "#content",
    ".main-content",
]

_LEADING_INT_RE = re.compile(r"^\s*(\d+)")
_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _best_effort(name: str, func: Callable[[], T], default: T) -> T:
    """Run *func*; on any error log it and return *default*."""
    try:
        return func()
    except Exception:  # noqa: BLE001
        logger.warning("sub-extraction failed", extra={"field": name}, exc_info=True)
        return default


def _text(tag: Tag) -> str:
    return tag.get_text().strip()


def _parse_dimension(value: Optional[str]) -> int:
    """Parse an HTML width/height attribute the lenient way browsers do."""
    if not value:
        return 0
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else 0


def _meta_content(soup: BeautifulSoup, key: str) -> Optional[str]:
    """Return ``content`` of the first ``<meta>`` whose name or property is *key*."""
    for meta in soup.find_all("meta"):
        if meta.get("name") == key or meta.get("property") == key:
            content = meta.get("content")
            return content if content else None
    return None


# ---------------------------------------------------------------------------
# Sub-extractions
# ---------------------------------------------------------------------------

def extract_metadata(soup: BeautifulSoup, base_url: str) -> Metadata:
    """Collect ``<title>``, description/keywords/author, OpenGraph and Twitter tags."""
    title_tag = soup.find("title")
    title = title_tag.get_text().strip() if title_tag else ""

    keywords: Optional[List[str]] = None
    raw_keywords = _meta_content(soup, "keywords")
    if raw_keywords:
        keywords = []
        for keyword in raw_keywords.split(","):
            keyword = keyword.strip()
            if keyword and keyword not in keywords:
                keywords.append(keyword)

    html_tag = soup.find("html")
    language = html_tag.get("lang") if isinstance(html_tag, Tag) else None
    canonical_tag = soup.find("link", rel="canonical")
    canonical = canonical_tag.get("href") if isinstance(canonical_tag, Tag) else None

    return Metadata(
        title=title,
        description=_meta_content(soup, "description"),
        keywords=keywords,
        author=_meta_content(soup, "author"),
        publish_date=(
            _meta_content(soup, "article:published_time") or _meta_content(soup, "date")
        ),
        language=language or _meta_content(soup, "language"),
        canonical=resolve_reference(canonical, base_url) if canonical else None,
        og_title=_meta_content(soup, "og:title"),
        og_description=_meta_content(soup, "og:description"),
        og_image=_meta_content(soup, "og:image"),
        twitter_title=_meta_content(soup, "twitter:title"),
        twitter_description=_meta_content(soup, "twitter:description"),
        twitter_image=_meta_content(soup, "twitter:image"),
    )


def extract_images(soup: BeautifulSoup, base_url: str) -> List[ImageRef]:
    """Return the first ``settings.max_images`` images with a non-empty ``src``."""
    images: List[ImageRef] = []
    for img in soup.find_all("img"):
        if len(images) >= settings.max_images:
            break
        src = (img.get("src") or "").strip()
        if not src:
            continue
        images.append(
            ImageRef(
                src=resolve_reference(src, base_url),
                alt=img.get("alt") or "",
                title=img.get("title"),
                width=_parse_dimension(img.get("width")),
                height=_parse_dimension(img.get("height")),
            )
        )
    return images


def extract_links(soup: BeautifulSoup, base_url: str) -> List[LinkRef]:
    """Return the first ``settings.max_links`` navigable links, classified."""
    links: List[LinkRef] = []
    for anchor in soup.find_all("a", href=True):
        if len(links) >= settings.max_links:
            break
        href = anchor["href"].strip()
        if not href or href.startswith("#") or href.lower().startswith("javascript:"):
            continue
        url = resolve_reference(href, base_url)
        links.append(
            LinkRef(url=url, text=_text(anchor), kind=classify_link(url, base_url))
        )
    return links


def extract_headings(soup: BeautifulSoup) -> List[Heading]:
    """Return every non-empty h1–h6 in document order."""
    headings: List[Heading] = []
    for tag in soup.find_all(_HEADING_TAGS):
        text = _text(tag)
        if text:
            headings.append(Heading(level=int(tag.name[1]), text=text))
    return headings


def extract_paragraphs(soup: BeautifulSoup) -> List[str]:
    """Return the first paragraphs longer than ``settings.min_paragraph_chars``."""
    paragraphs: List[str] = []
    for p in soup.find_all("p"):
        if len(paragraphs) >= settings.max_paragraphs:
            break
        text = _text(p)
        if len(text) > settings.min_paragraph_chars:
            paragraphs.append(text)
    return paragraphs


def _readability_text(html: str, url: str) -> str:
    """Ask trafilatura for the main text; imported lazily like the browser path."""
    import trafilatura  # noqa: PLC0415

    return trafilatura.extract(html, include_links=False, include_images=False, url=url) or ""


def extract_main_text(soup: BeautifulSoup, html: str = "", base_url: str = "") -> str:
    """Return sanitised main-content text.

    Works on a copy so the other extractions still see the full tree.
    """
    working = copy.copy(soup)
    for selector in NON_CONTENT_SELECTORS:
        for element in working.select(selector):
            element.decompose()

    for selector in CONTENT_SELECTORS:
        container = working.select_one(selector)
        if container is not None:
            return clean_content(container.get_text(separator=" "))

    if settings.readability_fallback and html:
        text = _best_effort("readability", lambda: _readability_text(html, base_url), "")
        if text:
            return clean_content(text)

    body = working.body or working
    return clean_content(body.get_text(separator=" "))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_html(html: str) -> BeautifulSoup:
    """Parse *html* into a tree.

    Raises:
        ParseFailed: If *html* is empty or the parser gives up.
    """
    if not html or not html.strip():
        raise ParseFailed("Empty document")
    try:
        return BeautifulSoup(html, "html.parser")
    except Exception as exc:  # noqa: BLE001
        raise ParseFailed(f"Could not parse HTML: {exc}") from exc


def extract_document(raw: RawPage) -> ExtractedDocument:
    """Extract every structured field from *raw*.

    Raises:
        ParseFailed: Only when the HTML cannot be parsed at all.
    """
    soup = parse_html(raw.html)
    base = raw.url

    metadata = _best_effort("metadata", lambda: extract_metadata(soup, base), Metadata())
    main_text = _best_effort("main_text", lambda: extract_main_text(soup, raw.html, base), "")

    return ExtractedDocument(
        title=metadata.title or NO_TITLE,
        main_text=main_text,
        metadata=metadata,
        images=_best_effort("images", lambda: extract_images(soup, base), []),
        links=_best_effort("links", lambda: extract_links(soup, base), []),
        headings=_best_effort("headings", lambda: extract_headings(soup), []),
        paragraphs=_best_effort("paragraphs", lambda: extract_paragraphs(soup), []),
        raw_html=raw.html,
        byte_size=raw.byte_size or len(raw.html.encode("utf-8")),
    )
