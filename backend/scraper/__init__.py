"""Scraper package: web fetch, structured extraction & fallback content."""

from backend.scraper.extractor import extract_document
from backend.scraper.fallback import generate_fallback
from backend.scraper.fetcher import fetch_url
from backend.scraper.models import ExtractedDocument, RawPage
from backend.scraper.sanitizer import clean_content
from backend.scraper.urls import classify_link, normalize_url, resolve_reference

__all__ = [
    "fetch_url",
    "extract_document",
    "generate_fallback",
    "clean_content",
    "normalize_url",
    "resolve_reference",
    "classify_link",
    "RawPage",
    "ExtractedDocument",
]
