"""Text clean-up applied to extracted main content."""

from __future__ import annotations

import re

from backend.config import settings

_WHITESPACE_RE = re.compile(r"\s+")
# ASCII word characters, whitespace and basic punctuation survive; everything
# else goes, accented letters and non-Latin scripts included.
_DISALLOWED_RE = re.compile(r"[^\w\s.,;:!?-]", re.ASCII)


def clean_content(text: str, max_chars: int | None = None) -> str:
    """Collapse whitespace, drop disallowed characters, trim and cap *text*.

    Whitespace is collapsed again after character stripping so that removing
    a symbol between two spaces cannot leave a double space behind, which
    keeps the function idempotent.
    """
    limit = settings.max_content_chars if max_chars is None else max_chars
    cleaned = _WHITESPACE_RE.sub(" ", text or "")
    cleaned = _DISALLOWED_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:limit].rstrip()
