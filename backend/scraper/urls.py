"""URL canonicalisation, relative-reference resolution and link classification."""

from __future__ import annotations

import re
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from backend.errors import InvalidUrl
from backend.scraper.models import LinkKind

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_MALFORMED_SCHEME_RE = re.compile(r"^https?:", re.IGNORECASE)
# Whitespace or C0/C1 control characters anywhere make the input unusable.
_BAD_CHARS_RE = re.compile(r"[\s\x00-\x1f\x7f-\x9f]")

# Characters left untouched when percent-encoding path / query / fragment.
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"
_QUERY_SAFE = _PATH_SAFE + "?"


def normalize_url(raw: str) -> str:
    """Return the canonical absolute form of *raw*.

    A missing scheme defaults to ``https://``.  The returned string is the
    identity key used by the dedup ledger.

    Raises:
        InvalidUrl: If *raw* cannot be parsed as an absolute http(s) URL.
    """
    candidate = (raw or "").strip()
    if not candidate or _BAD_CHARS_RE.search(candidate):
        raise InvalidUrl()

    if not _SCHEME_RE.match(candidate):
        if "://" in candidate or _MALFORMED_SCHEME_RE.match(candidate):
            raise InvalidUrl()
        candidate = f"https://{candidate}"

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        port = parts.port
    except ValueError as exc:
        raise InvalidUrl() from exc

    if not hostname:
        raise InvalidUrl()
    try:
        hostname = hostname.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise InvalidUrl() from exc
    if not re.fullmatch(r"[A-Za-z0-9.\-:_]+", hostname):
        raise InvalidUrl()

    netloc = hostname.lower()
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    if port is not None:
        netloc = f"{netloc}:{port}"

    return urlunsplit(
        (
            parts.scheme.lower(),
            netloc,
            quote(parts.path, safe=_PATH_SAFE) or "/",
            quote(parts.query, safe=_QUERY_SAFE),
            quote(parts.fragment, safe=_QUERY_SAFE),
        )
    )


def resolve_reference(ref: str, base: str) -> str:
    """Resolve a possibly-relative *ref* against *base*.

    Malformed references are common in the wild, so on failure the original
    string is returned unchanged instead of raising.
    """
    try:
        return urljoin(base, ref.strip())
    except (ValueError, TypeError, AttributeError):
        return ref


def classify_link(url: str, base: str) -> LinkKind:
    """Return ``"external"`` when *url*'s host differs from *base*'s host."""
    try:
        host = urlsplit(url).hostname
        base_host = urlsplit(base).hostname
    except ValueError:
        return "external"
    if host and base_host and host.lower() == base_host.lower():
        return "internal"
    return "external"
