"""HTTP fetcher with an optional retrieval-proxy transport.

``direct`` mode GETs the target URL.  ``proxy`` mode GETs a retrieval
intermediary (``settings.fetch_proxy_url``) that wraps the page in a JSON
envelope of the form ``{"contents": "<html>...", "status": {...}}``, which is
how browser-side callers get around cross-origin restrictions.

No retries are attempted here; the orchestrator decides what to do when a
fetch fails.
"""

from __future__ import annotations

import logging

import httpx

from backend.cancellation import CancellationToken
from backend.config import settings
from backend.errors import FetchFailed
from backend.scraper.models import RawPage

logger = logging.getLogger(__name__)


def _default_headers() -> dict[str, str]:
    return {"User-Agent": settings.user_agent}


def _get(client: httpx.Client, url: str, params: dict[str, str] | None = None) -> httpx.Response:
    try:
        response = client.get(url, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchFailed(f"HTTP {exc.response.status_code} for {url}") from exc
    except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
        raise FetchFailed(f"Request failed for {url}: {exc}") from exc
    return response


def _fetch_direct(client: httpx.Client, url: str) -> tuple[str, int]:
    response = _get(client, url)
    return response.text, response.status_code


def _fetch_via_proxy(client: httpx.Client, url: str) -> tuple[str, int]:
    response = _get(client, settings.fetch_proxy_url, params={"url": url})
    try:
        envelope = response.json()
    except ValueError as exc:
        raise FetchFailed(f"Proxy returned a non-JSON envelope for {url}") from exc
    if not isinstance(envelope, dict):
        raise FetchFailed(f"Proxy returned an unexpected envelope for {url}")

    # The proxy itself answers 200; the upstream status lives in the envelope.
    status = envelope.get("status") or {}
    upstream_code = status.get("http_code") if isinstance(status, dict) else None
    if isinstance(upstream_code, int) and not 200 <= upstream_code < 300:
        raise FetchFailed(f"HTTP {upstream_code} for {url}")

    contents = envelope.get("contents")
    if not isinstance(contents, str):
        contents = ""
    return contents, upstream_code or response.status_code


def fetch_url(
    url: str,
    *,
    client: httpx.Client | None = None,
    cancel_token: CancellationToken | None = None,
) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    Args:
        url: Absolute, already-normalised URL.
        client: Optional pre-configured ``httpx.Client`` (tests, connection
            reuse).  A short-lived client is created when omitted.
        cancel_token: Checked immediately before the network call.

    Raises:
        FetchFailed: On transport errors, non-2xx statuses, or an empty body.
        Cancelled: If *cancel_token* was cancelled.
    """
    if cancel_token is not None:
        cancel_token.raise_if_cancelled()

    fetch = _fetch_via_proxy if settings.fetch_mode == "proxy" else _fetch_direct
    logger.debug("fetching page", extra={"url": url, "mode": settings.fetch_mode})

    if client is not None:
        html, status_code = fetch(client, url)
    else:
        with httpx.Client(
            headers=_default_headers(),
            timeout=settings.request_timeout,
            follow_redirects=True,
        ) as own_client:
            html, status_code = fetch(own_client, url)

    if not html or not html.strip():
        raise FetchFailed(f"Empty response body for {url}")

    byte_size = len(html.encode("utf-8"))
    logger.debug("page fetched", extra={"url": url, "status_code": status_code, "bytes": byte_size})
    return RawPage(url=url, html=html, status_code=status_code, byte_size=byte_size)
