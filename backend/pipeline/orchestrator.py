"""Per-URL extraction pipeline and the batch drivers built on it.

``ScrapeOrchestrator.process`` runs one URL through:

    normalise → dedup check → fetch + extract (or fallback) → summarise → finalise

and always returns a terminal :class:`ScrapeRecord`; nothing is raised past
it.  ``submit`` drives a batch sequentially, ``submit_concurrent`` fans out
over a bounded thread pool.  The only shared state is the injected
:class:`DedupLedger`.
"""

from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Iterator, Optional

from backend.cancellation import CancellationToken
from backend.config import settings
from backend.errors import (
    DuplicateUrl,
    FetchFailed,
    ParseFailed,
    ScrapeError,
    SummarizationFailed,
)
from backend.llm.summarizer import Summarizer
from backend.pipeline.ledger import DedupLedger
from backend.pipeline.models import Provenance, ScrapeRecord
from backend.scraper.extractor import extract_document
from backend.scraper.fallback import generate_fallback
from backend.scraper.fetcher import fetch_url
from backend.scraper.models import ExtractedDocument, RawPage
from backend.scraper.urls import normalize_url

logger = logging.getLogger(__name__)

Fetcher = Callable[..., RawPage]
Extractor = Callable[[RawPage], ExtractedDocument]
FallbackGenerator = Callable[[str], ExtractedDocument]
RecordObserver = Callable[[ScrapeRecord], None]


def _new_record_id() -> str:
    return uuid.uuid4().hex[:9]


class ScrapeOrchestrator:
    """Owns the per-URL state machine.

    Args:
        summarizer: Produces ``(summary, category)`` for extracted text.
        ledger: Session dedup ledger, owned by the caller.
        fetcher: ``fetcher(url, cancel_token=...) -> RawPage``.
        extractor: ``extractor(raw) -> ExtractedDocument``.
        fallback: ``fallback(url) -> ExtractedDocument`` used when fetch or
            extraction fails.
        on_update: Called with the ``processing`` record and then with the
            terminal record for every URL.
        clock: Monotonic seconds, injectable for tests.
    """

    def __init__(
        self,
        summarizer: Summarizer,
        ledger: DedupLedger,
        *,
        fetcher: Fetcher = fetch_url,
        extractor: Extractor = extract_document,
        fallback: FallbackGenerator = generate_fallback,
        on_update: Optional[RecordObserver] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.summarizer = summarizer
        self.ledger = ledger
        self._fetcher = fetcher
        self._extractor = extractor
        self._fallback = fallback
        self._on_update = on_update
        self._clock = clock

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _emit(self, record: ScrapeRecord) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(record)
        except Exception:  # noqa: BLE001
            logger.exception("record observer failed", extra={"record_id": record.id})

    def _elapsed_ms(self, start: float) -> int:
        return int(round((self._clock() - start) * 1000))

    def _load_document(
        self, url: str, cancel_token: Optional[CancellationToken]
    ) -> tuple[ExtractedDocument, Provenance]:
        try:
            raw = self._fetcher(url, cancel_token=cancel_token)
            return self._extractor(raw), "live"
        except (FetchFailed, ParseFailed) as exc:
            logger.warning(
                "live extraction failed, using fallback content",
                extra={"url": url, "reason": exc.message},
            )
            return self._fallback(url), "synthetic"

    def _run(
        self,
        record_id: str,
        url: str,
        start: float,
        cancel_token: Optional[CancellationToken],
    ) -> ScrapeRecord:
        document, provenance = self._load_document(url, cancel_token)
        content = document.main_text

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        result = self.summarizer.summarize(content[: settings.summary_input_chars], url)

        return ScrapeRecord(
            id=record_id,
            url=url,
            status="completed",
            title=document.title,
            content=content,
            summary=result.summary,
            category=result.category,
            load_time_ms=self._elapsed_ms(start),
            response_size_bytes=document.byte_size,
            provenance=provenance,
            metadata=document.metadata,
            images=list(document.images[: settings.max_images]),
            links=list(document.links[: settings.max_links]),
            headings=list(document.headings),
            paragraphs=list(document.paragraphs[: settings.max_paragraphs]),
            raw_html=document.raw_html,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def process(
        self, url: str, cancel_token: Optional[CancellationToken] = None
    ) -> ScrapeRecord:
        """Run *url* through the pipeline and return its terminal record."""
        record_id = _new_record_id()
        start = self._clock()
        self._emit(ScrapeRecord.processing(record_id, url))

        def finish(record: ScrapeRecord) -> ScrapeRecord:
            logger.info(
                "scrape finished",
                extra={
                    "record_id": record.id,
                    "url": record.url,
                    "status": record.status,
                    "provenance": record.provenance,
                    "error": record.error,
                    "load_time_ms": record.load_time_ms,
                },
            )
            self._emit(record)
            return record

        try:
            normalized = normalize_url(url)
        except ScrapeError as exc:
            return finish(ScrapeRecord.failed(record_id, url, exc.message, self._elapsed_ms(start)))

        if not self.ledger.reserve(normalized):
            message = DuplicateUrl().message
            return finish(ScrapeRecord.failed(record_id, normalized, message, self._elapsed_ms(start)))

        try:
            record = self._run(record_id, normalized, start, cancel_token)
        except SummarizationFailed:
            self.ledger.release(normalized)
            message = SummarizationFailed.default_message
            return finish(ScrapeRecord.failed(record_id, normalized, message, self._elapsed_ms(start)))
        except ScrapeError as exc:
            self.ledger.release(normalized)
            return finish(ScrapeRecord.failed(record_id, normalized, exc.message, self._elapsed_ms(start)))
        except Exception as exc:  # noqa: BLE001
            self.ledger.release(normalized)
            logger.exception("unexpected pipeline failure", extra={"url": normalized})
            message = str(exc) or "Unknown error"
            return finish(ScrapeRecord.failed(record_id, normalized, message, self._elapsed_ms(start)))

        self.ledger.commit(normalized)
        return finish(record)

    def submit(
        self, urls: Iterable[str], cancel_token: Optional[CancellationToken] = None
    ) -> Iterator[ScrapeRecord]:
        """Lazily process *urls* one at a time, in input order."""
        for url in urls:
            yield self.process(url, cancel_token)

    def submit_concurrent(
        self,
        urls: Iterable[str],
        max_workers: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Iterator[ScrapeRecord]:
        """Process *urls* on a bounded thread pool, yielding in input order."""
        url_list = list(urls)
        if not url_list:
            return
        workers = max(1, min(max_workers or settings.max_concurrent_scrapes, len(url_list)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.process, url, cancel_token) for url in url_list]
            for future in futures:
                yield future.result()

    def with_observer(self, on_update: RecordObserver) -> "ScrapeOrchestrator":
        """Return an orchestrator sharing this one's collaborators and ledger
        but reporting transitions to *on_update*."""
        return ScrapeOrchestrator(
            self.summarizer,
            self.ledger,
            fetcher=self._fetcher,
            extractor=self._extractor,
            fallback=self._fallback,
            on_update=on_update,
            clock=self._clock,
        )

    def clear_processed(self) -> None:
        """Forget every processed URL so they can be submitted again."""
        self.ledger.clear()
