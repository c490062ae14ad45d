"""Tests for the scrape pipeline: ledger, fallback content, orchestrator.

The fetcher, extractor and summarizer are replaced with in-process fakes so
no network or LLM calls are made.  Each test builds its own
:class:`DedupLedger`, so no state leaks between tests.
"""

from __future__ import annotations

import random
import threading
from typing import List

import pytest
import respx

from backend.cancellation import CancellationToken
from backend.errors import FetchFailed, ParseFailed, SummarizationFailed
from backend.llm.summarizer import SummaryResult
from backend.pipeline import DedupLedger, ScrapeOrchestrator, ScrapeRecord
from backend.scraper.extractor import extract_document
from backend.scraper.fallback import FALLBACK_BYTE_SIZE, FALLBACK_POOL, generate_fallback, split_sentences
from backend.scraper.fetcher import fetch_url
from backend.scraper.models import RawPage

_PAGE = """\
<html><head><title>Live Page</title></head>
<body><main>
  <h1>Live Page</h1>
  <p>This page was fetched from the network for real.</p>
  <img src="/a.png"><a href="https://other.org/">Other</a>
</main></body></html>
"""

_POOL_TITLES = {entry.title for entry in FALLBACK_POOL}


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeSummarizer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple[str, str]] = []

    def summarize(self, text: str, source_url: str) -> SummaryResult:
        self.calls.append((text, source_url))
        if self.fail:
            raise SummarizationFailed("quota exceeded")
        return SummaryResult(summary="A short summary.", category="Technology")


class RecordingFetcher:
    def __init__(self, html: str | None = _PAGE, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.calls: List[str] = []

    def __call__(self, url: str, cancel_token: CancellationToken | None = None) -> RawPage:
        self.calls.append(url)
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        if self.error is not None:
            raise self.error
        return RawPage(url=url, html=self.html, status_code=200, byte_size=len(self.html))


def _orchestrator(fetcher=None, summarizer=None, ledger=None, **kwargs) -> ScrapeOrchestrator:
    return ScrapeOrchestrator(
        summarizer or FakeSummarizer(),
        ledger if ledger is not None else DedupLedger(),
        fetcher=fetcher or RecordingFetcher(),
        **kwargs,
    )


def _assert_empty_error(record: ScrapeRecord) -> None:
    assert record.status == "error"
    assert record.content == ""
    assert record.summary == ""
    assert record.category == ""
    assert record.images == [] and record.links == []
    assert record.headings == [] and record.paragraphs == []
    assert record.word_count == 0


# ---------------------------------------------------------------------------
# DedupLedger
# ---------------------------------------------------------------------------

class TestDedupLedger:
    def test_add_has_clear(self) -> None:
        ledger = DedupLedger()
        assert not ledger.has("https://a.com/")
        ledger.add("https://a.com/")
        assert ledger.has("https://a.com/")
        assert "https://a.com/" in ledger
        assert len(ledger) == 1
        ledger.clear()
        assert len(ledger) == 0

    def test_reserve_blocks_in_flight_and_completed(self) -> None:
        ledger = DedupLedger()
        assert ledger.reserve("u") is True
        assert ledger.reserve("u") is False
        ledger.commit("u")
        assert ledger.has("u")
        assert ledger.reserve("u") is False

    def test_release_allows_retry(self) -> None:
        ledger = DedupLedger()
        ledger.reserve("u")
        ledger.release("u")
        assert not ledger.has("u")
        assert ledger.reserve("u") is True

    def test_concurrent_reserve_has_single_winner(self) -> None:
        ledger = DedupLedger()
        wins: List[bool] = []
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            wins.append(ledger.reserve("https://race.test/"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert wins.count(True) == 1


# ---------------------------------------------------------------------------
# Fallback generator
# ---------------------------------------------------------------------------

class TestFallback:
    def test_document_drawn_from_pool(self) -> None:
        doc = generate_fallback("https://example.com/")
        assert doc.title in _POOL_TITLES
        assert doc.main_text
        assert 1 <= len(doc.images) <= 2
        assert len(doc.headings) == 3
        assert doc.byte_size == FALLBACK_BYTE_SIZE
        assert doc.metadata.canonical == "https://example.com/"
        assert doc.raw_html.startswith("<html><head><title>")

    def test_selection_is_deterministic_per_url(self) -> None:
        assert generate_fallback("https://a.com/").title == generate_fallback("https://a.com/").title

    def test_injected_rng_selects_entry(self) -> None:
        doc = generate_fallback("https://a.com/", rng=random.Random(7))
        assert doc.title == FALLBACK_POOL[random.Random(7).randrange(len(FALLBACK_POOL))].title

    def test_placeholder_links_mix_internal_and_external(self) -> None:
        links = generate_fallback("https://news.test/story/").links
        kinds = {l.url: l.kind for l in links}
        assert kinds["https://news.test/story/section1"] == "internal"
        assert kinds["https://example.com/related-1"] == "external"

    def test_paragraphs_are_sentences(self) -> None:
        doc = generate_fallback("https://a.com/")
        assert doc.paragraphs == split_sentences(doc.main_text)
        assert all(p.endswith(".") for p in doc.paragraphs)

    def test_split_sentences(self) -> None:
        assert split_sentences("One. Two three. Four.") == ["One.", "Two three.", "Four."]


# ---------------------------------------------------------------------------
# ScrapeRecord
# ---------------------------------------------------------------------------

class TestScrapeRecord:
    def test_word_count_tracks_content(self) -> None:
        record = ScrapeRecord(id="x", url="https://a.com/", status="completed", content="a b  c")
        assert record.word_count == 3

    def test_failed_factory_is_empty(self) -> None:
        record = ScrapeRecord.failed("x", "bad", "Invalid URL format")
        _assert_empty_error(record)
        assert record.error == "Invalid URL format"

    def test_records_are_immutable(self) -> None:
        record = ScrapeRecord.processing("x", "https://a.com/")
        with pytest.raises(AttributeError):
            record.status = "completed"  # type: ignore[misc]

    def test_to_dict_uses_camel_case(self) -> None:
        data = ScrapeRecord(id="x", url="u", status="completed", content="one two").to_dict()
        assert data["wordCount"] == 2
        assert "loadTime" in data and "responseSize" in data and "extractedAt" in data
        assert "error" not in data


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class TestOrchestratorProcess:
    def test_live_extraction_completes(self) -> None:
        fetcher = RecordingFetcher()
        summarizer = FakeSummarizer()
        orchestrator = _orchestrator(fetcher=fetcher, summarizer=summarizer)

        record = orchestrator.process("example.com/page")

        assert record.status == "completed"
        assert record.provenance == "live"
        assert record.url == "https://example.com/page"
        assert record.title == "Live Page"
        assert record.summary == "A short summary."
        assert record.category == "Technology"
        assert record.word_count == len(record.content.split())
        assert record.error is None
        assert record.response_size_bytes == len(_PAGE)
        assert fetcher.calls == ["https://example.com/page"]
        assert summarizer.calls == [(record.content, "https://example.com/page")]
        assert orchestrator.ledger.has("https://example.com/page")

    def test_failing_fetch_uses_fallback(self) -> None:
        fetcher = RecordingFetcher(error=FetchFailed("boom"))
        records = list(_orchestrator(fetcher=fetcher).submit(["example.com"]))

        assert len(records) == 1
        record = records[0]
        assert record.status == "completed"
        assert record.provenance == "synthetic"
        assert record.title in _POOL_TITLES
        assert record.content
        assert len(record.images) <= 2
        assert record.error is None

    def test_overlong_url_uses_fallback(self) -> None:
        with respx.mock(assert_all_called=False):
            record = _orchestrator(fetcher=fetch_url).process("example.com/" + "a" * 70000)

        assert record.status == "completed"
        assert record.provenance == "synthetic"
        assert record.error is None

    def test_parse_failure_uses_fallback(self) -> None:
        def bad_extractor(raw: RawPage):
            raise ParseFailed("nope")

        record = _orchestrator(extractor=bad_extractor).process("example.com")
        assert record.status == "completed"
        assert record.provenance == "synthetic"

    def test_invalid_url_makes_no_calls(self) -> None:
        fetcher = RecordingFetcher()
        summarizer = FakeSummarizer()
        records = list(_orchestrator(fetcher=fetcher, summarizer=summarizer).submit(["not a url"]))

        assert len(records) == 1
        _assert_empty_error(records[0])
        assert records[0].error == "Invalid URL format"
        assert records[0].url == "not a url"
        assert fetcher.calls == []
        assert summarizer.calls == []

    def test_duplicate_submission_fails_before_fetch(self) -> None:
        fetcher = RecordingFetcher()
        orchestrator = _orchestrator(fetcher=fetcher)

        first, second = orchestrator.submit(["https://example.com/", "example.com"])

        assert first.status == "completed"
        _assert_empty_error(second)
        assert second.error == "URL already processed"
        assert len(fetcher.calls) == 1

    def test_summarizer_failure_discards_content(self) -> None:
        orchestrator = _orchestrator(summarizer=FakeSummarizer(fail=True))
        record = orchestrator.process("example.com")

        _assert_empty_error(record)
        assert record.error == "Failed to generate summary"
        assert not orchestrator.ledger.has("https://example.com/")

    def test_url_can_be_resubmitted_after_failure(self) -> None:
        ledger = DedupLedger()
        _orchestrator(summarizer=FakeSummarizer(fail=True), ledger=ledger).process("example.com")
        record = _orchestrator(ledger=ledger).process("example.com")
        assert record.status == "completed"

    def test_summarizer_input_is_capped(self, monkeypatch) -> None:
        monkeypatch.setattr("backend.config.settings.summary_input_chars", 10)
        summarizer = FakeSummarizer()
        _orchestrator(summarizer=summarizer).process("example.com")
        assert len(summarizer.calls[0][0]) == 10

    def test_observer_sees_processing_then_terminal(self) -> None:
        seen: List[ScrapeRecord] = []
        orchestrator = _orchestrator(on_update=seen.append)

        record = orchestrator.process("example.com")

        assert [r.status for r in seen] == ["processing", "completed"]
        assert seen[0].id == seen[1].id == record.id

    def test_observer_errors_do_not_escape(self) -> None:
        def broken(record: ScrapeRecord) -> None:
            raise RuntimeError("ui crashed")

        record = _orchestrator(on_update=broken).process("example.com")
        assert record.status == "completed"

    def test_unexpected_extractor_error_becomes_error_record(self) -> None:
        def exploding(raw: RawPage):
            raise KeyError("surprise")

        record = _orchestrator(extractor=exploding).process("example.com")
        _assert_empty_error(record)
        assert "surprise" in record.error

    def test_cancelled_before_fetch(self) -> None:
        token = CancellationToken()
        token.cancel()
        summarizer = FakeSummarizer()
        orchestrator = _orchestrator(summarizer=summarizer)

        record = orchestrator.process("example.com", cancel_token=token)

        _assert_empty_error(record)
        assert record.error == "Cancelled"
        assert summarizer.calls == []
        assert not orchestrator.ledger.has("https://example.com/")

    def test_cancelled_between_fetch_and_summary(self) -> None:
        token = CancellationToken()
        fetcher = RecordingFetcher()

        def cancelling_extractor(raw: RawPage):
            token.cancel()
            return extract_document(raw)

        summarizer = FakeSummarizer()
        record = _orchestrator(
            fetcher=fetcher, summarizer=summarizer, extractor=cancelling_extractor
        ).process("example.com", cancel_token=token)

        assert record.error == "Cancelled"
        assert summarizer.calls == []

    def test_load_time_uses_clock(self) -> None:
        ticks = iter([10.0, 10.25, 10.5])
        record = _orchestrator(clock=lambda: next(ticks)).process("example.com")
        assert record.load_time_ms == 250


class TestOrchestratorBatches:
    def test_submit_is_lazy_and_ordered(self) -> None:
        fetcher = RecordingFetcher()
        stream = _orchestrator(fetcher=fetcher).submit(["a.com", "b.com", "c.com"])
        assert fetcher.calls == []

        first = next(stream)
        assert first.url == "https://a.com/"
        assert fetcher.calls == ["https://a.com/"]
        assert [r.url for r in stream] == ["https://b.com/", "https://c.com/"]

    def test_concurrent_preserves_input_order(self) -> None:
        urls = [f"site{n}.test" for n in range(6)]
        records = list(_orchestrator().submit_concurrent(urls, max_workers=3))
        assert [r.url for r in records] == [f"https://site{n}.test/" for n in range(6)]
        assert all(r.status == "completed" for r in records)

    def test_concurrent_duplicates_only_one_wins(self) -> None:
        release = threading.Event()

        class SlowFetcher(RecordingFetcher):
            def __call__(self, url, cancel_token=None):
                release.wait(timeout=5)
                return super().__call__(url, cancel_token)

        fetcher = SlowFetcher()
        orchestrator = _orchestrator(fetcher=fetcher)
        stream = orchestrator.submit_concurrent(["dup.test", "https://dup.test/"], max_workers=2)

        # Let the second submission hit the ledger while the first is in flight.
        threading.Timer(0.2, release.set).start()
        records = list(stream)

        statuses = sorted(r.status for r in records)
        assert statuses == ["completed", "error"]
        assert len(fetcher.calls) == 1

    def test_concurrent_empty_input(self) -> None:
        assert list(_orchestrator().submit_concurrent([])) == []

    def test_clear_processed_allows_resubmission(self) -> None:
        orchestrator = _orchestrator()
        orchestrator.process("example.com")
        orchestrator.clear_processed()
        assert orchestrator.process("example.com").status == "completed"
