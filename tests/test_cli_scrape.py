"""Tests for the 'scrape' CLI command."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from backend.errors import FetchFailed
from backend.llm.summarizer import SummaryResult
from backend.pipeline import DedupLedger, ScrapeOrchestrator
from backend.scraper.models import RawPage
from cli.main import app

runner = CliRunner()

_PAGE = (
    "<html><head><title>CLI Page</title></head>"
    "<body><main><p>Enough words here to make a paragraph worth keeping.</p></main></body></html>"
)


class _Summarizer:
    def summarize(self, text: str, source_url: str) -> SummaryResult:
        return SummaryResult(summary="Quick summary.", category="Research")


def _fetcher(url: str, cancel_token=None) -> RawPage:
    if "offline" in url:
        raise FetchFailed("offline")
    return RawPage(url=url, html=_PAGE, status_code=200, byte_size=len(_PAGE))


@pytest.fixture(autouse=True)
def fake_orchestrator(monkeypatch):
    monkeypatch.setattr(
        "cli.main.build_orchestrator",
        lambda: ScrapeOrchestrator(_Summarizer(), DedupLedger(), fetcher=_fetcher),
    )


def test_scrape_prints_record_and_stats():
    result = runner.invoke(app, ["scrape", "example.com"])
    assert result.exit_code == 0, result.output
    assert "https://example.com/" in result.output
    assert "CLI Page" in result.output
    assert "Quick summary." in result.output
    assert "1/1 completed" in result.output


def test_scrape_marks_synthetic_records():
    result = runner.invoke(app, ["scrape", "offline.example"])
    assert result.exit_code == 0
    assert "(synthetic)" in result.output


def test_scrape_error_exits_non_zero():
    result = runner.invoke(app, ["scrape", "example.com", "not a url"])
    assert result.exit_code == 1
    assert "Invalid URL format" in result.output


def test_scrape_duplicate_in_one_batch():
    result = runner.invoke(app, ["scrape", "example.com", "https://example.com/"])
    assert result.exit_code == 1
    assert "URL already processed" in result.output


def test_scrape_writes_exports(tmp_path):
    json_path = tmp_path / "out.json"
    csv_path = tmp_path / "out.csv"
    result = runner.invoke(
        app, ["scrape", "a.example", "b.example", "--json", str(json_path), "--csv", str(csv_path)]
    )
    assert result.exit_code == 0, result.output

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    assert [r["url"] for r in payload] == ["https://a.example/", "https://b.example/"]
    lines = csv_path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Title,URL,Category")
    assert len(lines) == 3


def test_scrape_concurrency_option():
    result = runner.invoke(app, ["scrape", "a.example", "b.example", "-c", "2", "--show-text"])
    assert result.exit_code == 0
    assert "2/2 completed" in result.output
    assert "Enough words here" in result.output
