"""Page Digest CLI: entry-point for all backend operations.

Usage:
    python cli/main.py --help

Commands:
    scrape    run URLs through the extraction pipeline, optionally exporting
    serve     start the HTTP API with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import List, Optional

import typer

from backend.config import settings
from backend.export import compute_stats, format_bytes, to_csv, to_json
from backend.llm.summarizer import LLMSummarizer, display_category
from backend.logging_config import setup_logging
from backend.pipeline import DedupLedger, ScrapeOrchestrator, ScrapeRecord

app = typer.Typer(
    name="digest",
    help="Page Digest backend CLI.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def build_orchestrator() -> ScrapeOrchestrator:
    """Return an orchestrator with a fresh ledger for this CLI run."""
    return ScrapeOrchestrator(LLMSummarizer(), DedupLedger())


def _echo_record(record: ScrapeRecord, show_text: bool) -> None:
    if record.status == "error":
        typer.echo(f"❌ {record.url}  {record.error}")
        return

    tag = " (synthetic)" if record.provenance == "synthetic" else ""
    typer.echo(f"✅ {record.url}{tag}")
    typer.echo(f"   Title    : {record.title}")
    typer.echo(f"   Category : {display_category(record.category)}")
    typer.echo(f"   Words    : {record.word_count}  Images: {len(record.images)}  Links: {len(record.links)}")
    typer.echo(f"   Summary  : {record.summary}")
    if show_text:
        typer.echo("")
        typer.echo(record.content)
        typer.echo("")


def _echo_stats(records: List[ScrapeRecord]) -> None:
    stats = compute_stats(records)
    typer.echo("")
    typer.echo(
        f"[stats] {stats.completed}/{stats.total} completed, {stats.errors} error(s), "
        f"{stats.synthetic} synthetic"
    )
    typer.echo(
        f"[stats] words={stats.total_words} images={stats.total_images} "
        f"links={stats.total_links} avg_load={stats.avg_load_time_ms}ms "
        f"size={format_bytes(stats.total_size_bytes)}"
    )
    if stats.categories:
        breakdown = ", ".join(f"{name}={count}" for name, count in stats.categories.items())
        typer.echo(f"[stats] categories: {breakdown}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("scrape")
def scrape(
    urls: List[str] = typer.Argument(..., help="One or more URLs (scheme optional)."),
    concurrency: int = typer.Option(1, "--concurrency", "-c", min=1, help="Parallel workers."),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write completed records as JSON."),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write completed records as CSV."),
    show_text: bool = typer.Option(False, "--show-text", help="Print the extracted main text."),
) -> None:
    """Extract, summarise and categorise each URL, printing one block per URL."""
    setup_logging(settings.log_level)
    orchestrator = build_orchestrator()

    typer.echo(f"[scrape] Processing {len(urls)} URL(s) …")
    stream = (
        orchestrator.submit_concurrent(urls, max_workers=concurrency)
        if concurrency > 1
        else orchestrator.submit(urls)
    )

    records: List[ScrapeRecord] = []
    for record in stream:
        records.append(record)
        _echo_record(record, show_text)

    _echo_stats(records)

    if json_path is not None:
        json_path.write_text(to_json(records), encoding="utf-8")
        typer.echo(f"[scrape] JSON written to {json_path}")
    if csv_path is not None:
        csv_path.write_text(to_csv(records), encoding="utf-8")
        typer.echo(f"[scrape] CSV written to {csv_path}")

    if any(r.status == "error" for r in records):
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Auto-reload on code changes."),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    uvicorn.run("backend.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
