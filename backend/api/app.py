"""FastAPI application factory.

Lifespan
--------
On startup the app creates one :class:`DedupLedger` for the process and a
:class:`ScrapeOrchestrator` wired to the configured summarizer; both are
shared across requests via ``request.app.state``.

Routers
-------
    /scrape    run URLs through the extraction pipeline
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.llm.summarizer import LLMSummarizer
from backend.logging_config import setup_logging
from backend.pipeline import DedupLedger, ScrapeOrchestrator

from backend.api.routers import scrape as scrape_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the session ledger and orchestrator on startup."""
    setup_logging(settings.log_level)
    ledger = DedupLedger()
    app.state.ledger = ledger
    app.state.orchestrator = ScrapeOrchestrator(LLMSummarizer(), ledger)
    try:
        yield
    finally:
        ledger.clear()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Page Digest API",
        description=(
            "Turns web page URLs into structured records: title, cleaned text, "
            "headings, paragraphs, images, links and metadata, plus an "
            "LLM-generated summary and category."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(scrape_router.router, prefix="/scrape", tags=["scrape"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
