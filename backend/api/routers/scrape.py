"""Scrape endpoints.

Routes
------
POST   /scrape              Body: {"urls": [...]}  → list of terminal records
POST   /scrape/stream       Body: {"urls": [...]}  → NDJSON, processing + terminal records
GET    /scrape/processed    → {"count": n}
DELETE /scrape/processed    → clear the dedup ledger
"""

from __future__ import annotations

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from typing import Any, AsyncIterator, Iterator, Optional

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from backend.cancellation import CancellationToken
from backend.pipeline import ScrapeOrchestrator, ScrapeRecord

router = APIRouter()

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="scrape-stream")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    urls: list[str] = Field(..., min_length=1)
    include_raw_html: bool = False
    concurrency: int = Field(1, ge=1, le=16)


class LedgerResponse(BaseModel):
    count: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _records(
    orchestrator: ScrapeOrchestrator,
    body: ScrapeRequest,
    cancel_token: Optional[CancellationToken] = None,
) -> Iterator[ScrapeRecord]:
    if body.concurrency > 1:
        return orchestrator.submit_concurrent(
            body.urls, max_workers=body.concurrency, cancel_token=cancel_token
        )
    return orchestrator.submit(body.urls, cancel_token)


async def _stream_lines(orchestrator: ScrapeOrchestrator, body: ScrapeRequest) -> AsyncIterator[str]:
    """Yield one NDJSON line per state transition, in the order they happen.

    The batch runs on the shared executor with an observer that hands every
    record (``processing`` and terminal) to the event loop.  When the client
    goes away the generator is closed, which cancels the rest of the batch so
    unsent URLs are not committed to the ledger.
    """
    loop = asyncio.get_running_loop()
    updates: asyncio.Queue[ScrapeRecord | None] = asyncio.Queue()
    token = CancellationToken()

    def _put(record: ScrapeRecord) -> None:
        loop.call_soon_threadsafe(updates.put_nowait, record)

    def run() -> None:
        try:
            for _ in _records(orchestrator.with_observer(_put), body, token):
                pass
        finally:
            loop.call_soon_threadsafe(updates.put_nowait, None)  # sentinel

    future = loop.run_in_executor(_executor, run)

    try:
        while True:
            record = await updates.get()
            if record is None:
                break
            yield json.dumps(record.to_dict(include_raw_html=body.include_raw_html)) + "\n"
    finally:
        token.cancel()
        await asyncio.shield(future)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("")
def scrape_endpoint(body: ScrapeRequest, request: Request) -> list[dict[str, Any]]:
    """Run every URL through the pipeline and return the terminal records."""
    orchestrator: ScrapeOrchestrator = request.app.state.orchestrator
    return [r.to_dict(include_raw_html=body.include_raw_html) for r in _records(orchestrator, body)]


@router.post("/stream")
async def scrape_stream_endpoint(body: ScrapeRequest, request: Request) -> StreamingResponse:
    """Stream records as newline-delimited JSON while the batch runs."""
    orchestrator: ScrapeOrchestrator = request.app.state.orchestrator
    return StreamingResponse(_stream_lines(orchestrator, body), media_type="application/x-ndjson")


@router.get("/processed", response_model=LedgerResponse)
def processed_count(request: Request) -> dict[str, int]:
    return {"count": len(request.app.state.ledger)}


@router.delete("/processed", status_code=204)
def clear_processed(request: Request) -> None:
    """Forget every processed URL for this server process."""
    request.app.state.orchestrator.clear_processed()
