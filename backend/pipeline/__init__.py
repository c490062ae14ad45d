"""Per-URL scrape pipeline package.

Public API::

    from backend.pipeline import DedupLedger, ScrapeOrchestrator
    orchestrator = ScrapeOrchestrator(LLMSummarizer(), DedupLedger())
    for record in orchestrator.submit(["example.com"]):
        ...
"""

from backend.pipeline.ledger import DedupLedger
from backend.pipeline.models import ScrapeRecord
from backend.pipeline.orchestrator import ScrapeOrchestrator

__all__ = ["DedupLedger", "ScrapeOrchestrator", "ScrapeRecord"]
