"""Error taxonomy for the scrape pipeline.

Library functions raise these; the orchestrator is the only place that
catches them and turns them into ``error`` records.
"""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for every pipeline failure.

    ``message`` is the human-readable text stored on an ``error`` record.
    """

    default_message = "Unknown error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidUrl(ScrapeError):
    default_message = "Invalid URL format"


class DuplicateUrl(ScrapeError):
    default_message = "URL already processed"


class FetchFailed(ScrapeError):
    default_message = "Failed to fetch page"


class ParseFailed(ScrapeError):
    default_message = "Failed to parse page"


class SummarizationFailed(ScrapeError):
    default_message = "Failed to generate summary"


class Cancelled(ScrapeError):
    default_message = "Cancelled"
