"""Summary + category generation through a LangChain chat model.

Providers
---------
``openrouter`` (default)
    OpenAI-compatible endpoint at ``OPENROUTER_BASE_URL``; requires
    ``OPENROUTER_API_KEY``.  Model set by ``OPENROUTER_MODEL``.

``openai``
    Requires ``OPENAI_API_KEY``.  Model set by ``OPENAI_CHAT_MODEL``.

``ollama``
    Local model set by ``OLLAMA_CHAT_MODEL``.

The model is asked to reply with ``SUMMARY:`` and ``CATEGORY:`` lines which
are parsed back out here.  Every failure surfaces as
:class:`~backend.errors.SummarizationFailed`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from backend.config import settings
from backend.errors import SummarizationFailed

logger = logging.getLogger(__name__)

CATEGORIES = ("Technology", "Business", "News", "Research", "Entertainment", "Other")
DEFAULT_CATEGORY = "Other"
SUMMARY_UNAVAILABLE = "Summary unavailable"

_SUMMARY_RE = re.compile(r"SUMMARY:\s*(.*?)(?=CATEGORY:|$)", re.DOTALL)
_CATEGORY_RE = re.compile(r"CATEGORY:\s*(.*?)$", re.DOTALL)


@dataclass(frozen=True)
class SummaryResult:
    summary: str
    category: str


class Summarizer(Protocol):
    """Anything that can turn page text into a summary and a category."""

    def summarize(self, text: str, source_url: str) -> SummaryResult: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def display_category(category: str) -> str:
    """Map *category* onto the closed set, unknown values going to ``Other``."""
    cleaned = (category or "").strip().strip("*[]").strip()
    for known in CATEGORIES:
        if cleaned.lower() == known.lower():
            return known
    return DEFAULT_CATEGORY


def build_prompt(text: str, source_url: str) -> str:
    limit = settings.summary_input_chars
    marker = "...[truncated]" if len(text) > limit else ""
    return (
        f"Analyze and summarize the following web content from {source_url}:\n\n"
        f"Content: {text[:limit]} {marker}\n\n"
        "Please provide:\n"
        "1. A concise, informative summary (2-3 sentences)\n"
        f"2. A category classification ({', '.join(CATEGORIES)})\n\n"
        "Format your response as:\n"
        "SUMMARY: [your summary here]\n"
        "CATEGORY: [category here]\n"
    )


def parse_response(raw: str) -> SummaryResult:
    """Pull the ``SUMMARY:``/``CATEGORY:`` sections out of a model reply."""
    summary_match = _SUMMARY_RE.search(raw or "")
    category_match = _CATEGORY_RE.search(raw or "")
    summary = summary_match.group(1).strip() if summary_match else ""
    category = category_match.group(1).strip() if category_match else ""
    return SummaryResult(
        summary=summary or SUMMARY_UNAVAILABLE,
        category=category or DEFAULT_CATEGORY,
    )


def _get_llm() -> Any:
    """Return a configured LangChain chat model based on ``settings``."""
    if settings.llm_provider == "openrouter":
        from langchain_openai import ChatOpenAI

        if not settings.openrouter_api_key:
            raise EnvironmentError(
                "OPENROUTER_API_KEY environment variable is not set. "
                "Set it or switch LLM_PROVIDER to openai or ollama."
            )
        return ChatOpenAI(
            model=settings.openrouter_model,
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            temperature=settings.summary_temperature,
            max_tokens=settings.summary_max_tokens,
            default_headers={"X-Title": "Page Digest"},
        )

    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=settings.openai_chat_model,
            temperature=settings.summary_temperature,
            max_tokens=settings.summary_max_tokens,
        )

    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=settings.ollama_chat_model,
        temperature=settings.summary_temperature,
        num_predict=settings.summary_max_tokens,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class LLMSummarizer:
    """:class:`Summarizer` backed by the configured chat model.

    Args:
        llm: Optional pre-built LangChain chat model (anything with
            ``invoke``).  Built lazily from ``settings`` when omitted.
    """

    def __init__(self, llm: Any | None = None) -> None:
        self._llm = llm

    def _model(self) -> Any:
        if self._llm is None:
            self._llm = _get_llm()
        return self._llm

    def summarize(self, text: str, source_url: str) -> SummaryResult:
        """Return a :class:`SummaryResult` for *text*.

        Raises:
            SummarizationFailed: On transport, auth, quota or model errors.
        """
        from langchain_core.messages import HumanMessage

        prompt = build_prompt(text, source_url)
        try:
            response = self._model().invoke([HumanMessage(content=prompt)])
        except Exception as exc:  # noqa: BLE001
            logger.error("summarizer call failed", extra={"url": source_url}, exc_info=True)
            raise SummarizationFailed() from exc

        raw = response.content if hasattr(response, "content") else str(response)
        if not isinstance(raw, str):
            raw = str(raw)
        return parse_response(raw)
