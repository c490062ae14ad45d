"""Chat-model backed summarisation."""

from backend.llm.summarizer import LLMSummarizer, Summarizer, SummaryResult, display_category

__all__ = ["LLMSummarizer", "Summarizer", "SummaryResult", "display_category"]
