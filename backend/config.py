"""Centralised settings for the Page Digest backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    fetch_mode: str = field(
        default_factory=lambda: os.environ.get("FETCH_MODE", "direct")
    )
    fetch_proxy_url: str = field(
        default_factory=lambda: os.environ.get(
            "FETCH_PROXY_URL", "https://api.allorigins.win/get"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT",
            "Mozilla/5.0 (compatible; PageDigest-Bot/1.0; +https://github.com/page-digest)",
        )
    )

    # ------------------------------------------------------------------
    # Extraction limits
    # ------------------------------------------------------------------
    max_images: int = field(
        default_factory=lambda: int(os.environ.get("MAX_IMAGES", "20"))
    )
    max_links: int = field(
        default_factory=lambda: int(os.environ.get("MAX_LINKS", "50"))
    )
    max_paragraphs: int = field(
        default_factory=lambda: int(os.environ.get("MAX_PARAGRAPHS", "20"))
    )
    min_paragraph_chars: int = field(
        default_factory=lambda: int(os.environ.get("MIN_PARAGRAPH_CHARS", "20"))
    )
    max_content_chars: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONTENT_CHARS", "5000"))
    )
    readability_fallback: bool = field(
        default_factory=lambda: _env_bool("READABILITY_FALLBACK")
    )

    # ------------------------------------------------------------------
    # Summarizer / chat model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openrouter")
    )
    openrouter_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENROUTER_API_KEY", "")
    )
    openrouter_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
        )
    )
    openrouter_model: str = field(
        default_factory=lambda: os.environ.get(
            "OPENROUTER_MODEL", "deepseek/deepseek-r1-distill-llama-70b"
        )
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    summary_input_chars: int = field(
        default_factory=lambda: int(os.environ.get("SUMMARY_INPUT_CHARS", "4000"))
    )
    summary_max_tokens: int = field(
        default_factory=lambda: int(os.environ.get("SUMMARY_MAX_TOKENS", "500"))
    )
    summary_temperature: float = field(
        default_factory=lambda: float(os.environ.get("SUMMARY_TEMPERATURE", "0.3"))
    )

    # ------------------------------------------------------------------
    # Orchestrator
    # ------------------------------------------------------------------
    max_concurrent_scrapes: int = field(
        default_factory=lambda: int(os.environ.get("MAX_CONCURRENT_SCRAPES", "3"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )


# Module-level singleton, import this everywhere:
#   from backend.config import settings
settings = Settings()
