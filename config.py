"""
config.py — Single source of truth for all research archive settings.

pydantic-settings reads .env at import time and gives every setting a type,
a default and a description. Every field has a default so the archive imports
and runs (without AI enhancement) on a machine with no .env at all.

GROUPS:

  1. Azure AI Foundry — endpoint + key for the enhancement model.
       foundry_endpoint empty → the enhancer is disabled, every submission
       is stored with is_processed=pending and fallback keyword tags.

  2. Enhancement — which model, how much page text it sees, and the
       minimum content length before it is worth calling at all.

  3. Fetch / extraction — timeout, user agent, content bounds.
       Content is bounded at max_content_chars so that scoring, storage
       and the enhancement prompt all have a known worst-case cost.

  4. Search / featured — result limits and the recency window.

  5. Store — "memory" for tests and demos, "sqlite" for anything that
       should survive a restart.

USAGE:
  from config import settings
  print(settings.enhancement_model)     # "gpt-4o-mini"
  print(settings.max_content_chars)     # 15000
"""

from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Azure AI Foundry ───────────────────────────────────────────────────────
    foundry_endpoint: str = Field(
        default="",
        description="Full Foundry project endpoint URL — blank disables AI enhancement",
    )
    foundry_api_key: str = Field(
        default="",
        description="API key — leave blank to use DefaultAzureCredential",
    )
    api_version: str = Field(
        default="2025-04-01-preview",
        description="Azure OpenAI API version for cognitiveservices endpoints",
    )

    # ── Enhancement ────────────────────────────────────────────────────────────
    # One call per submission. A small model is enough: the task is
    # "title + 2 sentences + keywords + pick a category", not reasoning.
    enhancement_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used to refine title/description/summary/keywords/category",
    )
    enhancement_max_tokens: int = Field(
        default=1000,
        ge=100,
        le=4000,
        description="Output token cap for one enhancement call",
    )
    enhancement_input_chars: int = Field(
        default=8000,
        ge=500,
        description="Page text is truncated to this many chars before it is sent to the model",
    )
    min_enhance_chars: int = Field(
        default=50,
        ge=0,
        description="Content must be longer than this for enhancement to run",
    )

    # ── Fetch ─────────────────────────────────────────────────────────────────
    fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Max seconds to wait for the single page GET of a submission",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; DeepResearchBot/1.0; +https://github.com/research-archive)",
        description="User-Agent header sent with every page fetch",
    )

    # ── Extraction ────────────────────────────────────────────────────────────
    max_content_chars: int = Field(
        default=15000,
        ge=1000,
        description="Hard bound on stored content length",
    )
    min_accept_chars: int = Field(
        default=50,
        ge=1,
        description="Content shorter than this after every fallback rejects the submission",
    )
    max_fallback_tags: int = Field(
        default=15,
        ge=1,
        le=50,
        description="Tag cap when tags come from the keyword extractor instead of the model",
    )

    # ── Search / featured ─────────────────────────────────────────────────────
    default_search_limit: int = Field(
        default=20,
        ge=1,
        description="Results returned by a search when the caller gives no limit",
    )
    max_search_limit: int = Field(
        default=100,
        ge=1,
        description="Upper clamp on a caller-supplied search limit",
    )
    featured_limit: int = Field(
        default=6,
        ge=1,
        le=10,
        description="Items per featured list (recent / popular)",
    )
    recent_window_days: int = Field(
        default=30,
        ge=1,
        description="Only records created within this many days count as recent",
    )

    # ── Store ─────────────────────────────────────────────────────────────────
    store_backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="'memory' = process-local dict, 'sqlite' = file at sqlite_path",
    )
    sqlite_path: str = Field(
        default="data/research.db",
        description="SQLite database file used when store_backend='sqlite'",
    )

    # ── Observability ─────────────────────────────────────────────────────────
    log_dir: str = Field(
        default="logs/",
        description="Directory for structured JSON submission traces",
    )
    slow_submission_threshold_seconds: float = Field(
        default=45.0,
        description="Flag any submission exceeding this duration",
    )


# Module-level singleton: import this everywhere, never instantiate Settings again.
settings = Settings()
