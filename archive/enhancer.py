"""
archive/enhancer.py — Optional AI enhancement of an extracted page.

THE CORE CONCEPT:
  Selector extraction gives us the page's own <title> and a wall of text.
  One call to a small model turns that into what a browsing user wants:
  a descriptive title, a 2-3 sentence description, a longer summary,
  5-10 keywords, and one category from a closed set.

  Enhancement is a SOFT dependency. The archive must keep accepting
  submissions when the model is unconfigured, down, slow, or answering
  nonsense. So enhance() never raises: it returns either
      EnhancementResult(enhanced=True,  fields=...)      or
      EnhancementResult(enhanced=False, reason=..., retryable=...)

  retryable separates "the model wasn't reachable" (no credential, network
  error — worth trying again later, record stays PENDING) from "the model
  answered but the answer was unusable" (non-JSON, missing fields — record
  is marked FAILED).

WHY CLAMP EVERYTHING:
  The model has no hard output-length guarantee. Prompting for "max 100
  chars" is a request, not a contract. Every returned field is cut to its
  bound before it is trusted:
      title ≤ 100, description ≤ 300, summary ≤ 500, keywords ≤ 10

USAGE:
  from archive.enhancer import Enhancer

  enhancer = Enhancer.from_settings()        # client=None if not configured
  result = enhancer.enhance(text, "https://claude.ai/share/abc")
  if result.enhanced:
      print(result.fields.title, result.fields.category)
  else:
      print(f"No enhancement: {result.reason}")
"""

import json
import re
from dataclasses import dataclass, field

from archive.records import CATEGORIES, DEFAULT_CATEGORY
from llm.client import LLMClient
from config import settings
from prompts.enhancer import ENHANCE_PROMPT


TITLE_MAX = 100
DESCRIPTION_MAX = 300
SUMMARY_MAX = 500
KEYWORDS_MAX = 10


# ── Result types ──────────────────────────────────────────────────────────────

@dataclass
class EnhancedFields:
    """Model output after validation and clamping."""
    title: str
    description: str
    summary: str
    keywords: list[str] = field(default_factory=list)
    category: str = DEFAULT_CATEGORY


@dataclass
class EnhancementResult:
    """
    The outcome of one enhancement attempt.

    enhanced=True  → fields is populated, reason is ""
    enhanced=False → fields is None, reason explains why, retryable says
                     whether a later attempt on the same text could succeed
    """
    enhanced: bool
    fields: EnhancedFields | None = None
    reason: str = ""
    retryable: bool = True

    @classmethod
    def unavailable(cls, reason: str, retryable: bool = True) -> "EnhancementResult":
        return cls(enhanced=False, fields=None, reason=reason, retryable=retryable)


class MalformedEnhancementError(ValueError):
    """The model answered, but not with the JSON shape we asked for."""


# ── Enhancer ──────────────────────────────────────────────────────────────────

class Enhancer:
    """
    Wraps one LLM call per submission. client=None means enhancement is
    disabled — every call returns a retryable Unavailable result.
    """

    def __init__(self, client: LLMClient | None) -> None:
        self._client = client

    @classmethod
    def from_settings(cls) -> "Enhancer":
        """
        Build an Enhancer with a real LLMClient, or a disabled one.

        A missing endpoint or a client that fails to construct (bad
        credentials, missing az login) both yield Enhancer(client=None).
        """
        if not settings.foundry_endpoint:
            return cls(client=None)
        try:
            return cls(client=LLMClient())
        except Exception as e:
            _log(f"LLM client unavailable ({type(e).__name__}: {e}) — enhancement disabled")
            return cls(client=None)

    @property
    def is_enabled(self) -> bool:
        return self._client is not None

    def enhance(self, text: str, source_url: str) -> EnhancementResult:
        """
        Ask the model for title/description/summary/keywords/category.

        Args:
            text:       Extracted page content. Truncated to
                        settings.enhancement_input_chars before sending.
            source_url: The submitted URL, included in the prompt as context.

        Returns:
            EnhancementResult. Never raises.
        """
        if self._client is None:
            return EnhancementResult.unavailable("AI enhancement not configured")

        prompt = ENHANCE_PROMPT.format(
            url=source_url,
            content=_truncate_input(text, settings.enhancement_input_chars),
            categories=json.dumps(list(CATEGORIES)),
        )

        try:
            raw = self._client.complete(prompt)
        except Exception as e:
            _log(f"Enhancement call failed for {source_url}: {type(e).__name__}: {e}")
            return EnhancementResult.unavailable(
                f"Enhancement call failed: {type(e).__name__}",
                retryable=True,
            )

        try:
            fields = _parse_enhancement(raw)
        except MalformedEnhancementError as e:
            _log(f"Unusable enhancement response for {source_url}: {e}")
            return EnhancementResult.unavailable(
                f"Invalid enhancement response: {e}",
                retryable=False,
            )

        return EnhancementResult(enhanced=True, fields=fields)


# ── Private helpers ───────────────────────────────────────────────────────────

def _truncate_input(text: str, limit: int) -> str:
    """Bound the prompt's page text; mark the cut so the model knows."""
    if len(text) <= limit:
        return text
    return text[:limit] + " ..."


def _parse_enhancement(text: str) -> EnhancedFields:
    """
    Parse and clamp {"title", "description", "summary", "keywords", "category"}.

    Raises MalformedEnhancementError when:
      - the response is empty or not a string
      - the body is not JSON, or not a JSON object
      - title, description or keywords is missing/empty
      - keywords is not a list
    summary falls back to description; an unknown category becomes "Other".
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedEnhancementError("empty or non-text response")

    text = re.sub(r"```(?:json)?\s*", "", text).strip()
    text = re.sub(r"```\s*$", "", text).strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedEnhancementError(f"not JSON ({e.msg})") from e

    if not isinstance(data, dict):
        raise MalformedEnhancementError(f"expected a JSON object, got {type(data).__name__}")

    title = _clean_str(data.get("title"))
    description = _clean_str(data.get("description"))
    keywords = data.get("keywords")

    if not title or not description or keywords is None:
        raise MalformedEnhancementError("missing title, description or keywords")
    if not isinstance(keywords, list):
        raise MalformedEnhancementError("keywords is not a list")

    summary = _clean_str(data.get("summary")) or description
    category = _clean_str(data.get("category"))
    if category not in CATEGORIES:
        category = DEFAULT_CATEGORY

    cleaned_keywords = [
        kw for kw in (_clean_str(k) for k in keywords) if kw
    ][:KEYWORDS_MAX]

    return EnhancedFields(
        title=title[:TITLE_MAX].rstrip(),
        description=description[:DESCRIPTION_MAX].rstrip(),
        summary=summary[:SUMMARY_MAX].rstrip(),
        keywords=cleaned_keywords,
        category=category,
    )


def _clean_str(value) -> str:
    """Strings only — numbers, lists and None all become ""."""
    if not isinstance(value, str):
        return ""
    return " ".join(value.split())


def _log(message: str) -> None:
    print(f"[enhancer] {message}")
