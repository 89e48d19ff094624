"""
archive/guardrails.py — Input validation for submissions and searches.

WHAT GUARDRAILS DO:
  They reject bad input before it costs a network call or a full scoring
  pass, with an error message that names the exact constraint violated.

LAYERS COVERED:
  1. Submission URL   — before the duplicate check and before any fetch
  2. Search query     — before any candidate is scored
  3. Search limit     — clamped, never rejected

USAGE:
  from archive.guardrails import validate_submission_url, validate_search_query

  url = validate_submission_url(raw_url)    # raises ValueError on bad input
  query = validate_search_query(raw_query)  # raises InvalidQueryError
"""

import re
from urllib.parse import urlparse


# ── Search query validation ───────────────────────────────────────────────────

MIN_SEARCH_QUERY_LENGTH = 2
MAX_SEARCH_QUERY_LENGTH = 200


class InvalidQueryError(ValueError):
    """A search query that must be rejected before scoring."""


def validate_search_query(query: str) -> str:
    """
    Validate and clean a search query.

    Returns the stripped query if valid.
    Raises InvalidQueryError (a ValueError) with a human-readable message.

    Checks:
      - Is a string
      - Not empty or whitespace-only
      - At least MIN_SEARCH_QUERY_LENGTH characters
      - At most MAX_SEARCH_QUERY_LENGTH characters
    """
    if not isinstance(query, str):
        raise InvalidQueryError(f"Query must be a string, got {type(query).__name__}")

    query = query.strip()

    if not query:
        raise InvalidQueryError("Search query is required and cannot be empty")

    if len(query) < MIN_SEARCH_QUERY_LENGTH:
        raise InvalidQueryError(
            f"Query too short ({len(query)} chars). "
            f"Minimum is {MIN_SEARCH_QUERY_LENGTH} characters."
        )

    if len(query) > MAX_SEARCH_QUERY_LENGTH:
        raise InvalidQueryError(
            f"Query too long ({len(query)} chars). "
            f"Maximum is {MAX_SEARCH_QUERY_LENGTH} characters."
        )

    return query


def clamp_limit(limit: int | None, default: int, maximum: int) -> int:
    """Coerce a caller-supplied result limit into [1, maximum]."""
    if limit is None:
        return default
    return max(1, min(int(limit), maximum))


# ── Submission URL validation ─────────────────────────────────────────────────

# Patterns that indicate an internal/unsafe URL target
_BLOCKED_HOSTS = re.compile(
    r"^(localhost|127\.\d+\.\d+\.\d+|0\.0\.0\.0"
    r"|10\.\d+\.\d+\.\d+|172\.(1[6-9]|2\d|3[01])\.\d+\.\d+"
    r"|192\.168\.\d+\.\d+|169\.254\.\d+\.\d+|::1)$",
    re.IGNORECASE,
)

MAX_URL_LENGTH = 2048


def is_valid_url(url: str) -> bool:
    """True for a parseable http:// or https:// URL with a hostname."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def is_safe_url(url: str) -> bool:
    """
    Return True if the URL is safe to fetch.

    Blocks localhost and private IP ranges (SSRF prevention). This is a
    fast structural check — it does not resolve DNS.
    """
    if not is_valid_url(url):
        return False
    host = urlparse(url.strip()).hostname or ""
    return not _BLOCKED_HOSTS.match(host)


def validate_submission_url(url: str) -> str:
    """
    Validate a submitted URL before the pipeline touches the store or network.

    Returns the stripped URL. Raises ValueError naming what is wrong.
    """
    if not isinstance(url, str) or not url.strip():
        raise ValueError("URL is required")

    url = url.strip()

    if len(url) > MAX_URL_LENGTH:
        raise ValueError(f"URL too long ({len(url)} chars). Maximum is {MAX_URL_LENGTH}.")

    if not is_valid_url(url):
        raise ValueError(f"Not a valid http(s) URL: {url!r}")

    if not is_safe_url(url):
        raise ValueError(f"URL points to a local or private address: {url!r}")

    return url
