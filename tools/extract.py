"""
tools/extract.py — Text normalization and reader-style main-content extraction.

TWO JOBS:

  normalize_text()
    Every extractor, and the keyword tagger downstream, wants the same shape
    of text: one line, single spaces, no invisible Unicode, bounded length.
    The bound is a parameter because different fields have different budgets:
      title        → 200 chars
      description  → 300 chars
      content      → settings.max_content_chars (15000)

  extract_with_reader()
    Selector-based extraction (tools/extractors.py) is precise when a page
    follows a known layout. When it doesn't — the content lives in an
    unexpected container and even <body> text is thin — trafilatura's
    boilerplate-removal heuristics get one more try before we give up.

    favor_recall=True: at this point recall matters more than precision.
    A noisy paragraph is better than rejecting the submission.

USAGE:
  from tools.extract import normalize_text, extract_with_reader

  normalize_text("  Hello \\n\\n  world  ")          # "Hello world"
  normalize_text("x" * 500, max_length=100)          # 100 x's
  text = extract_with_reader(html)                   # "" if nothing found
"""

import re
import trafilatura


DEFAULT_MAX_LENGTH = 15000

# \u00ad = soft hyphen, \u200b = zero-width space, \u200c/\u200d = zero-width joiners, \ufeff = BOM
_INVISIBLE = re.compile(r"[\u00ad\u200b\u200c\u200d\ufeff]")
_WHITESPACE = re.compile(r"\s+")


# ── Normalization ──────────────────────────────────────────────────────────────

def normalize_text(text: str | None, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Collapse whitespace, strip invisible characters, and bound the length.

    Operations (in order):
      1. Remove zero-width and soft-hyphen Unicode noise
      2. Collapse every whitespace run (newlines included) to one space
      3. Strip leading/trailing whitespace
      4. Truncate to max_length
      5. Strip again — truncation can land right after a space

    Idempotent: normalize_text(normalize_text(x)) == normalize_text(x).
    Total: None and "" both return "".
    """
    if not text:
        return ""

    text = _INVISIBLE.sub("", text)
    text = _WHITESPACE.sub(" ", text).strip()

    if max_length >= 0 and len(text) > max_length:
        text = text[:max_length].rstrip()

    return text


# ── Reader fallback ────────────────────────────────────────────────────────────

def extract_with_reader(html: str, url: str = "") -> str:
    """
    Lenient trafilatura extraction — more recall, potentially noisier.

    Returns raw extracted text (not normalized — the caller bounds it).
    Returns "" when trafilatura finds nothing or raises on malformed input.
    """
    if not html or len(html) < 100:
        return ""

    try:
        result = trafilatura.extract(
            html,
            url=url or None,
            include_tables=True,
            include_links=False,
            include_images=False,
            output_format="txt",
            favor_recall=True,
        )
        return result or ""
    except Exception:
        return ""
