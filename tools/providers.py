"""
tools/providers.py — Classify a submitted URL by the AI service it came from.

THE CORE CONCEPT:
  Every provider renders a shared conversation with its own DOM conventions.
  Before we can pick the right extraction strategy we need to know whose
  page this is — and the hostname is enough to tell.

  Matching is substring-on-hostname, first match wins, so ORDER MATTERS:
  "grok.x.ai" must be checked before the broader "x.com".

USAGE:
  from tools.providers import detect_provider, Provider

  detect_provider("https://claude.ai/share/abc")        # Provider.CLAUDE
  detect_provider("https://example.com/post")           # Provider.OTHER
"""

from enum import Enum
from urllib.parse import urlparse


class Provider(str, Enum):
    """The closed set of provider tags stored on every record."""
    CLAUDE     = "claude"
    CHATGPT    = "chatgpt"
    GEMINI     = "gemini"
    GROK       = "grok"
    PERPLEXITY = "perplexity"
    OTHER      = "other"


# (hostname substring, provider), checked top to bottom.
PROVIDER_PATTERNS: tuple[tuple[str, Provider], ...] = (
    ("claude.ai",         Provider.CLAUDE),
    ("chat.openai.com",   Provider.CHATGPT),
    ("chatgpt.com",       Provider.CHATGPT),
    ("gemini.google.com", Provider.GEMINI),
    ("grok.x.ai",         Provider.GROK),
    ("grok.com",          Provider.GROK),
    ("x.com",             Provider.GROK),
    ("perplexity.ai",     Provider.PERPLEXITY),
)


def detect_provider(url: str) -> Provider:
    """
    Return the provider tag for a URL.

    Pure function, never raises. The caller is expected to have validated
    the URL already; anything without a parseable hostname is OTHER.
    """
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return Provider.OTHER

    for pattern, provider in PROVIDER_PATTERNS:
        if pattern in hostname:
            return provider
    return Provider.OTHER
