"""
tools/fetch.py — Fetch one submitted URL and return its raw HTML.

THE CORE CONCEPT: One page, one GET
  The archive is not a crawler. A submission is a single shared-conversation
  URL; we GET it once with a descriptive User-Agent and a bounded timeout,
  follow redirects (share links often bounce through a short URL), and hand
  the HTML to the extractors.

  No JavaScript rendering, no retries, no link-following. A page that only
  renders client-side will come back thin, and the pipeline's fallback
  chain decides whether what we got is enough.

WHY NEVER RAISE:
  The pipeline treats "could not fetch" as a terminal, user-retryable state
  (fetch_failed), not an exception. Every failure mode — timeout, DNS error,
  connection reset, 4xx/5xx — is folded into FetchResult(success=False) with
  a human-readable error string.

USAGE:
  from tools.fetch import fetch_page

  result = fetch_page("https://claude.ai/share/abc")
  if result.success:
      print(result.status_code, len(result.html))
  else:
      print(f"Failed: {result.error}")
"""

import httpx
from dataclasses import dataclass, field
from datetime import datetime, timezone

from config import settings


# ── Result type ────────────────────────────────────────────────────────────────

@dataclass
class FetchResult:
    """
    The outcome of fetching a URL.

    success=False means the page could not be retrieved with a 2xx status.
    In that case html is empty and error explains why. status_code is kept
    when the server did answer (e.g. 404) and is 0 when it never did.

    final_url is the URL after redirects — stored as provenance metadata.
    """
    url: str
    final_url: str
    html: str
    status_code: int
    success: bool
    error: str | None
    fetched_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def size(self) -> int:
        return len(self.html)


# ── Main function ──────────────────────────────────────────────────────────────

def fetch_page(url: str, timeout: float | None = None) -> FetchResult:
    """
    GET a URL and return its HTML.

    Args:
        url:     An http/https URL, already validated by the caller.
        timeout: Override settings.fetch_timeout_seconds for this call.

    Returns:
        FetchResult. Never raises.
    """
    timeout = timeout or settings.fetch_timeout_seconds

    try:
        response = httpx.get(
            url,
            timeout=timeout,
            headers={
                "User-Agent": settings.user_agent,
                "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
            },
            follow_redirects=True,
        )
    except httpx.TimeoutException:
        return _failed(url, f"Fetch timeout after {timeout}s")
    except httpx.HTTPError as e:
        return _failed(url, f"Fetch error: {type(e).__name__}: {e}")
    except Exception as e:
        return _failed(url, f"Unexpected fetch error: {type(e).__name__}: {e}")

    final_url = str(response.url) if response.url else url

    if not 200 <= response.status_code < 300:
        _log(f"HTTP {response.status_code} for {url}")
        return _failed(
            url,
            f"HTTP {response.status_code}",
            status_code=response.status_code,
            final_url=final_url,
        )

    return FetchResult(
        url=url,
        final_url=final_url,
        html=response.text,
        status_code=response.status_code,
        success=True,
        error=None,
    )


# ── Private helpers ────────────────────────────────────────────────────────────

def _failed(
    url: str,
    error: str,
    status_code: int = 0,
    final_url: str = "",
) -> FetchResult:
    """Return a failed FetchResult. Never raises."""
    return FetchResult(
        url=url,
        final_url=final_url or url,
        html="",
        status_code=status_code,
        success=False,
        error=error,
    )


def _log(message: str) -> None:
    print(f"[fetch] {message}")
