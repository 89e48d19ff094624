"""
archive/ranking.py — The two featured lists shown on the landing tab.

  recent  → created within the last window_days, newest first
  popular → most upvotes, then most views

Both take the full record list (store.list_all()) and clamp limit to 1..10.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from archive.guardrails import clamp_limit
from archive.records import CanonicalRecord, utcnow


MAX_FEATURED = 10
DEFAULT_FEATURED = 6


def recent_research(
    records: list[CanonicalRecord],
    limit: int = DEFAULT_FEATURED,
    now: datetime | None = None,
    window_days: int = 30,
) -> list[CanonicalRecord]:
    limit = clamp_limit(limit, DEFAULT_FEATURED, MAX_FEATURED)
    cutoff = (now or utcnow()) - timedelta(days=window_days)
    recent = [r for r in records if r.created_at >= cutoff]
    return sorted(recent, key=lambda r: r.created_at, reverse=True)[:limit]


def popular_research(
    records: list[CanonicalRecord],
    limit: int = DEFAULT_FEATURED,
) -> list[CanonicalRecord]:
    limit = clamp_limit(limit, DEFAULT_FEATURED, MAX_FEATURED)
    return sorted(records, key=lambda r: (r.upvotes, r.view_count), reverse=True)[:limit]


def featured_research(
    records: list[CanonicalRecord],
    limit: int = DEFAULT_FEATURED,
    now: datetime | None = None,
    window_days: int = 30,
) -> dict[str, list[CanonicalRecord]]:
    """{"recent": [...], "popular": [...]} — the same record may appear in both."""
    return {
        "recent": recent_research(records, limit, now=now, window_days=window_days),
        "popular": popular_research(records, limit),
    }
