"""
archive/relevance.py — Weighted multi-field search over stored records.

THE CORE CONCEPT:
  Every query re-scores the whole candidate set. There is no index. A
  record's score is the sum of explainable field matches:

      whole query in title        +10      each query word in title        +3
      whole query in description   +5      each query word in description  +2
                                           each query word in content      +1
      per tag: whole query in tag  +4      per tag: each word in tag       +2
      provider name in the query   +3

  "In" means case-insensitive substring, so "model" matches "models".
  Query words are the lowercased whitespace tokens longer than 2 chars;
  the whole-query checks use the full lowercased query.

  Zero scores are dropped — search surfaces relevance, not presence.
  Ties keep candidate order (sorted() is stable).

WHY NOT TF-IDF:
  The corpus is small enough to hold in memory, and an integer score you
  can explain by reading the table above beats a float you can't. The
  weights live in a frozen dataclass so evals can try alternatives.

USAGE:
  from archive.relevance import search_research, SearchFilters

  hits = search_research("claude research", store.list_all(),
                         SearchFilters(provider=Provider.CLAUDE, limit=20))
  for hit in hits:
      print(hit.score, hit.record.title)
"""

from __future__ import annotations

from dataclasses import dataclass

from archive.guardrails import validate_search_query
from archive.records import CanonicalRecord
from tools.providers import Provider


@dataclass(frozen=True)
class ScoringWeights:
    title_phrase: int = 10
    title_word: int = 3
    description_phrase: int = 5
    description_word: int = 2
    content_word: int = 1
    tag_phrase: int = 4
    tag_word: int = 2
    provider: int = 3


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass
class SearchHit:
    record: CanonicalRecord
    score: int


@dataclass
class SearchFilters:
    """Optional narrowing applied before scoring. limit is applied after."""
    provider: Provider | None = None
    category: str | None = None
    limit: int | None = None


def query_words(query: str) -> list[str]:
    """Lowercased whitespace tokens longer than 2 chars."""
    return [word for word in query.lower().split() if len(word) > 2]


def score_record(
    query: str,
    record: CanonicalRecord,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> int:
    """Integer relevance of one record to one query. 0 means no match."""
    query_lower = query.lower()
    words = query_words(query)
    score = 0

    title = record.title.lower()
    if query_lower in title:
        score += weights.title_phrase
    score += weights.title_word * sum(1 for w in words if w in title)

    if record.description:
        description = record.description.lower()
        if query_lower in description:
            score += weights.description_phrase
        score += weights.description_word * sum(1 for w in words if w in description)

    if record.content:
        content = record.content.lower()
        score += weights.content_word * sum(1 for w in words if w in content)

    for tag in record.tags:
        tag_lower = tag.lower()
        if query_lower in tag_lower:
            score += weights.tag_phrase
        score += weights.tag_word * sum(1 for w in words if w in tag_lower)

    if record.provider.value in query_lower:
        score += weights.provider

    return score


def rank_research(
    query: str,
    candidates: list[CanonicalRecord],
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> list[SearchHit]:
    """
    Score every candidate, drop zeros, sort descending.

    No validation and no filters — callers that take user input should go
    through search_research() instead.
    """
    hits = [SearchHit(record=r, score=score_record(query, r, weights)) for r in candidates]
    hits = [h for h in hits if h.score > 0]
    return sorted(hits, key=lambda h: h.score, reverse=True)


def search_research(
    query: str,
    candidates: list[CanonicalRecord],
    filters: SearchFilters | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> list[SearchHit]:
    """
    Validated, filtered search.

    Raises InvalidQueryError (a ValueError) before any scoring when the
    query is empty, too short or too long.
    """
    query = validate_search_query(query)
    filters = filters or SearchFilters()

    if filters.provider is not None:
        provider = Provider(filters.provider)
        candidates = [r for r in candidates if r.provider == provider]
    if filters.category:
        candidates = [r for r in candidates if r.category == filters.category]

    hits = rank_research(query, candidates, weights)

    if filters.limit is not None:
        hits = hits[:max(0, filters.limit)]
    return hits
