"""
evals/metrics.py — Ranking metrics for search evals.

METRICS:

  precision_at_k(ranked_urls, expected_urls, k)
    Of the top k results, what fraction are expected?
    Returns 0.0-1.0. An empty top-k scores 0.0.

  recall_at_k(ranked_urls, expected_urls, k)
    Of the expected URLs, what fraction made the top k?
    This is the "did the search find it at all" number.

  reciprocal_rank(ranked_urls, expected_urls)
    1 / position of the first expected URL (1-based), 0.0 if none found.
    Averaged over queries this is MRR.

  run_score(hits, expected_urls, k)
    Composite score for one query: all of the above plus "overall".

USAGE:
  from archive.relevance import search_research
  from evals.metrics import run_score

  hits = search_research("rust lifetimes", corpus)
  print(run_score(hits, ["https://chatgpt.com/share/rust-borrow-checker"], k=3))
"""

from archive.relevance import SearchHit


def precision_at_k(ranked_urls: list[str], expected_urls: list[str], k: int) -> float:
    top = ranked_urls[:k]
    if not top:
        return 0.0
    expected = set(expected_urls)
    return round(sum(1 for url in top if url in expected) / len(top), 3)


def recall_at_k(ranked_urls: list[str], expected_urls: list[str], k: int) -> float:
    if not expected_urls:
        return 0.0
    top = set(ranked_urls[:k])
    return round(sum(1 for url in expected_urls if url in top) / len(expected_urls), 3)


def reciprocal_rank(ranked_urls: list[str], expected_urls: list[str]) -> float:
    expected = set(expected_urls)
    for position, url in enumerate(ranked_urls, start=1):
        if url in expected:
            return round(1.0 / position, 3)
    return 0.0


def run_score(hits: list[SearchHit], expected_urls: list[str], k: int = 3) -> dict:
    """
    Composite evaluation score for one query's ranked hits.

    The overall score weights:
      - recall@k:         50% (did the right records show up?)
      - reciprocal rank:  30% (was the best one near the top?)
      - precision@k:      20% (how much noise came with it?)

    Precision gets the smallest weight because a query with one expected
    URL can never exceed 1/k precision when other records also match.

    Returns a dict with all sub-scores, the ranked URLs and "overall" (0.0–1.0).
    """
    ranked = [hit.record.url for hit in hits]

    precision = precision_at_k(ranked, expected_urls, k)
    recall = recall_at_k(ranked, expected_urls, k)
    rr = reciprocal_rank(ranked, expected_urls)

    overall = 0.50 * recall + 0.30 * rr + 0.20 * precision

    return {
        "k": k,
        "n_hits": len(hits),
        "ranked_urls": ranked[:k],
        "top_score": hits[0].score if hits else 0,
        "precision_at_k": precision,
        "recall_at_k": recall,
        "reciprocal_rank": rr,
        "missing": [url for url in expected_urls if url not in ranked[:k]],
        "overall": round(overall, 3),
    }
