"""
tests/unit/test_eval_metrics.py — Unit tests for evals/metrics.py and the eval dataset.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
from archive.guardrails import validate_search_query
from archive.records import CanonicalRecord
from archive.relevance import SearchFilters, SearchHit, search_research
from evals.dataset import EVAL_CORPUS, EVAL_QUERIES
from evals.metrics import precision_at_k, recall_at_k, reciprocal_rank, run_score
from tools.providers import Provider


def hit(url: str, score: int) -> SearchHit:
    return SearchHit(record=CanonicalRecord(url=url, title="T", provider=Provider.OTHER), score=score)


# ── Metrics ───────────────────────────────────────────────────────────────────

class TestPrecisionAtK:
    def test_half(self):
        assert precision_at_k(["a", "x", "b", "y"], ["a", "b"], k=4) == 0.5

    def test_short_ranking_uses_actual_length(self):
        assert precision_at_k(["a"], ["a"], k=3) == 1.0

    def test_empty_ranking(self):
        assert precision_at_k([], ["a"], k=3) == 0.0


class TestRecallAtK:
    def test_partial(self):
        assert recall_at_k(["a", "x", "y", "b"], ["a", "b"], k=3) == 0.5

    def test_no_expected(self):
        assert recall_at_k(["a"], [], k=3) == 0.0


class TestReciprocalRank:
    def test_second_position(self):
        assert reciprocal_rank(["x", "a"], ["a"]) == 0.5

    def test_not_found(self):
        assert reciprocal_rank(["x", "y"], ["a"]) == 0.0


class TestRunScore:
    def test_perfect(self):
        score = run_score([hit("a", 20), hit("b", 5)], ["a"], k=1)
        assert score["overall"] == 1.0
        assert score["top_score"] == 20
        assert score["missing"] == []

    def test_no_hits(self):
        score = run_score([], ["a"], k=3)
        assert score["overall"] == 0.0
        assert score["n_hits"] == 0
        assert score["missing"] == ["a"]

    def test_weighting(self):
        # recall 1.0, rr 0.5, precision 1/3
        score = run_score([hit("x", 9), hit("a", 4), hit("y", 1)], ["a"], k=3)
        assert score["overall"] == pytest.approx(0.5 + 0.15 + 0.2 * 0.333, abs=0.001)


# ── Dataset sanity ────────────────────────────────────────────────────────────

class TestDataset:
    def test_corpus_urls_unique(self):
        urls = [r.url for r in EVAL_CORPUS]
        assert len(urls) == len(set(urls))

    def test_expected_urls_exist(self):
        corpus_urls = {r.url for r in EVAL_CORPUS}
        for q in EVAL_QUERIES:
            assert set(q.expected_urls) <= corpus_urls, q.query

    def test_queries_are_valid(self):
        for q in EVAL_QUERIES:
            validate_search_query(q.query)

    def test_every_query_finds_its_first_expected_record(self):
        for q in EVAL_QUERIES:
            hits = search_research(q.query, EVAL_CORPUS, SearchFilters(provider=q.provider))
            assert q.expected_urls[0] in [h.record.url for h in hits], q.query
