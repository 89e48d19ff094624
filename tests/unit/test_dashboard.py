"""
tests/unit/test_dashboard.py — Unit tests for observability/dashboard.py

Traces are plain dicts shaped like Tracer.save() output.
"""

import sys
import json
import os
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from observability.dashboard import (
    latency_stats,
    load_traces,
    provider_breakdown,
    recent_runs,
    slow_runs,
    span_failure_rates,
    summary_stats,
    _pct,
)


def trace(
    run_id: str,
    status: str = "success",
    provider: str = "claude",
    duration: float = 1000.0,
    enhanced: bool = False,
    content_chars: int = 0,
    spans: list[dict] | None = None,
) -> dict:
    return {
        "run_id": run_id,
        "url": f"https://claude.ai/share/{run_id}",
        "started_at": "2025-03-01T10:00:00+00:00",
        "status": status,
        "provider": provider,
        "enhanced": enhanced,
        "is_processed": "processed" if enhanced else "pending",
        "content_chars": content_chars,
        "total_duration_ms": duration,
        "spans": spans or [],
    }


def span(name: str, duration: float = 10.0, status: str = "success") -> dict:
    return {"name": name, "duration_ms": duration, "status": status}


# ── load_traces ───────────────────────────────────────────────────────────────

class TestLoadTraces:
    def test_missing_dir(self, tmp_path):
        assert load_traces(log_dir=tmp_path / "nope") == []

    def test_loads_last_n(self, tmp_path):
        for i in range(5):
            path = tmp_path / f"run{i}.json"
            path.write_text(json.dumps(trace(f"run{i}")))
            os.utime(path, (1_700_000_000 + i, 1_700_000_000 + i))
        loaded = load_traces(n=2, log_dir=tmp_path)
        assert [t["run_id"] for t in loaded] == ["run3", "run4"]

    def test_skips_corrupt_files(self, tmp_path):
        (tmp_path / "good.json").write_text(json.dumps(trace("good")))
        (tmp_path / "bad.json").write_text("{not json")
        assert [t["run_id"] for t in load_traces(log_dir=tmp_path)] == ["good"]


# ── summary_stats ─────────────────────────────────────────────────────────────

class TestSummaryStats:
    def test_empty(self):
        assert summary_stats([]) == {}

    def test_counts_and_rates(self):
        traces = [
            trace("a", enhanced=True, content_chars=400),
            trace("b", enhanced=False, content_chars=200),
            trace("c", status="duplicate_submission"),
            trace("d", status="fetch_failed"),
        ]
        stats = summary_stats(traces)
        assert stats["total"] == 4
        assert stats["success"] == 2
        assert stats["success_rate"] == 0.5
        assert stats["duplicate_submission"] == 1
        assert stats["fetch_failed_rate"] == 0.25
        assert stats["extraction_insufficient"] == 0
        assert stats["enhancement_rate"] == 0.5
        assert stats["avg_content_chars"] == 300.0

    def test_no_successes(self):
        stats = summary_stats([trace("a", status="invalid_url")])
        assert stats["enhancement_rate"] == 0.0
        assert stats["avg_content_chars"] == 0


# ── latency / failures ────────────────────────────────────────────────────────

class TestLatencyStats:
    def test_run_and_span_keys(self):
        traces = [
            trace("a", duration=100, spans=[span("fetch", 50), span("extract", 5)]),
            trace("b", duration=300, spans=[span("fetch", 150)]),
        ]
        stats = latency_stats(traces)
        assert set(stats) == {"run", "fetch", "extract"}
        assert stats["run"]["p50"] == 200
        assert stats["fetch"]["p50"] == 100

    def test_pct_interpolates(self):
        assert _pct([10, 20, 30, 40], 50) == 25
        assert _pct([7], 95) == 7


class TestSpanFailureRates:
    def test_sorted_by_error_rate(self):
        traces = [
            trace("a", spans=[span("fetch", status="error"), span("validate")]),
            trace("b", spans=[span("fetch"), span("validate")]),
        ]
        rates = span_failure_rates(traces)
        assert list(rates) == ["fetch", "validate"]
        assert rates["fetch"] == {"total": 2, "errors": 1, "error_rate": 0.5}


# ── provider / slow / recent ──────────────────────────────────────────────────

class TestProviderBreakdown:
    def test_counts_per_provider(self):
        traces = [
            trace("a", provider="claude"),
            trace("b", provider="claude", status="fetch_failed"),
            trace("c", provider="gemini"),
            trace("d", provider="", status="invalid_url"),
        ]
        breakdown = provider_breakdown(traces)
        assert list(breakdown)[0] == "claude"
        assert breakdown["claude"] == {"total": 2, "success": 1}
        assert breakdown["unknown"] == {"total": 1, "success": 0}


class TestSlowRuns:
    def test_threshold_and_order(self):
        traces = [trace("a", duration=500), trace("b", duration=9000), trace("c", duration=4000)]
        slow = slow_runs(traces, threshold_ms=4000)
        assert [s["run_id"] for s in slow] == ["b", "c"]
        assert slow[0]["provider"] == "claude"


class TestRecentRuns:
    def test_newest_first_and_limited(self):
        traces = [trace(f"r{i}") for i in range(5)]
        recent = recent_runs(traces, n=3)
        assert [r["run_id"] for r in recent] == ["r4", "r3", "r2"]
        assert recent[0]["is_processed"] == "pending"
