"""
observability/dashboard.py — Metrics over saved submission traces.

THE CORE CONCEPT:
  Every submission saves a trace JSON to logs/traces/. The dashboard loads
  those files and computes aggregate metrics: how submissions end, how
  often enhancement works, which steps are slow, which steps fail.

  This answers the questions you can't answer from a single submission:
    - "Are most Gemini links ending in extraction_insufficient?"
    - "What share of stored records actually got AI enhancement?"
    - "What's the p95 latency of the fetch step?"

FUNCTIONS:
  load_traces(n)             → last N trace dicts from disk
  summary_stats(traces)      → per-status counts + rates, enhancement rate
  latency_stats(traces)      → per-step p50/p90/p95 duration_ms
  span_failure_rates(traces) → which step names fail most
  provider_breakdown(traces) → submissions and successes per provider
  slow_runs(traces, ms)      → submissions over a duration threshold
  recent_runs(traces, n)     → last N submissions, newest first

USAGE:
  from observability.dashboard import load_traces, summary_stats, latency_stats

  traces = load_traces(n=50)
  print(summary_stats(traces))
  print(latency_stats(traces))
"""

import json
import statistics
from pathlib import Path

from archive.records import SubmissionStatus
from config import settings


# ── Loader ────────────────────────────────────────────────────────────────────

def load_traces(n: int = 50, log_dir: Path | None = None) -> list[dict]:
    """
    Load the last N trace JSON files.

    Returns a list of raw dicts (as saved by Tracer.save()).
    Files are sorted by modification time — most recent last.
    Returns [] if the directory doesn't exist or is empty.
    """
    if log_dir is None:
        log_dir = Path(settings.log_dir) / "traces"
    log_dir = Path(log_dir)

    if not log_dir.exists():
        return []

    files = sorted(log_dir.glob("*.json"), key=lambda p: p.stat().st_mtime)
    recent = files[-n:] if len(files) > n else files

    traces = []
    for path in recent:
        try:
            with open(path, encoding="utf-8") as f:
                traces.append(json.load(f))
        except (json.JSONDecodeError, OSError):
            continue  # corrupt or vanished file

    return traces


# ── Metrics ───────────────────────────────────────────────────────────────────

def summary_stats(traces: list[dict]) -> dict:
    """
    High-level counts and rates across all traces.

    Returns:
        total, plus a count and a {status}_rate (0.0–1.0) for every
        SubmissionStatus value. enhancement_rate is the share of successful
        submissions whose record was AI-enhanced. avg_content_chars is
        averaged over successful submissions only.
    """
    if not traces:
        return {}

    total = len(traces)
    statuses = [t.get("status", "unknown") for t in traces]

    stats: dict = {"total": total}
    for status in SubmissionStatus:
        count = statuses.count(status.value)
        stats[status.value] = count
        stats[f"{status.value}_rate"] = round(count / total, 3)

    stored = [t for t in traces if t.get("status") == SubmissionStatus.SUCCESS.value]
    enhanced = sum(1 for t in stored if t.get("enhanced"))
    chars = [t.get("content_chars", 0) for t in stored]

    stats["enhancement_rate"] = round(enhanced / len(stored), 3) if stored else 0.0
    stats["avg_content_chars"] = round(statistics.mean(chars), 1) if chars else 0
    return stats


def latency_stats(traces: list[dict]) -> dict:
    """
    Per-step latency percentiles (p50, p90, p95) in milliseconds.

    Returns {"run": {...}, "fetch": {...}, "extract": {...}, ...} — one key
    per span name seen, plus "run" for whole-submission duration.
    """
    if not traces:
        return {}

    run_durations = [t.get("total_duration_ms", 0) for t in traces if t.get("total_duration_ms")]

    span_durations: dict[str, list[float]] = {}
    for trace in traces:
        for span in trace.get("spans", []):
            name = span.get("name", "unknown")
            span_durations.setdefault(name, []).append(span.get("duration_ms", 0))

    result = {}
    if run_durations:
        result["run"] = _percentiles(run_durations)
    for name, durations in span_durations.items():
        result[name] = _percentiles(durations)

    return result


def span_failure_rates(traces: list[dict]) -> dict:
    """
    Which step names have the highest error rate.

    Returns {span_name: {"total": N, "errors": M, "error_rate": 0.0–1.0}}
    sorted by error_rate descending.
    """
    if not traces:
        return {}

    counts: dict[str, dict] = {}
    for trace in traces:
        for span in trace.get("spans", []):
            c = counts.setdefault(span.get("name", "unknown"), {"total": 0, "errors": 0})
            c["total"] += 1
            if span.get("status") == "error":
                c["errors"] += 1

    result = {
        name: {
            "total": c["total"],
            "errors": c["errors"],
            "error_rate": round(c["errors"] / c["total"], 3) if c["total"] else 0.0,
        }
        for name, c in counts.items()
    }
    return dict(sorted(result.items(), key=lambda x: x[1]["error_rate"], reverse=True))


def provider_breakdown(traces: list[dict]) -> dict:
    """{provider: {"total": N, "success": M}} — traces rejected before detection count as "unknown"."""
    breakdown: dict[str, dict] = {}
    for t in traces:
        entry = breakdown.setdefault(t.get("provider") or "unknown", {"total": 0, "success": 0})
        entry["total"] += 1
        if t.get("status") == SubmissionStatus.SUCCESS.value:
            entry["success"] += 1
    return dict(sorted(breakdown.items(), key=lambda x: x[1]["total"], reverse=True))


def slow_runs(traces: list[dict], threshold_ms: float | None = None) -> list[dict]:
    """
    Return traces where total_duration_ms reached the threshold.

    Default threshold: settings.slow_submission_threshold_seconds.
    Each returned item has: run_id, url (truncated), duration_ms, status, provider.
    """
    if threshold_ms is None:
        threshold_ms = settings.slow_submission_threshold_seconds * 1000

    slow = []
    for t in traces:
        duration = t.get("total_duration_ms", 0)
        if duration >= threshold_ms:
            slow.append({
                "run_id": t.get("run_id", ""),
                "url": t.get("url", "")[:80],
                "duration_ms": duration,
                "status": t.get("status", "unknown"),
                "provider": t.get("provider", ""),
            })
    return sorted(slow, key=lambda x: x["duration_ms"], reverse=True)


def recent_runs(traces: list[dict], n: int = 10) -> list[dict]:
    """Summary of the last N submissions, most recent first."""
    recent = traces[-n:] if len(traces) > n else traces
    return [
        {
            "run_id": t.get("run_id", ""),
            "url": t.get("url", "")[:60],
            "status": t.get("status", "unknown"),
            "provider": t.get("provider", ""),
            "is_processed": t.get("is_processed", ""),
            "duration_ms": t.get("total_duration_ms", 0),
            "content_chars": t.get("content_chars", 0),
            "started_at": t.get("started_at", ""),
        }
        for t in reversed(recent)
    ]


# ── Private helpers ───────────────────────────────────────────────────────────

def _percentiles(values: list[float]) -> dict:
    """Compute p50, p90, p95 from a list of numeric values."""
    if not values:
        return {"p50": 0, "p90": 0, "p95": 0}
    s = sorted(values)
    return {
        "p50": round(_pct(s, 50), 2),
        "p90": round(_pct(s, 90), 2),
        "p95": round(_pct(s, 95), 2),
    }


def _pct(sorted_values: list[float], p: float) -> float:
    """Linear interpolation percentile."""
    n = len(sorted_values)
    if n == 1:
        return sorted_values[0]
    idx = (p / 100) * (n - 1)
    lo = int(idx)
    hi = min(lo + 1, n - 1)
    frac = idx - lo
    return sorted_values[lo] + frac * (sorted_values[hi] - sorted_values[lo])
