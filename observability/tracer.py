"""
observability/tracer.py — Span-based tracing for one submission.

THE CORE CONCEPT:
  Every step of the scraping pipeline is a Span: a named unit of work with
  a start time, end time, status, and metadata dict.

  A Trace collects all spans for one submission and saves them to disk as
  JSON. That answers questions a console log can't:
    - Which selector matched for this Claude share page?
    - How often does the reader fallback kick in?
    - Why was this record stored as pending instead of processed?
    - Is the fetch or the enhancement call the slow part?

WHAT GETS TRACED:
  - validate  → url accepted or rejected
  - dedupe    → duplicate or not
  - detect    → provider
  - fetch     → status_code, final_url, html_chars
  - extract   → extractor, selector, content_chars
  - fallback  → generic/reader attempts, final content_chars
  - enhance   → enhanced, retryable, reason
  - assemble  → is_processed, n_tags
  - insert    → record id
  - submission (trace level) → status, provider, content_chars, enhanced,
                               is_processed, total_duration_ms

USAGE:
  tracer = Tracer(url="https://claude.ai/share/abc")

  with tracer.span("fetch") as span:
      page = fetch_page(url)
      span.metadata["status_code"] = page.status_code

  tracer.finish(result)
  path = tracer.save()
"""

import json
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from pathlib import Path

from config import settings


# ── Span ──────────────────────────────────────────────────────────────────────

@dataclass
class Span:
    """
    One named step in the pipeline.

    status is "success" or "error".
    metadata holds step-specific data (selector, status_code, reason, etc.).
    """
    name: str
    step: int
    started_at: float       # time.monotonic(), for duration math
    ended_at: float = 0.0
    duration_ms: float = 0.0
    status: str = "success"
    metadata: dict = field(default_factory=dict)
    error: str = ""

    def finish(self, status: str = "success", error: str = "") -> None:
        self.ended_at = time.monotonic()
        self.duration_ms = round((self.ended_at - self.started_at) * 1000, 2)
        self.status = status
        self.error = error


# ── Trace ─────────────────────────────────────────────────────────────────────

@dataclass
class Trace:
    """
    Complete record of one submission: all spans + summary fields.

    Saved to {log_dir}/traces/{run_id}.json when the submission ends.
    """
    run_id: str
    url: str
    started_at: str         # ISO timestamp
    completed_at: str = ""
    spans: list[Span] = field(default_factory=list)

    # Summary fields (filled by finish())
    status: str = "running"
    provider: str = ""
    record_id: int | None = None
    content_chars: int = 0
    enhanced: bool = False
    is_processed: str = ""
    reason: str = ""
    total_duration_ms: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


# ── Tracer ────────────────────────────────────────────────────────────────────

class Tracer:
    """
    Collects spans for one submission and saves the trace to disk.

    Context manager interface:
        with tracer.span("extract") as span:
            span.metadata["selector"] = fields.metadata["selector"]
        # span is automatically finished when the with-block exits

    On error inside the with-block: span status is set to "error"
    and the exception is re-raised — the tracer never swallows errors.
    """

    def __init__(self, url: str, run_id: str | None = None) -> None:
        self._url = url
        self._run_id = run_id or uuid.uuid4().hex[:12]
        self._started = time.monotonic()
        self._trace = Trace(
            run_id=self._run_id,
            url=url,
            started_at=datetime.now(timezone.utc).isoformat(),
        )
        self._step_counter = 0

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def trace(self) -> Trace:
        return self._trace

    @contextmanager
    def span(self, name: str):
        """
        Context manager that creates, times, and closes a span.

        On exception: span is marked "error", exception is re-raised.
        """
        self._step_counter += 1
        s = Span(name=name, step=self._step_counter, started_at=time.monotonic())
        self._trace.spans.append(s)
        try:
            yield s
            s.finish(status="success")
        except Exception as exc:
            s.finish(status="error", error=f"{type(exc).__name__}: {exc}")
            raise

    def set_provider(self, provider: str) -> None:
        self._trace.provider = provider

    def finish(self, result) -> None:
        """
        Populate summary fields from the final SubmissionResult.
        Call this after all spans are done.
        """
        elapsed = time.monotonic() - self._started
        self._trace.completed_at = datetime.now(timezone.utc).isoformat()
        self._trace.total_duration_ms = round(elapsed * 1000, 2)
        self._trace.status = result.status.value
        self._trace.reason = result.reason

        record = result.record
        if record is not None:
            self._trace.provider = record.provider.value
            self._trace.record_id = record.id
            self._trace.content_chars = len(record.content)
            self._trace.enhanced = record.is_enhanced
            self._trace.is_processed = record.is_processed.value

    def save(self, log_dir: Path | None = None) -> Path:
        """
        Write the trace to {log_dir}/{run_id}.json.

        log_dir defaults to {settings.log_dir}/traces. Returns the path
        written. Creates the directory if needed.
        """
        if log_dir is None:
            log_dir = Path(settings.log_dir) / "traces"
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        path = log_dir / f"{self._run_id}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._trace.to_dict(), f, indent=2, default=str)

        return path
