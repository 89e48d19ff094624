"""
tests/unit/test_tracer.py — Unit tests for observability/tracer.py
"""

import sys
import json
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest
from archive.records import (
    CanonicalRecord,
    ProcessingStatus,
    SubmissionResult,
    SubmissionStatus,
)
from observability.tracer import Tracer
from tools.providers import Provider


URL = "https://gemini.google.com/share/xyz"


# ── Spans ─────────────────────────────────────────────────────────────────────

class TestSpans:
    def test_span_recorded_with_step_numbers(self):
        tracer = Tracer(url=URL)
        with tracer.span("validate"):
            pass
        with tracer.span("fetch") as span:
            span.metadata["status_code"] = 200
        spans = tracer.trace.spans
        assert [s.name for s in spans] == ["validate", "fetch"]
        assert [s.step for s in spans] == [1, 2]
        assert spans[1].metadata == {"status_code": 200}
        assert spans[1].status == "success"
        assert spans[1].duration_ms >= 0

    def test_error_marks_span_and_reraises(self):
        tracer = Tracer(url=URL)
        with pytest.raises(RuntimeError):
            with tracer.span("insert"):
                raise RuntimeError("disk full")
        span = tracer.trace.spans[0]
        assert span.status == "error"
        assert "RuntimeError: disk full" in span.error

    def test_run_id_override(self):
        assert Tracer(url=URL, run_id="fixed123").run_id == "fixed123"

    def test_run_ids_unique(self):
        assert Tracer(url=URL).run_id != Tracer(url=URL).run_id


# ── finish() ──────────────────────────────────────────────────────────────────

class TestFinish:
    def test_success_copies_record_fields(self):
        record = CanonicalRecord(
            url=URL,
            title="Gemini Conversation",
            provider=Provider.GEMINI,
            content="x" * 240,
            is_processed=ProcessingStatus.PROCESSED,
            id=5,
        )
        tracer = Tracer(url=URL)
        tracer.finish(SubmissionResult.ok(record))
        trace = tracer.trace
        assert trace.status == "success"
        assert trace.provider == "gemini"
        assert trace.record_id == 5
        assert trace.content_chars == 240
        assert trace.enhanced is True
        assert trace.is_processed == "processed"
        assert trace.completed_at
        assert trace.total_duration_ms >= 0

    def test_failure_keeps_detected_provider(self):
        tracer = Tracer(url=URL)
        tracer.set_provider("gemini")
        tracer.finish(SubmissionResult.failed(URL, SubmissionStatus.FETCH_FAILED, "HTTP 503"))
        trace = tracer.trace
        assert trace.status == "fetch_failed"
        assert trace.reason == "HTTP 503"
        assert trace.provider == "gemini"
        assert trace.record_id is None


# ── save() ────────────────────────────────────────────────────────────────────

class TestSave:
    def test_writes_json_named_by_run_id(self, tmp_path):
        tracer = Tracer(url=URL, run_id="abc123")
        with tracer.span("detect") as span:
            span.metadata["provider"] = "gemini"
        tracer.finish(SubmissionResult.failed(URL, SubmissionStatus.INVALID_URL, "bad"))
        path = tracer.save(tmp_path / "nested" / "traces")

        assert path == tmp_path / "nested" / "traces" / "abc123.json"
        data = json.loads(path.read_text())
        assert data["run_id"] == "abc123"
        assert data["url"] == URL
        assert data["status"] == "invalid_url"
        assert data["spans"][0]["metadata"] == {"provider": "gemini"}
