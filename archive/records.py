"""
archive/records.py — CanonicalRecord + SubmissionResult + status enums.

Design principles:
  - Dataclasses, not dicts — typos become AttributeError, not silent new keys
  - One CanonicalRecord per submitted URL, created once by the pipeline
  - Explicit status enums — no ambiguity about what happened to a submission

Key design decisions:

  CanonicalRecord:
    The unit that is stored and searched. Content fields (title, content,
    summary, tags, ...) are written once at submission time and never edited.
    The only mutations are the counters: upvotes and view_count, which go
    up by exactly one through the store and refresh updated_at.

  category/summary together:
    Both only come from AI enhancement, which is all-or-nothing per record.
    A record has both or neither.

  ProcessingStatus:
    PENDING   → enhancement did not run or was unavailable (no credential,
                network error, content too short) — could be retried later
    PROCESSED → enhancement succeeded, enhanced fields are in use
    FAILED    → the model answered but the answer was unusable (malformed
                JSON, missing fields) — retrying the same input won't help

  SubmissionResult:
    The pipeline never raises. It always returns one of these, with status
    telling the caller which terminal state the submission reached.

USAGE:
  from archive.records import CanonicalRecord, SubmissionResult, SubmissionStatus

  result = orchestrator.submit("https://claude.ai/share/abc")
  if result.success:
      print(result.record.title, result.record.tags)
  else:
      print(result.status.value, result.reason)
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum

from tools.providers import Provider


CATEGORIES: tuple[str, ...] = (
    "AI/ML",
    "Programming",
    "Research",
    "Data Science",
    "Technology",
    "Business",
    "Science",
    "Other",
)

DEFAULT_CATEGORY = "Other"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Status enums ───────────────────────────────────────────────────────────────

class ProcessingStatus(str, Enum):
    """Whether AI enhancement produced the record's title/summary/category/tags."""
    PENDING   = "pending"
    PROCESSED = "processed"
    FAILED    = "failed"


class SubmissionStatus(str, Enum):
    """
    Terminal states of one submission.

    SUCCESS                 → record created and stored
    DUPLICATE_SUBMISSION    → URL already stored, nothing fetched
    INVALID_URL             → not an http(s) URL or an unsafe target
    FETCH_FAILED            → network error, timeout or non-2xx — retryable
    EXTRACTION_INSUFFICIENT → page fetched but too little readable content
    """
    SUCCESS                 = "success"
    DUPLICATE_SUBMISSION    = "duplicate_submission"
    INVALID_URL             = "invalid_url"
    FETCH_FAILED            = "fetch_failed"
    EXTRACTION_INSUFFICIENT = "extraction_insufficient"


# ── CanonicalRecord ────────────────────────────────────────────────────────────

@dataclass
class CanonicalRecord:
    """One stored research item. id is assigned by the store on insert."""

    url: str
    title: str
    provider: Provider
    content: str = ""
    description: str = ""
    summary: str | None = None
    category: str | None = None
    tags: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    author_name: str | None = None
    author_handle: str | None = None

    view_count: int = 0
    upvotes: int = 0
    is_processed: ProcessingStatus = ProcessingStatus.PENDING

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    id: int | None = None

    @property
    def is_enhanced(self) -> bool:
        return self.is_processed == ProcessingStatus.PROCESSED

    def to_dict(self) -> dict:
        """JSON-safe dict: enums as values, datetimes as ISO strings."""
        d = asdict(self)
        d["provider"] = self.provider.value
        d["is_processed"] = self.is_processed.value
        d["created_at"] = self.created_at.isoformat()
        d["updated_at"] = self.updated_at.isoformat()
        return d

    @classmethod
    def from_dict(cls, data: dict) -> CanonicalRecord:
        """Inverse of to_dict(). Missing optional keys take their defaults."""
        data = dict(data)
        data["provider"] = Provider(data.get("provider") or Provider.OTHER.value)
        data["is_processed"] = ProcessingStatus(
            data.get("is_processed") or ProcessingStatus.PENDING.value
        )
        for key in ("created_at", "updated_at"):
            value = data.get(key)
            if isinstance(value, str):
                data[key] = datetime.fromisoformat(value)
            elif value is None:
                data.pop(key, None)
        return cls(**data)


# ── SubmissionResult ───────────────────────────────────────────────────────────

@dataclass
class SubmissionResult:
    """
    The outcome of one submission.

    record is set only when status is SUCCESS.
    reason is a human-readable message suitable to show the submitter.
    errors holds non-fatal notes (e.g. why enhancement was unavailable).
    """
    url: str
    status: SubmissionStatus
    record: CanonicalRecord | None = None
    reason: str = ""
    errors: list[str] = field(default_factory=list)
    run_id: str = ""

    @property
    def success(self) -> bool:
        return self.status == SubmissionStatus.SUCCESS

    @classmethod
    def ok(cls, record: CanonicalRecord, errors: list[str] | None = None) -> SubmissionResult:
        return cls(url=record.url, status=SubmissionStatus.SUCCESS, record=record,
                   errors=errors or [])

    @classmethod
    def failed(cls, url: str, status: SubmissionStatus, reason: str) -> SubmissionResult:
        return cls(url=url, status=status, reason=reason)
