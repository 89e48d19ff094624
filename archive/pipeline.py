"""
archive/pipeline.py — One submission: URL → CanonicalRecord → store.

THE PIPELINE:

  0. Validate     malformed or unsafe URL          → invalid_url
  1. Dedupe       URL already stored               → duplicate_submission
  2. Detect       hostname → Provider
  3. Fetch        one GET, bounded timeout         → fetch_failed on error/non-2xx
  4. Extract      provider selectors, then generic
  5. Fallback     content < 100 chars: generic re-run, then the trafilatura
                  reader; still < settings.min_accept_chars → extraction_insufficient
  6. Enhance      optional LLM call; failure NEVER aborts the submission
  7. Assemble     enhanced fields win; otherwise page fields + keyword tags
  8. Insert       store.insert(); a DuplicateUrlError here (lost race) → duplicate_submission

  The duplicate check runs before the fetch, so resubmitting a known URL
  costs one store lookup and no network traffic.

WHAT submit() RETURNS:
  Always a SubmissionResult, never raises.
  status=SUCCESS  → record is the stored record (with its id)
  anything else   → record is None, reason is a message for the submitter

  Enhancement problems are not failures. They land in result.errors and in
  the record's is_processed:
      enhanced                      → processed
      unavailable, retryable        → pending   (no credential, network error)
      unavailable, not retryable    → failed    (model answered with junk)

PROGRESS CALLBACK:
  Pass on_progress=callable to get a plain-string update at each step.
  The same messages go to the console with a [pipeline] prefix.

USAGE:
  from archive.pipeline import Orchestrator
  from archive.store import InMemoryStore

  orchestrator = Orchestrator(store=InMemoryStore())
  result = orchestrator.submit("https://claude.ai/share/abc", author_name="Ada")
  print(result.status.value, result.record.title if result.success else result.reason)
"""

from pathlib import Path
from typing import Callable

from archive.enhancer import Enhancer, EnhancementResult
from archive.guardrails import validate_submission_url
from archive.records import (
    CanonicalRecord,
    ProcessingStatus,
    SubmissionResult,
    SubmissionStatus,
)
from archive.store import DuplicateUrlError, ResearchStore
from config import settings
from observability.tracer import Tracer
from tools.extract import extract_with_reader, normalize_text
from tools.extractors import (
    GENERIC,
    MIN_CONTENT_CHARS,
    ExtractedFields,
    extract_fields,
    extract_generic,
    parse_html,
)
from tools.fetch import FetchResult, fetch_page
from tools.keywords import extract_keywords
from tools.providers import Provider, detect_provider


Fetcher = Callable[..., FetchResult]


class Orchestrator:
    """
    Runs submissions against one store.

    enhancer=None builds one from settings (disabled when no Foundry
    endpoint is configured). fetcher is injectable so tests never touch
    the network. trace_dir=None saves traces under settings.log_dir.
    """

    def __init__(
        self,
        store: ResearchStore,
        enhancer: Enhancer | None = None,
        fetcher: Fetcher = fetch_page,
        trace_dir: Path | None = None,
    ) -> None:
        self._store = store
        self._enhancer = enhancer if enhancer is not None else Enhancer.from_settings()
        self._fetch = fetcher
        self._trace_dir = trace_dir

    def submit(
        self,
        url: str,
        author_name: str | None = None,
        author_handle: str | None = None,
        on_progress: Callable[[str], None] | None = None,
    ) -> SubmissionResult:
        """
        Run one URL through the whole pipeline.

        Never raises. An unexpected exception is reported as fetch_failed
        with the exception type in the reason.
        """
        raw_url = url.strip() if isinstance(url, str) else ""
        tracer = Tracer(url=raw_url)
        result: SubmissionResult | None = None

        def _progress(msg: str) -> None:
            _log(msg)
            if on_progress:
                on_progress(msg)

        try:
            result = self._run(url, author_name, author_handle, tracer, _progress)
        except Exception as e:
            result = SubmissionResult.failed(
                raw_url,
                SubmissionStatus.FETCH_FAILED,
                f"Unexpected error while processing the page: {type(e).__name__}",
            )
            result.errors.append(f"{type(e).__name__}: {e}")
            _log(f"Unexpected error for {raw_url}: {type(e).__name__}: {e}")
        finally:
            if result is not None:
                result.run_id = tracer.run_id
                tracer.finish(result)
                self._save_trace(tracer)

        return result

    # ── Steps ─────────────────────────────────────────────────────────────────

    def _run(
        self,
        url,
        author_name: str | None,
        author_handle: str | None,
        tracer: Tracer,
        progress: Callable[[str], None],
    ) -> SubmissionResult:
        """The step sequence. Returns early on each terminal state."""

        # ── Step 0: Validate ──────────────────────────────────────────────────
        with tracer.span("validate") as span:
            try:
                url = validate_submission_url(url)
            except ValueError as e:
                span.metadata["rejected"] = str(e)
                progress(f"Rejected: {e}")
                return SubmissionResult.failed(
                    url if isinstance(url, str) else "",
                    SubmissionStatus.INVALID_URL,
                    str(e),
                )

        # ── Step 1: Duplicate check ───────────────────────────────────────────
        with tracer.span("dedupe") as span:
            exists = self._store.exists_by_url(url)
            span.metadata["duplicate"] = exists
        if exists:
            progress(f"Already archived: {url}")
            return SubmissionResult.failed(
                url,
                SubmissionStatus.DUPLICATE_SUBMISSION,
                "This research has already been submitted",
            )

        # ── Step 2: Detect provider ───────────────────────────────────────────
        with tracer.span("detect") as span:
            provider = detect_provider(url)
            span.metadata["provider"] = provider.value
        tracer.set_provider(provider.value)

        # ── Step 3: Fetch ─────────────────────────────────────────────────────
        progress(f"Fetching {provider.value} page: {url[:80]}")
        with tracer.span("fetch") as span:
            page = self._fetch(url, timeout=settings.fetch_timeout_seconds)
            span.metadata["status_code"] = page.status_code
            span.metadata["final_url"] = page.final_url
            span.metadata["html_chars"] = page.size
            span.metadata["error"] = page.error or ""
        if not page.success:
            progress(f"Fetch failed: {page.error}")
            return SubmissionResult.failed(
                url,
                SubmissionStatus.FETCH_FAILED,
                f"Could not fetch the page ({page.error}). Please try again later.",
            )

        # ── Step 4: Extract ───────────────────────────────────────────────────
        with tracer.span("extract") as span:
            soup = parse_html(page.html)
            fields = extract_fields(soup, provider, settings.max_content_chars)
            span.metadata.update(fields.metadata)
            span.metadata["content_chars"] = fields.content_length
        progress(
            f"Extracted {fields.content_length} chars "
            f"({fields.metadata['extractor']} → {fields.metadata['selector']})"
        )

        # ── Step 5: Fallback ──────────────────────────────────────────────────
        if fields.content_length < MIN_CONTENT_CHARS:
            with tracer.span("fallback") as span:
                fields = self._fallback(soup, page, fields, span.metadata)
                span.metadata["content_chars"] = fields.content_length
            progress(f"Fallback extraction: {fields.content_length} chars")

        if fields.content_length < settings.min_accept_chars:
            return SubmissionResult.failed(
                url,
                SubmissionStatus.EXTRACTION_INSUFFICIENT,
                f"Could not extract enough content from the page "
                f"({fields.content_length} chars). It may require JavaScript or a login.",
            )

        # ── Step 6: Enhance ───────────────────────────────────────────────────
        errors: list[str] = []
        with tracer.span("enhance") as span:
            if fields.content_length > settings.min_enhance_chars:
                progress("Enhancing with AI...")
                enhancement = self._enhancer.enhance(fields.content, url)
            else:
                enhancement = EnhancementResult.unavailable("Content too short to enhance")
            span.metadata["enhanced"] = enhancement.enhanced
            span.metadata["retryable"] = enhancement.retryable
            span.metadata["reason"] = enhancement.reason
        if not enhancement.enhanced:
            errors.append(f"AI enhancement unavailable: {enhancement.reason}")
            progress(f"Continuing without AI enhancement ({enhancement.reason})")

        # ── Step 7: Assemble ──────────────────────────────────────────────────
        with tracer.span("assemble") as span:
            record = build_record(
                url, provider, page, fields, enhancement,
                author_name=author_name,
                author_handle=author_handle,
            )
            span.metadata["is_processed"] = record.is_processed.value
            span.metadata["n_tags"] = len(record.tags)

        # ── Step 8: Insert ────────────────────────────────────────────────────
        with tracer.span("insert") as span:
            try:
                stored = self._store.insert(record)
            except DuplicateUrlError:
                span.metadata["duplicate"] = True
                progress(f"Already archived (concurrent submission): {url}")
                return SubmissionResult.failed(
                    url,
                    SubmissionStatus.DUPLICATE_SUBMISSION,
                    "This research has already been submitted",
                )
            span.metadata["record_id"] = stored.id

        progress(f"Archived #{stored.id}: {stored.title[:70]}")
        return SubmissionResult.ok(stored, errors)

    def _fallback(
        self,
        soup,
        page: FetchResult,
        fields: ExtractedFields,
        trace_meta: dict,
    ) -> ExtractedFields:
        """Generic selectors (unless they already ran), then the reader. Keeps the longest."""
        max_chars = settings.max_content_chars

        if fields.metadata.get("extractor") != GENERIC.name:
            generic = extract_generic(soup, max_chars)
            trace_meta["generic_chars"] = generic.content_length
            if generic.content_length > fields.content_length:
                generic.title = fields.title
                fields = generic

        if fields.content_length < MIN_CONTENT_CHARS:
            text = normalize_text(extract_with_reader(page.html, page.final_url), max_chars)
            trace_meta["reader_chars"] = len(text)
            if len(text) > fields.content_length:
                fields.content = text
                fields.metadata = {"extractor": "reader", "selector": "reader"}

        return fields

    def _save_trace(self, tracer: Tracer) -> None:
        try:
            path = tracer.save(self._trace_dir)
            _log(f"Trace saved → {path}")
        except OSError as e:
            _log(f"Could not save trace {tracer.run_id}: {e}")


# ── Record assembly ───────────────────────────────────────────────────────────

def build_record(
    url: str,
    provider: Provider,
    page: FetchResult,
    fields: ExtractedFields,
    enhancement: EnhancementResult,
    author_name: str | None = None,
    author_handle: str | None = None,
) -> CanonicalRecord:
    """
    Merge page fields and enhancement output into one record.

    Enhanced values win. Without enhancement the record keeps the page's
    title/description, gets keyword tags from all three text fields, and
    leaves summary/category unset.
    """
    metadata = {
        "scraped_at": page.fetched_at,
        "original_url": url,
        "final_url": page.final_url,
        "status_code": page.status_code,
        "content_length": fields.content_length,
        "ai_enhanced": enhancement.enhanced,
        "provider": provider.value,
        "extractor": fields.metadata.get("extractor", ""),
        "selector": fields.metadata.get("selector", ""),
    }

    if enhancement.enhanced:
        enhanced = enhancement.fields
        return CanonicalRecord(
            url=url,
            title=enhanced.title,
            provider=provider,
            content=fields.content,
            description=enhanced.description,
            summary=enhanced.summary,
            category=enhanced.category,
            tags=list(enhanced.keywords),
            metadata=metadata,
            author_name=_clean_author(author_name),
            author_handle=_clean_author(author_handle),
            is_processed=ProcessingStatus.PROCESSED,
        )

    metadata["enhancement_error"] = enhancement.reason
    tags = extract_keywords(
        f"{fields.title} {fields.description} {fields.content}",
        settings.max_fallback_tags,
    )
    return CanonicalRecord(
        url=url,
        title=fields.title,
        provider=provider,
        content=fields.content,
        description=fields.description,
        tags=tags,
        metadata=metadata,
        author_name=_clean_author(author_name),
        author_handle=_clean_author(author_handle),
        is_processed=(
            ProcessingStatus.PENDING if enhancement.retryable else ProcessingStatus.FAILED
        ),
    )


def _clean_author(value: str | None) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _log(message: str) -> None:
    print(f"[pipeline] {message}")
