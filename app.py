"""
app.py — Streamlit web UI for the Research Archive.

Four tabs:
  Submit    — archive a shared AI conversation URL, see the stored record + trace
  Search    — weighted free-text search with provider/category filters and upvotes
  Featured  — recent (last 30 days) and popular lists
  Dashboard — aggregate metrics across saved submission traces, span browser

Run with:
  streamlit run app.py
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

import pandas as pd
import streamlit as st

from archive.enhancer import Enhancer
from archive.guardrails import InvalidQueryError, clamp_limit
from archive.pipeline import Orchestrator
from archive.ranking import featured_research
from archive.records import CATEGORIES, CanonicalRecord, SubmissionStatus
from archive.relevance import SearchFilters, search_research
from archive.store import RecordNotFoundError, make_store
from observability.dashboard import (
    load_traces,
    summary_stats,
    latency_stats,
    span_failure_rates,
    provider_breakdown,
    recent_runs,
    slow_runs,
)
from tools.providers import Provider
from config import settings

# ── Page config ───────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Research Archive",
    layout="wide",
    page_icon="📚",
)


@st.cache_resource
def get_store():
    return make_store()


@st.cache_resource
def get_orchestrator() -> Orchestrator:
    return Orchestrator(store=get_store(), enhancer=Enhancer.from_settings())


store = get_store()
orchestrator = get_orchestrator()

# ── Sidebar ───────────────────────────────────────────────────────────────────

with st.sidebar:
    st.title("📚 Research Archive")
    st.divider()

    st.subheader("Configuration")
    st.caption(f"**Store:** {settings.store_backend}")
    st.caption(f"**Enhancement model:** {settings.enhancement_model}")
    st.caption(
        "**AI enhancement:** "
        + ("enabled" if settings.foundry_endpoint else "disabled (no FOUNDRY_ENDPOINT)")
    )
    st.caption(f"**Fetch timeout:** {settings.fetch_timeout_seconds:.0f}s")

    st.divider()
    st.caption(f"**Archived records:** {len(store)}")
    st.caption(f"**Saved traces:** {len(load_traces(n=1000))}")

# ── Helpers ───────────────────────────────────────────────────────────────────

_STATUS_BADGE = {
    "processed": "✨ AI-enhanced",
    "pending": "⏳ enhancement pending",
    "failed": "⚠️ enhancement failed",
}


def _render_record(record: CanonicalRecord, key_prefix: str, score: int | None = None) -> None:
    """One record as a card with an upvote button."""
    with st.container(border=True):
        col_main, col_votes = st.columns([6, 1])
        with col_main:
            st.markdown(f"**[{record.title}]({record.url})**")
            meta = [record.provider.value, _STATUS_BADGE.get(record.is_processed.value, "")]
            if record.category:
                meta.append(record.category)
            if record.author_name:
                handle = f" (@{record.author_handle})" if record.author_handle else ""
                meta.append(f"by {record.author_name}{handle}")
            if score is not None:
                meta.append(f"score {score}")
            st.caption(" · ".join(m for m in meta if m))
            if record.description:
                st.write(record.description)
            if record.summary and record.summary != record.description:
                with st.expander("Summary"):
                    st.write(record.summary)
            if record.tags:
                st.caption(" ".join(f"`{t}`" for t in record.tags))
        with col_votes:
            st.metric("Upvotes", record.upvotes)
            if st.button("▲ Upvote", key=f"{key_prefix}-up-{record.id}"):
                try:
                    store.increment_upvote(record.id)
                except RecordNotFoundError as e:
                    st.error(str(e))
                st.rerun()


def _render_spans_table(spans: list[dict]) -> None:
    """Render a spans list as a Streamlit dataframe."""
    if not spans:
        st.caption("No spans recorded.")
        return

    rows = []
    for s in spans:
        meta = s.get("metadata", {})
        meta_str = ", ".join(f"{k}={v}" for k, v in meta.items() if v != "" and v is not None)
        rows.append({
            "Step": s.get("step", ""),
            "Name": s.get("name", ""),
            "Status": s.get("status", ""),
            "Duration ms": s.get("duration_ms", 0),
            "Metadata": meta_str[:160],
            "Error": s.get("error", ""),
        })

    def color_status(val):
        if val == "success":
            return "color: green"
        if val == "error":
            return "color: red"
        return ""

    st.dataframe(
        pd.DataFrame(rows).style.map(color_status, subset=["Status"]),
        use_container_width=True,
        hide_index=True,
    )


# ── Tabs ──────────────────────────────────────────────────────────────────────

tab_submit, tab_search, tab_featured, tab_dashboard = st.tabs(
    ["Submit", "Search", "Featured", "Dashboard"]
)

# ══════════════════════════════════════════════════════════════════════════════
# TAB 1 — SUBMIT
# ══════════════════════════════════════════════════════════════════════════════

with tab_submit:
    st.header("Archive a Research Conversation")

    with st.form("submit_form", clear_on_submit=False):
        url = st.text_input(
            "Share URL",
            placeholder="https://claude.ai/share/... · https://chatgpt.com/share/... · any public page",
        )
        col_name, col_handle = st.columns(2)
        author_name = col_name.text_input("Your name (optional)")
        author_handle = col_handle.text_input("Handle (optional)")
        submitted = st.form_submit_button("Submit", type="primary")

    if submitted:
        if not url.strip():
            st.warning("Please enter a URL.")
        else:
            st.session_state.pop("last_submission", None)

            with st.status("Archiving...", expanded=True) as status:
                log_el = st.empty()
                lines: list[str] = []

                def on_progress(msg: str) -> None:
                    lines.append(msg)
                    log_el.markdown("\n".join(f"- {m}" for m in lines[-10:]))

                result = orchestrator.submit(
                    url,
                    author_name=author_name or None,
                    author_handle=author_handle or None,
                    on_progress=on_progress,
                )
                st.session_state["last_submission"] = result
                status.update(
                    label=f"Done — {result.status.value}",
                    state="complete" if result.success else "error",
                    expanded=False,
                )

    if "last_submission" in st.session_state:
        result = st.session_state["last_submission"]

        if result.success:
            st.success(f"Archived as #{result.record.id}")
            _render_record(result.record, key_prefix="submitted")
        elif result.status == SubmissionStatus.DUPLICATE_SUBMISSION:
            st.info(result.reason)
        else:
            st.error(f"{result.status.value.replace('_', ' ').capitalize()}: {result.reason}")

        if result.errors:
            with st.expander(f"Notes ({len(result.errors)})", expanded=False):
                for err in result.errors:
                    st.code(err, language=None)

        trace = next((t for t in load_traces(n=20) if t.get("run_id") == result.run_id), None)
        if trace:
            with st.expander("Trace — step timing", expanded=False):
                _render_spans_table(trace.get("spans", []))
                st.caption(
                    f"Run ID: `{trace.get('run_id', '')}` | "
                    f"Total: {trace.get('total_duration_ms', 0):.0f} ms"
                )

# ══════════════════════════════════════════════════════════════════════════════
# TAB 2 — SEARCH
# ══════════════════════════════════════════════════════════════════════════════

with tab_search:
    st.header("Search the Archive")

    query = st.text_input("Query", placeholder="e.g. transformer attention, rust lifetimes, claude")
    col_p, col_c, col_l = st.columns(3)
    provider_choice = col_p.selectbox("Provider", ["all"] + [p.value for p in Provider])
    category_choice = col_c.selectbox("Category", ["all"] + list(CATEGORIES))
    limit = col_l.number_input(
        "Max results",
        min_value=1,
        max_value=settings.max_search_limit,
        value=settings.default_search_limit,
    )

    if query:
        filters = SearchFilters(
            provider=None if provider_choice == "all" else Provider(provider_choice),
            category=None if category_choice == "all" else category_choice,
            limit=clamp_limit(limit, settings.default_search_limit, settings.max_search_limit),
        )
        try:
            hits = search_research(query, store.list_all(), filters)
        except InvalidQueryError as e:
            st.warning(str(e))
        else:
            st.caption(f"{len(hits)} result(s)")
            if not hits:
                st.info("No matching research. Try fewer or different words.")
            for hit in hits:
                _render_record(hit.record, key_prefix="search", score=hit.score)

# ══════════════════════════════════════════════════════════════════════════════
# TAB 3 — FEATURED
# ══════════════════════════════════════════════════════════════════════════════

with tab_featured:
    st.header("Featured Research")

    featured = featured_research(
        store.list_all(),
        limit=settings.featured_limit,
        window_days=settings.recent_window_days,
    )

    col_recent, col_popular = st.columns(2)
    with col_recent:
        st.subheader(f"Recent (last {settings.recent_window_days} days)")
        if not featured["recent"]:
            st.caption("Nothing archived recently.")
        for record in featured["recent"]:
            _render_record(record, key_prefix="recent")
    with col_popular:
        st.subheader("Popular")
        if not featured["popular"]:
            st.caption("The archive is empty.")
        for record in featured["popular"]:
            _render_record(record, key_prefix="popular")

# ══════════════════════════════════════════════════════════════════════════════
# TAB 4 — DASHBOARD
# ══════════════════════════════════════════════════════════════════════════════

with tab_dashboard:
    st.header("Dashboard")

    n_traces = st.number_input("Load last N submissions", min_value=1, max_value=1000, value=50)

    @st.cache_data(ttl=30)
    def get_traces(n: int):
        return load_traces(n=n)

    traces = get_traces(n_traces)

    if not traces:
        st.info("No trace files found. Submit a URL first.")
    else:
        # ── Summary metrics ───────────────────────────────────────────────────
        stats = summary_stats(traces)

        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Submissions", stats.get("total", 0))
        col2.metric("Success rate", f"{stats.get('success_rate', 0) * 100:.0f}%")
        col3.metric("AI-enhanced", f"{stats.get('enhancement_rate', 0) * 100:.0f}%")
        col4.metric("Avg content chars", f"{stats.get('avg_content_chars', 0):.0f}")

        status_rows = [
            {"Status": s.value, "Count": stats.get(s.value, 0)} for s in SubmissionStatus
        ]
        st.bar_chart(pd.DataFrame(status_rows).set_index("Status"))

        st.divider()

        # ── Providers ─────────────────────────────────────────────────────────
        by_provider = provider_breakdown(traces)
        if by_provider:
            st.subheader("By provider")
            rows = [
                {"Provider": name, "Submissions": v["total"], "Stored": v["success"]}
                for name, v in by_provider.items()
            ]
            st.dataframe(pd.DataFrame(rows).set_index("Provider"), use_container_width=True)

        # ── Latency percentiles ───────────────────────────────────────────────
        st.subheader("Latency (ms)")
        lat = latency_stats(traces)
        if lat:
            lat_rows = [
                {
                    "Step": step,
                    "p50 ms": pcts.get("p50", 0),
                    "p90 ms": pcts.get("p90", 0),
                    "p95 ms": pcts.get("p95", 0),
                }
                for step, pcts in lat.items()
            ]
            st.dataframe(pd.DataFrame(lat_rows).set_index("Step"), use_container_width=True)

        # ── Failure rates ─────────────────────────────────────────────────────
        failures = span_failure_rates(traces)
        if failures:
            st.subheader("Step failure rates")
            rows = [
                {"Step": name, "Total calls": v["total"], "Errors": v["errors"],
                 "Error rate": f"{v['error_rate']*100:.1f}%"}
                for name, v in failures.items()
            ]
            st.dataframe(pd.DataFrame(rows).set_index("Step"), use_container_width=True)

        # ── Slow submissions ──────────────────────────────────────────────────
        slow = slow_runs(traces)
        if slow:
            st.subheader(
                f"Slow submissions (>{settings.slow_submission_threshold_seconds:.0f}s) — {len(slow)} found"
            )
            for r in slow:
                st.warning(
                    f"`{r['run_id']}` — {r['duration_ms'] / 1000:.1f}s — "
                    f"{r['status']} — {r['provider']} — {r['url']}"
                )

        st.divider()

        # ── Recent submissions ────────────────────────────────────────────────
        st.subheader("Recent submissions")
        rows = recent_runs(traces, n=10)
        if rows:
            df = pd.DataFrame(rows)
            df["duration_s"] = (df["duration_ms"] / 1000).round(1)
            df = df[["run_id", "url", "status", "provider", "is_processed",
                     "duration_s", "content_chars", "started_at"]]
            st.dataframe(df, use_container_width=True, hide_index=True)

        # ── Span browser ──────────────────────────────────────────────────────
        st.subheader("Trace browser")
        options = [f"{t.get('run_id', '?')} — {t.get('url', '')[:60]}" for t in reversed(traces)]
        selected = st.selectbox("Select a submission", options)
        if selected:
            run_id = selected.split(" — ")[0]
            trace = next((t for t in traces if t.get("run_id") == run_id), None)
            if trace:
                st.caption(
                    f"Status: **{trace.get('status', '?')}** | "
                    f"Provider: {trace.get('provider', '') or '—'} | "
                    f"Started: {trace.get('started_at', '')}"
                )
                if trace.get("reason"):
                    st.caption(f"Reason: {trace['reason']}")
                _render_spans_table(trace.get("spans", []))
