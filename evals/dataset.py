"""
evals/dataset.py — A labelled mini-corpus and search queries with known answers.

WHAT THIS IS:
  Ten archived research records (one or two per provider) and a set of
  search queries. Each query lists the URLs a good search MUST return,
  most relevant first where it matters.

  - query:         what a user types into the search box
  - expected_urls: records that must appear in the top-k
  - provider:      optional provider filter, as the UI would pass it
  - category:      topic area (for grouping results)

WHY A FIXED CORPUS:
  The scorer is deterministic, so a fixed corpus makes every eval run
  reproducible and free — no fetch, no LLM. Change a weight in
  ScoringWeights, rerun, and the precision/MRR delta is the whole story.

  The corpus includes near-misses on purpose: a record that mentions
  "transformer" only in its content should rank below one that has it
  in the title.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from archive.records import CanonicalRecord, ProcessingStatus
from tools.providers import Provider


@dataclass
class EvalQuery:
    """
    One search query with ground-truth results.

    expected_urls: URLs that a good ranking puts in the top-k. Order
    matters only for reciprocal rank (first expected URL found).
    """
    query: str
    expected_urls: list[str]
    category: str
    provider: Provider | None = None
    description: str = ""


def _record(
    url: str,
    title: str,
    provider: Provider,
    description: str,
    content: str,
    tags: list[str],
    category: str | None = None,
    upvotes: int = 0,
    day: int = 1,
) -> CanonicalRecord:
    created = datetime(2025, 3, day, 12, 0, tzinfo=timezone.utc)
    return CanonicalRecord(
        url=url,
        title=title,
        provider=provider,
        content=content,
        description=description,
        summary=description if category else None,
        category=category,
        tags=tags,
        upvotes=upvotes,
        is_processed=ProcessingStatus.PROCESSED if category else ProcessingStatus.PENDING,
        created_at=created,
        updated_at=created,
    )


# ── Corpus ────────────────────────────────────────────────────────────────────

EVAL_CORPUS: list[CanonicalRecord] = [
    _record(
        url="https://claude.ai/share/transformers-explained",
        title="Transformer Attention Explained Step by Step",
        provider=Provider.CLAUDE,
        description="Walkthrough of self-attention, multi-head attention and positional encodings.",
        content="Queries, keys and values are projections of the same input. "
                "Scaled dot-product attention divides by the square root of the key dimension.",
        tags=["transformer", "attention", "deep learning"],
        category="AI/ML",
        upvotes=12,
        day=2,
    ),
    _record(
        url="https://chatgpt.com/share/rust-borrow-checker",
        title="Understanding the Rust Borrow Checker",
        provider=Provider.CHATGPT,
        description="Ownership, borrowing and lifetimes with worked compiler errors.",
        content="A mutable borrow must be unique. Lifetimes annotate how long references live.",
        tags=["rust", "ownership", "lifetimes"],
        category="Programming",
        upvotes=8,
        day=3,
    ),
    _record(
        url="https://gemini.google.com/share/crispr-overview",
        title="CRISPR Gene Editing: Mechanisms and Risks",
        provider=Provider.GEMINI,
        description="How Cas9 cuts DNA, guide RNA design and off-target effects.",
        content="Off-target edits remain the main safety concern for clinical gene therapy.",
        tags=["crispr", "gene editing", "biology"],
        category="Science",
        upvotes=5,
        day=4,
    ),
    _record(
        url="https://www.perplexity.ai/search/solid-state-batteries",
        title="Solid-State Battery Breakthroughs 2024",
        provider=Provider.PERPLEXITY,
        description="Recent progress in solid electrolytes and energy density.",
        content="Sulfide electrolytes offer high ionic conductivity. Lithium metal anodes raise energy density.",
        tags=["battery", "energy", "electrolyte"],
        category="Technology",
        upvotes=3,
        day=5,
    ),
    _record(
        url="https://grok.com/share/market-sizing",
        title="Market Sizing for a B2B SaaS Startup",
        provider=Provider.GROK,
        description="Top-down and bottom-up TAM estimates for a developer tools company.",
        content="Bottom-up sizing multiplies target accounts by expected contract value.",
        tags=["startup", "market", "saas"],
        category="Business",
        upvotes=2,
        day=6,
    ),
    _record(
        url="https://claude.ai/share/pandas-groupby",
        title="Pandas GroupBy Patterns for Data Analysis",
        provider=Provider.CLAUDE,
        description="Split-apply-combine with groupby, agg and transform.",
        content="Use transform to broadcast group statistics back to the original rows. "
                "A transformer model is not involved here.",
        tags=["pandas", "python", "data analysis"],
        category="Data Science",
        upvotes=6,
        day=7,
    ),
    _record(
        url="https://chatgpt.com/share/attention-is-all-you-need",
        title="Summary of Attention Is All You Need",
        provider=Provider.CHATGPT,
        description="Paper summary: the transformer architecture replaces recurrence with attention.",
        content="The encoder and decoder stacks use multi-head attention and feed-forward layers.",
        tags=["paper", "transformer", "nlp"],
        category="Research",
        upvotes=15,
        day=8,
    ),
    _record(
        url="https://example.com/blog/llm-evaluation",
        title="How We Evaluate LLM Outputs",
        provider=Provider.OTHER,
        description="",
        content="Precision at k and mean reciprocal rank measure retrieval quality. "
                "Human review remains the gold standard for generation.",
        tags=["evaluation", "metrics", "retrieval"],
    ),
    _record(
        url="https://gemini.google.com/share/rust-async",
        title="Async Rust with Tokio",
        provider=Provider.GEMINI,
        description="Futures, executors and the async/await syntax in Rust.",
        content="Tokio provides a multi-threaded runtime. Futures are lazy until polled.",
        tags=["rust", "async", "tokio"],
        category="Programming",
        upvotes=4,
        day=9,
    ),
    _record(
        url="https://www.perplexity.ai/search/climate-food-security",
        title="Climate Change and Global Food Security",
        provider=Provider.PERPLEXITY,
        description="Crop yields, drought frequency and adaptation strategies.",
        content="Heat stress reduces wheat and maize yields. Adaptation includes drought-resistant varieties.",
        tags=["climate", "agriculture", "food security"],
        category="Science",
        upvotes=1,
        day=10,
    ),
]


# ── Queries ───────────────────────────────────────────────────────────────────

EVAL_QUERIES: list[EvalQuery] = [
    EvalQuery(
        query="transformer attention",
        expected_urls=[
            "https://claude.ai/share/transformers-explained",
            "https://chatgpt.com/share/attention-is-all-you-need",
        ],
        category="ai",
        description="Two strong title/tag matches must beat a content-only mention",
    ),
    EvalQuery(
        query="rust",
        expected_urls=[
            "https://chatgpt.com/share/rust-borrow-checker",
            "https://gemini.google.com/share/rust-async",
        ],
        category="programming",
        description="Short single-word query — whole-query and tag matches",
    ),
    EvalQuery(
        query="rust lifetimes",
        expected_urls=["https://chatgpt.com/share/rust-borrow-checker"],
        category="programming",
        description="Second word disambiguates between the two Rust records",
    ),
    EvalQuery(
        query="gene editing off-target",
        expected_urls=["https://gemini.google.com/share/crispr-overview"],
        category="science",
    ),
    EvalQuery(
        query="battery electrolyte",
        expected_urls=["https://www.perplexity.ai/search/solid-state-batteries"],
        category="technology",
    ),
    EvalQuery(
        query="claude transformer",
        expected_urls=["https://claude.ai/share/transformers-explained"],
        category="ai",
        description="Provider bonus should lift the Claude record above the ChatGPT paper summary",
    ),
    EvalQuery(
        query="groupby",
        expected_urls=["https://claude.ai/share/pandas-groupby"],
        category="data",
    ),
    EvalQuery(
        query="reciprocal rank",
        expected_urls=["https://example.com/blog/llm-evaluation"],
        category="ai",
        description="Only the content mentions the phrase — content weight must still surface it",
    ),
    EvalQuery(
        query="drought crops",
        expected_urls=["https://www.perplexity.ai/search/climate-food-security"],
        category="science",
    ),
    EvalQuery(
        query="attention",
        expected_urls=["https://chatgpt.com/share/attention-is-all-you-need"],
        provider=Provider.CHATGPT,
        category="ai",
        description="Provider filter removes the Claude attention record entirely",
    ),
]
