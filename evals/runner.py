"""
evals/runner.py — Run the search eval queries and produce a score report.

WHAT THIS DOES:
  Runs each query in EVAL_QUERIES through search_research() against the
  fixed EVAL_CORPUS, scores the ranking with run_score(), and prints a
  summary table.

  Everything is local and deterministic — no fetch, no LLM — so it runs
  in well under a second. Use it before and after touching ScoringWeights.

HOW TO USE:

  Run every query:
    python -m evals.runner

  Run one category:
    python -m evals.runner --category programming

  Run one query by index (0-based):
    python -m evals.runner --index 2

  Change k for precision/recall:
    python -m evals.runner --k 5

  Save results to JSON:
    python -m evals.runner --output results.json

OUTPUT:
  Per-query scores:
    [3/10] rust lifetimes
           Hits: 2   Top score: 10
           P@3:  0.500   R@3: 1.000   RR: 1.000
           Overall: 0.900

  Summary table at the end, with the mean of each metric (MRR for RR).
"""

import argparse
import json
import sys
from pathlib import Path

# Ensure the project root is on sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from archive.relevance import SearchFilters, search_research
from evals.dataset import EVAL_CORPUS, EVAL_QUERIES, EvalQuery
from evals.metrics import run_score


# ── ANSI colours (stripped when not a TTY) ────────────────────────────────────

def _colour(text: str, code: str) -> str:
    if sys.stdout.isatty():
        return f"\033[{code}m{text}\033[0m"
    return text

GREEN  = lambda t: _colour(t, "32")
YELLOW = lambda t: _colour(t, "33")
RED    = lambda t: _colour(t, "31")
BOLD   = lambda t: _colour(t, "1")
DIM    = lambda t: _colour(t, "2")


def _score_colour(score: float) -> str:
    text = f"{score:.3f}"
    if score >= 0.8:
        return GREEN(text)
    if score >= 0.5:
        return YELLOW(text)
    return RED(text)


# ── Per-query runner ──────────────────────────────────────────────────────────

def run_one(query: EvalQuery, index: int, total: int, k: int = 3) -> dict:
    """
    Run a single eval query and return its score dict.

    The score dict is the output of run_score() enriched with query,
    category and provider.
    """
    label = f"[{index}/{total}]"
    print(f"\n{BOLD(label)} {query.query}")
    if query.provider is not None:
        print(DIM(f"       Provider filter: {query.provider.value}"))

    filters = SearchFilters(provider=query.provider)
    hits = search_research(query.query, EVAL_CORPUS, filters)

    scores = run_score(hits, query.expected_urls, k=k)
    scores["query"] = query.query
    scores["category"] = query.category
    scores["provider"] = query.provider.value if query.provider else None

    print(f"       Hits: {scores['n_hits']}   Top score: {scores['top_score']}")
    print(
        f"       P@{k}:  {_score_colour(scores['precision_at_k'])}   "
        f"R@{k}: {_score_colour(scores['recall_at_k'])}   "
        f"RR: {_score_colour(scores['reciprocal_rank'])}"
    )
    if scores["missing"]:
        print(RED(f"       Missing from top {k}: {scores['missing']}"))
    print(f"       {BOLD('Overall:')} {_score_colour(scores['overall'])}")

    return scores


# ── Summary table ─────────────────────────────────────────────────────────────

def _print_summary(results: list[dict], k: int) -> None:
    if not results:
        return

    print("\n" + BOLD("─" * 72))
    print(BOLD("SUMMARY"))
    print(BOLD("─" * 72))

    print(f"  {'Query':<36}  {'P@' + str(k):>6}  {'R@' + str(k):>6}  {'RR':>6}  {'Overall':>7}")
    print("  " + "─" * 68)

    for r in results:
        q_short = r["query"][:34] + ".." if len(r["query"]) > 34 else r["query"]
        print(
            f"  {q_short:<36}  "
            f"{_score_colour(r['precision_at_k']):>6}  "
            f"{_score_colour(r['recall_at_k']):>6}  "
            f"{_score_colour(r['reciprocal_rank']):>6}  "
            f"{_score_colour(r['overall']):>7}"
        )

    n = len(results)
    avg_p   = sum(r["precision_at_k"] for r in results) / n
    avg_r   = sum(r["recall_at_k"] for r in results) / n
    mrr     = sum(r["reciprocal_rank"] for r in results) / n
    avg_all = sum(r["overall"] for r in results) / n

    print("  " + "─" * 68)
    print(
        f"  {'AVERAGE':<36}  "
        f"{_score_colour(avg_p):>6}  "
        f"{_score_colour(avg_r):>6}  "
        f"{_score_colour(mrr):>6}  "
        f"{_score_colour(avg_all):>7}"
    )
    print(BOLD("─" * 72))
    print(f"\n  MRR:                   {BOLD(_score_colour(mrr))}")
    print(f"  Average overall score: {BOLD(_score_colour(avg_all))}\n")


# ── CLI ───────────────────────────────────────────────────────────────────────

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the search relevance eval queries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--category",
        help="Only run queries matching this category (e.g. ai, programming, science)",
    )
    parser.add_argument(
        "--index",
        type=int,
        help="Only run the query at this 0-based index in EVAL_QUERIES",
    )
    parser.add_argument(
        "--k",
        type=int,
        default=3,
        help="Cut-off for precision@k and recall@k (default: 3)",
    )
    parser.add_argument(
        "--output",
        help="Save full results to this JSON file",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    queries = EVAL_QUERIES

    if args.index is not None:
        if args.index < 0 or args.index >= len(queries):
            print(f"Error: --index {args.index} out of range (0..{len(queries)-1})")
            sys.exit(1)
        queries = [queries[args.index]]

    elif args.category:
        queries = [q for q in queries if q.category.lower() == args.category.lower()]
        if not queries:
            cats = sorted({q.category for q in EVAL_QUERIES})
            print(f"Error: no queries for category '{args.category}'. Available: {cats}")
            sys.exit(1)

    if args.k < 1:
        print("Error: --k must be at least 1")
        sys.exit(1)

    total = len(queries)
    print(BOLD(f"\nRunning {total} eval quer{'y' if total == 1 else 'ies'} "
               f"against {len(EVAL_CORPUS)} records..."))

    results = [run_one(q, index=i, total=total, k=args.k) for i, q in enumerate(queries, start=1)]

    _print_summary(results, args.k)

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(json.dumps(results, indent=2))
        print(f"Results saved to {output_path}")


if __name__ == "__main__":
    main()
