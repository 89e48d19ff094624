"""
tools/keywords.py — Frequency-based keyword tagging.

This is the fallback tagger: when AI enhancement is unavailable, the tags
on a record come from here instead of from the model.

ALGORITHM:
  1. Lowercase, drop everything except a-z, 0-9 and whitespace
  2. Split on whitespace
  3. Discard tokens of length <= 3 and stop-words
  4. Count, sort by count descending (stable — ties keep first-seen order)
  5. Return the top N distinct tokens

Deterministic and dependency-free: the same text always produces the same
tags, which keeps search results reproducible across restarts.

USAGE:
  from tools.keywords import extract_keywords
  extract_keywords("Transformers and attention: attention is all you need")
  # ['attention', 'transformers']
"""

import re
from collections import Counter


STOP_WORDS: frozenset[str] = frozenset({
    # articles / conjunctions
    "the", "a", "an", "and", "or", "but", "nor", "so", "yet",
    # prepositions
    "in", "on", "at", "to", "for", "of", "with", "by", "from", "up", "about",
    "into", "through", "during", "before", "after", "above", "below",
    "between", "under", "over", "again", "further", "then", "once", "than",
    "within", "without", "upon", "onto", "across",
    # auxiliaries / modals
    "is", "are", "was", "were", "been", "be", "being", "have", "has", "had",
    "having", "do", "does", "did", "will", "would", "should", "could", "may",
    "might", "must", "shall", "can", "need", "ought",
    # pronouns / determiners
    "i", "me", "my", "we", "our", "ours", "you", "your", "yours", "he", "him",
    "his", "she", "her", "hers", "it", "its", "they", "them", "their",
    "theirs", "this", "that", "these", "those", "what", "which", "who",
    "whom", "whose", "when", "where", "why", "how", "there", "here",
    # common fillers
    "also", "just", "only", "very", "such", "some", "more", "most", "other",
    "each", "both", "all", "any", "not", "into", "like", "well",
})

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def extract_keywords(text: str, limit: int = 10) -> list[str]:
    """
    Return up to `limit` keywords ranked by frequency.

    Never includes stop-words or tokens of 3 characters or fewer.
    Returns [] for empty text or limit <= 0.
    """
    if not text or limit <= 0:
        return []

    cleaned = _NON_ALNUM.sub("", text.lower())
    tokens = [
        word for word in cleaned.split()
        if len(word) > 3 and word not in STOP_WORDS
    ]

    # Counter keeps first-seen order; sorted() is stable even with reverse=True.
    counts = Counter(tokens)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:limit]]
