"""Sparse term-frequency vectors over free text.

Tokenizer, term-vector builder and cosine similarity. Everything here is
pure and cheap enough to rebuild per comparison; nothing is persisted.
"""

import math
import re
from collections import Counter
from collections.abc import Iterable, Iterator

TermVector = dict[str, float]

_NON_WORD = re.compile(r"[^\w\s]", re.ASCII)

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "can", "shall", "to", "of", "in", "for",
    "on", "with", "at", "by", "from", "as", "into", "through", "during",
    "before", "after", "above", "below", "between", "out", "off", "over",
    "under", "again", "further", "then", "once", "here", "there", "when",
    "where", "why", "how", "all", "each", "every", "both", "few", "more",
    "most", "other", "some", "such", "no", "nor", "not", "only", "own",
    "same", "so", "than", "too", "very", "just", "because", "but", "and",
    "or", "if", "while", "about", "up", "it", "he", "she", "they", "we",
    "you", "me", "him", "her", "his", "my", "your", "its", "our", "their",
    "this", "that", "these", "those", "am", "what", "which", "who", "whom",
    "i", "like", "also", "really", "know", "think", "want", "get", "got",
})


def tokenize(text: str) -> Iterator[str]:
    """Yield lowercase terms from *text*.

    Punctuation counts as whitespace. Single-character tokens and stop
    words are dropped.
    """
    for token in _NON_WORD.sub(" ", text.lower()).split():
        if len(token) > 1 and token not in STOP_WORDS:
            yield token


def build_term_vector(tokens: Iterable[str]) -> TermVector:
    """Map each term to its count divided by the total token count."""
    counts = Counter(tokens)
    total = sum(counts.values()) or 1
    return {term: count / total for term, count in counts.items()}


def text_vector(text: str) -> TermVector:
    """Tokenize *text* and build its term vector."""
    return build_term_vector(tokenize(text))


def cosine_similarity(a: TermVector, b: TermVector) -> float:
    """Cosine of the angle between two term vectors; 0 if either is empty."""
    norm_a = math.sqrt(sum(w * w for w in a.values()))
    norm_b = math.sqrt(sum(w * w for w in b.values()))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    # Sorted shared terms keep the sum order identical for (a, b) and (b, a).
    dot = sum(a[term] * b[term] for term in sorted(a.keys() & b.keys()))
    return min(1.0, dot / (norm_a * norm_b))
