"""Ranking and deduplication of memories by lexical similarity."""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.memory.models import DEFAULT_IMPORTANCE, RetrievedMemory
from src.memory.text import cosine_similarity, text_vector

if TYPE_CHECKING:
    from collections.abc import Iterable

    from src.memory.models import Memory

MIN_RELEVANCE = 0.05
DUPLICATE_THRESHOLD = 0.7

SIMILARITY_WEIGHT = 0.8
IMPORTANCE_WEIGHT = 0.2


def score_memory(similarity: float, importance: int) -> float:
    """Blend lexical similarity with a bounded importance bonus."""
    return similarity * SIMILARITY_WEIGHT + ((importance or DEFAULT_IMPORTANCE) / 10) * IMPORTANCE_WEIGHT


def retrieve(
    memories: list[Memory],
    query: str,
    top_k: int = 5,
    min_score: float = MIN_RELEVANCE,
) -> list[RetrievedMemory]:
    """Return the *top_k* memories most relevant to *query*.

    Scores below or equal to *min_score* are dropped. The importance bonus
    alone can reach 0.2, so an unrelated but important memory may still
    clear the threshold.

    Results are sorted by descending score; ties keep their input order.
    """
    if not memories or not query.strip():
        return []

    query_vec = text_vector(query)
    if not query_vec:
        return []

    scored = []
    for memory in memories:
        similarity = cosine_similarity(query_vec, text_vector(memory.content))
        score = score_memory(similarity, memory.importance)
        if score > min_score:
            scored.append(RetrievedMemory.model_validate({**memory.model_dump(), "score": score}))

    scored.sort(key=lambda m: m.score, reverse=True)
    return scored[:top_k]


def is_duplicate(
    existing: Iterable[Memory],
    new_content: str,
    threshold: float = DUPLICATE_THRESHOLD,
) -> bool:
    """Return True if *new_content* matches any existing memory at >= *threshold*."""
    new_vec = text_vector(new_content)
    return any(
        cosine_similarity(new_vec, text_vector(memory.content)) >= threshold
        for memory in existing
    )
