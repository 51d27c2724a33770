"""Brute-force embedding similarity search.

Ranks stored entries (thoughts, notes, file chunks) against a query
embedding by cosine similarity. There is no index: callers pass the recent
rows they fetched and this module scans at most ``max_candidates`` of them.
"""

import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from itertools import islice
from typing import Any

from maxwell.config import settings

logger = logging.getLogger(__name__)


@dataclass
class SimilarityMatch:
    """An entry and its similarity to the query, in [-1, 1]."""

    entry: Any
    similarity: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 for vectors of different lengths, empty vectors, or a
    zero-length vector, where the similarity is undefined.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    dot_product = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))

    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot_product / (norm_a * norm_b)


def _default_embedding(entry: Any) -> Sequence[float] | None:
    if isinstance(entry, Mapping):
        return entry.get("embedding")
    return getattr(entry, "embedding", None)


def find_similar(
    query_embedding: Sequence[float],
    entries: Iterable[Any],
    limit: int | None = None,
    threshold: float | None = None,
    max_candidates: int | None = None,
    embedding_of: Callable[[Any], Sequence[float] | None] = _default_embedding,
) -> list[SimilarityMatch]:
    """Rank entries by similarity to a query embedding.

    Args:
        query_embedding: Embedding of the search text
        entries: Candidate rows (mappings or objects with an ``embedding``)
        limit: Maximum results. Defaults to settings.similarity_limit.
        threshold: Keep only similarities strictly above this.
            Defaults to settings.similarity_threshold.
        max_candidates: Scan at most this many entries.
            Defaults to settings.similarity_max_candidates.
        embedding_of: Accessor for an entry's embedding

    Returns:
        Matches sorted by similarity, highest first

    Raises:
        ValueError: If limit or max_candidates is negative
    """
    limit = settings.similarity_limit if limit is None else limit
    threshold = settings.similarity_threshold if threshold is None else threshold
    max_candidates = settings.similarity_max_candidates if max_candidates is None else max_candidates

    if limit < 0 or max_candidates < 0:
        raise ValueError("limit and max_candidates must be non-negative")

    matches: list[SimilarityMatch] = []
    skipped = 0
    for entry in islice(entries, max_candidates):
        embedding = embedding_of(entry)
        if embedding is None or len(embedding) == 0:
            skipped += 1
            continue
        similarity = cosine_similarity(query_embedding, embedding)
        if similarity > threshold:
            matches.append(SimilarityMatch(entry=entry, similarity=similarity))

    if skipped:
        logger.debug(f"Skipped {skipped} entries without embeddings")

    matches.sort(key=lambda match: match.similarity, reverse=True)
    return matches[:limit]
