"""Linear-scan vector similarity over the held chunk list.

The corpus is small enough to score every embedded chunk per query. A replacement
index (approximate nearest neighbour) must keep the search() contract: ranked
SearchResults, deterministic for a fixed corpus and query, ties in chunk order.
"""

import math
from typing import Sequence

import numpy as np

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk
from shared.models.search import SearchResult


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float | None:
    """Cosine of the angle between two vectors.

    Args:
        vec_a (Sequence[float]): First vector.
        vec_b (Sequence[float]): Second vector, same dimensionality.

    Returns:
        float | None: dot(a, b) / (|a| * |b|) clipped to [-1, 1], or None when
            either vector has zero magnitude (similarity undefined).

    Raises:
        ValueError: If the vectors differ in dimensionality.
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Cannot compare vectors of dimensionality {a.shape} and {b.shape}.")

    norm_sq_a = float(np.dot(a, a))
    norm_sq_b = float(np.dot(b, b))
    if norm_sq_a == 0.0 or norm_sq_b == 0.0:
        return None

    # sqrt of the product keeps cosine(v, v) exactly 1.0
    score = float(np.dot(a, b)) / math.sqrt(norm_sq_a * norm_sq_b)
    return max(-1.0, min(1.0, score))


class VectorIndex:
    """Scores chunk embeddings against a query embedding."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()

    def search(self, query_vector: Sequence[float], chunks: list[Chunk], limit: int) -> list[SearchResult]:
        """Rank embedded chunks by cosine similarity to the query vector.

        Chunks without an embedding are ignored. Chunks whose dimensionality differs
        from the query were produced by another model and are skipped. Undefined
        similarity (zero-magnitude vector) ranks as 0.0.

        Args:
            query_vector (Sequence[float]): The query embedding.
            chunks (list[Chunk]): Candidate chunks in held order.
            limit (int): Maximum number of results.

        Returns:
            list[SearchResult]: Top results, best first, ties in chunk order.
        """
        if limit <= 0:
            return []

        dimension = len(query_vector)
        results: list[SearchResult] = []
        skipped = 0
        for chunk in chunks:
            if not chunk.has_embedding():
                continue
            if len(chunk.embedding) != dimension:
                skipped += 1
                continue
            score = cosine_similarity(query_vector, chunk.embedding)
            results.append(
                SearchResult(
                    document_id=chunk.metadata.document_id,
                    circular_number=chunk.metadata.circular_number,
                    title=chunk.metadata.title,
                    source=chunk.metadata.source,
                    text=chunk.text,
                    score=score if score is not None else 0.0,
                )
            )

        if skipped:
            self.logging.warning(
                "Skipped %d chunks whose embedding dimensionality differs from the query (%d).", skipped, dimension
            )

        # sorted() is stable, reverse=True keeps chunk order among equal scores
        results = sorted(results, key=lambda result: result.score, reverse=True)
        return results[:limit]
