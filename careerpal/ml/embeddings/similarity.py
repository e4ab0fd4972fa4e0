"""
Vector similarity primitives.

Synchronous, CPU-only helpers shared by the embedding service,
match scoring and semantic search.
"""

from typing import Sequence, Union

import numpy as np

from careerpal.utils.logger import get_logger

logger = get_logger(__name__)

VectorLike = Union[np.ndarray, Sequence[float]]


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Calculate cosine similarity between two vectors.

    Negative similarity is floored to 0; anti-correlated embeddings are
    treated as unrelated rather than "more dissimilar than orthogonal".

    Args:
        a: First embedding vector.
        b: Second embedding vector.

    Returns:
        Similarity in [0, 1]. Zero-norm vectors and vectors of different
        dimensions yield 0.
    """
    va = np.asarray(a, dtype=np.float64).ravel()
    vb = np.asarray(b, dtype=np.float64).ravel()

    if va.shape != vb.shape:
        logger.warning(
            f"Cannot compare embeddings of different dimensions ({va.size} vs {vb.size})"
        )
        return 0.0

    denominator = np.linalg.norm(va) * np.linalg.norm(vb)
    if denominator == 0 or not np.isfinite(denominator):
        return 0.0

    similarity = float(np.dot(va, vb) / denominator)
    if not np.isfinite(similarity):
        return 0.0
    return float(np.clip(similarity, 0.0, 1.0))


def batch_cosine_similarity(
    query: VectorLike,
    corpus: Union[np.ndarray, Sequence[VectorLike]],
) -> np.ndarray:
    """
    Calculate similarity between a query and multiple corpus vectors.

    Args:
        query: Single query vector.
        corpus: Corpus vectors, one per row.

    Returns:
        Array of similarities in [0, 1], one per corpus row.
    """
    if len(corpus) == 0:
        return np.array([], dtype=np.float64)

    q = np.asarray(query, dtype=np.float64).ravel()
    rows = [np.asarray(row, dtype=np.float64).ravel() for row in corpus]
    if any(row.size != q.size for row in rows):
        return np.array([cosine_similarity(q, row) for row in rows], dtype=np.float64)

    matrix = np.vstack(rows)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    dots = matrix @ q
    with np.errstate(divide="ignore", invalid="ignore"):
        similarities = np.where(norms > 0, dots / norms, 0.0)
    similarities = np.nan_to_num(similarities, nan=0.0, posinf=0.0, neginf=0.0)
    return np.clip(similarities, 0.0, 1.0)
