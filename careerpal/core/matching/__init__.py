"""CV-to-job match scoring module."""

from .match_scoring import (
    calculate_batch_match_scores,
    calculate_instant_match_score,
    calculate_match_from_embeddings,
    get_match_level,
    similarity_to_score,
)

__all__ = [
    "calculate_instant_match_score",
    "calculate_batch_match_scores",
    "calculate_match_from_embeddings",
    "similarity_to_score",
    "get_match_level",
]
