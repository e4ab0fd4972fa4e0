"""
Instant CV-to-job match scoring.

Turns the cosine similarity between a CV embedding and a job description
embedding into a 0-100 score. Sentence-transformer similarities for related
texts cluster in a narrow band, so raw cosine is rescaled linearly between
a floor and a ceiling before being reported.
"""

import math
from typing import Optional, Sequence

from careerpal.ml.embeddings import EmbeddingService
from careerpal.ml.embeddings.similarity import VectorLike
from careerpal.utils.config import get_settings
from careerpal.utils.constants import (
    EMPTY_TEXT_SCORE,
    MAX_MATCH_SCORE,
    MIN_MATCH_SCORE,
    MatchScoreLevel,
)
from careerpal.utils.logger import get_logger

logger = get_logger(__name__)


def similarity_to_score(
    similarity: float,
    floor: Optional[float] = None,
    ceiling: Optional[float] = None,
) -> int:
    """
    Map a cosine similarity onto the 0-100 match scale.

    Similarities at or below ``floor`` score 0, at or above ``ceiling``
    score 100, with a rounded linear ramp in between.

    Args:
        similarity: Cosine similarity, nominally in [0, 1].
        floor: Similarity that maps to 0. Defaults to config setting.
        ceiling: Similarity that maps to 100. Defaults to config setting.

    Returns:
        Integer score in [0, 100].
    """
    if floor is None or ceiling is None:
        settings = get_settings().matching
        floor = settings.score_floor if floor is None else floor
        ceiling = settings.score_ceiling if ceiling is None else ceiling

    if floor >= ceiling:
        raise ValueError(f"floor ({floor}) must be lower than ceiling ({ceiling})")

    if similarity is None or not math.isfinite(similarity):
        return EMPTY_TEXT_SCORE

    clamped = min(max(similarity, floor), ceiling)
    score = round((clamped - floor) / (ceiling - floor) * MAX_MATCH_SCORE)
    return int(min(max(score, MIN_MATCH_SCORE), MAX_MATCH_SCORE))


def _has_text(text: Optional[str]) -> bool:
    return bool(text and text.strip())


async def calculate_instant_match_score(
    cv_text: str,
    job_text: str,
    embedding_service: EmbeddingService,
) -> int:
    """
    Score how well a CV matches a job description.

    Args:
        cv_text: Plain text of the CV.
        job_text: Job description text.
        embedding_service: Initialized embedding service.

    Returns:
        Match score in [0, 100]; 0 when either text is blank.
    """
    if not _has_text(cv_text) or not _has_text(job_text):
        return EMPTY_TEXT_SCORE

    cv_embedding = await embedding_service.embed(cv_text)
    job_embedding = await embedding_service.embed(job_text)
    return calculate_match_from_embeddings(cv_embedding, job_embedding, embedding_service)


async def calculate_batch_match_scores(
    cv_text: str,
    job_texts: Sequence[str],
    embedding_service: EmbeddingService,
) -> list[int]:
    """
    Score one CV against many job descriptions.

    The CV is embedded once and all non-blank job texts in a single batch.

    Args:
        cv_text: Plain text of the CV.
        job_texts: Job description texts.
        embedding_service: Initialized embedding service.

    Returns:
        Scores in the order of ``job_texts``.
    """
    scores = [EMPTY_TEXT_SCORE] * len(job_texts)
    if not _has_text(cv_text):
        return scores

    indices = [i for i, text in enumerate(job_texts) if _has_text(text)]
    if not indices:
        return scores

    cv_embedding = await embedding_service.embed(cv_text)
    job_embeddings = await embedding_service.embed_batch([job_texts[i] for i in indices])

    for i, job_embedding in zip(indices, job_embeddings):
        scores[i] = calculate_match_from_embeddings(cv_embedding, job_embedding, embedding_service)

    logger.debug(f"Scored CV against {len(indices)} job descriptions")
    return scores


def calculate_match_from_embeddings(
    cv_embedding: VectorLike,
    job_embedding: VectorLike,
    embedding_service: EmbeddingService,
) -> int:
    """Score precomputed embeddings without calling the model."""
    similarity = embedding_service.cosine_similarity(cv_embedding, job_embedding)
    return similarity_to_score(similarity)


def get_match_level(score: float) -> MatchScoreLevel:
    """Bucket a 0-100 score into a display level."""
    return MatchScoreLevel.from_score(score)
