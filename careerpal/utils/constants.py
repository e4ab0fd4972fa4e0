"""
Application-wide constants for CareerPal.

Enumerations and fixed values shared by the storage, embedding,
scoring and search layers.
"""

from enum import Enum
from typing import Final


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "careerpal"
APP_DISPLAY_NAME: Final[str] = "CareerPal"
VERSION: Final[str] = "0.1.0"

# Schema version written into data exports
EXPORT_SCHEMA_VERSION: Final[str] = "1.0"

# Prefix for locally generated identifiers
LOCAL_ID_PREFIX: Final[str] = "local_"


# =============================================================================
# Scoring Constants
# =============================================================================

# Score reported when a CV or job description has no text yet
EMPTY_TEXT_SCORE: Final[int] = 0

MIN_MATCH_SCORE: Final[int] = 0
MAX_MATCH_SCORE: Final[int] = 100

# Lower bounds (inclusive) for each match level on the 0-100 scale
SCORE_THRESHOLDS: Final[dict[str, int]] = {
    "excellent": 80,
    "good": 60,
    "fair": 40,
}

# Tolerance used when comparing similarities
SIMILARITY_EPSILON: Final[float] = 1e-5


# =============================================================================
# Enumerations
# =============================================================================


class EmbeddingSourceType(str, Enum):
    """Which kind of entity an embedding represents."""

    APPLICATION = "application"
    CV = "cv"
    PROFILE = "profile"


class ApplicationStatus(str, Enum):
    """Pipeline status of a job application."""

    SAVED = "saved"
    APPLIED = "applied"
    INTERVIEWING = "interviewing"
    OFFER = "offer"
    REJECTED = "rejected"


class ModelLoadState(str, Enum):
    """Lifecycle of the embedding model within a service instance."""

    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class MatchScoreLevel(Enum):
    """Categorical levels for 0-100 match scores."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def from_score(cls, score: float) -> "MatchScoreLevel":
        """Convert a numeric score to a level."""
        if score >= SCORE_THRESHOLDS["excellent"]:
            return cls.EXCELLENT
        elif score >= SCORE_THRESHOLDS["good"]:
            return cls.GOOD
        elif score >= SCORE_THRESHOLDS["fair"]:
            return cls.FAIR
        return cls.POOR
