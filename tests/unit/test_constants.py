"""
Tests for careerpal.utils.constants — enums and score thresholds.
"""

import pytest

from careerpal.utils.constants import (
    EMPTY_TEXT_SCORE,
    SCORE_THRESHOLDS,
    ApplicationStatus,
    EmbeddingSourceType,
    MatchScoreLevel,
    ModelLoadState,
)


# ── MatchScoreLevel.from_score() ────────────────────────────────────────────


class TestMatchScoreLevelFromScore:
    def test_excellent_at_threshold(self):
        assert MatchScoreLevel.from_score(80) == MatchScoreLevel.EXCELLENT

    def test_excellent_at_max(self):
        assert MatchScoreLevel.from_score(100) == MatchScoreLevel.EXCELLENT

    def test_good_at_threshold(self):
        assert MatchScoreLevel.from_score(60) == MatchScoreLevel.GOOD

    def test_good_just_below_excellent(self):
        assert MatchScoreLevel.from_score(79) == MatchScoreLevel.GOOD

    def test_fair_at_threshold(self):
        assert MatchScoreLevel.from_score(40) == MatchScoreLevel.FAIR

    def test_poor_below_fair(self):
        assert MatchScoreLevel.from_score(39) == MatchScoreLevel.POOR

    def test_poor_at_zero(self):
        assert MatchScoreLevel.from_score(0) == MatchScoreLevel.POOR


# ── Enum value correctness ──────────────────────────────────────────────────


class TestEmbeddingSourceType:
    def test_all_values_present(self):
        assert {s.value for s in EmbeddingSourceType} == {"application", "cv", "profile"}

    def test_constructible_from_string(self):
        assert EmbeddingSourceType("cv") is EmbeddingSourceType.CV


class TestApplicationStatus:
    def test_all_values_present(self):
        expected = {"saved", "applied", "interviewing", "offer", "rejected"}
        assert {s.value for s in ApplicationStatus} == expected


class TestModelLoadState:
    def test_all_values_present(self):
        expected = {"not_loaded", "loading", "ready", "failed"}
        assert {s.value for s in ModelLoadState} == expected


# ── Score constants ─────────────────────────────────────────────────────────


class TestScoreConstants:
    def test_thresholds_descend(self):
        assert SCORE_THRESHOLDS["excellent"] > SCORE_THRESHOLDS["good"] > SCORE_THRESHOLDS["fair"]

    @pytest.mark.parametrize("value", list(SCORE_THRESHOLDS.values()))
    def test_thresholds_on_score_scale(self, value):
        assert 0 <= value <= 100

    def test_empty_text_score_is_zero(self):
        assert EMPTY_TEXT_SCORE == 0
