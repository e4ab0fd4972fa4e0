"""
Configuration management for CareerPal.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent
DATA_DIR = ROOT_DIR / "data"


class MLSettings(BaseSettings):
    """Embedding model configuration."""

    model_config = SettingsConfigDict(env_prefix="ML_")

    # Embedding model
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_model_display_name: str = "MiniLM L6 v2"
    embedding_dimension: int = 384

    # Device settings
    device: Literal["cpu", "cuda", "mps", "auto"] = "auto"

    # Batch processing
    batch_size: int = 32

    # Longer texts are truncated before encoding
    max_text_length: int = 8192

    @field_validator("device")
    @classmethod
    def validate_device(cls, v: str) -> str:
        """Auto-detect device if set to auto."""
        if v == "auto":
            try:
                import torch

                if torch.cuda.is_available():
                    return "cuda"
                elif torch.backends.mps.is_available():
                    return "mps"
            except ImportError:
                pass
            return "cpu"
        return v


class StorageSettings(BaseSettings):
    """Storage backend selection."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    provider: Literal["local", "mongodb"] = "local"

    # Local mode snapshot file
    persist: bool = True
    persist_path: Path = DATA_DIR / "careerpal.json"


class DatabaseSettings(BaseSettings):
    """MongoDB database configuration (server mode)."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "careerpal"
    username: str | None = None
    password: str | None = None


class MatchingSettings(BaseSettings):
    """Similarity-to-score mapping for instant match scores."""

    model_config = SettingsConfigDict(env_prefix="MATCH_")

    # Raw cosine similarity at or below the floor scores 0, at or above the ceiling 100
    score_floor: float = Field(default=0.25, ge=0.0, lt=1.0)
    score_ceiling: float = Field(default=0.85, gt=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_range(self) -> "MatchingSettings":
        """Floor must sit strictly below the ceiling."""
        if self.score_floor >= self.score_ceiling:
            raise ValueError("score_floor must be lower than score_ceiling")
        return self


class SearchSettings(BaseSettings):
    """Semantic and hybrid search tuning."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    # Queries with at least this many words are treated as semantic
    semantic_word_threshold: int = 4

    # Case-insensitive marker patterns that flag a semantic query
    semantic_patterns: list[str] = Field(
        default_factory=lambda: [
            r"similar to",
            r"like",
            r"related to",
            r"find.*(?:jobs?|roles?|positions?)",
            r"looking for",
            r"interested in",
            r"work.*(?:life|remote|flexible)",
            r"good.*(?:culture|team|benefits)",
        ]
    )

    # Hybrid search returns pure semantic results above this top score
    hybrid_confidence_threshold: float = 0.5

    # Score given to lexical-only hits when blending
    lexical_blend_score: float = 0.5

    # Description prefix compared when explaining a match
    explain_description_chars: int = 500


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "careerpal.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    console_output: bool = True
    file_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "CareerPal"
    version: str = "0.1.0"
    description: str = "Local semantic matching for job applications"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    ml: MLSettings = Field(default_factory=MLSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings
