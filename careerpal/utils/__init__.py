"""
Utility modules for CareerPal.

This package contains shared utilities used across the application:
- config: Configuration management
- logger: Logging infrastructure
- constants: Application-wide constants and enums
- exceptions: Error taxonomy
"""

from careerpal.utils.config import (
    AppSettings,
    get_settings,
    reload_settings,
    ROOT_DIR,
    DATA_DIR,
)
from careerpal.utils.constants import (
    APP_NAME,
    APP_DISPLAY_NAME,
    VERSION,
    ApplicationStatus,
    EmbeddingSourceType,
    MatchScoreLevel,
    ModelLoadState,
)
from careerpal.utils.exceptions import (
    CareerPalError,
    InvalidEmbeddingError,
    ModelLoadError,
    NotInitializedError,
    RecordNotFoundError,
    StorageError,
)
from careerpal.utils.logger import (
    setup_logging,
    get_logger,
    LoggerMixin,
)

__all__ = [
    # Config
    "AppSettings",
    "get_settings",
    "reload_settings",
    "ROOT_DIR",
    "DATA_DIR",
    # Constants
    "APP_NAME",
    "APP_DISPLAY_NAME",
    "VERSION",
    "ApplicationStatus",
    "EmbeddingSourceType",
    "MatchScoreLevel",
    "ModelLoadState",
    # Exceptions
    "CareerPalError",
    "InvalidEmbeddingError",
    "ModelLoadError",
    "NotInitializedError",
    "RecordNotFoundError",
    "StorageError",
    # Logger
    "setup_logging",
    "get_logger",
    "LoggerMixin",
]
