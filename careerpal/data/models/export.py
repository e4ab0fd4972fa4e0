"""
Backup and statistics models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from careerpal.utils.constants import EXPORT_SCHEMA_VERSION

from .application import StoredApplication
from .base import utc_now
from .profile import StoredCV, StoredProfile


class ExportedData(BaseModel):
    """
    Complete data export for backup and portability.

    Embeddings are derived data and are recomputed after import.
    """

    version: str = EXPORT_SCHEMA_VERSION
    exported_at: datetime = Field(default_factory=utc_now)
    profile: Optional[StoredProfile] = None
    cvs: list[StoredCV] = []
    applications: list[StoredApplication] = []


class StorageStats(BaseModel):
    """Storage usage summary."""

    cv_count: int = 0
    application_count: int = 0
    embedding_count: int = 0
    used_bytes: int = 0
