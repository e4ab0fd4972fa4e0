"""
Job application data models.

Applications are the items ranked by semantic and hybrid search.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from careerpal.utils.constants import ApplicationStatus

from .base import InputModel, StoredModel


class StoredApplication(StoredModel):
    """A tracked job application."""

    company: str
    role: str
    job_description: str = ""
    job_url: Optional[str] = None
    match_score: int = Field(default=0, ge=0, le=100)
    analysis: str = ""
    cover_letter: str = ""
    status: ApplicationStatus = ApplicationStatus.SAVED
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None

    @property
    def searchable_text(self) -> str:
        """Text embedded for semantic search."""
        parts = [self.company, self.role, self.job_description]
        if self.notes:
            parts.append(self.notes)
        return " ".join(parts)


class CreateApplicationInput(InputModel):
    """Payload for creating an application."""

    company: str
    role: str
    job_description: str = ""
    job_url: Optional[str] = None
    match_score: int = Field(default=0, ge=0, le=100)
    analysis: str = ""
    cover_letter: str = ""
    status: ApplicationStatus = ApplicationStatus.SAVED


class UpdateApplicationInput(InputModel):
    """Payload for updating an application. Unset fields are kept."""

    status: Optional[ApplicationStatus] = None
    notes: Optional[str] = None
    applied_at: Optional[datetime] = None
    cover_letter: Optional[str] = None
    match_score: Optional[int] = Field(default=None, ge=0, le=100)
