"""
User profile and CV data models.
"""

from typing import Optional

from .base import InputModel, StoredModel


class StoredProfile(StoredModel):
    """The local user's profile. A store holds at most one."""

    name: str
    email: str
    phone: Optional[str] = None
    location: str = ""
    summary: str = ""
    experience: str = ""
    skills: list[str] = []
    image: Optional[str] = None

    @property
    def profile_text(self) -> str:
        """Text embedded for the profile."""
        parts = [self.summary, self.experience]
        if self.skills:
            parts.append(", ".join(self.skills))
        return "\n".join(p for p in parts if p)


class CreateProfileInput(InputModel):
    """Payload for creating the profile."""

    name: str
    email: str
    phone: Optional[str] = None
    location: str = ""
    summary: str = ""
    experience: str = ""
    skills: list[str] = []
    image: Optional[str] = None


class UpdateProfileInput(InputModel):
    """Payload for updating the profile. Unset fields are kept."""

    name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    experience: Optional[str] = None
    skills: Optional[list[str]] = None
    image: Optional[str] = None


class StoredCV(StoredModel):
    """A CV document. Only its text content takes part in matching."""

    name: str
    latex_content: Optional[str] = None
    pdf_url: Optional[str] = None
    is_active: bool = False

    @property
    def text(self) -> str:
        return self.latex_content or ""


class CreateCVInput(InputModel):
    """Payload for creating a CV."""

    name: str
    latex_content: Optional[str] = None
    pdf_url: Optional[str] = None
    is_active: bool = False


class UpdateCVInput(InputModel):
    """Payload for updating a CV. Unset fields are kept."""

    name: Optional[str] = None
    latex_content: Optional[str] = None
    pdf_url: Optional[str] = None
    is_active: Optional[bool] = None
