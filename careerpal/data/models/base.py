"""
Base model classes for CareerPal data models.

Provides common fields and helpers shared across all stored records.
"""

import random
import string
import time
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from careerpal.utils.constants import LOCAL_ID_PREFIX

_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> datetime:
    """Current timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def generate_local_id() -> str:
    """
    Generate a locally unique record identifier.

    Format: ``local_<epoch-ms>_<7 random base36 chars>``.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}_{suffix}"


class TimestampMixin(BaseModel):
    """Mixin providing timestamp fields for models."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class StoredModel(TimestampMixin):
    """
    Base model for records persisted by a storage adapter.

    Records carry a string id generated on creation.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=False,
    )

    id: str = Field(default_factory=generate_local_id)

    def to_document(self) -> dict[str, Any]:
        """Convert model to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")


class InputModel(BaseModel):
    """
    Base model for create/update payloads.

    Update payloads leave unset fields as None, meaning "keep existing".
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
    )

    def changes(self) -> dict[str, Any]:
        """Fields explicitly provided with a non-None value."""
        return self.model_dump(exclude_none=True, exclude_unset=True)
