"""
Pydantic data models for CareerPal.

Stored records, create/update payloads, and export schemas.
"""

# Base models
from .base import InputModel, StoredModel, TimestampMixin, generate_local_id, utc_now

# Embedding models
from .embedding import CreateEmbeddingInput, EmbeddingRecord, compute_text_hash

# Application models
from .application import (
    CreateApplicationInput,
    StoredApplication,
    UpdateApplicationInput,
)

# Profile and CV models
from .profile import (
    CreateCVInput,
    CreateProfileInput,
    StoredCV,
    StoredProfile,
    UpdateCVInput,
    UpdateProfileInput,
)

# Export models
from .export import ExportedData, StorageStats

__all__ = [
    # Base
    "InputModel",
    "StoredModel",
    "TimestampMixin",
    "generate_local_id",
    "utc_now",
    # Embedding
    "CreateEmbeddingInput",
    "EmbeddingRecord",
    "compute_text_hash",
    # Application
    "CreateApplicationInput",
    "StoredApplication",
    "UpdateApplicationInput",
    # Profile / CV
    "CreateCVInput",
    "CreateProfileInput",
    "StoredCV",
    "StoredProfile",
    "UpdateCVInput",
    "UpdateProfileInput",
    # Export
    "ExportedData",
    "StorageStats",
]
