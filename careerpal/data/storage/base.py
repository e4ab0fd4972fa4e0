"""
Storage adapter interface.

Defines the contract for data persistence across storage backends:
- Local mode: in-process tables with an optional JSON snapshot on disk
- Server mode: MongoDB via Motor

All persistence in the application goes through this interface. The
embedding operations double as the vector cache used by the matching core.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from careerpal.data.models import (
    CreateApplicationInput,
    CreateCVInput,
    CreateEmbeddingInput,
    CreateProfileInput,
    EmbeddingRecord,
    ExportedData,
    StorageStats,
    StoredApplication,
    StoredCV,
    StoredProfile,
    UpdateApplicationInput,
    UpdateCVInput,
    UpdateProfileInput,
)
from careerpal.utils.constants import EmbeddingSourceType
from careerpal.utils.exceptions import InvalidEmbeddingError


class StorageAdapter(ABC):
    """Abstract base class for storage backends."""

    def __init__(self, dimension: Optional[int] = None):
        """
        Args:
            dimension: Required embedding length. None accepts the first
                       dimension saved and enforces it afterwards.
        """
        self.dimension = dimension

    # -------------------------------------------------------------------------
    # Profile Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_profile(self) -> Optional[StoredProfile]:
        """Get the user's profile."""
        pass

    @abstractmethod
    async def save_profile(
        self,
        data: Union[CreateProfileInput, UpdateProfileInput],
    ) -> StoredProfile:
        """Create or update the user's profile."""
        pass

    # -------------------------------------------------------------------------
    # CV Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_cvs(self) -> list[StoredCV]:
        """Get all CVs, newest first."""
        pass

    @abstractmethod
    async def get_cv(self, cv_id: str) -> Optional[StoredCV]:
        pass

    @abstractmethod
    async def get_active_cv(self) -> Optional[StoredCV]:
        """Get the CV used for job analysis."""
        pass

    @abstractmethod
    async def create_cv(self, data: CreateCVInput) -> StoredCV:
        pass

    @abstractmethod
    async def update_cv(self, cv_id: str, data: UpdateCVInput) -> StoredCV:
        pass

    @abstractmethod
    async def delete_cv(self, cv_id: str) -> None:
        """Delete a CV and its cached embedding."""
        pass

    @abstractmethod
    async def set_active_cv(self, cv_id: str) -> None:
        """Mark one CV active and deactivate the others."""
        pass

    # -------------------------------------------------------------------------
    # Application Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_applications(self) -> list[StoredApplication]:
        """Get all applications, newest first."""
        pass

    @abstractmethod
    async def get_application(self, application_id: str) -> Optional[StoredApplication]:
        pass

    @abstractmethod
    async def create_application(self, data: CreateApplicationInput) -> StoredApplication:
        pass

    @abstractmethod
    async def update_application(
        self,
        application_id: str,
        data: UpdateApplicationInput,
    ) -> StoredApplication:
        pass

    @abstractmethod
    async def delete_application(self, application_id: str) -> None:
        """Delete an application and its cached embedding."""
        pass

    # -------------------------------------------------------------------------
    # Embedding Operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def save_embedding(self, data: CreateEmbeddingInput) -> EmbeddingRecord:
        """
        Save an embedding, replacing any record for the same source in place.

        The existing record keeps its id and created_at.

        Raises:
            InvalidEmbeddingError: If the vector is empty or has the wrong dimension.
            StorageError: If the backend write fails.
        """
        pass

    @abstractmethod
    async def get_embedding(
        self,
        source_type: EmbeddingSourceType,
        source_id: str,
    ) -> Optional[EmbeddingRecord]:
        pass

    @abstractmethod
    async def delete_embedding(
        self,
        source_type: EmbeddingSourceType,
        source_id: str,
    ) -> None:
        """Delete an embedding. Missing records are ignored."""
        pass

    @abstractmethod
    async def get_all_embeddings(
        self,
        source_type: Optional[EmbeddingSourceType] = None,
    ) -> list[EmbeddingRecord]:
        pass

    @abstractmethod
    async def clear_embeddings(self) -> None:
        """Remove every embedding, leaving other data untouched."""
        pass

    # -------------------------------------------------------------------------
    # Data Management
    # -------------------------------------------------------------------------

    @abstractmethod
    async def export_all(self) -> ExportedData:
        pass

    @abstractmethod
    async def import_all(self, data: ExportedData) -> None:
        """Replace all stored data with an export."""
        pass

    @abstractmethod
    async def clear_all(self) -> None:
        """Remove profile, CVs, applications and embeddings."""
        pass

    @abstractmethod
    async def get_storage_stats(self) -> StorageStats:
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_embedding(
        self,
        data: CreateEmbeddingInput,
        known_dimension: Optional[int] = None,
    ) -> None:
        """Reject empty vectors and vectors whose length differs from the store's."""
        length = len(data.embedding)
        if length == 0:
            raise InvalidEmbeddingError(
                f"Empty embedding for {data.source_type.value}:{data.source_id}"
            )

        expected = self.dimension if self.dimension is not None else known_dimension
        if expected is not None and length != expected:
            raise InvalidEmbeddingError(
                f"Embedding dimension {length} does not match store dimension {expected} "
                f"for {data.source_type.value}:{data.source_id}"
            )
