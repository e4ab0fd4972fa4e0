"""
Application context.

Holds the wired dependencies of a running CareerPal process: settings,
the one shared EmbeddingService and the storage adapter.
"""

from dataclasses import dataclass
from typing import Optional

from careerpal.data.storage import StorageAdapter, get_storage_adapter
from careerpal.ml.embeddings import EmbeddingCache, EmbeddingService
from careerpal.utils.config import AppSettings, get_settings


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Build one per process and pass ``embedding_service`` to every consumer
    so the model is loaded at most once.
    """
    settings: AppSettings
    embedding_service: EmbeddingService
    storage: StorageAdapter

    @classmethod
    def build(
        cls,
        settings: Optional[AppSettings] = None,
        storage: Optional[StorageAdapter] = None,
        embedding_service: Optional[EmbeddingService] = None,
    ) -> "AppContext":
        """Build an AppContext from settings.

        Args:
            settings: Application settings. Defaults to the global settings.
            storage: Storage adapter override.
            embedding_service: Embedding service override.

        Returns:
            Wired AppContext; the embedding model is not loaded yet.
        """
        settings = settings or get_settings()

        if embedding_service is None:
            embedding_service = cls._build_embedding_service(settings)

        if storage is None:
            storage = get_storage_adapter(
                settings.storage.provider,
                dimension=settings.ml.embedding_dimension,
            )

        return cls(
            settings=settings,
            embedding_service=embedding_service,
            storage=storage,
        )

    @staticmethod
    def _build_embedding_service(settings: AppSettings) -> EmbeddingService:
        """Build the embedding service from ML configuration."""
        ml = settings.ml
        return EmbeddingService(
            model_name=ml.embedding_model,
            device=ml.device,
            dimension=ml.embedding_dimension,
            batch_size=ml.batch_size,
            max_text_length=ml.max_text_length,
        )

    @property
    def embedding_cache(self) -> EmbeddingCache:
        return EmbeddingCache(self.storage, self.embedding_service)

    async def close(self) -> None:
        """Release the model and storage connections."""
        await self.embedding_service.close()
        await self.storage.close()
