"""
Embedding cache backed by a storage adapter.

Stored embeddings are reused while the SHA-256 hash of their source text
still matches; otherwise they are recomputed and saved again.
"""

from typing import Optional, Sequence

import numpy as np

from careerpal.data.models import CreateEmbeddingInput, EmbeddingRecord, compute_text_hash
from careerpal.data.storage.base import StorageAdapter
from careerpal.utils.constants import EmbeddingSourceType
from careerpal.utils.logger import LoggerMixin

from .embedding_service import EmbeddingService


class EmbeddingCache(LoggerMixin):
    """
    Get-or-compute access to stored embeddings.

    Example:
        cache = EmbeddingCache(store, service)
        vector = await cache.get_or_create(EmbeddingSourceType.CV, cv.id, cv.text)
    """

    def __init__(self, store: StorageAdapter, embedding_service: EmbeddingService):
        self.store = store
        self.embedding_service = embedding_service

    def _is_usable(self, record: Optional[EmbeddingRecord], text_hash: str) -> bool:
        return (
            record is not None
            and record.text_hash == text_hash
            and record.dimension == self.embedding_service.dimension
        )

    async def get_or_create(
        self,
        source_type: EmbeddingSourceType,
        source_id: str,
        text: str,
    ) -> np.ndarray:
        """
        Return the cached embedding for a source, recomputing it when stale.

        Args:
            source_type: Kind of entity.
            source_id: Entity ID.
            text: Current text of the entity.

        Returns:
            Embedding vector.
        """
        text_hash = compute_text_hash(text)
        record = await self.store.get_embedding(source_type, source_id)
        if self._is_usable(record, text_hash):
            return record.vector

        vector = await self.embedding_service.embed(text)
        await self.store.save_embedding(
            CreateEmbeddingInput(
                source_type=source_type,
                source_id=source_id,
                embedding=vector,
                text_hash=text_hash,
            )
        )
        self.logger.debug(f"Refreshed embedding for {source_type.value}:{source_id}")
        return vector

    async def get_or_create_many(
        self,
        source_type: EmbeddingSourceType,
        entries: Sequence[tuple[str, str]],
    ) -> list[np.ndarray]:
        """
        Batch version of ``get_or_create``.

        Stale or missing entries are embedded with a single ``embed_batch`` call.

        Args:
            source_type: Kind of entity shared by all entries.
            entries: ``(source_id, text)`` pairs.

        Returns:
            Embedding vectors in the order of ``entries``.
        """
        vectors: list[Optional[np.ndarray]] = [None] * len(entries)
        stale: list[tuple[int, str, str, str]] = []

        for i, (source_id, text) in enumerate(entries):
            text_hash = compute_text_hash(text)
            record = await self.store.get_embedding(source_type, source_id)
            if self._is_usable(record, text_hash):
                vectors[i] = record.vector
            else:
                stale.append((i, source_id, text, text_hash))

        if stale:
            computed = await self.embedding_service.embed_batch([text for _, _, text, _ in stale])
            for (i, source_id, _, text_hash), vector in zip(stale, computed):
                await self.store.save_embedding(
                    CreateEmbeddingInput(
                        source_type=source_type,
                        source_id=source_id,
                        embedding=vector,
                        text_hash=text_hash,
                    )
                )
                vectors[i] = vector
            self.logger.info(
                f"Computed {len(stale)} {source_type.value} embeddings "
                f"({len(entries) - len(stale)} cached)"
            )

        return vectors

    async def invalidate(self, source_type: EmbeddingSourceType, source_id: str) -> None:
        """Drop the cached embedding for a source."""
        await self.store.delete_embedding(source_type, source_id)
