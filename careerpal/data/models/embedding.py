"""
Embedding record models.

An EmbeddingRecord caches the vector computed for one source entity
together with a fingerprint of the text that produced it.
"""

import hashlib
from typing import Any

import numpy as np
from pydantic import Field, field_validator

from careerpal.utils.constants import EmbeddingSourceType

from .base import InputModel, StoredModel


def compute_text_hash(text: str) -> str:
    """
    Compute the SHA-256 fingerprint of a text.

    Used to detect when a cached embedding no longer matches its source.
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _coerce_vector(value: Any) -> Any:
    """Accept numpy arrays and other sequences, stored as float32-rounded floats."""
    if isinstance(value, (list, tuple, np.ndarray)):
        return np.asarray(value, dtype=np.float32).ravel().tolist()
    return value


class CreateEmbeddingInput(InputModel):
    """Payload for saving an embedding."""

    source_type: EmbeddingSourceType
    source_id: str = Field(min_length=1)
    embedding: list[float]
    text_hash: str

    @field_validator("embedding", mode="before")
    @classmethod
    def coerce_embedding(cls, v: Any) -> Any:
        return _coerce_vector(v)


class EmbeddingRecord(StoredModel):
    """Stored embedding for a single (source_type, source_id) pair."""

    source_type: EmbeddingSourceType
    source_id: str
    embedding: list[float]
    text_hash: str

    @field_validator("embedding", mode="before")
    @classmethod
    def coerce_embedding(cls, v: Any) -> Any:
        return _coerce_vector(v)

    @property
    def key(self) -> tuple[EmbeddingSourceType, str]:
        """Unique key of the record."""
        return (self.source_type, self.source_id)

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    @property
    def vector(self) -> np.ndarray:
        """Embedding as a float32 numpy array."""
        return np.asarray(self.embedding, dtype=np.float32)
