"""
Text embedding and vector similarity.

This module provides the semantic embedding capabilities behind instant
match scores and semantic search.

Components:
- EmbeddingService: Async wrapper for sentence-transformers models
- EmbeddingCache: Hash-checked embedding reuse through a storage adapter
- cosine_similarity / batch_cosine_similarity: Clamped cosine similarity
"""

from .similarity import (
    batch_cosine_similarity,
    cosine_similarity,
)

from .embedding_service import (
    EmbeddingService,
    ModelLoadProgress,
    ProgressCallback,
)

from .embedding_cache import EmbeddingCache

__all__ = [
    # Similarity
    "cosine_similarity",
    "batch_cosine_similarity",
    # Embedding service
    "EmbeddingService",
    "ModelLoadProgress",
    "ProgressCallback",
    # Cache
    "EmbeddingCache",
]
