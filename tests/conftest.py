"""
Shared test fixtures for the CareerPal test suite.

Sets environment variables before any careerpal imports so settings are
built for testing, then provides a deterministic stand-in for the
sentence-transformers model and factory fixtures for stored records.
"""

import os

# === Set environment BEFORE any careerpal imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("STORAGE_PROVIDER", "local")
os.environ.setdefault("STORAGE_PERSIST", "false")
os.environ.setdefault("LOG_FILE_OUTPUT", "false")
os.environ.setdefault("DB_NAME", "careerpal_test")

import asyncio
import re
from typing import Any, Optional

import numpy as np
import pytest
from loguru import logger

from careerpal.data.models import (
    CreateEmbeddingInput,
    StoredApplication,
    compute_text_hash,
)
from careerpal.data.storage import LocalStorageAdapter
from careerpal.ml.embeddings import EmbeddingService
from careerpal.utils.constants import ApplicationStatus, EmbeddingSourceType

DIMENSION = 384

_TOKEN_RE = re.compile(r"[a-z0-9]+")


# ---------------------------------------------------------------------------
# Fake sentence-transformers model
# ---------------------------------------------------------------------------


class FakeSentenceModel:
    """
    Bag-of-words stand-in for a SentenceTransformer.

    Each distinct lowercase token gets its own axis, so texts sharing words
    are similar and texts sharing none are orthogonal. Blank text encodes
    to the zero vector.
    """

    def __init__(self, dimension: int = DIMENSION):
        self.dimension = dimension
        self.vocabulary: dict[str, int] = {}
        self.encode_calls: list[list[str]] = []

    def _axis(self, token: str) -> int:
        if token not in self.vocabulary:
            self.vocabulary[token] = len(self.vocabulary) % self.dimension
        return self.vocabulary[token]

    def encode(
        self,
        sentences: list[str],
        batch_size: int = 32,
        show_progress_bar: Optional[bool] = None,
        normalize_embeddings: bool = False,
        convert_to_numpy: bool = True,
    ) -> np.ndarray:
        self.encode_calls.append(list(sentences))
        matrix = np.zeros((len(sentences), self.dimension), dtype=np.float32)
        for row, sentence in enumerate(sentences):
            for token in _TOKEN_RE.findall(sentence.lower()):
                matrix[row, self._axis(token)] += 1.0
        if normalize_embeddings:
            norms = np.linalg.norm(matrix, axis=1, keepdims=True)
            matrix = np.divide(matrix, norms, out=np.zeros_like(matrix), where=norms > 0)
        return matrix


class FakeEmbeddingService(EmbeddingService):
    """EmbeddingService over FakeSentenceModel that counts embed calls."""

    def __init__(self, **kwargs):
        self.fake_model = FakeSentenceModel(kwargs.pop("dimension", DIMENSION))
        self.loader_calls = 0
        self.embed_calls: list[str] = []
        self.embed_batch_calls: list[list[str]] = []
        kwargs.setdefault("model_loader", self._load_fake)
        super().__init__(dimension=self.fake_model.dimension, device="cpu", **kwargs)

    def _load_fake(self, model_name: str, device: Optional[str]) -> FakeSentenceModel:
        self.loader_calls += 1
        return self.fake_model

    async def embed(self, text: str) -> np.ndarray:
        self.embed_calls.append(text)
        return await super().embed(text)

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        self.embed_batch_calls.append(list(texts))
        return await super().embed_batch(texts)

    @property
    def total_calls(self) -> int:
        return len(self.embed_calls) + len(self.embed_batch_calls)

    def reset_counts(self) -> None:
        self.embed_calls.clear()
        self.embed_batch_calls.clear()


# ---------------------------------------------------------------------------
# Service and storage fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_model():
    return FakeSentenceModel()


@pytest.fixture
def idle_service():
    """A FakeEmbeddingService that has not been initialized."""
    return FakeEmbeddingService()


@pytest.fixture
def embedding_service():
    """A ready FakeEmbeddingService with zeroed call counters."""
    service = FakeEmbeddingService()
    asyncio.run(service.initialize())
    service.reset_counts()
    return service


@pytest.fixture
def store():
    """In-memory LocalStorageAdapter."""
    return LocalStorageAdapter(dimension=DIMENSION)


@pytest.fixture
def log_messages():
    """Collect loguru records at WARNING and above."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="WARNING")
    yield records
    logger.remove(handler_id)


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_application():
    """Factory that returns a callable to build StoredApplication models."""

    def _factory(
        company: str = "Acme Corp",
        role: str = "Software Engineer",
        job_description: str = "Build and maintain backend services.",
        status: ApplicationStatus = ApplicationStatus.SAVED,
        notes: Optional[str] = None,
        **kwargs,
    ) -> StoredApplication:
        return StoredApplication(
            company=company,
            role=role,
            job_description=job_description,
            status=status,
            notes=notes,
            **kwargs,
        )

    return _factory


@pytest.fixture
def make_embedding_input():
    """Factory that returns a callable to build CreateEmbeddingInput payloads."""

    def _factory(
        source_id: str = "app_1",
        source_type: EmbeddingSourceType = EmbeddingSourceType.APPLICATION,
        embedding: Optional[list[float]] = None,
        text: str = "Acme Corp Software Engineer",
        dimension: int = DIMENSION,
        seed: int = 0,
    ) -> CreateEmbeddingInput:
        if embedding is None:
            rng = np.random.default_rng(seed)
            embedding = rng.standard_normal(dimension).astype(np.float32).tolist()
        return CreateEmbeddingInput(
            source_type=source_type,
            source_id=source_id,
            embedding=embedding,
            text_hash=compute_text_hash(text),
        )

    return _factory
