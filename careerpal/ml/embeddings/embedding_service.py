"""
Embedding service for generating text embeddings.

Wraps a sentence-transformers model behind an asyncio interface. Model
loading and inference run in worker threads so the event loop never blocks.

One service instance owns one model. Construct it once at startup
(see ``careerpal.core.app_context``) and pass it to every consumer.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from careerpal.utils.config import get_settings
from careerpal.utils.constants import ModelLoadState
from careerpal.utils.exceptions import ModelLoadError, NotInitializedError
from careerpal.utils.logger import LoggerMixin

from .similarity import VectorLike, batch_cosine_similarity, cosine_similarity


@dataclass(frozen=True)
class ModelLoadProgress:
    """Model loading progress information."""

    progress: int  # 0-100
    status: str
    loaded: bool = False


ProgressCallback = Callable[[ModelLoadProgress], None]

# (model_name, device) -> model exposing encode()
ModelLoader = Callable[[str, Optional[str]], Any]


def _sentence_transformer_loader(model_name: str, device: Optional[str]) -> Any:
    """Load a sentence-transformers model."""
    from sentence_transformers import SentenceTransformer

    return SentenceTransformer(model_name, device=device)


class EmbeddingService(LoggerMixin):
    """
    Text embedding service.

    Lifecycle: NOT_LOADED -> LOADING -> READY, or FAILED on a load error.
    ``embed`` and ``embed_batch`` do not load the model on their own;
    call ``initialize`` first.

    Example:
        service = EmbeddingService()
        await service.initialize(lambda p: print(p.progress, p.status))
        vector = await service.embed("Senior Python developer")
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        device: Optional[str] = None,
        dimension: Optional[int] = None,
        batch_size: Optional[int] = None,
        max_text_length: Optional[int] = None,
        model_loader: Optional[ModelLoader] = None,
    ):
        """
        Initialize the embedding service.

        Args:
            model_name: Name of the sentence-transformers model to use.
                       Defaults to config setting.
            device: Device to run model on ('cpu', 'cuda', 'mps').
                   Defaults to config setting.
            dimension: Expected embedding dimension.
            batch_size: Encoding batch size.
            max_text_length: Texts are truncated to this many characters.
            model_loader: Callable building the model; defaults to SentenceTransformer.
        """
        settings = get_settings().ml
        self.model_name = model_name or settings.embedding_model
        self.display_name = (
            settings.embedding_model_display_name
            if self.model_name == settings.embedding_model
            else self.model_name
        )
        device = device or settings.device
        self.device = None if device == "auto" else device
        self.dimension = dimension or settings.embedding_dimension
        self.batch_size = batch_size or settings.batch_size
        self.max_text_length = max_text_length or settings.max_text_length

        self._model_loader = model_loader or _sentence_transformer_loader
        self._model: Any = None
        self._state = ModelLoadState.NOT_LOADED
        self._load_task: Optional[asyncio.Task] = None
        self._observers: list[ProgressCallback] = []
        self._last_progress: Optional[ModelLoadProgress] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ModelLoadState:
        return self._state

    def is_ready(self) -> bool:
        """Check if the service is ready to generate embeddings."""
        return self._state is ModelLoadState.READY and self._model is not None

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def initialize(self, on_progress: Optional[ProgressCallback] = None) -> None:
        """
        Load the embedding model.

        Safe to call multiple times and concurrently: only one load runs,
        later callers wait on it and receive its progress. Cancelling the
        await unsubscribes the caller but lets the load finish.

        Args:
            on_progress: Optional callback for loading progress.

        Raises:
            ModelLoadError: If the model cannot be loaded.
        """
        if self.is_ready():
            if on_progress is not None:
                self._notify(on_progress, ModelLoadProgress(100, "Ready", loaded=True))
            return

        starting = self._load_task is None
        if starting:
            self._state = ModelLoadState.LOADING
            self._last_progress = None

        if on_progress is not None:
            self._subscribe(on_progress)

        if starting:
            self._load_task = asyncio.get_running_loop().create_task(self._load())

        task = self._load_task
        try:
            await asyncio.shield(task)
        finally:
            if on_progress is not None and on_progress in self._observers:
                self._observers.remove(on_progress)

    async def _load(self) -> None:
        """Load the model in a worker thread and verify its output dimension."""
        start_time = time.time()
        self._report(0, "Loading sentence-transformers library...")
        try:
            self._report(10, f"Loading {self.display_name} model...")
            self.logger.info(f"Loading embedding model: {self.model_name}")
            model = await asyncio.to_thread(self._model_loader, self.model_name, self.device)

            self._report(90, "Warming up model...")
            probe = await asyncio.to_thread(self._encode, model, ["warm up"])
            if probe.ndim != 2 or probe.shape[1] != self.dimension:
                raise ModelLoadError(
                    f"Model {self.model_name} produces {probe.shape[-1]}-dimensional "
                    f"embeddings, expected {self.dimension}"
                )
        except Exception as e:
            self._state = ModelLoadState.FAILED
            self._load_task = None
            self.logger.error(f"Failed to load embedding model: {e}")
            if isinstance(e, ModelLoadError):
                raise
            raise ModelLoadError(f"Failed to load embedding model {self.model_name}: {e}") from e

        self._model = model
        self._state = ModelLoadState.READY
        self.logger.info(
            f"Embedding model loaded on device: {self.device or 'auto'} "
            f"in {time.time() - start_time:.1f}s"
        )
        self._report(100, "Ready", loaded=True)

    def _subscribe(self, callback: ProgressCallback) -> None:
        self._observers.append(callback)
        if self._last_progress is not None:
            self._notify(callback, self._last_progress)

    def _report(self, progress: int, status: str, loaded: bool = False) -> None:
        """Publish progress to every subscriber; progress never goes backwards."""
        if self._last_progress is not None:
            progress = max(progress, self._last_progress.progress)
        event = ModelLoadProgress(min(100, progress), status, loaded)
        self._last_progress = event
        for callback in list(self._observers):
            self._notify(callback, event)

    def _notify(self, callback: ProgressCallback, event: ModelLoadProgress) -> None:
        """Invoke one callback; a failing callback is detached."""
        try:
            callback(event)
        except Exception as e:
            self.logger.warning(f"Progress callback raised {e!r}; detaching it")
            if callback in self._observers:
                self._observers.remove(callback)

    async def close(self) -> None:
        """Release the model."""
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        self._load_task = None
        self._model = None
        self._state = ModelLoadState.NOT_LOADED
        self._last_progress = None

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def _require_model(self) -> Any:
        if not self.is_ready():
            raise NotInitializedError(
                "EmbeddingService not initialized. Call initialize() first."
            )
        return self._model

    def _prepare(self, text: str) -> str:
        """Truncate very long texts."""
        return text[: self.max_text_length]

    def _encode(self, model: Any, texts: list[str]) -> np.ndarray:
        embeddings = model.encode(
            texts,
            batch_size=self.batch_size,
            show_progress_bar=False,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )
        return np.asarray(embeddings, dtype=np.float32)

    async def embed(self, text: str) -> np.ndarray:
        """
        Generate an embedding for a single text.

        An empty string produces the model's embedding of empty input.

        Returns:
            L2-normalized float32 vector of length ``dimension``.

        Raises:
            NotInitializedError: If the model is not loaded.
        """
        model = self._require_model()
        embeddings = await asyncio.to_thread(self._encode, model, [self._prepare(text)])
        return embeddings[0]

    async def embed_batch(self, texts: list[str]) -> list[np.ndarray]:
        """
        Generate embeddings for multiple texts.

        Output order and length match the input.

        Raises:
            NotInitializedError: If the model is not loaded.
        """
        if not texts:
            return []

        model = self._require_model()
        prepared = [self._prepare(t) for t in texts]
        embeddings = await asyncio.to_thread(self._encode, model, prepared)
        return list(embeddings)

    # -------------------------------------------------------------------------
    # Similarity
    # -------------------------------------------------------------------------

    def cosine_similarity(self, a: VectorLike, b: VectorLike) -> float:
        """Cosine similarity clamped to [0, 1]."""
        return cosine_similarity(a, b)

    def batch_similarity(self, query: VectorLike, corpus: list[VectorLike]) -> np.ndarray:
        """Similarity between a query and each corpus vector."""
        return batch_cosine_similarity(query, corpus)
