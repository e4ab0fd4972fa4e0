"""
Tests for careerpal.ml.embeddings.embedding_service — lifecycle, progress and encoding.

The model is a FakeSentenceModel injected through ``model_loader``; no
weights are downloaded.
"""

import asyncio
import threading

import numpy as np
import pytest

from careerpal.ml.embeddings import EmbeddingService, ModelLoadProgress
from careerpal.utils.constants import ModelLoadState
from careerpal.utils.exceptions import ModelLoadError, NotInitializedError

from tests.conftest import DIMENSION, FakeEmbeddingService, FakeSentenceModel


# ── initialize() ────────────────────────────────────────────────────────────


class TestInitialize:
    def test_becomes_ready(self, idle_service):
        assert idle_service.state == ModelLoadState.NOT_LOADED
        assert not idle_service.is_ready()
        asyncio.run(idle_service.initialize())
        assert idle_service.is_ready()
        assert idle_service.state == ModelLoadState.READY

    def test_progress_is_monotonic_and_ends_loaded(self, idle_service):
        events: list[ModelLoadProgress] = []
        asyncio.run(idle_service.initialize(events.append))

        progress = [e.progress for e in events]
        assert progress == sorted(progress)
        assert progress[0] == 0
        assert events[-1] == ModelLoadProgress(100, "Ready", loaded=True)
        assert not any(e.loaded for e in events[:-1])

    def test_idempotent(self, idle_service):
        async def scenario():
            await idle_service.initialize()
            await idle_service.initialize()

        asyncio.run(scenario())
        assert idle_service.loader_calls == 1

    def test_ready_service_reports_ready_to_new_callback(self, embedding_service):
        events = []
        asyncio.run(embedding_service.initialize(events.append))
        assert events == [ModelLoadProgress(100, "Ready", loaded=True)]

    def test_concurrent_calls_share_one_load(self):
        gate = threading.Event()
        model = FakeSentenceModel()
        calls = []

        def slow_loader(name, device):
            calls.append(name)
            gate.wait(timeout=5)
            return model

        service = EmbeddingService(dimension=DIMENSION, model_loader=slow_loader)
        first, second = [], []

        async def scenario():
            tasks = [
                asyncio.create_task(service.initialize(first.append)),
                asyncio.create_task(service.initialize(second.append)),
            ]
            await asyncio.sleep(0.05)
            gate.set()
            await asyncio.gather(*tasks)

        asyncio.run(scenario())
        assert len(calls) == 1
        assert first[-1].loaded and second[-1].loaded
        assert [e.progress for e in second] == sorted(e.progress for e in second)

    def test_cancelled_waiter_does_not_cancel_load(self):
        gate = threading.Event()
        model = FakeSentenceModel()

        def slow_loader(name, device):
            gate.wait(timeout=5)
            return model

        service = EmbeddingService(dimension=DIMENSION, model_loader=slow_loader)

        async def scenario():
            abandoned = asyncio.create_task(service.initialize())
            waiting = asyncio.create_task(service.initialize())
            await asyncio.sleep(0.05)
            abandoned.cancel()
            gate.set()
            await waiting
            return abandoned

        abandoned = asyncio.run(scenario())
        assert abandoned.cancelled()
        assert service.is_ready()

    def test_raising_callback_is_detached(self, idle_service, log_messages):
        calls = []

        def bad_callback(progress):
            calls.append(progress)
            raise RuntimeError("ui went away")

        asyncio.run(idle_service.initialize(bad_callback))
        assert idle_service.is_ready()
        assert len(calls) == 1
        assert any("Progress callback" in r["message"] for r in log_messages)


class TestInitializeFailure:
    def test_loader_error_raises_model_load_error(self):
        def broken_loader(name, device):
            raise OSError("network unreachable")

        service = EmbeddingService(dimension=DIMENSION, model_loader=broken_loader)
        with pytest.raises(ModelLoadError, match="network unreachable"):
            asyncio.run(service.initialize())
        assert service.state == ModelLoadState.FAILED
        assert not service.is_ready()

    def test_retry_after_failure(self):
        attempts = []
        model = FakeSentenceModel()

        def flaky_loader(name, device):
            attempts.append(name)
            if len(attempts) == 1:
                raise OSError("temporary")
            return model

        service = EmbeddingService(dimension=DIMENSION, model_loader=flaky_loader)
        with pytest.raises(ModelLoadError):
            asyncio.run(service.initialize())
        asyncio.run(service.initialize())
        assert service.is_ready()
        assert len(attempts) == 2

    def test_dimension_mismatch(self):
        service = EmbeddingService(
            dimension=DIMENSION, model_loader=lambda name, device: FakeSentenceModel(dimension=16)
        )
        with pytest.raises(ModelLoadError, match="16-dimensional"):
            asyncio.run(service.initialize())
        assert service.state == ModelLoadState.FAILED

    def test_callback_error_does_not_mask_load_error(self):
        def broken_loader(name, device):
            raise OSError("disk full")

        def bad_callback(progress):
            raise RuntimeError("callback")

        service = EmbeddingService(dimension=DIMENSION, model_loader=broken_loader)
        with pytest.raises(ModelLoadError, match="disk full"):
            asyncio.run(service.initialize(bad_callback))


# ── embed() / embed_batch() ─────────────────────────────────────────────────


class TestEmbed:
    def test_requires_initialize(self, idle_service):
        with pytest.raises(NotInitializedError):
            asyncio.run(idle_service.embed("hello"))
        assert idle_service.loader_calls == 0

    def test_batch_requires_initialize(self, idle_service):
        with pytest.raises(NotInitializedError):
            asyncio.run(idle_service.embed_batch(["hello"]))

    def test_returns_normalized_float32(self, embedding_service):
        vector = asyncio.run(embedding_service.embed("python developer"))
        assert vector.dtype == np.float32
        assert vector.shape == (DIMENSION,)
        assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-5)

    def test_deterministic(self, embedding_service):
        async def scenario():
            return await embedding_service.embed("same"), await embedding_service.embed("same")

        a, b = asyncio.run(scenario())
        np.testing.assert_array_equal(a, b)

    def test_empty_string_is_not_an_error(self, embedding_service):
        vector = asyncio.run(embedding_service.embed(""))
        assert vector.shape == (DIMENSION,)

    def test_long_text_truncated(self):
        service = FakeEmbeddingService(max_text_length=10)
        asyncio.run(service.initialize())
        asyncio.run(service.embed("x" * 50))
        assert service.fake_model.encode_calls[-1] == ["x" * 10]

    def test_batch_preserves_order_and_length(self, embedding_service):
        texts = ["alpha", "beta", "gamma", "alpha"]

        async def scenario():
            batch = await embedding_service.embed_batch(texts)
            singles = [await embedding_service.embed(t) for t in texts]
            return batch, singles

        batch, singles = asyncio.run(scenario())
        assert len(batch) == len(texts)
        for got, expected in zip(batch, singles):
            np.testing.assert_allclose(got, expected, atol=1e-6)

    def test_empty_batch_skips_model(self, embedding_service):
        calls_before = len(embedding_service.fake_model.encode_calls)
        assert asyncio.run(embedding_service.embed_batch([])) == []
        assert len(embedding_service.fake_model.encode_calls) == calls_before


# ── similarity / close ──────────────────────────────────────────────────────


class TestServiceSimilarity:
    def test_self_similarity(self, embedding_service):
        vector = asyncio.run(embedding_service.embed("machine learning engineer"))
        assert embedding_service.cosine_similarity(vector, vector) == pytest.approx(1.0, abs=1e-5)

    def test_unrelated_texts(self, embedding_service):
        async def scenario():
            return await embedding_service.embed("kitchen"), await embedding_service.embed("kubernetes")

        a, b = asyncio.run(scenario())
        assert embedding_service.cosine_similarity(a, b) == 0.0


class TestClose:
    def test_close_resets_state(self, embedding_service):
        asyncio.run(embedding_service.close())
        assert embedding_service.state == ModelLoadState.NOT_LOADED
        with pytest.raises(NotInitializedError):
            asyncio.run(embedding_service.embed("hello"))

    def test_reinitialize_after_close(self, embedding_service):
        asyncio.run(embedding_service.close())
        asyncio.run(embedding_service.initialize())
        assert embedding_service.is_ready()
        assert embedding_service.loader_calls == 2
