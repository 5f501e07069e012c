"""
Tests for the sentence-transformers embedding provider.

The model class is patched so no weights are downloaded.
"""
import threading

import numpy as np
import pytest

from rag_service import embedder as embedder_module
from rag_service.embedder import EmbeddingGenerator
from rag_service.exceptions import EmbeddingProviderError


class FakeSentenceTransformer:
    instances = 0
    output = None

    def __init__(self, model_name, device=None):
        type(self).instances += 1
        self.model_name = model_name
        self.device = device
        self.max_seq_length = 128

    def get_sentence_embedding_dimension(self):
        return 4

    def encode(self, text, convert_to_numpy=True, show_progress_bar=False):
        if self.output is not None:
            return self.output
        return np.array([1.0, 0.0, 0.5, float(len(text))], dtype=np.float64)


@pytest.fixture
def fake_model(monkeypatch):
    class Model(FakeSentenceTransformer):
        instances = 0
        output = None

    monkeypatch.setattr(embedder_module, "SentenceTransformer", Model)
    return Model


class TestEmbeddingGenerator:
    """Test lazy loading, output validation and error translation."""

    def test_lazy_load(self, fake_model):
        generator = EmbeddingGenerator(device="cpu")
        assert fake_model.instances == 0

        vector = generator.embed_text("abc")

        assert fake_model.instances == 1
        assert vector.dtype == np.float32
        assert vector.tolist() == [1.0, 0.0, 0.5, 3.0]
        assert generator.embedding_dim == 4

    def test_model_loaded_once_across_threads(self, fake_model):
        generator = EmbeddingGenerator(device="cpu")
        threads = [threading.Thread(target=generator.embed_text, args=("x",)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert fake_model.instances == 1

    def test_query_uses_same_space(self, fake_model):
        generator = EmbeddingGenerator(device="cpu")

        assert np.array_equal(generator.embed_query("abc"), generator.embed_text("abc"))

    @pytest.mark.parametrize("output", [
        np.array([], dtype=np.float32),
        np.array([[1.0, 2.0]], dtype=np.float32),
        np.array([1.0, np.nan], dtype=np.float32),
    ])
    def test_malformed_vector(self, fake_model, output):
        fake_model.output = output

        with pytest.raises(EmbeddingProviderError):
            EmbeddingGenerator(device="cpu").embed_text("abc")

    def test_encode_failure(self, fake_model, monkeypatch):
        def broken(self, *args, **kwargs):
            raise RuntimeError("CUDA out of memory")

        monkeypatch.setattr(fake_model, "encode", broken)

        with pytest.raises(EmbeddingProviderError):
            EmbeddingGenerator(device="cpu").embed_text("abc")

    def test_load_failure(self, monkeypatch):
        def unavailable(*args, **kwargs):
            raise OSError("model not found")

        monkeypatch.setattr(embedder_module, "SentenceTransformer", unavailable)

        with pytest.raises(EmbeddingProviderError):
            EmbeddingGenerator(model_name="missing-model", device="cpu").embed_text("abc")

    def test_model_info(self, fake_model):
        info = EmbeddingGenerator(device="cpu").get_model_info()

        assert info == {
            'model_name': 'paraphrase-multilingual-MiniLM-L12-v2',
            'embedding_dim': 4,
            'device': 'cpu',
            'max_seq_length': 128,
        }
