"""
Shared fixtures and provider fakes.

The fakes stand in for the embedding / completion providers so tests never
download models or reach the network.
"""
import hashlib
import threading
import time
import uuid

import chromadb
import numpy as np
import pytest

from rag_service.chunker import TextChunker
from rag_service.ledger import HashLedger
from rag_service.vector_store import VectorStore


class FakeEmbedder:
    """Deterministic bag-of-words embeddings with call accounting."""

    def __init__(self, dim: int = 64, fail_on: str = None, delay: float = 0.0):
        self.dim = dim
        self.fail_on = fail_on
        self.delay = delay
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def embed_text(self, text: str) -> np.ndarray:
        with self._lock:
            self.calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_on and self.fail_on in text:
                raise RuntimeError("provider unavailable")

            vector = np.zeros(self.dim, dtype=np.float32)
            vector[0] = 0.1  # keeps every vector non-zero
            for token in text.lower().split():
                digest = hashlib.md5(token.encode('utf-8')).digest()
                vector[1 + digest[0] % (self.dim - 1)] += 1.0
            return vector
        finally:
            with self._lock:
                self.in_flight -= 1


class FakeGenerator:
    """Completion provider returning a canned answer."""

    def __init__(self, answer: str = "Vertex AI oferece Model Garden [1].", error: Exception = None):
        self.answer = answer
        self.error = error
        self.calls = []

    def complete(self, system_prompt, user_prompt, temperature, max_tokens):
        self.calls.append({
            'system_prompt': system_prompt,
            'user_prompt': user_prompt,
            'temperature': temperature,
            'max_tokens': max_tokens,
        })
        if self.error is not None:
            raise self.error
        return self.answer


class WordEncoding:
    """tiktoken-like encoding: one token per whitespace-separated word."""
    name = "words"

    def encode(self, text):
        return text.split()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def chroma_client():
    return chromadb.EphemeralClient()


@pytest.fixture
def vector_store(embedder, chroma_client):
    return VectorStore(
        embedder,
        collection_name=f"test_{uuid.uuid4().hex}",
        client=chroma_client,
        embedding_concurrency=4,
    )


@pytest.fixture
def ledger(tmp_path, vector_store):
    return HashLedger(str(tmp_path / "ledger" / "document_hashes.json"), vector_store)


@pytest.fixture
def chunker():
    return TextChunker(chunk_size=120, overlap=30)


@pytest.fixture
def data_dir(tmp_path):
    docs = tmp_path / "data"
    docs.mkdir()
    (docs / "a_vertex.md").write_text(
        "# Vertex AI\r\n\r\n\r\n\r\nVertex AI é a plataforma de machine learning do GCP. "
        "Oferece Model Garden, Vertex AI Studio e pipelines gerenciados para treinar, "
        "avaliar e servir modelos em produção com monitoramento de custo e latência.",
        encoding='utf-8',
    )
    (docs / "b_neo4j.md").write_text(
        "# Neo4j\n\nNeo4j é um banco de dados de grafos. Nós e relacionamentos modelam "
        "o funil educacional: lead, inscrito, matriculado e aprovado. "
        "Consultas Cypher percorrem o grafo para encontrar gargalos do funil.",
        encoding='utf-8',
    )
    (docs / "notes.txt").write_text("ignored by extension filter", encoding='utf-8')
    return docs
