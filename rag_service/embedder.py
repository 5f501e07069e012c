"""
Embedding Generator Module

Embedding provider backed by sentence-transformers. The model is loaded
lazily on first use and shared by every caller of the same generator.
"""
import logging
from threading import Lock
from typing import Optional

import numpy as np
import torch
from sentence_transformers import SentenceTransformer

from .exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)


class EmbeddingGenerator:
    """
    Sentence-transformers embedding provider for the Portuguese/English corpus.

    Multilingual models fit best, e.g. paraphrase-multilingual-MiniLM-L12-v2
    (384d) or paraphrase-multilingual-mpnet-base-v2 (768d). Every vector of
    one store must come from the same model.
    """

    def __init__(
        self,
        model_name: str = "paraphrase-multilingual-MiniLM-L12-v2",
        device: Optional[str] = None
    ):
        """
        Initialize the embedding generator.

        Args:
            model_name: Name of the sentence-transformers model
            device: Device to use ('cpu' or 'cuda'). If None, will auto-detect.
        """
        self.model_name = model_name
        if device is None:
            self.device = "cuda" if torch.cuda.is_available() else "cpu"
        else:
            self.device = device
        self._model: Optional[SentenceTransformer] = None
        self._embedding_dim: Optional[int] = None
        self._model_lock = Lock()

    @property
    def model(self) -> SentenceTransformer:
        """Lazy load the model."""
        if self._model is None:
            with self._model_lock:
                if self._model is None:
                    logger.info("Loading embedding model: %s (%s)", self.model_name, self.device)
                    try:
                        model = SentenceTransformer(self.model_name, device=self.device)
                    except Exception as exc:
                        raise EmbeddingProviderError(
                            "Failed to load embedding model",
                            {"model": self.model_name, "error": type(exc).__name__},
                        ) from exc
                    self._embedding_dim = model.get_sentence_embedding_dimension()
                    self._model = model
                    logger.info("Embedding model loaded (dim=%s)", self._embedding_dim)
        return self._model

    @property
    def embedding_dim(self) -> int:
        """Get embedding dimension."""
        if self._embedding_dim is None:
            _ = self.model  # Trigger model loading
        return self._embedding_dim

    def embed_text(self, text: str) -> np.ndarray:
        """
        Encode one text into a 1-D float32 vector.

        Raises:
            EmbeddingProviderError: if the model fails or returns a malformed vector
        """
        model = self.model
        try:
            vector = model.encode(text, convert_to_numpy=True, show_progress_bar=False)
        except Exception as exc:
            raise EmbeddingProviderError(
                "Embedding request failed",
                {"model": self.model_name, "error": type(exc).__name__},
            ) from exc

        vector = np.asarray(vector, dtype=np.float32)
        if vector.ndim != 1 or vector.size == 0 or not np.all(np.isfinite(vector)):
            raise EmbeddingProviderError(
                "Embedding provider returned a malformed vector",
                {"model": self.model_name, "shape": list(vector.shape)},
            )
        return vector

    def embed_query(self, query: str) -> np.ndarray:
        """Queries share the document embedding space."""
        return self.embed_text(query)

    def get_model_info(self) -> dict:
        """
        Get information about the loaded model.

        Returns:
            Dictionary with model information
        """
        return {
            'model_name': self.model_name,
            'embedding_dim': self.embedding_dim,
            'device': self.device,
            'max_seq_length': self.model.max_seq_length,
        }
