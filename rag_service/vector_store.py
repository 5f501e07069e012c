"""
Vector Store Module

ChromaDB-backed retrieval store:
- Embedding generation for chunks and queries
- Cosine similarity search (score = 1 - cosine distance)
- Maintenance by source (delete, existence) and full reset
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import chromadb
import numpy as np

from .data_models import Chunk, Citation, VectorRecord
from .exceptions import EmbeddingProviderError, StorageError

logger = logging.getLogger(__name__)


class VectorStore:
    """
    ChromaDB-based vector store for the RAG service.

    The embedder is any object exposing ``embed_text(text) -> np.ndarray``.
    """

    INSERT_BATCH_SIZE = 500

    def __init__(
        self,
        embedder,
        collection_name: str = "document_chunks",
        persist_directory: Optional[str] = None,
        client: Optional[Any] = None,
        embedding_concurrency: int = 4
    ):
        """
        Initialize the vector store.

        Args:
            embedder: Embedding provider
            collection_name: Name of the ChromaDB collection
            persist_directory: Directory for persistent storage (None = in memory)
            client: Pre-built ChromaDB client, overrides persist_directory
            embedding_concurrency: Maximum embedding calls in flight in add_chunks
        """
        if embedding_concurrency < 1:
            raise ValueError(f"embedding_concurrency must be >= 1, got {embedding_concurrency}")

        self.embedder = embedder
        self.collection_name = collection_name
        self.persist_directory = persist_directory
        self.embedding_concurrency = embedding_concurrency

        try:
            if client is not None:
                self.client = client
            elif persist_directory:
                self.client = chromadb.PersistentClient(path=persist_directory)
            else:
                self.client = chromadb.EphemeralClient()

            self.collection = self.client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"}
            )
        except Exception as exc:
            raise StorageError(
                "Failed to open vector collection",
                {"collection": collection_name, "error": type(exc).__name__},
            ) from exc

    def count(self) -> int:
        """Get the number of chunks in the collection."""
        try:
            return self.collection.count()
        except Exception as exc:
            raise StorageError("Failed to count chunks", {"error": type(exc).__name__}) from exc

    def embed(self, text: str) -> np.ndarray:
        """
        Embed arbitrary text through the embedding provider.

        Raises:
            EmbeddingProviderError: on any provider failure
        """
        try:
            return self.embedder.embed_text(text)
        except EmbeddingProviderError:
            raise
        except Exception as exc:
            raise EmbeddingProviderError(
                "Embedding provider failed",
                {"error": type(exc).__name__},
            ) from exc

    def _embed_all(self, chunks: List[Chunk]) -> List[np.ndarray]:
        """Embed chunk contents through a bounded worker pool; fail on the first error."""
        workers = min(self.embedding_concurrency, len(chunks))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self.embed, chunk.content) for chunk in chunks]
            try:
                embeddings = [future.result() for future in futures]
            except EmbeddingProviderError:
                for future in futures:
                    future.cancel()
                raise

        dims = {int(np.asarray(e).shape[-1]) for e in embeddings}
        if len(dims) != 1:
            raise EmbeddingProviderError(
                "Embedding provider returned vectors of mixed dimensionality",
                {"dimensions": sorted(dims)},
            )
        return embeddings

    def add_chunks(self, chunks: List[Chunk]) -> int:
        """
        Embed and persist chunks, all or nothing.

        If any embedding fails nothing is written. If a storage write fails,
        records already written by this call are removed before the error
        propagates.

        Args:
            chunks: Chunks to persist

        Returns:
            Number of chunks added
        """
        if not chunks:
            return 0

        embeddings = self._embed_all(chunks)
        created_at = datetime.now(timezone.utc)
        records = [
            VectorRecord(chunk=chunk, embedding=np.asarray(emb), created_at=created_at)
            for chunk, emb in zip(chunks, embeddings)
        ]

        inserted_ids: List[str] = []
        for i in range(0, len(records), self.INSERT_BATCH_SIZE):
            batch = records[i:i + self.INSERT_BATCH_SIZE]
            ids = [r.id for r in batch]
            try:
                self.collection.add(
                    ids=ids,
                    embeddings=[r.embedding.tolist() for r in batch],
                    documents=[r.chunk.content for r in batch],
                    metadatas=[r.to_metadata() for r in batch]
                )
            except Exception as exc:
                self._rollback(inserted_ids)
                raise StorageError(
                    "Failed to insert chunks",
                    {"source": batch[0].chunk.source, "error": type(exc).__name__},
                ) from exc
            inserted_ids.extend(ids)

        logger.info("Added %d chunks to vector store", len(inserted_ids))
        return len(inserted_ids)

    def _rollback(self, ids: List[str]) -> None:
        if not ids:
            return
        try:
            self.collection.delete(ids=ids)
        except Exception:
            logger.exception("Rollback of %d inserted chunks failed", len(ids))

    def search(self, query: str, top_k: int = 3) -> List[Citation]:
        """
        Retrieve the chunks closest to the query under cosine distance.

        Args:
            query: Query text
            top_k: Number of results to return

        Returns:
            Citations ordered from most to least similar
        """
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")

        query_embedding = self.embed(query)
        available = self.count()
        if available == 0:
            return []

        try:
            results = self.collection.query(
                query_embeddings=[np.asarray(query_embedding).tolist()],
                n_results=min(top_k, available),
                include=["documents", "metadatas", "distances"]
            )
        except Exception as exc:
            raise StorageError("Similarity search failed", {"error": type(exc).__name__}) from exc

        citations = []
        for doc, meta, distance in zip(
            results['documents'][0],
            results['metadatas'][0],
            results['distances'][0]
        ):
            # ChromaDB returns cosine distance, so similarity = 1 - distance
            citations.append(Citation(
                source=meta.get('source', 'unknown'),
                excerpt=doc,
                score=1 - distance,
            ))
        return citations

    def delete_by_source(self, source: str) -> int:
        """
        Delete every chunk of a source. Deleting an unknown source is a no-op.

        Returns:
            Number of chunks deleted
        """
        try:
            ids = self.collection.get(where={"source": source}, include=[])['ids']
            if ids:
                self.collection.delete(ids=ids)
        except Exception as exc:
            raise StorageError(
                "Failed to delete chunks",
                {"source": source, "error": type(exc).__name__},
            ) from exc

        logger.info("Deleted %d chunks for source: %s", len(ids), source)
        return len(ids)

    def has_source(self, source: str) -> bool:
        """Return True if at least one chunk of the source is stored."""
        try:
            results = self.collection.get(where={"source": source}, limit=1, include=[])
        except Exception as exc:
            raise StorageError(
                "Failed to look up chunks",
                {"source": source, "error": type(exc).__name__},
            ) from exc
        return len(results['ids']) > 0

    def has_data(self) -> bool:
        """Return True if the collection holds any chunk."""
        chunk_count = self.count()
        logger.info("Vector store has %d chunks", chunk_count)
        return chunk_count > 0

    def clear(self) -> int:
        """
        Clear all items from the collection.

        Returns:
            Number of items deleted
        """
        count = self.count()
        try:
            self.client.delete_collection(self.collection_name)
            self.collection = self.client.get_or_create_collection(
                name=self.collection_name,
                metadata={"hnsw:space": "cosine"}
            )
        except Exception as exc:
            raise StorageError("Failed to clear vector store", {"error": type(exc).__name__}) from exc

        logger.info("Vector store cleared (%d chunks)", count)
        return count

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the vector store.

        Returns:
            Dictionary with statistics
        """
        try:
            results = self.collection.get(include=["metadatas"])
        except Exception as exc:
            raise StorageError("Failed to read collection", {"error": type(exc).__name__}) from exc

        sources = sorted(set(
            meta.get('source', 'unknown')
            for meta in results['metadatas']
        ))

        return {
            'total_chunks': len(results['ids']),
            'unique_sources': len(sources),
            'sources': sources,
            'collection_name': self.collection_name,
            'persist_directory': self.persist_directory,
        }
