"""
Ingestion Controller

Reads source documents, skips the ones whose fingerprint is unchanged and
whose chunks are still indexed, and (re)indexes the rest.

Documents are processed one at a time so the hash ledger has a single
writer. Each document is its own unit of work: a failure aborts that
document and the run, but documents already ingested stay ingested.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from tqdm.auto import tqdm

from .chunker import TextChunker
from .exceptions import IngestionError, RAGServiceError
from .ledger import HashLedger, fingerprint
from .vector_store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class IngestionReport:
    """Summary of one ingestion run."""
    ingested: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    chunks_written: int = 0

    @property
    def documents_seen(self) -> int:
        return len(self.ingested) + len(self.skipped)

    def to_dict(self) -> dict:
        return {
            'ingested': list(self.ingested),
            'skipped': list(self.skipped),
            'documents_seen': self.documents_seen,
            'chunks_written': self.chunks_written,
        }


class IngestionController:
    """
    Keeps the vector store in sync with a directory of source documents.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        ledger: HashLedger,
        chunker: TextChunker,
        extensions: Sequence[str] = (".md",),
        show_progress: bool = False
    ):
        self.vector_store = vector_store
        self.ledger = ledger
        self.chunker = chunker
        self.extensions = tuple(e.lower() for e in extensions)
        self.show_progress = show_progress

    def list_documents(self, data_dir: str) -> List[str]:
        """Filenames in data_dir with a supported extension, sorted."""
        path = Path(data_dir)
        if not path.is_dir():
            raise IngestionError("Data directory not found", details={"data_dir": str(data_dir)})
        return sorted(
            p.name for p in path.iterdir()
            if p.is_file() and p.suffix.lower() in self.extensions
        )

    def _recorded_unchanged(self, filename: str, raw_content: str) -> bool:
        record = self.ledger.get(filename)
        return record is not None and record.content_hash == fingerprint(raw_content)

    def ingest_file(self, filename: str, data_dir: str) -> Optional[int]:
        """
        Ingest a single document if it changed.

        Returns:
            Number of chunks written, or None when the document was skipped
        """
        file_path = Path(data_dir) / filename
        try:
            raw_content = file_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as exc:
            raise IngestionError(
                f"Failed to read {filename}", filename=filename,
                details={"error": type(exc).__name__},
            ) from exc

        try:
            if not self.ledger.needs_reingestion(filename, raw_content):
                logger.info("Skipping %s (content unchanged)", filename)
                return None

            chunks = self.chunker.chunk_document(raw_content, filename)
            if not chunks and self._recorded_unchanged(filename, raw_content):
                logger.info("Skipping %s (empty, content unchanged)", filename)
                return None

            # Idempotent when the source has no chunks yet
            self.vector_store.delete_by_source(filename)
            logger.info("Created %d chunks from %s", len(chunks), filename)

            written = self.vector_store.add_chunks(chunks)

            # Only after the chunks are safely stored
            self.ledger.upsert_hash(filename, raw_content)
        except RAGServiceError as exc:
            logger.error("Error ingesting file %s: %s", filename, exc)
            raise IngestionError(
                f"Failed to ingest {filename}", filename=filename,
                details={"cause": type(exc).__name__},
            ) from exc

        logger.info("Successfully ingested %s", filename)
        return written

    def ingest_all(self, data_dir: str) -> IngestionReport:
        """
        Ingest every changed document of data_dir, sequentially.

        Raises:
            IngestionError: for the first document that fails
        """
        logger.info("Starting document ingestion from %s", data_dir)
        filenames = self.list_documents(data_dir)
        logger.info("Found %d documents to check", len(filenames))

        report = IngestionReport()
        iterator = tqdm(filenames, desc="Ingesting documents") if self.show_progress else filenames
        for filename in iterator:
            written = self.ingest_file(filename, data_dir)
            if written is None:
                report.skipped.append(filename)
            else:
                report.ingested.append(filename)
                report.chunks_written += written

        logger.info(
            "Document ingestion completed: %d documents, %d ingested, %d skipped, %d chunks",
            report.documents_seen, len(report.ingested), len(report.skipped), report.chunks_written,
        )
        return report

    def reingest_all(self, data_dir: str) -> IngestionReport:
        """
        Clear the whole vector store and ingest every document again.

        The ledger is kept; with no chunks left, every document fails the
        chunk-existence check and is re-ingested.
        """
        logger.info("Clearing existing data and reingesting")
        try:
            self.vector_store.clear()
        except RAGServiceError as exc:
            raise IngestionError("Failed to clear vector store before reingest") from exc
        return self.ingest_all(data_dir)

    def ingest_on_startup(self, data_dir: str) -> IngestionReport:
        """Populate the store only when it is empty."""
        if self.vector_store.has_data():
            logger.info("Vector store already has data, skipping ingestion")
            return IngestionReport()
        return self.ingest_all(data_dir)

    def forget(self, filename: str) -> int:
        """Remove a document's chunks and its ledger entry."""
        try:
            deleted = self.vector_store.delete_by_source(filename)
            self.ledger.remove(filename)
        except RAGServiceError as exc:
            raise IngestionError(f"Failed to forget {filename}", filename=filename) from exc
        return deleted
