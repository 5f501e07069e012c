"""
Content hash ledger.

Keeps one SHA-256 fingerprint per source filename so ingestion can tell
whether a document changed since it was last indexed. Records are persisted
as a single JSON document, rewritten atomically on every update.
"""
import hashlib
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from .data_models import DocumentHash
from .exceptions import StorageError

logger = logging.getLogger(__name__)


def fingerprint(content: str) -> str:
    """SHA-256 of the raw UTF-8 content as a 64-character hex string."""
    return hashlib.sha256(content.encode('utf-8')).hexdigest()


class HashLedger:
    """
    Persists DocumentHash records and decides when a document needs ingestion.

    The vector store is consulted for chunk existence so that a ledger entry
    whose chunks vanished forces re-ingestion instead of being trusted.
    """

    def __init__(self, ledger_path: str, vector_store):
        self.ledger_path = Path(ledger_path)
        self.vector_store = vector_store
        self._lock = Lock()
        self._records: Dict[str, DocumentHash] = self._load()

    def _load(self) -> Dict[str, DocumentHash]:
        if not self.ledger_path.exists():
            return {}
        try:
            with open(self.ledger_path, encoding='utf-8') as f:
                payload = json.load(f)
            return {
                item['filename']: DocumentHash.from_dict(item)
                for item in payload.get('documents', [])
            }
        except (OSError, ValueError, KeyError) as exc:
            raise StorageError(
                "Failed to read hash ledger",
                {"path": str(self.ledger_path), "error": type(exc).__name__},
            ) from exc

    def _save(self) -> None:
        payload = {'documents': [r.to_dict() for r in self._records.values()]}
        tmp_path = self.ledger_path.with_name(self.ledger_path.name + '.tmp')
        try:
            self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.ledger_path)
        except OSError as exc:
            raise StorageError(
                "Failed to write hash ledger",
                {"path": str(self.ledger_path), "error": type(exc).__name__},
            ) from exc

    def get(self, filename: str) -> Optional[DocumentHash]:
        """Return the ledger record for a filename, if any."""
        with self._lock:
            return self._records.get(filename)

    def records(self) -> List[DocumentHash]:
        """All ledger records sorted by filename."""
        with self._lock:
            return sorted(self._records.values(), key=lambda r: r.filename)

    def needs_reingestion(self, filename: str, raw_content: str) -> bool:
        """
        Decide whether a document must be (re)ingested.

        True when the file was never ingested, when its content hash changed,
        or when the hash matches but no chunk of the file exists in the store.
        """
        existing = self.get(filename)
        if existing is None:
            return True

        if existing.content_hash != fingerprint(raw_content):
            return True

        if not self.vector_store.has_source(filename):
            logger.warning("Hash exists for %s but no chunks found - will reingest", filename)
            return True

        return False

    def upsert_hash(self, filename: str, raw_content: str) -> DocumentHash:
        """
        Insert or update the ledger record for a filename.

        Call only after the document's chunks were persisted.
        """
        record = DocumentHash(
            filename=filename,
            content_hash=fingerprint(raw_content),
            last_ingested_at=datetime.now(timezone.utc),
        )
        with self._lock:
            previous = self._records.get(filename)
            self._records[filename] = record
            try:
                self._save()
            except StorageError:
                if previous is None:
                    del self._records[filename]
                else:
                    self._records[filename] = previous
                raise
        return record

    def remove(self, filename: str) -> bool:
        """Drop the record of a filename. Returns False if there was none."""
        with self._lock:
            if filename not in self._records:
                return False
            previous = self._records.pop(filename)
            try:
                self._save()
            except StorageError:
                self._records[filename] = previous
                raise
        return True
