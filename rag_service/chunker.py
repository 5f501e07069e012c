"""
Text Chunker Module

Normalizes raw document text and splits it into ordered, overlapping,
word-aligned chunks. Chunking is deterministic: identical inputs always
produce identical chunks, which is what makes re-ingestion idempotent.
"""
import math
import re
from typing import Any, Dict, List

from .data_models import Chunk, make_chunk_id


_LINE_ENDINGS = re.compile(r'\r\n?')
_EXCESS_BLANK_LINES = re.compile(r'\n{3,}')


def clean_text(raw: str) -> str:
    """
    Normalize line endings, collapse runs of blank lines and trim.

    Args:
        raw: Raw document text

    Returns:
        Cleaned text
    """
    text = _LINE_ENDINGS.sub('\n', raw)
    text = _EXCESS_BLANK_LINES.sub('\n\n', text)
    return text.strip()


def overlap_word_count(chunk_size: int, overlap: int, closed_words: int) -> int:
    """
    Number of trailing words carried from a closed chunk into the next one.

    ``floor(overlap / chunk_size * closed_words)``, but at least one word
    whenever overlap is enabled and the closed chunk has more than one word,
    so consecutive chunks always share a boundary word.
    """
    count = math.floor((overlap / chunk_size) * closed_words)
    if overlap > 0 and closed_words > 1:
        return max(1, count)
    return count


def chunk_text(text: str, source: str, chunk_size: int = 500, overlap: int = 50) -> List[Chunk]:
    """
    Split text into word-aligned chunks of about ``chunk_size`` characters.

    When a chunk is closed, the next one is seeded with its last
    ``overlap_word_count(...)`` words. A chunk only exceeds ``chunk_size``
    when a single word, or one carried word plus the next, is longer.

    Args:
        text: Cleaned document text
        source: Source filename, used for chunk ids
        chunk_size: Maximum characters per chunk
        overlap: Overlap budget in characters

    Returns:
        List of Chunk objects with contiguous chunk_index and a shared total_chunks
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    chunks: List[Chunk] = []
    current_words: List[str] = []
    current_length = 0

    for word in text.split():
        word_length = len(word) + 1  # +1 for the separator

        if current_length + word_length > chunk_size and current_words:
            chunk_index = len(chunks)
            chunks.append(Chunk(
                id=make_chunk_id(source, chunk_index),
                content=' '.join(current_words),
                source=source,
                chunk_index=chunk_index,
            ))

            # Seed the next chunk with the tail of the closed one
            overlap_words = overlap_word_count(chunk_size, overlap, len(current_words))
            current_words = current_words[-overlap_words:] if overlap_words > 0 else []
            current_length = len(' '.join(current_words))

        current_words.append(word)
        current_length += word_length

    if current_words:
        chunk_index = len(chunks)
        chunks.append(Chunk(
            id=make_chunk_id(source, chunk_index),
            content=' '.join(current_words),
            source=source,
            chunk_index=chunk_index,
        ))

    total_chunks = len(chunks)
    for chunk in chunks:
        chunk.total_chunks = total_chunks

    return chunks


class TextChunker:
    """
    Cleans and chunks documents with a fixed chunk size and overlap.
    """

    def __init__(self, chunk_size: int = 500, overlap: int = 50):
        """
        Initialize the chunker.

        Args:
            chunk_size: Maximum size of each chunk in characters
            overlap: Number of characters of overlap budget between chunks
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(f"overlap must be in [0, {chunk_size}), got {overlap}")

        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk_document(self, raw_content: str, source: str) -> List[Chunk]:
        """Clean raw content and chunk it."""
        return chunk_text(clean_text(raw_content), source, self.chunk_size, self.overlap)

    def get_statistics(self, chunks: List[Chunk]) -> Dict[str, Any]:
        """
        Calculate statistics for a list of chunks.

        Args:
            chunks: List of chunks

        Returns:
            Dictionary with statistics
        """
        if not chunks:
            return {
                'total_chunks': 0,
                'avg_length': 0,
                'min_length': 0,
                'max_length': 0,
                'total_chars': 0,
                'avg_words': 0,
            }

        lengths = [len(c) for c in chunks]
        word_counts = [c.word_count for c in chunks]

        return {
            'total_chunks': len(chunks),
            'avg_length': sum(lengths) / len(lengths),
            'min_length': min(lengths),
            'max_length': max(lengths),
            'total_chars': sum(lengths),
            'avg_words': sum(word_counts) / len(word_counts),
        }
