"""Core modules for the grounded question-answering service."""
from .chunker import TextChunker, chunk_text, clean_text
from .data_models import (
    BlockedResponse,
    Chunk,
    Citation,
    DocumentHash,
    GuardrailResult,
    Metrics,
    PolicyViolation,
    RAGResponse,
    VectorRecord,
)
from .exceptions import (
    CompletionProviderError,
    ConfigurationError,
    EmbeddingProviderError,
    IngestionError,
    RAGServiceError,
    StorageError,
)
from .guardrails import GuardrailEngine, check_question, check_response
