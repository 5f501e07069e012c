"""
Exception hierarchy for the RAG service.

Provider and storage failures are translated into these types at the adapter
boundary so callers never see third-party exception classes. Guardrail blocks
are not exceptions: they are reported as GuardrailResult / BlockedResponse.
"""
from typing import Any, Dict, Optional


class RAGServiceError(Exception):
    """Base exception for all RAG service errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(RAGServiceError):
    """Raised when the service configuration is missing or invalid."""


class EmbeddingProviderError(RAGServiceError):
    """Raised when the embedding provider fails (model load, encode, bad output)."""


class CompletionProviderError(RAGServiceError):
    """Raised when the completion provider fails or returns an unusable response."""


class StorageError(RAGServiceError):
    """Raised on read/write failures against the vector store or the hash ledger."""


class IngestionError(RAGServiceError):
    """
    Raised when ingesting a specific document fails.

    The underlying provider/storage error is kept as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if filename:
            details["filename"] = filename
        self.filename = filename
        super().__init__(message, details)


def public_error_payload(request_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the opaque failure body handed to the transport layer.

    Carries no policy tag and no provider or storage details.
    """
    payload: Dict[str, Any] = {"error": "Erro interno ao processar a pergunta"}
    if request_id:
        payload["request_id"] = request_id
    return payload
