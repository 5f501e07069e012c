"""
Core data models for the RAG service.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np


def make_chunk_id(source: str, chunk_index: int) -> str:
    """Deterministic chunk id, stable across ingestion runs."""
    return f"{source}_chunk_{chunk_index}"


@dataclass
class Chunk:
    """Represents a text chunk of one source document."""
    id: str
    content: str
    source: str
    chunk_index: int
    total_chunks: int = 0

    def __len__(self) -> int:
        """Return the length of the chunk content."""
        return len(self.content)

    @property
    def word_count(self) -> int:
        """Return the word count of the chunk."""
        return len(self.content.split())


@dataclass
class VectorRecord:
    """A chunk together with its embedding, as persisted in the vector store."""
    chunk: Chunk
    embedding: np.ndarray
    created_at: datetime

    @property
    def id(self) -> str:
        return self.chunk.id

    def to_metadata(self) -> Dict[str, Any]:
        """Metadata stored next to the embedding."""
        return {
            "source": self.chunk.source,
            "chunk_index": self.chunk.chunk_index,
            "total_chunks": self.chunk.total_chunks,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class DocumentHash:
    """Ledger record: content fingerprint of one source file."""
    filename: str
    content_hash: str
    last_ingested_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "content_hash": self.content_hash,
            "last_ingested_at": self.last_ingested_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocumentHash':
        return cls(
            filename=data["filename"],
            content_hash=data["content_hash"],
            last_ingested_at=datetime.fromisoformat(data["last_ingested_at"]),
        )


@dataclass
class Citation:
    """A retrieved chunk presented to the caller as evidence."""
    source: str
    excerpt: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "excerpt": self.excerpt, "score": self.score}


class PolicyViolation(str, Enum):
    """Guardrail policy tags."""
    PROMPT_INJECTION = "PROMPT_INJECTION"
    SENSITIVE_DATA = "SENSITIVE_DATA"
    OUT_OF_DOMAIN = "OUT_OF_DOMAIN"
    INVALID_QUERY = "INVALID_QUERY"
    QUERY_TOO_LONG = "QUERY_TOO_LONG"
    SYSTEM_LEAK = "SYSTEM_LEAK"


@dataclass(frozen=True)
class GuardrailResult:
    """Outcome of a single guardrail evaluation."""
    blocked: bool
    reason: Optional[str] = None
    policy_violated: Optional[PolicyViolation] = None

    @classmethod
    def passed(cls) -> 'GuardrailResult':
        return cls(blocked=False)

    @classmethod
    def block(cls, policy: PolicyViolation, reason: str) -> 'GuardrailResult':
        return cls(blocked=True, reason=reason, policy_violated=policy)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"blocked": self.blocked}
        if self.blocked:
            data["reason"] = self.reason
            data["policy_violated"] = self.policy_violated.value if self.policy_violated else None
        return data


@dataclass
class Metrics:
    """Per-request latency, token and cost figures."""
    total_latency_ms: float
    retrieval_latency_ms: float
    llm_latency_ms: float
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    estimated_cost_usd: float
    top_k_used: int
    context_size_chars: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_latency_ms": self.total_latency_ms,
            "retrieval_latency_ms": self.retrieval_latency_ms,
            "llm_latency_ms": self.llm_latency_ms,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
            "estimated_cost_usd": self.estimated_cost_usd,
            "top_k_used": self.top_k_used,
            "context_size_chars": self.context_size_chars,
        }


@dataclass
class RAGResponse:
    """Successful answer with its supporting citations and metrics."""
    answer: str
    citations: List[Citation]
    metrics: Metrics
    request_id: Optional[str] = None

    blocked = False

    @property
    def sources(self) -> List[str]:
        """Distinct sources cited, in retrieval order."""
        return list(dict.fromkeys(c.source for c in self.citations))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "answer": self.answer,
            "citations": [c.to_dict() for c in self.citations],
            "metrics": self.metrics.to_dict(),
        }
        if self.request_id:
            data["request_id"] = self.request_id
        return data


@dataclass
class BlockedResponse:
    """A request stopped by a guardrail."""
    reason: str
    policy_violated: PolicyViolation
    request_id: Optional[str] = None
    blocked: bool = field(default=True, init=False)

    @classmethod
    def from_result(cls, result: GuardrailResult, request_id: Optional[str] = None) -> 'BlockedResponse':
        if not result.blocked or result.policy_violated is None:
            raise ValueError("Only a blocking GuardrailResult can become a BlockedResponse")
        return cls(reason=result.reason or "", policy_violated=result.policy_violated,
                   request_id=request_id)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "blocked": True,
            "reason": self.reason,
            "policy_violated": self.policy_violated.value,
        }
        if self.request_id:
            data["request_id"] = self.request_id
        return data
