"""RAG Service Configuration."""
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from rag_service.exceptions import ConfigurationError


DEFAULT_SYSTEM_PROMPT = (
    "Você é um assistente especializado em Vertex AI, Neo4j e funil educacional. "
    "Sempre cite suas fontes."
)


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


@dataclass
class RAGConfig:
    """
    Global configuration for the RAG service.

    Attributes:
        chunk_size: Maximum number of characters per chunk
        chunk_overlap: Overlap budget in characters between consecutive chunks
        data_dir: Directory holding the source documents
        document_extensions: File extensions picked up by ingestion
        embedding_model: Name of the sentence-transformers model
        embedding_device: Device for embeddings ('cpu', 'cuda' or None to auto-detect)
        embedding_concurrency: Maximum embedding calls in flight during ingestion
        collection_name: Name of the ChromaDB collection
        persist_directory: Directory to persist ChromaDB data (None keeps it in memory)
        ledger_path: JSON file holding the document hash ledger
        top_k: Number of chunks to retrieve
        llm_model: Gemini model name
        tokenizer_fallback_model: tiktoken model used when llm_model has no tokenizer
        temperature: LLM temperature
        max_tokens: Maximum tokens in LLM response
        input_cost_per_1k: USD per 1000 prompt tokens
        output_cost_per_1k: USD per 1000 completion tokens
        min_question_words: Questions with fewer words are rejected
        max_question_chars: Questions longer than this are rejected
        system_prompt: System prompt for the LLM
        api_key: Gemini API key
        log_level: Root log level
    """

    # Chunking parameters
    chunk_size: int = 500
    chunk_overlap: int = 50

    # Ingestion parameters
    data_dir: str = "./data"
    document_extensions: Tuple[str, ...] = (".md",)

    # Embedding parameters
    embedding_model: str = "paraphrase-multilingual-MiniLM-L12-v2"
    embedding_device: Optional[str] = None
    embedding_concurrency: int = 4

    # Vector store parameters
    collection_name: str = "document_chunks"
    persist_directory: Optional[str] = "./chroma_db"
    ledger_path: str = "./chroma_db/document_hashes.json"

    # Retrieval parameters
    top_k: int = 3

    # Generation parameters
    llm_model: str = "gemini-2.0-flash-lite"
    tokenizer_fallback_model: str = "gpt-4"
    temperature: float = 0.0
    max_tokens: int = 1000

    # Cost estimation (USD per 1K tokens)
    input_cost_per_1k: float = 0.01
    output_cost_per_1k: float = 0.03

    # Question shape limits
    min_question_words: int = 3
    max_question_chars: int = 1000

    system_prompt: str = field(default=DEFAULT_SYSTEM_PROMPT)

    api_key: Optional[str] = field(default=None, repr=False)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'RAGConfig':
        """
        Build a config from environment variables (and a .env file if present).

        Unset variables keep their dataclass defaults.
        """
        load_dotenv(env_file)
        defaults = cls()

        def _int(name: str, default: int) -> int:
            raw = _clean_env(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{name} must be an integer", {"value": raw}) from exc

        def _float(name: str, default: float) -> float:
            raw = _clean_env(name)
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{name} must be a number", {"value": raw}) from exc

        persist_directory = _clean_env("CHROMA_PERSIST_DIR") or defaults.persist_directory
        ledger_default = os.path.join(persist_directory, "document_hashes.json")

        return cls(
            chunk_size=_int("CHUNK_SIZE", defaults.chunk_size),
            chunk_overlap=_int("CHUNK_OVERLAP", defaults.chunk_overlap),
            data_dir=_clean_env("DATA_DIR") or defaults.data_dir,
            embedding_model=_clean_env("EMBEDDING_MODEL") or defaults.embedding_model,
            embedding_device=_clean_env("EMBEDDING_DEVICE") or None,
            embedding_concurrency=_int("EMBEDDING_CONCURRENCY", defaults.embedding_concurrency),
            persist_directory=persist_directory,
            ledger_path=_clean_env("LEDGER_PATH") or ledger_default,
            top_k=_int("TOP_K", defaults.top_k),
            llm_model=_clean_env("LLM_MODEL") or defaults.llm_model,
            temperature=_float("TEMPERATURE", defaults.temperature),
            max_tokens=_int("MAX_TOKENS", defaults.max_tokens),
            api_key=_clean_env("GEMINI_API_KEY") or None,
            log_level=_clean_env("LOG_LEVEL") or defaults.log_level,
        )

    def validate(self, require_api_key: bool = True) -> None:
        """Raise ConfigurationError if the configuration cannot be used."""
        if require_api_key and not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is required")
        for name in ("chunk_size", "top_k", "max_tokens", "embedding_concurrency",
                     "min_question_words", "max_question_chars"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive", {name: getattr(self, name)})
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise ConfigurationError(
                "chunk_overlap must be in [0, chunk_size)",
                {"chunk_size": self.chunk_size, "chunk_overlap": self.chunk_overlap},
            )

    def to_dict(self) -> dict:
        """Convert config to dictionary (the API key is never included)."""
        return {
            'chunk_size': self.chunk_size,
            'chunk_overlap': self.chunk_overlap,
            'data_dir': self.data_dir,
            'document_extensions': list(self.document_extensions),
            'embedding_model': self.embedding_model,
            'embedding_device': self.embedding_device,
            'embedding_concurrency': self.embedding_concurrency,
            'collection_name': self.collection_name,
            'persist_directory': self.persist_directory,
            'ledger_path': self.ledger_path,
            'top_k': self.top_k,
            'llm_model': self.llm_model,
            'tokenizer_fallback_model': self.tokenizer_fallback_model,
            'temperature': self.temperature,
            'max_tokens': self.max_tokens,
            'input_cost_per_1k': self.input_cost_per_1k,
            'output_cost_per_1k': self.output_cost_per_1k,
            'min_question_words': self.min_question_words,
            'max_question_chars': self.max_question_chars,
            'system_prompt': self.system_prompt,
            'log_level': self.log_level,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RAGConfig':
        """Create config from dictionary."""
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if 'document_extensions' in values:
            values['document_extensions'] = tuple(values['document_extensions'])
        return cls(**values)
