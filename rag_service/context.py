"""
Service context.

All provider handles (embedder, completion client, tokenizer) and stores are
built once here and passed explicitly to the components that use them.
"""
from dataclasses import dataclass

from config.settings import RAGConfig

from .chunker import TextChunker
from .embedder import EmbeddingGenerator
from .generator import ResponseGenerator
from .guardrails import GuardrailEngine
from .ingestion import IngestionController
from .ledger import HashLedger
from .orchestrator import AnswerOrchestrator
from .tokens import TokenCounter
from .vector_store import VectorStore


@dataclass
class ServiceContext:
    """Shared, long-lived collaborators of one service process."""
    config: RAGConfig
    embedder: EmbeddingGenerator
    generator: ResponseGenerator
    token_counter: TokenCounter
    vector_store: VectorStore
    ledger: HashLedger
    guardrails: GuardrailEngine

    def ingestion_controller(self, show_progress: bool = False) -> IngestionController:
        return IngestionController(
            vector_store=self.vector_store,
            ledger=self.ledger,
            chunker=TextChunker(self.config.chunk_size, self.config.chunk_overlap),
            extensions=self.config.document_extensions,
            show_progress=show_progress,
        )

    def orchestrator(self) -> AnswerOrchestrator:
        return AnswerOrchestrator(
            vector_store=self.vector_store,
            generator=self.generator,
            token_counter=self.token_counter,
            guardrails=self.guardrails,
            system_prompt=self.config.system_prompt,
            top_k=self.config.top_k,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
            input_cost_per_1k=self.config.input_cost_per_1k,
            output_cost_per_1k=self.config.output_cost_per_1k,
        )


def build_guardrails(config: RAGConfig) -> GuardrailEngine:
    return GuardrailEngine(
        min_question_words=config.min_question_words,
        max_question_chars=config.max_question_chars,
    )


def build_context(config: RAGConfig) -> ServiceContext:
    """
    Build every collaborator from a validated config.

    Raises:
        ConfigurationError: if the config is invalid
    """
    config.validate()

    embedder = EmbeddingGenerator(config.embedding_model, device=config.embedding_device)
    vector_store = VectorStore(
        embedder,
        collection_name=config.collection_name,
        persist_directory=config.persist_directory,
        embedding_concurrency=config.embedding_concurrency,
    )

    return ServiceContext(
        config=config,
        embedder=embedder,
        generator=ResponseGenerator(config.llm_model, api_key=config.api_key),
        token_counter=TokenCounter(config.llm_model, config.tokenizer_fallback_model),
        vector_store=vector_store,
        ledger=HashLedger(config.ledger_path, vector_store),
        guardrails=build_guardrails(config),
    )
