"""
Answer Orchestrator

The request-time pipeline:
guardrail(question) -> retrieve -> grounded prompt -> completion ->
guardrail(answer) -> metrics.

Provider and storage errors are not caught here: they reach the caller
unchanged and no partial result is produced.
"""
import logging
import time
import uuid
from typing import List, Optional, Union

from .data_models import BlockedResponse, Citation, Metrics, RAGResponse
from .guardrails import GuardrailEngine
from .log_utils import log_guardrail_block, log_metrics, log_request
from .tokens import TokenCounter, estimate_cost

logger = logging.getLogger(__name__)

AnswerOutcome = Union[RAGResponse, BlockedResponse]


def build_prompt(question: str, citations: List[Citation]) -> str:
    """
    Build the grounded prompt with numbered context blocks.

    Args:
        question: User question
        citations: Retrieved context, in rank order

    Returns:
        Complete user prompt
    """
    context = "\n\n".join(
        f"[{idx}] Fonte: {c.source}\n{c.excerpt}"
        for idx, c in enumerate(citations, 1)
    )

    return f"""Você é um assistente especializado em responder perguntas sobre tecnologias educacionais, especificamente sobre Vertex AI, Neo4j e funil educacional.

CONTEXTO RECUPERADO:
{context}

INSTRUÇÕES:
1. Responda APENAS com base no contexto fornecido acima
2. Se a informação não estiver no contexto, diga claramente que não tem essa informação
3. SEMPRE cite as fontes usando o formato [número] ao mencionar informações específicas
4. Seja preciso e conciso
5. Mantenha um tom profissional e educativo

PERGUNTA: {question}

RESPOSTA:"""


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class AnswerOrchestrator:
    """
    Answers questions from retrieved context.

    The vector store must expose ``search(query, top_k)`` and the generator
    ``complete(system_prompt, user_prompt, temperature, max_tokens)``.
    """

    def __init__(
        self,
        vector_store,
        generator,
        token_counter: TokenCounter,
        guardrails: GuardrailEngine,
        system_prompt: str,
        top_k: int = 3,
        temperature: float = 0.0,
        max_tokens: int = 1000,
        input_cost_per_1k: float = 0.01,
        output_cost_per_1k: float = 0.03
    ):
        self.vector_store = vector_store
        self.generator = generator
        self.token_counter = token_counter
        self.guardrails = guardrails
        self.system_prompt = system_prompt
        self.top_k = top_k
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.input_cost_per_1k = input_cost_per_1k
        self.output_cost_per_1k = output_cost_per_1k

    def answer(self, question: str) -> AnswerOutcome:
        """
        Answer a question that already passed the input guardrails.

        Returns:
            RAGResponse, or BlockedResponse when the generated answer leaks
            system-level framing
        """
        start = time.perf_counter()

        # 1. Retrieval
        retrieval_start = time.perf_counter()
        citations = self.vector_store.search(question, self.top_k)
        retrieval_ms = _elapsed_ms(retrieval_start)
        logger.info("Retrieved %d citations in %.2f ms", len(citations), retrieval_ms)

        # 2-3. Prompt and its token count
        prompt = build_prompt(question, citations)
        prompt_tokens = self.token_counter.count(prompt)

        # 4. Generation
        llm_start = time.perf_counter()
        answer = self.generator.complete(
            self.system_prompt, prompt, self.temperature, self.max_tokens
        )
        llm_ms = _elapsed_ms(llm_start)

        # 5. Completion tokens
        completion_tokens = self.token_counter.count(answer)

        # 6. Output guardrail
        output_check = self.guardrails.check_response(answer)
        if output_check.blocked:
            return BlockedResponse.from_result(output_check)

        # 7. Metrics
        metrics = Metrics(
            total_latency_ms=_elapsed_ms(start),
            retrieval_latency_ms=retrieval_ms,
            llm_latency_ms=llm_ms,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            estimated_cost_usd=estimate_cost(
                prompt_tokens, completion_tokens,
                self.input_cost_per_1k, self.output_cost_per_1k,
            ),
            top_k_used=self.top_k,
            context_size_chars=sum(len(c.excerpt) for c in citations),
        )
        return RAGResponse(answer=answer, citations=citations, metrics=metrics)

    def ask(self, question: str, request_id: Optional[str] = None) -> AnswerOutcome:
        """
        Full request/response cycle: input guardrail, answer, request logging.
        """
        request_id = request_id or uuid.uuid4().hex
        log_request(request_id, question)

        input_check = self.guardrails.check_question(question)
        if input_check.blocked:
            blocked = BlockedResponse.from_result(input_check, request_id)
            log_guardrail_block(request_id, blocked.reason, blocked.policy_violated.value)
            return blocked

        outcome = self.answer(question)
        outcome.request_id = request_id
        if outcome.blocked:
            log_guardrail_block(request_id, outcome.reason, outcome.policy_violated.value)
        else:
            log_metrics(request_id, outcome.metrics)
        return outcome
