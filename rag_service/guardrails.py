"""
Guardrail engine.

Questions go through an ordered sequence of checks; the first one that
flags blocks the request:

1. prompt injection
2. sensitive data
3. domain membership (generic small talk without any domain keyword)
4. length / shape

The domain check runs before the length check so that a short greeting is
reported as OUT_OF_DOMAIN rather than INVALID_QUERY. A question without
domain keywords that is not small talk is deliberately let through to the
length check.

Answers are checked for system-prompt leakage only.

Patterns are compiled once per engine and never mutated, so a single engine
can serve concurrent requests.
"""
import logging
import re
from typing import Callable, Optional, Sequence, Tuple

from config import guardrail_rules

from .data_models import GuardrailResult, PolicyViolation

logger = logging.getLogger(__name__)

GuardrailCheck = Callable[[str], Optional[GuardrailResult]]


def _compile(patterns: Sequence[str]) -> Tuple[re.Pattern, ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _matches_any(text: str, patterns: Sequence[re.Pattern]) -> bool:
    return any(p.search(text) for p in patterns)


def _preview(text: str, limit: int = 60) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class GuardrailEngine:
    """Evaluates questions and answers against the guardrail rules."""

    def __init__(
        self,
        min_question_words: int = 3,
        max_question_chars: int = 1000,
        prompt_injection_patterns: Sequence[str] = guardrail_rules.PROMPT_INJECTION_PATTERNS,
        sensitive_data_patterns: Sequence[str] = guardrail_rules.SENSITIVE_DATA_PATTERNS,
        domain_keywords: Sequence[str] = guardrail_rules.DOMAIN_KEYWORDS,
        generic_patterns: Sequence[str] = guardrail_rules.GENERIC_PATTERNS,
        system_leak_patterns: Sequence[str] = guardrail_rules.SYSTEM_LEAK_PATTERNS,
        rules_version: str = guardrail_rules.RULES_VERSION
    ):
        self.min_question_words = min_question_words
        self.max_question_chars = max_question_chars
        self.rules_version = rules_version

        self._prompt_injection = _compile(prompt_injection_patterns)
        self._sensitive_data = _compile(sensitive_data_patterns)
        self._generic = _compile(generic_patterns)
        self._system_leak = _compile(system_leak_patterns)
        self._domain_keywords = tuple(k.lower() for k in domain_keywords)

        # Order matters: the first check that blocks wins
        self.question_checks: Tuple[Tuple[str, GuardrailCheck], ...] = (
            ("prompt_injection", self.check_prompt_injection),
            ("sensitive_data", self.check_sensitive_data),
            ("domain", self.check_domain),
            ("length", self.check_question_length),
        )

    def contains_domain_keyword(self, question: str) -> bool:
        lowered = question.lower()
        return any(keyword in lowered for keyword in self._domain_keywords)

    def is_generic_question(self, question: str) -> bool:
        return _matches_any(question, self._generic)

    def check_prompt_injection(self, question: str) -> Optional[GuardrailResult]:
        if _matches_any(question, self._prompt_injection):
            logger.warning("Prompt injection detected: %r", _preview(question))
            return GuardrailResult.block(
                PolicyViolation.PROMPT_INJECTION,
                "Tentativa de manipulação de prompt detectada",
            )
        return None

    def check_sensitive_data(self, question: str) -> Optional[GuardrailResult]:
        if _matches_any(question, self._sensitive_data):
            logger.warning("Sensitive data request detected: %r", _preview(question))
            return GuardrailResult.block(
                PolicyViolation.SENSITIVE_DATA,
                "Solicitação de dados sensíveis não é permitida",
            )
        return None

    def check_domain(self, question: str) -> Optional[GuardrailResult]:
        if not self.contains_domain_keyword(question) and self.is_generic_question(question):
            return GuardrailResult.block(
                PolicyViolation.OUT_OF_DOMAIN,
                "Pergunta fora do domínio. Este sistema responde apenas sobre "
                "Vertex AI, Neo4j e funil educacional.",
            )
        return None

    def check_question_length(self, question: str) -> Optional[GuardrailResult]:
        if len(question.split()) < self.min_question_words:
            return GuardrailResult.block(
                PolicyViolation.INVALID_QUERY,
                "Pergunta muito curta ou inespecífica",
            )
        if len(question) > self.max_question_chars:
            return GuardrailResult.block(
                PolicyViolation.QUERY_TOO_LONG,
                "Pergunta excede o tamanho máximo permitido",
            )
        return None

    def check_question(self, question: str) -> GuardrailResult:
        """Run the question checks in order and return the first block, if any."""
        for _name, check in self.question_checks:
            result = check(question)
            if result is not None:
                return result
        return GuardrailResult.passed()

    def check_response(self, answer: str) -> GuardrailResult:
        """Block answers that leak system-level framing."""
        if _matches_any(answer, self._system_leak):
            logger.warning("System prompt leak detected in response")
            return GuardrailResult.block(
                PolicyViolation.SYSTEM_LEAK,
                "Resposta contém informações do sistema",
            )
        return GuardrailResult.passed()


default_engine = GuardrailEngine()


def check_question(question: str) -> GuardrailResult:
    """Check a question with the default rules."""
    return default_engine.check_question(question)


def check_response(answer: str) -> GuardrailResult:
    """Check a generated answer with the default rules."""
    return default_engine.check_response(answer)
