"""
Token counting and cost estimation.
"""
import logging
import math
from typing import Optional

import tiktoken

logger = logging.getLogger(__name__)


def _load_encoding(model: str, fallback_model: str):
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        logger.info("No tokenizer registered for %s, using %s", model, fallback_model)
    except Exception as exc:
        logger.warning("Tokenizer for %s unavailable (%s), using %s", model, exc, fallback_model)

    try:
        return tiktoken.encoding_for_model(fallback_model)
    except Exception as exc:
        logger.warning("Fallback tokenizer unavailable (%s); counting tokens as chars/4", exc)
        return None


class TokenCounter:
    """
    Counts tokens with the tokenizer of the target completion model.

    Falls back to the tokenizer of ``fallback_model`` and finally to a
    ``ceil(len(text) / 4)`` estimate.
    """

    def __init__(self, model: str, fallback_model: str = "gpt-4", encoding=None):
        self.model = model
        self.fallback_model = fallback_model
        self._encoding = encoding if encoding is not None else _load_encoding(model, fallback_model)

    @property
    def encoding_name(self) -> Optional[str]:
        return getattr(self._encoding, 'name', None)

    @staticmethod
    def estimate(text: str) -> int:
        """Approximate token count: 1 token ~= 4 characters."""
        return math.ceil(len(text) / 4)

    def count(self, text: str) -> int:
        if self._encoding is None:
            return self.estimate(text)
        try:
            return len(self._encoding.encode(text))
        except Exception as exc:
            logger.debug("Tokenization failed (%s), estimating from length", type(exc).__name__)
            return self.estimate(text)


def estimate_cost(
    prompt_tokens: int,
    completion_tokens: int,
    input_cost_per_1k: float = 0.01,
    output_cost_per_1k: float = 0.03
) -> float:
    """USD cost of a request from fixed per-1000-token rates."""
    input_cost = (prompt_tokens / 1000) * input_cost_per_1k
    output_cost = (completion_tokens / 1000) * output_cost_per_1k
    return input_cost + output_cost
