"""
Response Generator Module

Completion provider backed by the Google Gemini API.
"""
import logging
import os
from typing import Any, Dict, Optional

import google.generativeai as genai
from dotenv import load_dotenv

from .exceptions import CompletionProviderError, ConfigurationError

logger = logging.getLogger(__name__)

EMPTY_COMPLETION = "Sem resposta"


class ResponseGenerator:
    """
    Generates completions with Gemini.

    Implements ``complete(system_prompt, user_prompt, temperature, max_tokens)``.
    Every API failure is surfaced as CompletionProviderError; nothing is retried.
    """

    AVAILABLE_MODELS = {
        'gemini-2.0-flash-lite': {
            'description': 'Fast, efficient model (recommended)',
        },
        'gemini-2.0-flash': {
            'description': 'Balanced speed and quality',
        },
        'gemini-1.5-pro': {
            'description': 'Most capable model',
        },
    }

    def __init__(
        self,
        model: str = "gemini-2.0-flash-lite",
        api_key: Optional[str] = None
    ):
        """
        Initialize the response generator.

        Args:
            model: Gemini model name
            api_key: Gemini API key (or set GEMINI_API_KEY env var)
        """
        load_dotenv()

        self.model_name = model
        self.api_key = api_key or os.getenv('GEMINI_API_KEY')
        if not self.api_key:
            raise ConfigurationError(
                "Gemini API key not found. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        genai.configure(api_key=self.api_key)

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int
    ) -> str:
        """
        Generate a completion.

        Args:
            system_prompt: System instruction for the model
            user_prompt: Grounded user prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the answer

        Returns:
            Generated text, or a fixed placeholder when the model returns nothing
        """
        generation_config = genai.GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

        try:
            model = genai.GenerativeModel(self.model_name, system_instruction=system_prompt)
            response = model.generate_content(
                user_prompt,
                generation_config=generation_config
            )
        except Exception as exc:
            raise CompletionProviderError(
                "Completion request failed",
                {"model": self.model_name, "error": type(exc).__name__},
            ) from exc

        try:
            text = response.text
        except ValueError:
            # No usable candidate (empty or filtered)
            logger.warning("Completion returned no text (model=%s)", self.model_name)
            return EMPTY_COMPLETION

        return text or EMPTY_COMPLETION

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get information about the current model configuration.

        Returns:
            Dictionary with model information
        """
        return {
            'model': self.model_name,
            'available_models': list(self.AVAILABLE_MODELS.keys()),
        }
