"""
Tests for the Gemini completion provider with the client patched out.
"""
import pytest

from rag_service import generator as generator_module
from rag_service.exceptions import CompletionProviderError, ConfigurationError
from rag_service.generator import EMPTY_COMPLETION, ResponseGenerator


class FakeResponse:
    def __init__(self, text=None, blocked=False):
        self._text = text
        self._blocked = blocked

    @property
    def text(self):
        if self._blocked:
            raise ValueError("response has no candidates")
        return self._text


def _patch_model(monkeypatch, response=None, error=None):
    created = []

    class FakeModel:
        def __init__(self, model_name, system_instruction=None):
            self.model_name = model_name
            self.system_instruction = system_instruction
            self.requests = []
            created.append(self)

        def generate_content(self, prompt, generation_config=None):
            self.requests.append((prompt, generation_config))
            if error is not None:
                raise error
            return response

    monkeypatch.setattr(generator_module.genai, "GenerativeModel", FakeModel)
    monkeypatch.setattr(generator_module.genai, "configure", lambda **kwargs: None)
    return created


class TestResponseGenerator:
    """Test request building and error translation."""

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.setattr(generator_module, "load_dotenv", lambda *args, **kwargs: False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            ResponseGenerator(api_key=None)

    def test_complete(self, monkeypatch):
        created = _patch_model(monkeypatch, response=FakeResponse("Resposta [1]."))
        generator = ResponseGenerator(model="gemini-2.0-flash", api_key="test-key")

        answer = generator.complete("system", "user prompt", 0.0, 256)

        assert answer == "Resposta [1]."
        model = created[0]
        assert model.model_name == "gemini-2.0-flash"
        assert model.system_instruction == "system"
        prompt, config = model.requests[0]
        assert prompt == "user prompt"
        assert config.temperature == 0.0
        assert config.max_output_tokens == 256

    def test_empty_text_placeholder(self, monkeypatch):
        _patch_model(monkeypatch, response=FakeResponse(""))

        assert ResponseGenerator(api_key="test-key").complete("s", "u", 0.0, 10) == EMPTY_COMPLETION

    def test_no_candidates_placeholder(self, monkeypatch):
        _patch_model(monkeypatch, response=FakeResponse(blocked=True))

        assert ResponseGenerator(api_key="test-key").complete("s", "u", 0.0, 10) == EMPTY_COMPLETION

    def test_api_error_translated(self, monkeypatch):
        _patch_model(monkeypatch, error=TimeoutError("deadline exceeded"))

        with pytest.raises(CompletionProviderError) as excinfo:
            ResponseGenerator(api_key="test-key").complete("s", "u", 0.0, 10)

        assert excinfo.value.details["error"] == "TimeoutError"
        assert isinstance(excinfo.value.__cause__, TimeoutError)

    def test_model_info(self, monkeypatch):
        _patch_model(monkeypatch)
        info = ResponseGenerator(api_key="test-key").get_model_info()

        assert info['model'] == "gemini-2.0-flash-lite"
        assert "gemini-2.0-flash-lite" in info['available_models']
