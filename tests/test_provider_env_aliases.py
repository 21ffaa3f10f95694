import pytest

from unified_ai.llm.providers.base import is_placeholder, require_credential
from unified_ai.llm.providers.gemini_provider import GeminiProvider
from unified_ai.llm.providers.ollama_provider import OllamaProvider
from unified_ai.llm.providers.openai_provider import OpenAIProvider
from unified_ai.llm.types import ChatMessage, ConfigurationError, GenerationParameters


def test_gemini_uses_google_api_key_alias(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_API_KEY", "test-key")

    provider = GeminiProvider()
    assert provider._api_key == "test-key"
    assert provider.configured is True


def test_ollama_reads_base_url_from_env(monkeypatch):
    monkeypatch.setenv("OLLAMA_API_URL", "http://localhost:11434/")

    provider = OllamaProvider(api_key="k")
    assert provider._base_url == "http://localhost:11434"


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "PLACEHOLDER_API_KEY", "your-api-key-here", "your_openai_api_key"],
)
def test_placeholder_values_count_as_missing(value):
    assert is_placeholder(value) is True


def test_real_looking_key_is_not_a_placeholder():
    assert is_placeholder("sk-live-123") is False


@pytest.mark.parametrize(
    "provider_cls, env, expected",
    [
        (OllamaProvider, "OLLAMA_API_KEY", "OLLAMA_API_KEY not configured"),
        (GeminiProvider, "GEMINI_API_KEY", "GEMINI_API_KEY not configured"),
        (OpenAIProvider, "OPENAI_API_KEY", "OPENAI_API_KEY not configured"),
    ],
)
def test_missing_credential_fails_fast_without_http(monkeypatch, provider_cls, env, expected):
    monkeypatch.setenv(env, "PLACEHOLDER_API_KEY")
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    def fail_post(*args, **kwargs):
        raise AssertionError("no HTTP call expected")

    monkeypatch.setattr("requests.post", fail_post)

    result = provider_cls().generate([ChatMessage("user", "hi")], GenerationParameters())
    assert result.success is False
    assert result.error == expected
    assert result.provider == provider_cls.name
    assert result.error_type == "configuration"


def test_require_credential_raises_configuration_error():
    with pytest.raises(ConfigurationError, match="OLLAMA_API_KEY not configured"):
        require_credential("your-api-key-here", "OLLAMA_API_KEY")

    assert require_credential("sk-live-123", "OPENAI_API_KEY") == "sk-live-123"
