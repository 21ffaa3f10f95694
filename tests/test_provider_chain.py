import pytest

from unified_ai.config import load_settings
from unified_ai.llm.registry import DEFAULT_PROVIDER_ORDER, build_provider_chain, parse_provider_order


def test_default_chain_without_preference():
    assert build_provider_chain() == ["ollama", "gemini", "openai"]


@pytest.mark.parametrize("preferred", DEFAULT_PROVIDER_ORDER)
def test_preferred_provider_moves_to_front_keeping_relative_order(preferred):
    chain = build_provider_chain(preferred)

    assert chain[0] == preferred
    assert sorted(chain) == sorted(DEFAULT_PROVIDER_ORDER)
    assert chain[1:] == [p for p in DEFAULT_PROVIDER_ORDER if p != preferred]


def test_unknown_preference_is_prepended_without_removal():
    chain = build_provider_chain("anthropic")

    assert chain == ["anthropic", "ollama", "gemini", "openai"]
    assert len(chain) == len(DEFAULT_PROVIDER_ORDER) + 1


def test_chain_respects_configured_order():
    assert build_provider_chain("openai", ["gemini", "openai", "ollama"]) == ["openai", "gemini", "ollama"]


def test_parse_provider_order_drops_unknown_and_duplicates():
    assert parse_provider_order([" Gemini", "openai", "gemini", "bogus"]) == ["gemini", "openai"]


def test_parse_provider_order_falls_back_to_default_when_empty():
    assert parse_provider_order([]) == list(DEFAULT_PROVIDER_ORDER)
    assert parse_provider_order(["bogus"]) == list(DEFAULT_PROVIDER_ORDER)


def test_env_priority_overrides_settings(tmp_path, monkeypatch):
    settings = tmp_path / "settings.yaml"
    settings.write_text("providers:\n  order: [openai, ollama]\nllm:\n  max_tokens: 512\n", encoding="utf-8")
    monkeypatch.setenv("AI_PROVIDER_PRIORITY", "gemini, openai ,ollama")

    config = load_settings(str(settings))

    assert config["providers"]["order"] == ["gemini", "openai", "ollama"]
    assert config["llm"]["max_tokens"] == 512
    assert config["llm"]["temperature"] == 0.7


def test_missing_settings_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("AI_PROVIDER_PRIORITY", raising=False)
    monkeypatch.delenv("OLLAMA_API_URL", raising=False)

    config = load_settings(str(tmp_path / "missing.yaml"))

    assert config["providers"]["order"] == ["ollama", "gemini", "openai"]
    assert config["providers"]["ollama"]["base_url"] == "https://api.ollama.cloud"
