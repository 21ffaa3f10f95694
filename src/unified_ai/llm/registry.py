"""Provider registry and per-request priority chain."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..config import provider_settings
from .providers.base import ChatProvider
from .providers.gemini_provider import GeminiProvider
from .providers.ollama_provider import OllamaProvider
from .providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_ORDER = ("ollama", "gemini", "openai")
KNOWN_PROVIDERS = frozenset(DEFAULT_PROVIDER_ORDER)


def parse_provider_order(order: Iterable[str] | None) -> List[str]:
    """Normalizes a configured order, dropping unknown and repeated names."""
    parsed: List[str] = []
    for raw in order or ():
        name = str(raw).strip().lower()
        if name not in KNOWN_PROVIDERS:
            logger.warning("Ignoring unknown provider in configured order: %s", raw)
            continue
        if name not in parsed:
            parsed.append(name)
    return parsed or list(DEFAULT_PROVIDER_ORDER)


def build_provider_chain(
    preferred_provider: Optional[str] = None,
    default_order: Iterable[str] = DEFAULT_PROVIDER_ORDER,
) -> List[str]:
    """Returns the attempt order for one request.

    A preferred provider moves to the front and the rest keep their relative
    order. A preference that matches nothing is prepended without removal.
    """
    order = list(default_order)
    if not preferred_provider:
        return order
    return [preferred_provider] + [name for name in order if name != preferred_provider]


def build_default_providers(config: Dict[str, Any]) -> Dict[str, ChatProvider]:
    """Creates one adapter per backend from settings and environment credentials."""
    empty_is_failure = bool(config.get("llm", {}).get("empty_content_is_failure", False))

    ollama_cfg = provider_settings(config, "ollama")
    gemini_cfg = provider_settings(config, "gemini")
    openai_cfg = provider_settings(config, "openai")

    providers: Dict[str, ChatProvider] = {
        "ollama": OllamaProvider(
            base_url=ollama_cfg.get("base_url"),
            default_model=ollama_cfg.get("model") or "kimi-k2:1t-cloud",
            empty_content_is_failure=empty_is_failure,
        ),
        "gemini": GeminiProvider(
            base_url=gemini_cfg.get("base_url") or "https://generativelanguage.googleapis.com/v1beta",
            default_model=gemini_cfg.get("model") or "gemini-2.0-flash-exp",
            inline_system=bool(gemini_cfg.get("inline_system", False)),
            empty_content_is_failure=empty_is_failure,
        ),
        "openai": OpenAIProvider(
            base_url=openai_cfg.get("base_url"),
            default_model=openai_cfg.get("model") or "gpt-4o",
            empty_content_is_failure=empty_is_failure,
        ),
    }
    for name, provider in providers.items():
        if not provider.configured:
            logger.info("Provider %s has no credential; it will report a configuration error", name)
    return providers
