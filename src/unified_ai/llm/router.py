"""Sequential provider failover."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .providers.base import ChatProvider
from .registry import build_default_providers, build_provider_chain, parse_provider_order
from .types import ChatMessage, ConfigurationError, GenerationParameters, UnifiedResult

logger = logging.getLogger(__name__)

CallLog = Callable[[UnifiedResult], None]


class LLMRouter:
    """Tries providers strictly in chain order and returns the first success.

    Adapter failures never escape ``route``: the result is either the first
    success or a failure carrying the error of the last provider attempted.

    ``fallback_used`` is true whenever the provider that answered is not the
    head of the chain, so it is also set when no preferred provider was given
    and the first default provider failed. Callers that only care about a
    missed preference should check ``params.preferred_provider`` as well.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        providers: Mapping[str, ChatProvider] | None = None,
        provider_order: Iterable[str] | None = None,
        call_log: CallLog | None = None,
    ) -> None:
        self.config = config
        self.providers = dict(providers if providers is not None else build_default_providers(config))
        if provider_order is None:
            provider_order = parse_provider_order(config.get("providers", {}).get("order"))
        self.provider_order = list(provider_order)
        self.call_log = call_log

    def default_parameters(self, **overrides: Any) -> GenerationParameters:
        llm_cfg = self.config.get("llm", {})
        params = GenerationParameters(
            temperature=float(llm_cfg.get("temperature", 0.7)),
            top_p=float(llm_cfg.get("top_p", 1.0)),
            max_tokens=int(llm_cfg.get("max_tokens", 2048)),
            timeout_seconds=float(llm_cfg.get("timeout_seconds", 60)),
        )
        overrides = {key: value for key, value in overrides.items() if value is not None}
        return replace(params, **overrides)

    def chain_for(self, preferred_provider: Optional[str] = None) -> List[str]:
        return build_provider_chain(preferred_provider, self.provider_order)

    def _attempt(self, name: str, messages: Sequence[ChatMessage], params: GenerationParameters) -> UnifiedResult:
        provider = self.providers.get(name)
        if provider is None:
            return UnifiedResult.failure(name, f"Unknown provider: {name}", error_type="unknown_provider")
        try:
            return provider.generate(messages, params)
        except ConfigurationError as exc:
            return UnifiedResult.failure(name, str(exc), error_type="configuration")
        except Exception as exc:
            logger.exception("Provider %s raised while generating", name)
            return UnifiedResult.failure(name, str(exc) or type(exc).__name__, error_type="transport")

    def _record(self, result: UnifiedResult) -> None:
        if self.call_log is None:
            return
        try:
            self.call_log(result)
        except Exception as exc:
            logger.warning("Failed to record LLM call for %s: %s", result.provider, exc)

    def route(
        self,
        messages: Sequence[ChatMessage],
        params: GenerationParameters | None = None,
    ) -> UnifiedResult:
        if not messages:
            raise ValueError("messages must not be empty")
        params = params or self.default_parameters()
        snapshot = tuple(messages)
        chain = self.chain_for(params.preferred_provider)
        if not chain:
            return UnifiedResult.failure("none", "No AI providers configured")

        attempts: List[str] = []
        last: Optional[UnifiedResult] = None
        for index, name in enumerate(chain):
            # A model override names a model of the first provider only.
            attempt_params = params if index == 0 else replace(params, model=None)
            logger.info("Trying AI provider: %s", name)
            attempts.append(name)

            result = self._attempt(name, snapshot, attempt_params)
            if result.success:
                result.fallback_used = index > 0
                result.attempts = attempts
                logger.info("AI request successful with provider: %s", name)
                self._record(result)
                return result

            last = result
            logger.warning("Provider %s failed: %s", name, result.error)
            if not params.enable_fallback:
                break
            if index < len(chain) - 1:
                logger.info("Falling back to next provider")

        return UnifiedResult.failure(
            last.provider,
            last.error or "Unknown error",
            model=last.model,
            error_type=last.error_type,
            attempts=attempts,
        )
