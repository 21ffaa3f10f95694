"""Multi-turn conversation state and one-shot helpers on top of the router."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

from .llm.router import LLMRouter
from .llm.types import ChatMessage, ExhaustedError, GenerationParameters

logger = logging.getLogger(__name__)


class Conversation:
    """Owns one ordered transcript and sends each turn through the router.

    A failed turn leaves its user message in place so a retry resends the
    unanswered turn.
    """

    def __init__(self, router: LLMRouter, params: GenerationParameters | None = None) -> None:
        self._router = router
        self._params = params or router.default_parameters()
        self._history: List[ChatMessage] = []
        self.current_provider: Optional[str] = None

    def send_message(self, text: str) -> str:
        self._history.append(ChatMessage("user", text))
        result = self._router.route(self._history, self._params)
        if not result.success:
            raise ExhaustedError(result.error or "All AI providers failed", provider=result.provider)

        content = result.content or ""
        self._history.append(ChatMessage("assistant", content))
        self.current_provider = result.provider
        return content

    def set_system_instruction(self, text: str) -> None:
        self._history = [m for m in self._history if m.role != "system"]
        self._history.insert(0, ChatMessage("system", text))

    def clear_history(self) -> None:
        self._history = []
        self.current_provider = None

    def get_history(self) -> List[ChatMessage]:
        # ChatMessage is frozen, so a shallow copy is enough.
        return list(self._history)


def chat(router: LLMRouter, messages: Sequence[ChatMessage], **options: Any) -> str:
    result = router.route(messages, router.default_parameters(**options))
    if not result.success:
        raise ExhaustedError(result.error or "AI chat failed", provider=result.provider)
    return result.content or ""


def generate_text(
    router: LLMRouter,
    prompt: str,
    system_prompt: Optional[str] = None,
    **options: Any,
) -> str:
    messages: List[ChatMessage] = []
    if system_prompt:
        messages.append(ChatMessage("system", system_prompt))
    messages.append(ChatMessage("user", prompt))
    return chat(router, messages, **options)


def analyze_text(router: LLMRouter, text: str, instruction: str, **options: Any) -> str:
    conversation = Conversation(router, router.default_parameters(**options))
    conversation.set_system_instruction(instruction)
    return conversation.send_message(text)


def probe_providers(router: LLMRouter, names: Sequence[str] | None = None) -> Dict[str, bool]:
    """Sends a tiny single-attempt request to each provider."""
    results: Dict[str, bool] = {}
    base = router.default_parameters(max_tokens=10)
    for name in names or router.provider_order:
        params = replace(base, preferred_provider=name, enable_fallback=False)
        result = router.route([ChatMessage("user", "Hello, respond with OK")], params)
        results[name] = result.success and result.provider == name
        if not result.success:
            logger.info("Provider %s unavailable: %s", name, result.error)
    return results
