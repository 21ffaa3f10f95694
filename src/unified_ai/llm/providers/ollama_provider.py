"""Ollama cloud provider (OpenAI-compatible chat completions endpoint)."""

from __future__ import annotations

import os
import time
from typing import Optional, Sequence

import requests

from ..types import ChatMessage, ConfigurationError, GenerationParameters, UnifiedResult
from .base import (
    configuration_failure,
    http_error,
    is_placeholder,
    messages_payload,
    parse_chat_completion,
    require_credential,
)

DEFAULT_BASE_URL = "https://api.ollama.cloud"
DEFAULT_MODEL = "kimi-k2:1t-cloud"


class OllamaProvider:
    name = "ollama"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        default_model: str = DEFAULT_MODEL,
        empty_content_is_failure: bool = False,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv("OLLAMA_API_KEY")
        self._base_url = (base_url or os.getenv("OLLAMA_API_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.default_model = default_model
        self.empty_content_is_failure = empty_content_is_failure

    @property
    def configured(self) -> bool:
        return not is_placeholder(self._api_key)

    def build_payload(self, messages: Sequence[ChatMessage], params: GenerationParameters, model: str) -> dict:
        return {
            "model": model,
            "messages": messages_payload(messages),
            "temperature": params.temperature,
            "top_p": params.top_p,
            "max_tokens": params.max_tokens,
        }

    def generate(self, messages: Sequence[ChatMessage], params: GenerationParameters) -> UnifiedResult:
        model = params.model or self.default_model
        try:
            require_credential(self._api_key, "OLLAMA_API_KEY")
        except ConfigurationError as exc:
            return configuration_failure(self.name, exc, model)

        url = f"{self._base_url}/v1/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        start = time.perf_counter()
        try:
            res = requests.post(
                url,
                headers=headers,
                json=self.build_payload(messages, params, model),
                timeout=params.timeout_seconds,
            )
        except requests.RequestException as exc:
            return UnifiedResult.failure(
                self.name,
                f"Ollama request failed: {exc}",
                model=model,
                error_type="transport",
            )

        if not res.ok:
            return UnifiedResult.failure(
                self.name,
                http_error("Ollama", res.status_code, res.text),
                model=model,
                error_type="upstream",
            )

        try:
            data = res.json()
        except ValueError as exc:
            return UnifiedResult.failure(
                self.name,
                f"Ollama returned malformed JSON: {exc}",
                model=model,
                error_type="transport",
            )

        result = parse_chat_completion(data, self.name, model, self.empty_content_is_failure)
        result.latency_ms = int((time.perf_counter() - start) * 1000)
        return result
