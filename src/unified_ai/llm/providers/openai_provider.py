"""OpenAI Chat Completions provider."""

from __future__ import annotations

import os
import time
from typing import Any, Optional, Sequence

import openai
from openai import OpenAI

from ..types import ChatMessage, ConfigurationError, GenerationParameters, UnifiedResult
from .base import (
    configuration_failure,
    http_error,
    is_placeholder,
    messages_payload,
    parse_chat_completion,
    require_credential,
)

DEFAULT_MODEL = "gpt-4o"


class OpenAIProvider:
    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        default_model: str = DEFAULT_MODEL,
        empty_content_is_failure: bool = False,
        client: Any = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else os.getenv("OPENAI_API_KEY")
        self.default_model = default_model
        self.empty_content_is_failure = empty_content_is_failure
        self._client = client
        if self._client is None and self.configured:
            # One attempt per provider; the router owns failover.
            self._client = OpenAI(api_key=self._api_key, base_url=base_url, max_retries=0)

    @property
    def configured(self) -> bool:
        return not is_placeholder(self._api_key)

    def generate(self, messages: Sequence[ChatMessage], params: GenerationParameters) -> UnifiedResult:
        model = params.model or self.default_model
        try:
            require_credential(self._api_key, "OPENAI_API_KEY")
        except ConfigurationError as exc:
            return configuration_failure(self.name, exc, model)

        start = time.perf_counter()
        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=messages_payload(messages),
                temperature=params.temperature,
                top_p=params.top_p,
                max_tokens=params.max_tokens,
                timeout=params.timeout_seconds,
            )
        except openai.APIStatusError as exc:
            body = exc.response.text if exc.response is not None else str(exc)
            return UnifiedResult.failure(
                self.name,
                http_error("OpenAI", exc.status_code, body),
                model=model,
                error_type="upstream",
            )
        except openai.APIError as exc:
            return UnifiedResult.failure(
                self.name,
                f"OpenAI request failed: {exc}",
                model=model,
                error_type="transport",
            )

        result = parse_chat_completion(response.model_dump(), self.name, model, self.empty_content_is_failure)
        result.latency_ms = int((time.perf_counter() - start) * 1000)
        return result
