"""Google Gemini REST provider."""

from __future__ import annotations

import os
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from ..types import ChatMessage, ConfigurationError, GenerationParameters, UnifiedResult
from .base import configuration_failure, http_error, is_placeholder, require_credential, usage_from_counts

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash-exp"


def translate_messages(
    messages: Sequence[ChatMessage],
    inline_system: bool = False,
) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """Converts chat turns to Gemini ``contents``.

    Gemini has no inline system role and calls the assistant ``model``.
    System text is returned separately for ``systemInstruction`` or, with
    ``inline_system``, prepended to the final user turn.
    """
    system_parts = [m.content for m in messages if m.role == "system"]
    system_text = "\n\n".join(system_parts) if system_parts else None

    contents = [
        {
            "role": "model" if m.role == "assistant" else "user",
            "parts": [{"text": m.content}],
        }
        for m in messages
        if m.role != "system"
    ]

    if not inline_system or system_text is None:
        return contents, system_text

    for turn in reversed(contents):
        if turn["role"] == "user":
            turn["parts"] = [{"text": f"{system_text}\n\n{turn['parts'][0]['text']}"}]
            break
    else:
        contents.append({"role": "user", "parts": [{"text": system_text}]})
    return contents, None


def parse_response(
    data: Any,
    model: str,
    empty_content_is_failure: bool = False,
) -> UnifiedResult:
    if not isinstance(data, dict):
        data = {}

    candidates = data.get("candidates")
    if not isinstance(candidates, list):
        candidates = []
    first = candidates[0] if candidates and isinstance(candidates[0], dict) else {}
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        parts = []
    text = "".join(
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    )

    usage = None
    meta = data.get("usageMetadata")
    if isinstance(meta, dict):
        usage = usage_from_counts(
            meta.get("promptTokenCount"),
            meta.get("candidatesTokenCount"),
            meta.get("totalTokenCount"),
        )

    if empty_content_is_failure and not text.strip():
        return UnifiedResult.failure(
            "gemini",
            "gemini returned empty content",
            model=model,
            error_type="upstream",
        )

    finish_reason = first.get("finishReason")
    return UnifiedResult.ok(
        "gemini",
        text,
        usage=usage,
        model=model,
        finish_reason=finish_reason.lower() if isinstance(finish_reason, str) else "stop",
        raw={"responseId": data.get("responseId")},
    )


class GeminiProvider:
    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        inline_system: bool = False,
        empty_content_is_failure: bool = False,
    ) -> None:
        if api_key is None:
            api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.inline_system = inline_system
        self.empty_content_is_failure = empty_content_is_failure

    @property
    def configured(self) -> bool:
        return not is_placeholder(self._api_key)

    def build_payload(self, messages: Sequence[ChatMessage], params: GenerationParameters) -> dict:
        contents, system_text = translate_messages(messages, inline_system=self.inline_system)
        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": params.temperature,
                "topP": params.top_p,
                "maxOutputTokens": params.max_tokens,
            },
        }
        if system_text is not None:
            payload["systemInstruction"] = {"parts": [{"text": system_text}]}
        return payload

    def generate(self, messages: Sequence[ChatMessage], params: GenerationParameters) -> UnifiedResult:
        model = params.model or self.default_model
        try:
            require_credential(self._api_key, "GEMINI_API_KEY")
        except ConfigurationError as exc:
            return configuration_failure(self.name, exc, model)

        url = f"{self._base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": self._api_key,
            "Content-Type": "application/json",
        }

        start = time.perf_counter()
        try:
            res = requests.post(
                url,
                headers=headers,
                json=self.build_payload(messages, params),
                timeout=params.timeout_seconds,
            )
        except requests.RequestException as exc:
            return UnifiedResult.failure(
                self.name,
                f"Gemini request failed: {exc}",
                model=model,
                error_type="transport",
            )

        if not res.ok:
            return UnifiedResult.failure(
                self.name,
                http_error("Gemini", res.status_code, res.text),
                model=model,
                error_type="upstream",
            )

        try:
            data = res.json()
        except ValueError as exc:
            return UnifiedResult.failure(
                self.name,
                f"Gemini returned malformed JSON: {exc}",
                model=model,
                error_type="transport",
            )

        result = parse_response(data, model, self.empty_content_is_failure)
        result.latency_ms = int((time.perf_counter() - start) * 1000)
        return result
