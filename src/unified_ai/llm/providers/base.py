"""Chat provider interface and helpers shared by the adapters."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..types import ChatMessage, ConfigurationError, GenerationParameters, UnifiedResult, Usage

PLACEHOLDER_KEYS = frozenset(
    {
        "placeholder_api_key",
        "your-api-key-here",
        "your_api_key_here",
        "changeme",
    }
)


class ChatProvider(Protocol):
    name: str

    def generate(self, messages: Sequence[ChatMessage], params: GenerationParameters) -> UnifiedResult:
        ...


def is_placeholder(value: Optional[str]) -> bool:
    if value is None or not value.strip():
        return True
    lowered = value.strip().lower()
    if lowered in PLACEHOLDER_KEYS:
        return True
    return lowered.startswith(("your-", "your_")) and lowered.endswith("key")


def require_credential(api_key: Optional[str], env_name: str) -> str:
    if is_placeholder(api_key):
        raise ConfigurationError(f"{env_name} not configured")
    return api_key


def configuration_failure(provider: str, exc: ConfigurationError, model: str) -> UnifiedResult:
    return UnifiedResult.failure(provider, str(exc), model=model, error_type="configuration")


def messages_payload(messages: Sequence[ChatMessage]) -> List[Dict[str, str]]:
    return [message.to_dict() for message in messages]


def http_error(label: str, status_code: int, body: str) -> str:
    return f"{label} API error: {status_code} - {body}"


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def usage_from_counts(prompt: Any, completion: Any, total: Any) -> Usage:
    return Usage(
        prompt_tokens=_as_int(prompt),
        completion_tokens=_as_int(completion),
        total_tokens=_as_int(total),
    )


def parse_chat_completion(
    data: Any,
    provider: str,
    model: str,
    empty_content_is_failure: bool = False,
) -> UnifiedResult:
    """Normalizes an OpenAI-style ``chat.completion`` body."""
    if not isinstance(data, dict):
        data = {}

    choices = data.get("choices")
    if not isinstance(choices, list):
        choices = []
    first = choices[0] if choices and isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if not content:
        # Native Ollama /api/chat and /api/generate bodies.
        native = data.get("message")
        content = (native.get("content") if isinstance(native, dict) else None) or data.get("response")
    text = content if isinstance(content, str) else ""

    usage = None
    raw_usage = data.get("usage")
    if isinstance(raw_usage, dict):
        usage = usage_from_counts(
            raw_usage.get("prompt_tokens"),
            raw_usage.get("completion_tokens"),
            raw_usage.get("total_tokens"),
        )

    if empty_content_is_failure and not text.strip():
        return UnifiedResult.failure(
            provider,
            f"{provider} returned empty content",
            model=model,
            error_type="upstream",
        )

    return UnifiedResult.ok(
        provider,
        text,
        usage=usage,
        model=data.get("model") or model,
        finish_reason=first.get("finish_reason") or "stop",
        raw={"id": data.get("id"), "created": data.get("created")},
    )
