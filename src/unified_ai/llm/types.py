"""Shared LLM data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unsupported message role: {self.role!r}")
        if not isinstance(self.content, str):
            raise ValueError("Message content must be a string")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        if not isinstance(data, dict):
            raise ValueError("Message must be an object with role and content")
        return cls(role=data.get("role"), content=data.get("content"))

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class GenerationParameters:
    temperature: float = 0.7
    top_p: float = 1.0
    max_tokens: int = 2048
    model: Optional[str] = None
    preferred_provider: Optional[str] = None
    enable_fallback: bool = True
    timeout_seconds: float = 60


@dataclass
class Usage:
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class UnifiedResult:
    """Provider-agnostic outcome of one adapter call or one routed request.

    ``content`` is set when ``success`` is true, ``error`` otherwise.
    ``error_type`` classifies a failure: ``configuration``, ``transport``,
    ``upstream`` or ``unknown_provider``.
    """

    success: bool
    provider: str
    content: Optional[str] = None
    error: Optional[str] = None
    usage: Optional[Usage] = None
    model: Optional[str] = None
    finish_reason: str = "stop"
    error_type: Optional[str] = None
    fallback_used: bool = False
    latency_ms: int = 0
    attempts: List[str] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, provider: str, content: str, **kwargs: Any) -> "UnifiedResult":
        return cls(success=True, provider=provider, content=content, **kwargs)

    @classmethod
    def failure(cls, provider: str, error: str, **kwargs: Any) -> "UnifiedResult":
        return cls(success=False, provider=provider, error=error, **kwargs)


class ProviderError(RuntimeError):
    """Provider failed to return a valid generation."""


class ConfigurationError(ProviderError):
    """Provider credential is missing or still a placeholder."""


class ExhaustedError(ProviderError):
    """Every provider attempted for a request failed."""

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider
