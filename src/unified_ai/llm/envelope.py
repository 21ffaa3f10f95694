"""OpenAI-compatible response envelope for routed results."""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, Optional

from .types import UnifiedResult


def to_chat_completion(result: UnifiedResult, created: Optional[int] = None) -> Dict[str, Any]:
    if not result.success:
        raise ValueError("Only successful results can be rendered as a chat completion")

    created = created if created is not None else int(time.time())
    envelope: Dict[str, Any] = {
        "id": result.raw.get("id") or f"{result.provider}-{uuid.uuid4().hex[:12]}",
        "object": "chat.completion",
        "created": result.raw.get("created") or created,
        "model": result.model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": result.content or ""},
                "finish_reason": result.finish_reason or "stop",
            }
        ],
    }
    if result.usage is not None:
        envelope["usage"] = result.usage.to_dict()
    envelope["_provider"] = result.provider
    envelope["_fallbackUsed"] = result.fallback_used
    return envelope


def to_failure_body(result: UnifiedResult, enable_fallback: bool) -> Dict[str, Any]:
    if not enable_fallback:
        return {"error": result.error, "provider": result.provider}
    return {"error": "All AI providers failed", "details": result.error}
