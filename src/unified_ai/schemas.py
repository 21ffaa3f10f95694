"""Request bodies accepted by the HTTP surface."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class UnifiedChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Validated by hand so a bad value maps to the documented 400 body.
    messages: Any = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    preferred_provider: Optional[str] = Field(default=None, alias="preferredProvider")
    enable_fallback: Optional[bool] = Field(default=None, alias="enableFallback")


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    prompt: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
