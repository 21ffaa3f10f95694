"""Configuration loading and defaults."""

from __future__ import annotations

import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_SETTINGS: Dict[str, Any] = {
    "database": {
        "path": "data/unified_ai.db",
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
    },
    "providers": {
        "order": ["ollama", "gemini", "openai"],
        "ollama": {
            "base_url": "https://api.ollama.cloud",
            "model": "kimi-k2:1t-cloud",
        },
        "gemini": {
            "base_url": "https://generativelanguage.googleapis.com/v1beta",
            "model": "gemini-2.0-flash-exp",
            "inline_system": False,
        },
        "openai": {
            "model": "gpt-4o",
        },
    },
    "llm": {
        "temperature": 0.7,
        "top_p": 1.0,
        "max_tokens": 2048,
        "timeout_seconds": 60,
        "empty_content_is_failure": False,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(settings: Dict[str, Any]) -> Dict[str, Any]:
    priority = os.getenv("AI_PROVIDER_PRIORITY")
    if priority:
        settings["providers"]["order"] = [p.strip() for p in priority.split(",") if p.strip()]

    ollama_url = os.getenv("OLLAMA_API_URL")
    if ollama_url:
        settings["providers"]["ollama"]["base_url"] = ollama_url.rstrip("/")

    db_path = os.getenv("UNIFIED_AI_DB_PATH")
    if db_path:
        settings["database"]["path"] = db_path
    return settings


def load_settings(settings_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """Loads settings.yaml, merges it onto defaults, then applies env overrides."""
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        merged = _deep_merge(merged, user_cfg)
    return _apply_env_overrides(merged)


def provider_settings(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    return dict(config.get("providers", {}).get(name, {}) or {})
