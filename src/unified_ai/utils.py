"""Utility helpers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def json_dumps(data: Dict[str, Any] | list[Any] | None) -> str:
    return json.dumps(data if data is not None else {}, ensure_ascii=True, sort_keys=True)
