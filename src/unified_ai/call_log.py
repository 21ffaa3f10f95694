"""SQLite log of successful routed LLM calls."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, List

from .llm.types import UnifiedResult
from .utils import json_dumps, utc_now_iso

MIGRATIONS: list[tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS llm_calls (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            provider TEXT NOT NULL,
            model TEXT NOT NULL DEFAULT '',
            prompt_tokens INTEGER,
            completion_tokens INTEGER,
            total_tokens INTEGER,
            latency_ms INTEGER NOT NULL DEFAULT 0,
            fallback_used INTEGER NOT NULL DEFAULT 0,
            attempts_json TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_llm_calls_provider_created ON llm_calls(provider, created_at);
        """,
    ),
]


def get_connection(db_path: str) -> sqlite3.Connection:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def apply_migrations(db_path: str) -> None:
    with get_connection(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
            """
        )
        applied = {
            row["version"]
            for row in conn.execute("SELECT version FROM schema_migrations").fetchall()
        }
        for version, sql in MIGRATIONS:
            if version in applied:
                continue
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
                (version, utc_now_iso()),
            )
        conn.commit()


def log_llm_call(conn: sqlite3.Connection, result: UnifiedResult) -> Dict[str, Any]:
    usage = result.usage
    cur = conn.execute(
        """
        INSERT INTO llm_calls(
            provider, model, prompt_tokens, completion_tokens, total_tokens,
            latency_ms, fallback_used, attempts_json, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            result.provider,
            result.model or "",
            usage.prompt_tokens if usage else None,
            usage.completion_tokens if usage else None,
            usage.total_tokens if usage else None,
            result.latency_ms,
            int(result.fallback_used),
            json_dumps(result.attempts),
            utc_now_iso(),
        ),
    )
    conn.commit()
    row = conn.execute("SELECT * FROM llm_calls WHERE id = ?", (cur.lastrowid,)).fetchone()
    return dict(row)


def get_usage_summary(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT
          provider,
          COUNT(*) AS calls,
          COALESCE(SUM(prompt_tokens), 0) AS prompt_tokens,
          COALESCE(SUM(completion_tokens), 0) AS completion_tokens,
          COALESCE(SUM(fallback_used), 0) AS fallbacks
        FROM llm_calls
        GROUP BY provider
        ORDER BY provider
        """
    ).fetchall()
    return [dict(row) for row in rows]


class SQLiteCallLog:
    """Router ``call_log`` hook; opens a short-lived connection per call."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        apply_migrations(db_path)

    def __call__(self, result: UnifiedResult) -> None:
        with get_connection(self.db_path) as conn:
            log_llm_call(conn, result)
