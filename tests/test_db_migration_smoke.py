from unified_ai.call_log import apply_migrations, get_connection, get_usage_summary, log_llm_call
from unified_ai.llm.types import UnifiedResult, Usage
from unified_ai.utils import json_dumps


REQUIRED_TABLES = {
    "schema_migrations",
    "llm_calls",
}


def test_db_migrations_are_idempotent(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        tables = {row["name"] for row in rows}

    assert REQUIRED_TABLES.issubset(tables)


def test_usage_summary_groups_by_provider(tmp_path):
    db_path = str(tmp_path / "app.db")
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        log_llm_call(
            conn,
            UnifiedResult.ok("gemini", "a", usage=Usage(3, 4, 7), fallback_used=True, attempts=["ollama", "gemini"]),
        )
        log_llm_call(conn, UnifiedResult.ok("gemini", "b", model="gemini-2.0-flash-exp"))
        row = log_llm_call(conn, UnifiedResult.ok("openai", "c", usage=Usage(1, 1, 2)))
        summary = get_usage_summary(conn)

    assert row["provider"] == "openai"
    assert summary == [
        {"provider": "gemini", "calls": 2, "prompt_tokens": 3, "completion_tokens": 4, "fallbacks": 1},
        {"provider": "openai", "calls": 1, "prompt_tokens": 1, "completion_tokens": 1, "fallbacks": 0},
    ]


def test_json_dumps_keeps_empty_containers():
    assert json_dumps([]) == "[]"
    assert json_dumps(None) == "{}"
