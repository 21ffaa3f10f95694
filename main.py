"""Entrypoint: serve the HTTP API, chat from the terminal, or probe providers."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

import uvicorn
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from unified_ai.api import create_app
from unified_ai.call_log import apply_migrations, get_connection, get_usage_summary
from unified_ai.config import load_settings
from unified_ai.conversation import Conversation, probe_providers
from unified_ai.llm.router import LLMRouter
from unified_ai.llm.types import ExhaustedError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Multi-provider AI router with automatic failover")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")

    subparsers = parser.add_subparsers(dest="command")
    serve = subparsers.add_parser("serve", help="Run the HTTP API (default)")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    chat = subparsers.add_parser("chat", help="Interactive multi-turn chat in the terminal")
    chat.add_argument("--system", default=None, help="System instruction for the conversation")
    chat.add_argument("--provider", default=None, help="Preferred provider")
    chat.add_argument("--no-fallback", action="store_true", help="Attempt only the first provider")

    subparsers.add_parser("probe", help="Check which providers answer")
    subparsers.add_parser("init-db", help="Apply SQLite migrations only")
    subparsers.add_parser("usage", help="Print logged usage per provider")
    return parser


def _run_chat(config, args) -> None:
    router = LLMRouter(config=config)
    params = router.default_parameters(
        preferred_provider=args.provider,
        enable_fallback=not args.no_fallback,
    )
    conversation = Conversation(router, params)
    if args.system:
        conversation.set_system_instruction(args.system)

    print("Type /clear to reset the conversation, /quit to exit.")
    while True:
        try:
            text = input("> ").strip()
        except EOFError:
            print()
            return
        if not text:
            continue
        if text == "/quit":
            return
        if text == "/clear":
            conversation.clear_history()
            if args.system:
                conversation.set_system_instruction(args.system)
            continue
        try:
            reply = conversation.send_message(text)
        except ExhaustedError as exc:
            print(f"[error] {exc}")
            continue
        print(f"[{conversation.current_provider}] {reply}")


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    command = args.command or "serve"

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_settings(args.settings)
    db_path = config["database"]["path"]

    if command == "init-db":
        apply_migrations(db_path)
        print(f"Database initialized at {db_path}")
        return

    if command == "usage":
        apply_migrations(db_path)
        with get_connection(db_path) as conn:
            rows = get_usage_summary(conn)
        if not rows:
            print("No calls logged yet")
        for row in rows:
            print(
                f"- {row['provider']}: calls={row['calls']} prompt_tokens={row['prompt_tokens']} "
                f"completion_tokens={row['completion_tokens']} fallbacks={row['fallbacks']}"
            )
        return

    if command == "probe":
        results = probe_providers(LLMRouter(config=config))
        for name, ok in results.items():
            print(f"- {name}: {'ok' if ok else 'unavailable'}")
        return

    if command == "chat":
        _run_chat(config, args)
        return

    server_cfg = config.get("server", {})
    uvicorn.run(
        create_app(config),
        host=getattr(args, "host", None) or server_cfg.get("host", "0.0.0.0"),
        port=getattr(args, "port", None) or int(server_cfg.get("port", 3000)),
    )


if __name__ == "__main__":
    main()
