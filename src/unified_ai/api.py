"""
HTTP surface for the unified AI router.

Endpoints:
- POST /api/unified    OpenAI-compatible envelope with _provider/_fallbackUsed
- POST /api/ai/chat    same routing, plus success/provider/usage fields
- POST /api/ai/generate  prompt + optional system prompt, returns text
- GET  /api/health     credential presence per provider

Every response carries permissive CORS headers and any OPTIONS request is
answered with an empty 200.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .call_log import SQLiteCallLog
from .config import load_settings
from .conversation import generate_text
from .llm.envelope import to_chat_completion, to_failure_body
from .llm.providers.base import is_placeholder
from .llm.router import LLMRouter
from .llm.types import ChatMessage, ExhaustedError, GenerationParameters, UnifiedResult
from .schemas import GenerateRequest, UnifiedChatRequest

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}

INVALID_MESSAGES = "Missing or invalid messages array"


class BadRequest(ValueError):
    """Request body failed validation at the HTTP boundary."""


def _parse_messages(raw: Any) -> List[ChatMessage]:
    if not isinstance(raw, list) or not raw:
        raise BadRequest(INVALID_MESSAGES)
    messages: List[ChatMessage] = []
    for index, item in enumerate(raw):
        try:
            messages.append(ChatMessage.from_dict(item))
        except ValueError as exc:
            raise BadRequest(f"Invalid message at index {index}: {exc}") from exc
    return messages


async def _read_json(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise BadRequest("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


async def _parse_chat_request(request: Request, router: LLMRouter) -> Tuple[List[ChatMessage], GenerationParameters]:
    body = await _read_json(request)
    try:
        payload = UnifiedChatRequest.model_validate(body)
    except ValidationError as exc:
        if any(err["loc"] and err["loc"][0] == "messages" for err in exc.errors()):
            raise BadRequest(INVALID_MESSAGES) from exc
        raise BadRequest(f"Invalid request parameters: {exc.error_count()} error(s)") from exc

    messages = _parse_messages(payload.messages)
    params = router.default_parameters(
        model=payload.model,
        temperature=payload.temperature,
        top_p=payload.top_p,
        max_tokens=payload.max_tokens,
        preferred_provider=payload.preferred_provider,
        enable_fallback=payload.enable_fallback,
    )
    logger.info(
        "Unified API request: messages=%d model=%s preferred=%s fallback=%s",
        len(messages),
        params.model,
        params.preferred_provider,
        params.enable_fallback,
    )
    return messages, params


def _router(request: Request) -> LLMRouter:
    return request.app.state.router


def build_router(config: Dict[str, Any]) -> LLMRouter:
    db_path = config.get("database", {}).get("path")
    call_log = SQLiteCallLog(db_path) if db_path else None
    return LLMRouter(config=config, call_log=call_log)


def create_app(config: Optional[Dict[str, Any]] = None, router: Optional[LLMRouter] = None) -> FastAPI:
    config = config if config is not None else load_settings(os.getenv("UNIFIED_AI_SETTINGS", "config/settings.yaml"))
    app = FastAPI(title="Unified AI Router")
    app.state.config = config
    app.state.router = router if router is not None else build_router(config)

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(BadRequest)
    async def bad_request_handler(request: Request, exc: BadRequest):
        body: Dict[str, Any] = {"error": str(exc)}
        if request.url.path.startswith("/api/ai/"):
            body = {"success": False, **body}
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return JSONResponse(status_code=405, content={"error": "Method not allowed"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(exc)},
            headers=CORS_HEADERS,
        )

    @app.post("/api/unified")
    async def unified(request: Request):
        """Routes a chat request through the provider chain.

        ``model`` names a model of the first provider tried only; fallback
        providers use their configured default model instead of receiving it.
        """
        router = _router(request)
        messages, params = await _parse_chat_request(request, router)
        result: UnifiedResult = await run_in_threadpool(router.route, messages, params)
        if not result.success:
            return JSONResponse(status_code=500, content=to_failure_body(result, params.enable_fallback))
        return to_chat_completion(result)

    @app.post("/api/ai/chat")
    async def ai_chat(request: Request):
        router = _router(request)
        messages, params = await _parse_chat_request(request, router)
        result = await run_in_threadpool(router.route, messages, params)
        if not result.success:
            body = {"success": False, **to_failure_body(result, params.enable_fallback)}
            return JSONResponse(status_code=500, content=body)
        envelope = to_chat_completion(result)
        envelope.update(
            {
                "success": True,
                "provider": result.provider,
                "usage": envelope.get("usage"),
            }
        )
        return envelope

    @app.post("/api/ai/generate")
    async def ai_generate(request: Request):
        router = _router(request)
        body = await _read_json(request)
        try:
            payload = GenerateRequest.model_validate(body)
        except ValidationError as exc:
            raise BadRequest(f"Invalid request parameters: {exc.error_count()} error(s)") from exc
        if not payload.prompt:
            raise BadRequest("Missing prompt")

        try:
            content = await run_in_threadpool(
                generate_text,
                router,
                payload.prompt,
                payload.system_prompt,
                temperature=payload.temperature,
                max_tokens=payload.max_tokens,
            )
        except ExhaustedError as exc:
            return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})
        return {"success": True, "content": content}

    @app.get("/api/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "env": {
                "GEMINI_KEY_SET": not is_placeholder(os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")),
                "OPENAI_KEY_SET": not is_placeholder(os.getenv("OPENAI_API_KEY")),
                "OLLAMA_KEY_SET": not is_placeholder(os.getenv("OLLAMA_API_KEY")),
            },
        }

    return app
