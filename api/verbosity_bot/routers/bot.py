"""Callback-эндпоинты бота: входящие сообщения и нажатия action-ссылок."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from verbosity_client import ParseError, SignatureError, parse_action_request, parse_bot_request

router = APIRouter(tags=["bot"])
logger = logging.getLogger(__name__)


def _check_signature(request: Request, body: bytes, signature: str | None) -> None:
    settings = request.app.state.settings
    if not settings.verify_signature:
        return
    if not signature:
        raise HTTPException(status_code=401, detail="missing X-Signature header")
    try:
        valid = request.app.state.api.verify_signature(body, signature)
    except SignatureError as exc:
        logger.error("bot.signature_key_error error=%s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    if not valid:
        logger.warning("bot.signature_mismatch path=%s", request.url.path)
        raise HTTPException(status_code=401, detail="invalid signature")


@router.post("/bot/message")
async def bot_message(request: Request, x_signature: str | None = Header(default=None)) -> dict[str, Any]:
    """Входящее сообщение: проверка подписи и вызов обработчика команды."""
    body = await request.body()
    _check_signature(request, body, x_signature)
    try:
        bot_request = parse_bot_request(body)
    except ParseError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    # Обработчики делают синхронные HTTP-вызовы к API
    handled = await run_in_threadpool(request.app.state.registry.handle_message, bot_request)
    return {"ok": True, "handled": handled}


@router.post("/bot/action")
async def bot_action(request: Request, x_signature: str | None = Header(default=None)) -> dict[str, Any]:
    """Нажатие action-ссылки bot://..."""
    body = await request.body()
    _check_signature(request, body, x_signature)
    try:
        action_request = parse_action_request(body)
    except ParseError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    handled = await run_in_threadpool(request.app.state.registry.handle_action, action_request)
    return {"ok": True, "handled": handled}
