"""Эндпоинт мониторинга приёмника."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    registry = request.app.state.registry
    return {
        "status": "ok",
        "app": request.app.state.settings.app_name,
        "commands": registry.list_commands(),
        "actions": registry.list_actions(),
        "time": datetime.now(timezone.utc).isoformat(),
    }
