"""Точка сборки FastAPI-приложения приёмника. Подключает роутеры и lifecycle-хуки."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from verbosity_client import CommandRegistry, VerbosityAPI

from .config import BotSettings, load_bot_settings
from .routers import bot, health
from .services.handlers import build_registry

logger = logging.getLogger(__name__)


def create_app(
    settings: BotSettings | None = None,
    api: VerbosityAPI | None = None,
    registry: CommandRegistry | None = None,
) -> FastAPI:
    """
    Собрать приложение.

    Без токена приложение не создаётся (ConfigurationError): без него
    нельзя ни проверить подпись, ни ответить в чат.
    """
    settings = settings or load_bot_settings()
    settings.require_token()

    owns_api = api is None
    if api is None:
        api = VerbosityAPI.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Startup / shutdown хуки."""
        logger.info(
            "bot.startup app=%s api_url=%s verify_signature=%s",
            settings.app_name,
            settings.api_url,
            settings.verify_signature,
        )
        yield
        if owns_api:
            api.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.api = api
    app.state.registry = registry or build_registry(api)

    # --- Роутеры ---
    app.include_router(health.router)
    app.include_router(bot.router)
    return app
