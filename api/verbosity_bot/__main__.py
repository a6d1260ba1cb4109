"""Запуск приёмника: python -m verbosity_bot"""

from __future__ import annotations

import logging

import uvicorn

from .config import load_bot_settings
from .main import create_app


def run() -> None:
    settings = load_bot_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.api_host, port=settings.api_port, log_level=settings.log_level)


if __name__ == "__main__":
    run()
