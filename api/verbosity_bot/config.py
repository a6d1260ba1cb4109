from __future__ import annotations

from typing import Any

from verbosity_client.config import VerbositySettings


class BotSettings(VerbositySettings):
    """
    Настройки приёмника callback-запросов бота.

    Наследует VERBOSITY_API_URL / VERBOSITY_FILE_URL / VERBOSITY_API_TOKEN у клиента
    и добавляет параметры HTTP-сервера.
    """

    app_name: str = "verbosity-bot"
    log_level: str = "info"

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Проверять X-Signature входящих запросов
    verify_signature: bool = True


def load_bot_settings(**overrides: Any) -> BotSettings:
    # Read once at start-up and handed to create_app().
    explicit = {key: value for key, value in overrides.items() if value is not None}
    return BotSettings(**explicit)
