"""Настройки клиента Verbosity.

Переменные окружения:
    VERBOSITY_API_URL     — базовый URL API (по умолчанию https://api.verbosity.io)
    VERBOSITY_FILE_URL    — URL загрузки файлов (по умолчанию https://file.verbosity.io)
    VERBOSITY_API_TOKEN   — токен бота (обязателен для CLI и приёмника)
    VERBOSITY_BOT_USER_ID — user id самого бота (для «моих чатов»)
    VERBOSITY_OUTPUT_MODE — text, json, json-pretty (только CLI)
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_API_URL = "https://api.verbosity.io"
DEFAULT_FILE_URL = "https://file.verbosity.io"
DEFAULT_TIMEOUT = 30.0

OutputMode = Literal["text", "json", "json-pretty"]


class VerbositySettings(BaseSettings):
    """Конфигурация клиента: URL-адреса, токен и параметры CLI."""

    model_config = SettingsConfigDict(
        env_prefix="VERBOSITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = DEFAULT_API_URL
    file_url: str = DEFAULT_FILE_URL
    api_token: str = ""
    bot_user_id: int | None = None
    timeout: float = DEFAULT_TIMEOUT
    output_mode: OutputMode = "text"

    @field_validator("api_url", "file_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def require_token(self) -> str:
        if not self.api_token:
            raise ConfigurationError(
                "API token is required. Set VERBOSITY_API_TOKEN environment variable or use --token."
            )
        return self.api_token


def load_settings(**overrides: Any) -> VerbositySettings:
    """Собрать настройки из окружения с явными переопределениями.

    Значение ``None`` в ``overrides`` означает «не задано» и не перекрывает окружение.
    Вызывается один раз при старте; результат передаётся в клиент явно.
    """
    explicit = {key: value for key, value in overrides.items() if value is not None}
    return VerbositySettings(**explicit)
