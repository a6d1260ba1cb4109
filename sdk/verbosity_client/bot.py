"""
Протокол бота Verbosity: подпись входящих запросов, разбор JSON, action-ссылки.

Подпись запроса (заголовок X-Signature):

    base64(hmac_sha256(bkey, body)),  bkey = to_bytes(int(token[:20], 16))

Токен для исходящих сообщений — это API-токен без первых 20 символов.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import re
from typing import Mapping, TypeVar
from urllib.parse import quote

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, SignatureError
from .models import ActionRequest, BotRequest, VerbosityModel

KEY_PREFIX_LENGTH = 20

_HEX_KEY = re.compile(r"[0-9a-fA-F]+")

ModelT = TypeVar("ModelT", bound=VerbosityModel)


def split_bot_token(api_token: str) -> str:
    """Токен бота для исходящих сообщений (API-токен без первых 20 символов)."""
    if len(api_token) <= KEY_PREFIX_LENGTH:
        return ""
    return api_token[KEY_PREFIX_LENGTH:]


def signature_key(api_token: str) -> bytes:
    """Ключ HMAC: big-endian байты числа, записанного первыми 20 hex-символами токена."""
    if len(api_token) < KEY_PREFIX_LENGTH:
        raise SignatureError("API token is too short")
    prefix = api_token[:KEY_PREFIX_LENGTH]
    if not _HEX_KEY.fullmatch(prefix):
        raise SignatureError("failed to parse API token key")
    number = int(prefix, 16)
    return number.to_bytes((number.bit_length() + 7) // 8, "big")


def compute_signature(api_token: str, body: str | bytes) -> str:
    """Подпись тела запроса в том виде, в каком её присылает платформа."""
    raw = body.encode("utf-8") if isinstance(body, str) else body
    digest = hmac.new(signature_key(api_token), raw, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(api_token: str, body: str | bytes, signature: str) -> bool:
    """Проверка X-Signature входящего запроса.

    Raises:
        SignatureError: токен короче 20 символов или его префикс не hex.
    """
    expected = compute_signature(api_token, body)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


def _parse(model: type[ModelT], data: str | bytes, what: str) -> ModelT:
    if not data or not data.strip():
        raise ParseError(f"failed to parse {what}: empty input")
    try:
        return model.model_validate_json(data)
    except PydanticValidationError as exc:
        raise ParseError(f"failed to parse {what}: {exc}") from exc


def parse_bot_request(data: str | bytes) -> BotRequest:
    """Разобрать JSON входящего сообщения."""
    return _parse(BotRequest, data, "bot request")


def parse_action_request(data: str | bytes) -> ActionRequest:
    """Разобрать JSON нажатия action-ссылки."""
    return _parse(ActionRequest, data, "action request")


def create_action_url(action: str, title: str, params: Mapping[str, str] | None = None) -> str:
    """
    Ссылка для интерактивных кнопок: bot://{action}?title={title}[&{key}={value}].

    Все части кодируются процентами. Порядок параметров — порядок обхода mapping.

    Example:
        >>> create_action_url("vote", "Да", {"poll": "7"})
        'bot://vote?title=%D0%94%D0%B0&poll=7'
    """
    url = f"bot://{quote(action, safe='')}?title={quote(title, safe='')}"
    for key, value in (params or {}).items():
        url += f"&{quote(key, safe='')}={quote(value, safe='')}"
    return url
