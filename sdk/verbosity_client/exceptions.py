"""Исключения SDK.

Каждая ошибка несёт ``kind`` и три производных предиката
(``is_access_denied``, ``is_validation``, ``is_not_found``). Предикат истинен, если
это следует из ``kind`` или если текст ошибки содержит маркер: ``access_deny``,
``validation error`` / ``tamtam_response_api``, ``not found``. Ответ без конверта
попадает в текст вместе с телом, DeliveryError — вместе с текстом исходной ошибки.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    API = "api"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"


class VerbosityError(Exception):
    """Базовая ошибка при работе с Verbosity API."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def _mentions(self, *markers: str) -> bool:
        text = str(self)
        return any(marker in text for marker in markers)

    @property
    def is_access_denied(self) -> bool:
        return self._mentions("access_deny")

    @property
    def is_validation(self) -> bool:
        return self.kind is ErrorKind.VALIDATION or self._mentions("validation error", "tamtam_response_api")

    @property
    def is_not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND or self._mentions("not found")


class TransportError(VerbosityError):
    """Сетевая ошибка, таймаут или нечитаемый ответ."""

    kind = ErrorKind.TRANSPORT


class APIError(VerbosityError):
    """Ошибка API: конверт ``{code, message}`` или неуспешный HTTP-статус."""

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.code = code
        self.body = body


class ValidationError(VerbosityError):
    """Ошибка валидации (конверт с ``tamtam_response_api``)."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        error: str = "",
        field_errors: dict[str, Any] | None = None,
        codes: dict[str, Any] | None = None,
        extra: Any = None,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.error = error
        self.field_errors = field_errors or {}
        self.codes = codes or {}
        self.extra = extra


class NotFoundError(VerbosityError):
    """Сущность не найдена в полученной коллекции."""

    kind = ErrorKind.NOT_FOUND


class InvalidArgumentError(VerbosityError, ValueError):
    """Нарушено предусловие вызова; запрос в сеть не отправлялся."""

    kind = ErrorKind.INVALID_ARGUMENT


class SignatureError(InvalidArgumentError):
    """Невозможно вычислить подпись по токену."""


class ParseError(InvalidArgumentError):
    """Входящий JSON от платформы не разобран."""


class ConfigurationError(InvalidArgumentError):
    """Неполная конфигурация клиента."""


class DeliveryError(VerbosityError):
    """Операция над несколькими чатами остановилась на ``target_id``.

    Исходная ошибка доступна как ``__cause__``, ``kind`` берётся из неё; её текст
    входит в сообщение, так что предикаты совпадают с предикатами исходной ошибки.
    ``completed`` содержит результаты, полученные до сбоя.
    """

    def __init__(self, message: str, *, target_id: int, cause: BaseException, completed: list[Any] | None = None):
        super().__init__(message, status_code=getattr(cause, "status_code", None))
        self.target_id = target_id
        self.completed = completed or []
        self.__cause__ = cause

    @property
    def kind(self) -> ErrorKind:  # type: ignore[override]
        if isinstance(self.__cause__, VerbosityError):
            return self.__cause__.kind
        return ErrorKind.TRANSPORT


def is_access_denied_error(exc: BaseException | None) -> bool:
    """True для ошибки отказа в доступе."""
    return isinstance(exc, VerbosityError) and exc.is_access_denied


def is_validation_error(exc: BaseException | None) -> bool:
    """True для ошибки валидации."""
    return isinstance(exc, VerbosityError) and exc.is_validation


def is_not_found_error(exc: BaseException | None) -> bool:
    """True для ошибки «не найдено»."""
    return isinstance(exc, VerbosityError) and exc.is_not_found
