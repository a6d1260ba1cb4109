"""
Основной класс VerbosityAPI — HTTP-клиент к Verbosity API.

Каждый метод — синхронный вызов из одного (или двух, для «всех чатов/организаций»)
HTTP-запросов. Клиент не хранит изменяемого состояния, кроме конфигурации,
поэтому один экземпляр можно использовать из нескольких потоков.
Повторов, кеша и пагинации нет: API отдаёт коллекции целиком.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import IO, Any, Callable, Iterable, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from .bot import split_bot_token, verify_signature
from .config import DEFAULT_API_URL, DEFAULT_FILE_URL, DEFAULT_TIMEOUT, VerbositySettings
from .exceptions import (
    APIError,
    DeliveryError,
    InvalidArgumentError,
    NotFoundError,
    TransportError,
    ValidationError,
    VerbosityError,
)
from .models import (
    Chat,
    ChatsResponse,
    ChatSyncResponse,
    ErrorResponse,
    FileUploadResponse,
    MessageResponse,
    Org,
    OrgsResponse,
    OrgSyncResponse,
    PrivateMessageRequest,
    PrivateMessageResponse,
    SendMessageRequest,
    UpdateMessageRequest,
    UpdateMessageResponse,
    User,
    UsersResponse,
    ValidationErrorResponse,
    VerbosityModel,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=VerbosityModel)
ItemT = TypeVar("ItemT")

DEFAULT_TEXT_FILENAME = "file.txt"


def _token_hint(token: str | None) -> str:
    if not token:
        return "unknown"
    suffix = token[-6:] if len(token) >= 6 else token
    return f"*{suffix}"


def _join_ids(ids: Iterable[int]) -> str:
    return ",".join(str(int(item)) for item in ids)


def _top(items: list[ItemT], metric: Callable[[ItemT], int], limit: int) -> list[ItemT]:
    # sorted() стабилен и при reverse=True: равные метрики сохраняют исходный порядок.
    ranked = sorted(items, key=metric, reverse=True)
    if 0 < limit < len(ranked):
        return ranked[:limit]
    return ranked


def _decode_error_envelope(body: bytes, status_code: int | None) -> VerbosityError | None:
    """Распознать один из двух конвертов ошибки API."""
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    try:
        error_resp = ErrorResponse.model_validate(data)
    except PydanticValidationError:
        error_resp = None
    if error_resp is not None and error_resp.code:
        suffix = f" (status={status_code})" if status_code is not None else ""
        return APIError(
            f"API error (code={error_resp.code}): {error_resp.message}{suffix}",
            code=error_resp.code,
            status_code=status_code,
            body=body.decode("utf-8", errors="replace"),
        )

    try:
        validation_resp = ValidationErrorResponse.model_validate(data)
    except PydanticValidationError:
        validation_resp = None
    if validation_resp is not None and validation_resp.tamtam_response_api:
        suffix = f" (status={status_code})" if status_code is not None else ""
        return ValidationError(
            f"validation error: {validation_resp.error}{suffix}",
            error=validation_resp.error,
            field_errors=validation_resp.field_errors,
            codes=validation_resp.codes,
            extra=validation_resp.extra,
            status_code=status_code,
        )
    return None


class VerbosityAPI:
    """
    HTTP-клиент к Verbosity API.

    Пример:
        with VerbosityAPI.from_settings(load_settings()) as api:
            chat = api.find_chat_by_title("General")
            api.send_message(chat.id, "Привет!")
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        file_url: str = DEFAULT_FILE_URL,
        api_token: str = "",
        *,
        bot_user_id: int | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._file_url = file_url.rstrip("/")
        self._api_token = api_token
        self._bot_user_id = bot_user_id
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"X-APIToken": api_token, "Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: VerbositySettings, transport: httpx.BaseTransport | None = None) -> VerbosityAPI:
        return cls(
            settings.api_url,
            settings.file_url,
            settings.api_token,
            bot_user_id=settings.bot_user_id,
            timeout=settings.timeout,
            transport=transport,
        )

    def close(self) -> None:
        """Закрыть HTTP-клиент."""
        if not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> VerbosityAPI:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # --- Конфигурация ---

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def file_url(self) -> str:
        return self._file_url

    @property
    def api_token(self) -> str:
        return self._api_token

    @property
    def bot_token(self) -> str:
        """Токен для исходящих сообщений (без первых 20 символов)."""
        return split_bot_token(self._api_token)

    @property
    def bot_user_id(self) -> int | None:
        return self._bot_user_id

    def verify_signature(self, body: str | bytes, signature: str) -> bool:
        """Проверить X-Signature входящего запроса бота."""
        return verify_signature(self._api_token, body, signature)

    # --- Внутренние методы ---

    def _request(
        self,
        method: str,
        path: str,
        model: type[ModelT],
        *,
        base_url: str | None = None,
        **kwargs: Any,
    ) -> ModelT:
        """Базовый HTTP-запрос с разбором ответа и классификацией ошибок."""
        url = (base_url or self._api_url) + path
        logger.debug("verbosity.call method=%s path=%s token=%s", method, path, _token_hint(self._api_token))
        started = time.perf_counter()
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("verbosity.timeout method=%s path=%s", method, path)
            raise TransportError(f"request timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            logger.warning("verbosity.transport_error method=%s path=%s error=%s", method, path, exc)
            raise TransportError(f"request failed: {exc}") from exc

        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "verbosity.result method=%s path=%s status=%s duration_ms=%d",
            method,
            path,
            resp.status_code,
            duration_ms,
        )

        body = resp.content
        if not 200 <= resp.status_code <= 299:
            error = _decode_error_envelope(body, resp.status_code)
            if error is None:
                error = APIError(
                    f"API request failed with status {resp.status_code}: {resp.text}",
                    status_code=resp.status_code,
                    body=resp.text,
                )
            logger.warning("verbosity.error method=%s path=%s error=%s", method, path, error)
            raise error

        try:
            return model.model_validate_json(body)
        except PydanticValidationError as exc:
            error = _decode_error_envelope(body, None)
            if error is not None:
                logger.warning("verbosity.error method=%s path=%s error=%s", method, path, error)
                raise error from exc
            raise TransportError(f"failed to parse response: {exc}", status_code=resp.status_code) from exc

    def _get(self, path: str, model: type[ModelT], params: dict[str, Any] | None = None) -> ModelT:
        return self._request("GET", path, model, params=params)

    def _post(self, path: str, model: type[ModelT], payload: dict[str, Any] | None = None) -> ModelT:
        if payload is None:
            return self._request("POST", path, model)
        return self._request("POST", path, model, json=payload)

    def _put(self, path: str, model: type[ModelT], payload: dict[str, Any]) -> ModelT:
        return self._request("PUT", path, model, json=payload)

    # === Пользователи ===

    def get_users_by_ids(self, ids: list[int]) -> list[User]:
        """Пользователи по списку id. API: GET /core/user?ids=11,12,15"""
        if not ids:
            raise InvalidArgumentError("ids list cannot be empty")
        return self._get("/core/user", UsersResponse, {"ids": _join_ids(ids)}).users

    def get_users_by_unique_names(self, names: list[str]) -> list[User]:
        """Пользователи по unique name. API: GET /core/user?unames=user0,user1"""
        if not names:
            raise InvalidArgumentError("unique names list cannot be empty")
        return self._get("/core/user", UsersResponse, {"unames": ",".join(names)}).users

    def get_user_by_id(self, user_id: int) -> User:
        users = self.get_users_by_ids([user_id])
        if not users:
            raise NotFoundError(f"user with id {user_id} not found")
        return users[0]

    def get_user_by_unique_name(self, name: str) -> User:
        users = self.get_users_by_unique_names([name])
        if not users:
            raise NotFoundError(f"user with unique_name {name} not found")
        return users[0]

    def get_bot_info(self) -> User:
        """Пользователь, от имени которого работает бот (по настроенному bot_user_id)."""
        if self._bot_user_id is None:
            raise InvalidArgumentError(
                "bot user id is not configured; set VERBOSITY_BOT_USER_ID or pass bot_user_id"
            )
        return self.get_user_by_id(self._bot_user_id)

    # === Чаты ===

    def get_chat_ids(self) -> list[int]:
        """Все доступные id чатов. API: GET /core/chat/sync"""
        return self._get("/core/chat/sync", ChatSyncResponse).chats

    def get_chats_by_ids(self, ids: list[int]) -> list[Chat]:
        """Чаты по списку id. API: GET /core/chat?ids=11,12,15"""
        if not ids:
            raise InvalidArgumentError("ids list cannot be empty")
        return self._get("/core/chat", ChatsResponse, {"ids": _join_ids(ids)}).chats

    def get_chat_by_id(self, chat_id: int) -> Chat:
        chats = self.get_chats_by_ids([chat_id])
        if not chats:
            raise NotFoundError(f"chat with id {chat_id} not found")
        return chats[0]

    def get_all_chats(self) -> list[Chat]:
        """Все чаты: сначала id, затем детали одним запросом."""
        ids = self.get_chat_ids()
        if not ids:
            return []
        return self.get_chats_by_ids(ids)

    def get_or_create_private_chat(self, user_id: int) -> Chat:
        """Личный чат с пользователем. API: POST /core/chat/pm/{user_id}"""
        return self._post(f"/core/chat/pm/{user_id}", Chat)

    def chat_member_ids(self, chat_id: int) -> list[int]:
        return self.get_chat_by_id(chat_id).member_ids

    def chat_admin_ids(self, chat_id: int) -> list[int]:
        return self.get_chat_by_id(chat_id).admin_ids

    def find_chat_by_title(self, title: str) -> Chat:
        """Первый чат с точно совпадающим названием."""
        for chat in self.get_all_chats():
            if chat.title == title:
                return chat
        raise NotFoundError(f"chat with title {title!r} not found")

    def is_chat_member(self, chat_id: int, user_id: int) -> bool:
        return user_id in self.chat_member_ids(chat_id)

    def is_chat_admin(self, chat_id: int, user_id: int) -> bool:
        return user_id in self.chat_admin_ids(chat_id)

    def get_my_chats(self, bot_user_id: int | None = None) -> list[Chat]:
        """Чаты, в которых состоит бот."""
        member_id = bot_user_id if bot_user_id is not None else self._bot_user_id
        if member_id is None:
            raise InvalidArgumentError(
                "bot user id is not configured; set VERBOSITY_BOT_USER_ID or pass bot_user_id"
            )
        return self.user_chats(member_id)

    def get_favorite_chats(self) -> list[Chat]:
        return [chat for chat in self.get_all_chats() if chat.is_favorite]

    def get_public_chats(self) -> list[Chat]:
        return [chat for chat in self.get_all_chats() if not chat.pm]

    def get_private_chats(self) -> list[Chat]:
        return [chat for chat in self.get_all_chats() if chat.pm]

    def user_chats(self, user_id: int) -> list[Chat]:
        """Чаты, в которых состоит пользователь."""
        return [chat for chat in self.get_all_chats() if user_id in chat.member_ids]

    def get_chat_stats(self, chat_id: int) -> dict[str, Any]:
        chat = self.get_chat_by_id(chat_id)
        return {
            "id": chat.id,
            "title": chat.title,
            "posts_count": chat.posts_count,
            "members_count": len(chat.member_ids),
            "admins_count": len(chat.admin_ids),
            "is_private": chat.pm,
            "read_only": chat.read_only,
            "is_favorite": chat.is_favorite,
        }

    def get_top_chats_by_members(self, limit: int) -> list[Chat]:
        """Чаты по убыванию числа участников; limit <= 0 — без ограничения."""
        return _top(self.get_all_chats(), lambda chat: len(chat.member_ids), limit)

    def get_top_chats_by_posts(self, limit: int) -> list[Chat]:
        """Чаты по убыванию числа сообщений; limit <= 0 — без ограничения."""
        return _top(self.get_all_chats(), lambda chat: chat.posts_count, limit)

    # === Организации ===

    def get_organization_ids(self) -> list[int]:
        """Все доступные id организаций. API: GET /core/org/sync"""
        return self._get("/core/org/sync", OrgSyncResponse).ids

    def get_organizations_by_ids(self, ids: list[int]) -> list[Org]:
        """Организации по списку id. API: GET /core/org?ids=11,12,15"""
        if not ids:
            raise InvalidArgumentError("ids list cannot be empty")
        return self._get("/core/org", OrgsResponse, {"ids": _join_ids(ids)}).orgs

    def get_organization_by_id(self, org_id: int) -> Org:
        orgs = self.get_organizations_by_ids([org_id])
        if not orgs:
            raise NotFoundError(f"organization with id {org_id} not found")
        return orgs[0]

    def get_all_organizations(self) -> list[Org]:
        ids = self.get_organization_ids()
        if not ids:
            return []
        return self.get_organizations_by_ids(ids)

    def get_my_organizations(self) -> list[Org]:
        return [org for org in self.get_all_organizations() if org.is_member]

    def get_admin_organizations(self) -> list[Org]:
        return [org for org in self.get_all_organizations() if org.is_admin]

    def find_organization_by_title(self, title: str) -> Org:
        for org in self.get_all_organizations():
            if org.title == title:
                return org
        raise NotFoundError(f"organization with title {title!r} not found")

    def find_organization_by_slug(self, slug: str) -> Org:
        for org in self.get_all_organizations():
            if org.slug == slug:
                return org
        raise NotFoundError(f"organization with slug {slug!r} not found")

    def organization_members(self, org_id: int) -> list[int]:
        return self.get_organization_by_id(org_id).users

    def organization_admins(self, org_id: int) -> list[int]:
        return self.get_organization_by_id(org_id).admins

    def organization_user_count(self, org_id: int) -> int:
        return len(self.organization_members(org_id))

    def organization_group_count(self, org_id: int) -> int:
        return len(self.get_organization_by_id(org_id).groups)

    def get_organization_stats(self, org_id: int) -> dict[str, Any]:
        org = self.get_organization_by_id(org_id)
        return {
            "id": org.id,
            "slug": org.slug,
            "title": org.title,
            "users_count": len(org.users),
            "admins_count": len(org.admins),
            "groups_count": len(org.groups),
            "guests_count": len(org.guests),
            "is_member": org.is_member,
            "is_admin": org.is_admin,
            "state": org.state,
            "email_domain": org.email_domain,
            "default_chat_id": org.default_chat_id,
        }

    def is_org_member(self, org_id: int, user_id: int) -> bool:
        return user_id in self.organization_members(org_id)

    def is_org_admin(self, org_id: int, user_id: int) -> bool:
        return user_id in self.organization_admins(org_id)

    def get_organization_chats(self, org_id: int) -> list[Chat]:
        """Чаты, привязанные к организации."""
        return [
            chat
            for chat in self.get_all_chats()
            if chat.organization_id is not None and chat.organization_id == org_id
        ]

    def get_top_orgs_by_users(self, limit: int) -> list[Org]:
        return _top(self.get_all_organizations(), lambda org: len(org.users), limit)

    # === Сообщения ===

    def send_message(self, chat_id: int, text: str, reply_no: int | None = None) -> MessageResponse:
        """
        Отправить сообщение в (не личный) чат.

        API: POST /bot/message. В теле передаётся токен бота (без первых 20 символов).
        """
        if chat_id == 0:
            raise InvalidArgumentError("chat_id cannot be zero")
        if not text:
            raise InvalidArgumentError("text cannot be empty")

        request = SendMessageRequest(key=self.bot_token, chat_id=chat_id, text=text, reply_no=reply_no)
        return self._post("/bot/message", MessageResponse, request.model_dump(exclude_none=True))

    def send_reply(self, chat_id: int, post_no: int, text: str) -> MessageResponse:
        """Ответ на конкретное сообщение."""
        return self.send_message(chat_id, text, reply_no=post_no)

    def send_mention_message(self, chat_id: int, text: str) -> MessageResponse:
        """Сообщение с упоминанием всех участников чата."""
        return self.send_message(chat_id, "@all " + text)

    def send_private_message_by_id(self, user_id: int, text: str, reply_no: int | None = None) -> PrivateMessageResponse:
        """Личное сообщение по user id. API: POST /msg/post/private"""
        if user_id == 0:
            raise InvalidArgumentError("user_id cannot be zero")
        if not text:
            raise InvalidArgumentError("text cannot be empty")
        return self._send_private_message(PrivateMessageRequest(text=text, user_id=user_id, reply_no=reply_no))

    def send_private_message_by_email(self, email: str, text: str, reply_no: int | None = None) -> PrivateMessageResponse:
        """Личное сообщение по email. API: POST /msg/post/private"""
        if not email:
            raise InvalidArgumentError("email cannot be empty")
        if not text:
            raise InvalidArgumentError("text cannot be empty")
        return self._send_private_message(PrivateMessageRequest(text=text, user_email=email, reply_no=reply_no))

    def send_private_message_by_unique_name(
        self, unique_name: str, text: str, reply_no: int | None = None
    ) -> PrivateMessageResponse:
        """Личное сообщение по unique name. API: POST /msg/post/private"""
        if not unique_name:
            raise InvalidArgumentError("unique_name cannot be empty")
        if not text:
            raise InvalidArgumentError("text cannot be empty")
        return self._send_private_message(
            PrivateMessageRequest(text=text, user_unique_name=unique_name, reply_no=reply_no)
        )

    def _send_private_message(self, request: PrivateMessageRequest) -> PrivateMessageResponse:
        identifiers = request.identifiers()
        if len(identifiers) != 1:
            raise InvalidArgumentError(
                f"exactly one of user_id, user_email, user_unique_name is required, got {identifiers or 'none'}"
            )
        return self._post("/msg/post/private", PrivateMessageResponse, request.model_dump(exclude_none=True))

    def send_private_reply(self, user_id: int, reply_post_no: int, text: str) -> PrivateMessageResponse:
        return self.send_private_message_by_id(user_id, text, reply_no=reply_post_no)

    def broadcast_message(self, chat_ids: list[int], text: str) -> list[MessageResponse]:
        """
        Отправить сообщение в несколько чатов по очереди.

        Останавливается на первой ошибке: DeliveryError.target_id — чат, на котором
        произошёл сбой, DeliveryError.completed — уже отправленные сообщения.
        Отправленное не откатывается.
        """
        if not chat_ids:
            raise InvalidArgumentError("chat_ids list cannot be empty")

        responses: list[MessageResponse] = []
        for chat_id in chat_ids:
            try:
                responses.append(self.send_message(chat_id, text))
            except VerbosityError as exc:
                raise DeliveryError(
                    f"failed to send message to chat {chat_id}: {exc}",
                    target_id=chat_id,
                    cause=exc,
                    completed=responses,
                ) from exc
        return responses

    def send_message_to_all_my_chats(self, text: str) -> list[MessageResponse]:
        chats = self.get_my_chats()
        return self.broadcast_message([chat.id for chat in chats], text)

    def update_message(self, chat_id: int, post_no: int, update: UpdateMessageRequest | None) -> UpdateMessageResponse:
        """Изменить сообщение. API: PUT /msg/post/{chat_id}/{post_no}"""
        if chat_id == 0:
            raise InvalidArgumentError("chat_id cannot be zero")
        if post_no == 0:
            raise InvalidArgumentError("post_no cannot be zero")
        if update is None:
            raise InvalidArgumentError("update request cannot be None")
        if not update.text:
            raise InvalidArgumentError("text cannot be empty")
        return self._put(f"/msg/post/{chat_id}/{post_no}", UpdateMessageResponse, update.to_payload())

    def update_message_with_attachments(
        self, chat_id: int, post_no: int, text: str, attachments: list[str]
    ) -> UpdateMessageResponse:
        return self.update_message(chat_id, post_no, UpdateMessageRequest(text=text, attachments=attachments))

    def update_message_with_reply(self, chat_id: int, post_no: int, reply_post_no: int, text: str) -> UpdateMessageResponse:
        return self.update_message(chat_id, post_no, UpdateMessageRequest(text=text, reply_no=reply_post_no))

    def update_message_e2e(self, chat_id: int, post_no: int, text: str, e2e: bool) -> UpdateMessageResponse:
        return self.update_message(chat_id, post_no, UpdateMessageRequest(text=text, e2e=e2e))

    # === Файлы ===

    def upload_file(self, chat_id: int, file_path: str | Path) -> FileUploadResponse:
        """Загрузить файл с диска. API: POST {file_url}/new/upload"""
        path = Path(file_path)
        with path.open("rb") as fh:
            return self.upload_file_data(chat_id, fh, path.stat().st_size, path.name)

    def upload_file_data(
        self, chat_id: int, data: bytes | IO[bytes], size: int, filename: str
    ) -> FileUploadResponse:
        """
        Загрузить данные файла multipart-формой (chat_id, size, data).

        Возвращает GUID сохранённого файла.
        """
        if chat_id == 0:
            raise InvalidArgumentError("chat_id cannot be zero")
        if size <= 0:
            raise InvalidArgumentError("file size must be positive")

        form = {"chat_id": str(chat_id), "size": str(size)}
        files = {"data": (filename, data)}
        return self._request(
            "POST",
            "/new/upload",
            FileUploadResponse,
            base_url=self._file_url,
            data=form,
            files=files,
        )

    def upload_file_from_bytes(self, chat_id: int, data: bytes, filename: str) -> FileUploadResponse:
        if chat_id == 0:
            raise InvalidArgumentError("chat_id cannot be zero")
        if not data:
            raise InvalidArgumentError("file data cannot be empty")
        return self.upload_file_data(chat_id, data, len(data), filename)

    def upload_text_file(self, chat_id: int, content: str, filename: str = "") -> FileUploadResponse:
        """Загрузить текст как файл (по умолчанию file.txt)."""
        if chat_id == 0:
            raise InvalidArgumentError("chat_id cannot be zero")
        return self.upload_file_from_bytes(chat_id, content.encode("utf-8"), filename or DEFAULT_TEXT_FILENAME)

    def upload_to_multiple_chats(self, file_path: str | Path, chat_ids: list[int]) -> str:
        """
        Загрузить один файл в несколько чатов по очереди.

        Возвращает GUID первой загрузки. При сбое — DeliveryError с target_id
        и GUID-ами уже выполненных загрузок в completed.
        """
        if not chat_ids:
            raise InvalidArgumentError("chat_ids list cannot be empty")

        path = Path(file_path)
        content = path.read_bytes()
        if not content:
            raise InvalidArgumentError("file size must be positive")
        guids: list[str] = []
        for chat_id in chat_ids:
            try:
                response = self.upload_file_data(chat_id, content, len(content), path.name)
            except VerbosityError as exc:
                raise DeliveryError(
                    f"failed to upload to chat {chat_id}: {exc}",
                    target_id=chat_id,
                    cause=exc,
                    completed=guids,
                ) from exc
            guids.append(response.guid)
        return guids[0]
