"""Pydantic-модели ресурсов Verbosity API и входящих запросов бота."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Разделители аргументов команды: пробел, табуляция, перевод строки.
_COMMAND_SEPARATORS = re.compile(r"[ \t\n]+")


class VerbosityModel(BaseModel):
    """Базовая модель: JSON null трактуется как отсутствующее поле (значение по умолчанию)."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# === Пользователи ===


class User(VerbosityModel):
    """Пользователь Verbosity."""
    id: int = 0
    name: str = ""
    unique_name: str = ""
    info: str = ""
    info_parsed: Any = None
    deleted: bool = False
    active: bool = False
    time_updated: datetime | None = None
    time_created: datetime | None = None
    is_bot: bool = False
    organizations: list[int] = Field(default_factory=list)


class UsersResponse(VerbosityModel):
    users: list[User] = Field(default_factory=list)


# === Чаты ===


class Chat(VerbosityModel):
    """
    Чат Verbosity.

    organization_id, inviter_id и history_start — необязательные связи:
    None означает «нет», а не нулевой id.
    """
    id: int = 0
    title: str = ""
    description: str = ""
    organization_id: int | None = None
    posts_live_time: int = 0
    two_step_required: bool = False
    history_mode: str = ""
    org_visible: bool = False
    allow_api: bool = False
    read_only: bool = False
    posts_count: int = 0
    pm: bool = False
    e2e: bool = False
    time_created: datetime | None = None
    time_updated: datetime | None = None
    time_edited: datetime | None = None
    author_id: int = 0
    tnew: bool = False
    adm_flag: bool = False
    custom_title: str = ""
    is_favorite: bool = False
    inviter_id: int | None = None
    tshow: bool = False
    user_time_edited: datetime | None = None
    history_start: int | None = None
    pinned: list[int] = Field(default_factory=list)
    member_ids: list[int] = Field(default_factory=list)
    admin_ids: list[int] = Field(default_factory=list)
    group_ids: list[int] = Field(default_factory=list)
    guests: list[int] = Field(default_factory=list)
    thread_users: list[int] = Field(default_factory=list)
    thread_admins: list[int] = Field(default_factory=list)
    thread_groups: list[int] = Field(default_factory=list)
    last_msg: str = ""
    last_read_post_no: int = 0
    last_msg_author_id: int = 0
    last_msg_author: str = ""
    last_msg_bot_name: str = ""
    last_msg_text: str = ""


class ChatsResponse(VerbosityModel):
    chats: list[Chat] = Field(default_factory=list)


class ChatSyncResponse(VerbosityModel):
    chats: list[int] = Field(default_factory=list)


# === Организации ===


class Org(VerbosityModel):
    """Организация (команда) Verbosity."""
    id: int = 0
    slug: str = ""
    title: str = ""
    description: str = ""
    description_parsed: Any = None
    email_domain: str = ""
    time_created: datetime | None = None
    time_updated: datetime | None = None
    two_step_required: bool = False
    default_chat_id: int = 0
    is_member: bool = False
    is_admin: bool = False
    state: str = ""
    inviter_id: int | None = None
    guests: list[int] = Field(default_factory=list)
    users: list[int] = Field(default_factory=list)
    admins: list[int] = Field(default_factory=list)
    groups: list[int] = Field(default_factory=list)


class OrgsResponse(VerbosityModel):
    orgs: list[Org] = Field(default_factory=list)


class OrgSyncResponse(VerbosityModel):
    ids: list[int] = Field(default_factory=list)


# === Сообщения ===


class SendMessageRequest(VerbosityModel):
    """Тело POST /bot/message."""
    key: str
    chat_id: int
    text: str
    text_parsed: list[Any] | None = None
    reply_no: int | None = None


class PrivateMessageRequest(VerbosityModel):
    """Тело POST /msg/post/private. Адресат задаётся ровно одним из трёх полей."""
    text: str
    user_id: int | None = None
    user_email: str | None = None
    user_unique_name: str | None = None
    reply_no: int | None = None

    def identifiers(self) -> list[str]:
        present = []
        if self.user_id is not None:
            present.append("user_id")
        if self.user_email:
            present.append("user_email")
        if self.user_unique_name:
            present.append("user_unique_name")
        return present


class MessageResponse(VerbosityModel):
    post_no: int = 0


class PrivateMessageResponse(VerbosityModel):
    chat_id: int = 0
    post_no: int = 0


class UpdateMessageRequest(VerbosityModel):
    """Изменение сообщения. Каждое необязательное поле отправляется только если задано."""
    text: str = ""
    e2e: bool | None = None
    reply_no: int | None = None
    quote: str | None = None
    attachments: list[str] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude_none=True)
        if not payload.get("text"):
            payload.pop("text", None)
        return payload


class UpdateMessageResponse(VerbosityModel):
    model_config = ConfigDict(populate_by_name=True)

    uuid: str = ""
    chat_id: int = 0
    post_no: int = 0
    version: int | None = Field(default=None, alias="ver")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# === Файлы ===


class FileUploadResponse(VerbosityModel):
    guid: str = ""


# === Конверты ошибок ===


class ErrorResponse(VerbosityModel):
    code: str = ""
    message: str = ""


class ValidationErrorResponse(VerbosityModel):
    tamtam_response_api: bool = False
    codes: dict[str, Any] = Field(default_factory=dict)
    field_errors: dict[str, Any] = Field(default_factory=dict)
    extra: Any = None
    error: str = ""


# === Входящие запросы бота ===


class TextBlock(VerbosityModel):
    """Блок разобранного текста сообщения (mention, text, link, ...)."""
    type: str = ""
    value: str = ""


class BotRequest(VerbosityModel):
    """Входящее сообщение, доставленное боту."""
    user_id: int = 0
    user_unique_name: str | None = None
    post_no: int = 0
    chat_id: int = 0
    organization_id: int | None = None
    text: str = ""
    text_parsed: list[TextBlock] = Field(default_factory=list)
    reply_no: int | None = None
    reply_text: str | None = None
    file_guid: str | None = None
    file_name: str | None = None
    attachments: list[str] = Field(default_factory=list)

    def is_command(self) -> bool:
        return self.text.startswith("/")

    def get_command(self) -> tuple[str, list[str]]:
        """Имя команды (вместе с ``/``) и список аргументов."""
        if not self.is_command():
            return "", []
        parts = [part for part in _COMMAND_SEPARATORS.split(self.text) if part]
        if not parts:
            return "", []
        return parts[0], parts[1:]

    def is_user_mentioned(self) -> bool:
        return any(block.type == "mention" and block.value == "bot" for block in self.text_parsed)

    def has_reply(self) -> bool:
        return self.reply_no is not None

    def has_file(self) -> bool:
        return self.file_guid is not None

    def message_is_empty(self) -> bool:
        return self.text == "" and self.file_guid is None and not self.attachments

    @property
    def reply_text_or_empty(self) -> str:
        return self.reply_text or ""

    @property
    def file_guid_or_empty(self) -> str:
        return self.file_guid or ""

    @property
    def file_name_or_empty(self) -> str:
        return self.file_name or ""


class ActionRequest(VerbosityModel):
    """Нажатие на action-ссылку (bot://...)."""
    user_id: int = 0
    chat_id: int = 0
    post_no: int = 0
    organization_id: int | None = None
    action: str = ""
    params: dict[str, str] = Field(default_factory=dict)
