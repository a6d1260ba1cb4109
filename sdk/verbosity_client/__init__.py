"""
verbosity-client — Python SDK для Verbosity API.

Использование:
    from verbosity_client import VerbosityAPI, load_settings

    with VerbosityAPI.from_settings(load_settings()) as api:
        chats = api.get_top_chats_by_members(5)
        api.send_message(chat_id=chats[0].id, text="Привет!")
"""

__version__ = "1.0.0"

from .bot import (
    compute_signature,
    create_action_url,
    parse_action_request,
    parse_bot_request,
    split_bot_token,
    verify_signature,
)
from .client import VerbosityAPI
from .commands import CommandRegistry
from .config import VerbositySettings, load_settings
from .exceptions import (
    APIError,
    ConfigurationError,
    DeliveryError,
    ErrorKind,
    InvalidArgumentError,
    NotFoundError,
    ParseError,
    SignatureError,
    TransportError,
    ValidationError,
    VerbosityError,
    is_access_denied_error,
    is_not_found_error,
    is_validation_error,
)
from .models import (
    ActionRequest,
    BotRequest,
    Chat,
    FileUploadResponse,
    MessageResponse,
    Org,
    PrivateMessageResponse,
    TextBlock,
    UpdateMessageRequest,
    UpdateMessageResponse,
    User,
)

__all__ = [
    "VerbosityAPI",
    "VerbositySettings",
    "load_settings",
    "CommandRegistry",
    # Протокол бота
    "compute_signature",
    "create_action_url",
    "parse_action_request",
    "parse_bot_request",
    "split_bot_token",
    "verify_signature",
    # Исключения
    "ErrorKind",
    "VerbosityError",
    "TransportError",
    "APIError",
    "ValidationError",
    "NotFoundError",
    "InvalidArgumentError",
    "SignatureError",
    "ParseError",
    "ConfigurationError",
    "DeliveryError",
    "is_access_denied_error",
    "is_validation_error",
    "is_not_found_error",
    # Модели
    "ActionRequest",
    "BotRequest",
    "Chat",
    "FileUploadResponse",
    "MessageResponse",
    "Org",
    "PrivateMessageResponse",
    "TextBlock",
    "UpdateMessageRequest",
    "UpdateMessageResponse",
    "User",
]
