"""
CommandHandler pattern для Verbosity SDK.

Паттерн использования:
    api = VerbosityAPI.from_settings(load_settings())
    registry = CommandRegistry()

    @registry.command("start")
    def start_command(request, args):
        api.send_reply(request.chat_id, request.post_no, "Привет! Я бот.")

    @registry.action("vote", chat_id=42)  # Guard: только этот чат
    def vote_action(request):
        api.send_message(request.chat_id, f"Голос: {request.params.get('choice')}")

    registry.handle_message(parse_bot_request(body))
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .models import ActionRequest, BotRequest

logger = logging.getLogger(__name__)

# Type aliases
MessageHandler = Callable[[BotRequest, list[str]], None]
ActionHandler = Callable[[ActionRequest], None]


def _normalize_command(command: str) -> str:
    name = command.lstrip("/")
    # Убираем @botname если есть
    if "@" in name:
        name = name.split("@")[0]
    return name.lower()


class CommandRegistry:
    """
    Реестр обработчиков команд и action-ссылок.

    Команды и action-ссылки регистрируются декоратором или напрямую.
    Ограничения chat_id / user_id проверяются до вызова обработчика;
    аргументы команды приходят уже разбитыми по пробелам.
    """

    def __init__(self):
        self._handlers: dict[str, dict[str, Any]] = {}
        self._actions: dict[str, dict[str, Any]] = {}

    def register(
        self,
        command: str,
        handler: MessageHandler,
        chat_id: int | None = None,
        user_id: int | None = None,
    ) -> None:
        """
        Зарегистрировать обработчик /command.

        Args:
            command: Имя команды (с / или без)
            handler: Функция-обработчик (request, args)
            chat_id: Только для этого чата (None — для всех)
            user_id: Только для этого пользователя (None — для всех)
        """
        name = _normalize_command(command)
        self._handlers[name] = {"handler": handler, "chat_id": chat_id, "user_id": user_id}
        logger.info(
            f"Registered command /{name}"
            + (f" for chat_id={chat_id}" if chat_id else "")
            + (f" for user_id={user_id}" if user_id else "")
        )

    def register_action(
        self,
        action: str,
        handler: ActionHandler,
        chat_id: int | None = None,
        user_id: int | None = None,
    ) -> None:
        """Регистрация обработчика action-ссылки bot://{action}."""
        self._actions[action] = {"handler": handler, "chat_id": chat_id, "user_id": user_id}
        logger.info(f"Registered action {action}")

    def command(
        self, command: str, chat_id: int | None = None, user_id: int | None = None
    ) -> Callable[[MessageHandler], MessageHandler]:
        def decorator(handler: MessageHandler) -> MessageHandler:
            self.register(command, handler, chat_id=chat_id, user_id=user_id)
            return handler

        return decorator

    def action(
        self, action: str, chat_id: int | None = None, user_id: int | None = None
    ) -> Callable[[ActionHandler], ActionHandler]:
        def decorator(handler: ActionHandler) -> ActionHandler:
            self.register_action(action, handler, chat_id=chat_id, user_id=user_id)
            return handler

        return decorator

    @staticmethod
    def _guard_passes(info: dict[str, Any], chat_id: int, user_id: int, label: str) -> bool:
        if info["chat_id"] is not None and chat_id != info["chat_id"]:
            logger.debug(f"{label} blocked: chat_id {chat_id} != {info['chat_id']}")
            return False
        if info["user_id"] is not None and user_id != info["user_id"]:
            logger.debug(f"{label} blocked: user_id {user_id} != {info['user_id']}")
            return False
        return True

    def handle_message(self, request: BotRequest) -> bool:
        """
        Обработка входящего сообщения.

        True — команда найдена и обработчик отработал без исключения.
        """
        if not request.is_command():
            return False

        command_full, args = request.get_command()
        command = _normalize_command(command_full)

        handler_info = self._handlers.get(command)
        if not handler_info:
            return False
        if not self._guard_passes(handler_info, request.chat_id, request.user_id, f"Command /{command}"):
            return False

        try:
            handler_info["handler"](request, args)
            logger.info(f"Command /{command} handled successfully")
            return True
        except Exception as e:
            logger.exception(f"Error handling command /{command}: {e}")
            return False

    def handle_action(self, request: ActionRequest) -> bool:
        """Обработка нажатия action-ссылки. True если обработано."""
        handler_info = self._actions.get(request.action)
        if not handler_info:
            return False
        if not self._guard_passes(handler_info, request.chat_id, request.user_id, f"Action {request.action}"):
            return False

        try:
            handler_info["handler"](request)
            logger.info(f"Action {request.action} handled successfully")
            return True
        except Exception as e:
            logger.exception(f"Error handling action {request.action}: {e}")
            return False

    def list_commands(self) -> list[str]:
        """Список зарегистрированных команд."""
        return list(self._handlers.keys())

    def list_actions(self) -> list[str]:
        """Список зарегистрированных action."""
        return list(self._actions.keys())
