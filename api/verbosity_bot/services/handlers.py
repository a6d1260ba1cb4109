"""Встроенные команды и action-обработчики бота."""

from __future__ import annotations

import logging

from verbosity_client import CommandRegistry, VerbosityAPI, create_action_url
from verbosity_client.models import ActionRequest, BotRequest

logger = logging.getLogger(__name__)

ECHO_ACTION = "echo"


def _format_stats(stats: dict[str, object]) -> str:
    return "\n".join(f"{key}: {value}" for key, value in stats.items())


def build_registry(api: VerbosityAPI) -> CommandRegistry:
    """Реестр с командами /start, /help, /stats, /whoami и action ``echo``."""
    registry = CommandRegistry()

    @registry.command("start")
    def start_command(request: BotRequest, args: list[str]) -> None:
        api.send_reply(request.chat_id, request.post_no, "Привет! Я бот Verbosity. Список команд: /help")

    @registry.command("help")
    def help_command(request: BotRequest, args: list[str]) -> None:
        lines = ["Команды:"]
        lines.extend(f"/{name}" for name in registry.list_commands())
        lines.append("")
        lines.append("Проверка кнопок: " + create_action_url(ECHO_ACTION, "Echo", {"text": "hello"}))
        api.send_reply(request.chat_id, request.post_no, "\n".join(lines))

    @registry.command("stats")
    def stats_command(request: BotRequest, args: list[str]) -> None:
        chat_id = int(args[0]) if args and args[0].isdigit() else request.chat_id
        api.send_reply(request.chat_id, request.post_no, _format_stats(api.get_chat_stats(chat_id)))

    @registry.command("whoami")
    def whoami_command(request: BotRequest, args: list[str]) -> None:
        user = api.get_user_by_id(request.user_id)
        text = f"ID: {user.id}\nName: {user.name}\nUnique name: {user.unique_name}"
        api.send_reply(request.chat_id, request.post_no, text)

    @registry.action(ECHO_ACTION)
    def echo_action(request: ActionRequest) -> None:
        params = ", ".join(f"{key}={value}" for key, value in request.params.items()) or "(no params)"
        api.send_message(request.chat_id, f"{request.action}: {params}", reply_no=request.post_no or None)

    logger.info("bot.registry commands=%s actions=%s", registry.list_commands(), registry.list_actions())
    return registry
