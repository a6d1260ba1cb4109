"""
Info-Bot — консольная утилита для просмотра чатов, организаций и пользователей Verbosity.

Использование:
    verbosity-info --list-chats --token YOUR_TOKEN
    verbosity-info --chat-stats 456 --output json-pretty
    verbosity-info --send-public 456 --message "Привет"

Переменные окружения:
    VERBOSITY_API_URL, VERBOSITY_FILE_URL, VERBOSITY_API_TOKEN,
    VERBOSITY_BOT_USER_ID, VERBOSITY_OUTPUT_MODE
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Any, Callable, Sequence, TextIO

import httpx
from pydantic import ValidationError as PydanticValidationError

from . import __version__
from .client import VerbosityAPI
from .config import load_settings
from .exceptions import ConfigurationError, VerbosityError
from .output import OutputPrinter

logger = logging.getLogger(__name__)

Operation = tuple[str, Callable[[], None]]

COMMANDS_OVERVIEW = """\
Available Commands:

User Information:
  --user-id <id>             Get info about specific user by ID
  --user-name <name>         Get info about specific user by unique name

Chat Information:
  --list-chats               List all available chats
  --chat-id <id>             Get info about specific chat by ID
  --chat-title <title>       Find chat by title
  --chat-members <id>        Get member list for a chat
  --chat-admins <id>         Get admin list for a chat
  --chat-stats <id>          Show statistics for a chat
  --my-chats                 Show chats where bot is a member
  --favorite-chats           Show favorite chats
  --public-chats             Show public (non-private) chats
  --private-chats            Show private chats
  --top-chats-members <n>    Show top N chats by members
  --top-chats-posts <n>      Show top N chats by posts

Organization Information:
  --list-orgs                List all organizations
  --org-id <id>              Get info about specific organization by ID
  --org-title <title>        Find organization by title
  --org-slug <slug>          Find organization by slug
  --org-members <id>         Get member list for an organization
  --org-admins <id>          Get admin list for an organization
  --org-stats <id>           Show statistics for an organization
  --my-orgs                  Show organizations where bot is member
  --admin-orgs               Show organizations where bot is admin
  --top-orgs-users <n>       Show top N organizations by users

Message Sending:
  --send-private <id>        Send private message to user by ID
  --send-public <id>         Send message to chat by ID
  --message <text>           Message text (use with --send-private or --send-public)
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verbosity-info",
        description=f"Info-Bot for Verbosity API v{__version__}",
        epilog="Environment: VERBOSITY_API_URL, VERBOSITY_FILE_URL, VERBOSITY_API_TOKEN, "
        "VERBOSITY_BOT_USER_ID, VERBOSITY_OUTPUT_MODE",
    )
    parser.add_argument("--version", action="version", version=f"Info-Bot for Verbosity API v{__version__}")
    parser.add_argument("--api-url", help="API URL (default: https://api.verbosity.io)")
    parser.add_argument("--file-url", help="File upload URL (default: https://file.verbosity.io)")
    parser.add_argument("--token", help="API token (or VERBOSITY_API_TOKEN env)")
    parser.add_argument("--output", choices=["text", "json", "json-pretty"], help="Output mode")
    parser.add_argument("--bot-user-id", type=int, help="User id of the bot (for --my-chats)")
    parser.add_argument("--verbose", action="store_true", help="Log HTTP calls to stderr")

    users = parser.add_argument_group("users")
    users.add_argument("--user-id", type=int, default=0)
    users.add_argument("--user-name", default="")

    chats = parser.add_argument_group("chats")
    chats.add_argument("--chat-id", type=int, default=0)
    chats.add_argument("--chat-title", default="")
    chats.add_argument("--list-chats", action="store_true")
    chats.add_argument("--chat-members", type=int, default=0)
    chats.add_argument("--chat-admins", type=int, default=0)
    chats.add_argument("--chat-stats", type=int, default=0)
    chats.add_argument("--my-chats", action="store_true")
    chats.add_argument("--favorite-chats", action="store_true")
    chats.add_argument("--public-chats", action="store_true")
    chats.add_argument("--private-chats", action="store_true")
    chats.add_argument("--top-chats-members", type=int, default=0)
    chats.add_argument("--top-chats-posts", type=int, default=0)

    orgs = parser.add_argument_group("organizations")
    orgs.add_argument("--org-id", type=int, default=0)
    orgs.add_argument("--org-title", default="")
    orgs.add_argument("--org-slug", default="")
    orgs.add_argument("--list-orgs", action="store_true")
    orgs.add_argument("--org-members", type=int, default=0)
    orgs.add_argument("--org-admins", type=int, default=0)
    orgs.add_argument("--org-stats", type=int, default=0)
    orgs.add_argument("--my-orgs", action="store_true")
    orgs.add_argument("--admin-orgs", action="store_true")
    orgs.add_argument("--top-orgs-users", type=int, default=0)

    messages = parser.add_argument_group("messages")
    messages.add_argument("--send-private", type=int, default=0)
    messages.add_argument("--send-public", type=int, default=0)
    messages.add_argument("--message", default="")
    return parser


def plan_operations(args: argparse.Namespace, api: VerbosityAPI, printer: OutputPrinter) -> list[Operation]:
    """Список запрошенных операций в фиксированном порядке: пользователи, чаты, организации, сообщения."""
    ops: list[Operation] = []

    def add(label: str, action: Callable[[], None]) -> None:
        ops.append((label, action))

    def titled(title: str, render: Callable[[Any], None], fetch: Callable[[], Any]) -> Callable[[], None]:
        def run() -> None:
            result = fetch()
            printer.line(title)
            render(result)

        return run

    # Пользователи
    if args.user_id:
        add("getting user by ID", lambda: printer.user(api.get_user_by_id(args.user_id)))
    if args.user_name:
        add("getting user by name", lambda: printer.user(api.get_user_by_unique_name(args.user_name)))

    # Чаты
    if args.chat_id:
        add("getting chat by ID", lambda: printer.chat(api.get_chat_by_id(args.chat_id)))
    if args.chat_title:
        add("finding chat by title", lambda: printer.chat(api.find_chat_by_title(args.chat_title)))
    if args.list_chats:
        add("listing chats", lambda: printer.chats(api.get_all_chats()))
    if args.chat_members:
        add(
            "getting chat members",
            lambda: printer.member_ids("Chat Members", api.chat_member_ids(args.chat_members)),
        )
    if args.chat_admins:
        add(
            "getting chat admins",
            lambda: printer.member_ids("Chat Admins", api.chat_admin_ids(args.chat_admins)),
        )
    if args.top_chats_members > 0:
        add(
            "getting top chats by members",
            titled(
                f"Top {args.top_chats_members} chats by members:",
                printer.chats,
                lambda: api.get_top_chats_by_members(args.top_chats_members),
            ),
        )
    if args.top_chats_posts > 0:
        add(
            "getting top chats by posts",
            titled(
                f"Top {args.top_chats_posts} chats by posts:",
                printer.chats,
                lambda: api.get_top_chats_by_posts(args.top_chats_posts),
            ),
        )
    if args.my_chats:
        add("getting my chats", titled("Chats where bot is a member:", printer.chats, api.get_my_chats))
    if args.favorite_chats:
        add("getting favorite chats", titled("Favorite chats:", printer.chats, api.get_favorite_chats))
    if args.public_chats:
        add("getting public chats", titled("Public chats:", printer.chats, api.get_public_chats))
    if args.private_chats:
        add("getting private chats", titled("Private chats:", printer.chats, api.get_private_chats))
    if args.chat_stats:
        add(
            "getting chat stats",
            titled(
                f"Statistics for chat {args.chat_stats}:",
                printer.stats,
                lambda: api.get_chat_stats(args.chat_stats),
            ),
        )

    # Организации
    if args.org_id:
        add("getting organization by ID", lambda: printer.org(api.get_organization_by_id(args.org_id)))
    if args.org_title:
        add("finding organization by title", lambda: printer.org(api.find_organization_by_title(args.org_title)))
    if args.org_slug:
        add("finding organization by slug", lambda: printer.org(api.find_organization_by_slug(args.org_slug)))
    if args.list_orgs:
        add("listing organizations", lambda: printer.orgs(api.get_all_organizations()))
    if args.org_members:
        add(
            "getting organization members",
            lambda: printer.member_ids("Organization Members", api.organization_members(args.org_members)),
        )
    if args.org_admins:
        add(
            "getting organization admins",
            lambda: printer.member_ids("Organization Admins", api.organization_admins(args.org_admins)),
        )
    if args.top_orgs_users > 0:
        add(
            "getting top organizations by users",
            titled(
                f"Top {args.top_orgs_users} organizations by users:",
                printer.orgs,
                lambda: api.get_top_orgs_by_users(args.top_orgs_users),
            ),
        )
    if args.my_orgs:
        add(
            "getting my organizations",
            titled("Organizations where bot is a member:", printer.orgs, api.get_my_organizations),
        )
    if args.admin_orgs:
        add(
            "getting admin organizations",
            titled("Organizations where bot is an admin:", printer.orgs, api.get_admin_organizations),
        )
    if args.org_stats:
        add(
            "getting organization stats",
            titled(
                f"Statistics for organization {args.org_stats}:",
                printer.stats,
                lambda: api.get_organization_stats(args.org_stats),
            ),
        )

    # Сообщения
    if args.send_private and args.message:
        add(
            "sending private message",
            titled(
                f"Private message sent to user {args.send_private}:",
                printer.private_message_response,
                lambda: api.send_private_message_by_id(args.send_private, args.message),
            ),
        )
    if args.send_public and args.message:
        add(
            "sending message to chat",
            titled(
                f"Message sent to chat {args.send_public}:",
                printer.message_response,
                lambda: api.send_message(args.send_public, args.message),
            ),
        )
    return ops


def run_operations(ops: list[Operation], err: TextIO) -> int:
    """Выполнить операции; ошибка одной не прерывает остальные. Возвращает число ошибок."""
    failures = 0
    for label, action in ops:
        try:
            action()
        except VerbosityError as exc:
            failures += 1
            print(f"Error {label}: {exc}", file=err)
    return failures


def main(
    argv: Sequence[str] | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    out: TextIO | None = None,
    err: TextIO | None = None,
) -> int:
    out = out or sys.stdout
    err = err or sys.stderr
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        stream=err,
    )

    try:
        settings = load_settings(
            api_url=args.api_url,
            file_url=args.file_url,
            api_token=args.token,
            bot_user_id=args.bot_user_id,
            output_mode=args.output,
        )
    except PydanticValidationError as exc:
        print(f"Error: invalid configuration: {exc}\n", file=err)
        parser.print_usage(err)
        return 1
    try:
        settings.require_token()
    except ConfigurationError as exc:
        print(f"Error: {exc}\n", file=err)
        parser.print_usage(err)
        return 1

    printer = OutputPrinter(settings.output_mode, out)
    with VerbosityAPI.from_settings(settings, transport=transport) as api:
        ops = plan_operations(args, api, printer)
        if not ops:
            printer.line(f"Info-Bot for Verbosity API v{__version__}\n")
            printer.line(COMMANDS_OVERVIEW)
            return 0

        # Проверка подключения
        try:
            api.get_chat_ids()
        except VerbosityError as exc:
            print(f"Error: Failed to connect to Verbosity API: {exc}", file=err)
            return 1

        started = time.perf_counter()
        run_operations(ops, err)
        print(f"\nExecuted in {time.perf_counter() - started:.3f}s", file=err)
    return 0


if __name__ == "__main__":
    sys.exit(main())
