"""
Вывод результатов CLI в трёх режимах: text, json (компактно), json-pretty.

Принимает модели SDK и словари статистики, ничего не знает о HTTP.
"""

from __future__ import annotations

import json
import sys
from typing import Any, TextIO

from .models import Chat, MessageResponse, Org, PrivateMessageResponse, User


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


class OutputPrinter:
    """Печать сущностей Verbosity в выбранном режиме."""

    def __init__(self, mode: str = "text", out: TextIO | None = None):
        self.mode = mode
        self.out = out or sys.stdout

    # --- Низкоуровневые методы ---

    def line(self, text: str = "") -> None:
        print(text, file=self.out)

    def emit_json(self, data: Any) -> None:
        if self.mode == "json-pretty":
            text = json.dumps(data, ensure_ascii=False, indent=2, default=str)
        else:
            text = json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
        self.line(text)

    @property
    def is_json(self) -> bool:
        return self.mode in ("json", "json-pretty")

    def data(self, data: dict[str, Any]) -> None:
        if self.is_json:
            self.emit_json(data)
            return
        for key, value in data.items():
            self.line(f"  {key}: {value}")

    # --- Сущности ---

    def user(self, user: User) -> None:
        if self.is_json:
            self.emit_json({
                "id": user.id,
                "name": user.name,
                "unique_name": user.unique_name,
                "info": user.info,
                "is_bot": user.is_bot,
                "is_active": user.active,
                "is_deleted": user.deleted,
                "organizations": user.organizations,
                "time_created": _iso(user.time_created),
                "time_updated": _iso(user.time_updated),
            })
        else:
            self.line("User Information:")
            self.line(f"  ID: {user.id}")
            self.line(f"  Name: {user.name}")
            self.line(f"  Unique Name: {user.unique_name}")
            if user.info:
                self.line(f"  Info: {user.info}")
            self.line(f"  Is Bot: {user.is_bot}")
            self.line(f"  Active: {user.active}")
            if user.organizations:
                self.line(f"  Organizations: {user.organizations}")
        self.line()

    def chat(self, chat: Chat) -> None:
        if self.is_json:
            data: dict[str, Any] = {
                "id": chat.id,
                "title": chat.title,
                "description": chat.description,
                "is_private": chat.pm,
                "is_read_only": chat.read_only,
                "is_favorite": chat.is_favorite,
                "posts_count": chat.posts_count,
                "members_count": len(chat.member_ids),
                "admins_count": len(chat.admin_ids),
                "member_ids": chat.member_ids,
                "admin_ids": chat.admin_ids,
                "time_created": _iso(chat.time_created),
                "time_updated": _iso(chat.time_updated),
            }
            if chat.organization_id is not None:
                data["organization_id"] = chat.organization_id
            self.emit_json(data)
        else:
            self.line("Chat Information:")
            self.line(f"  ID: {chat.id}")
            self.line(f"  Title: {chat.title}")
            if chat.description:
                self.line(f"  Description: {chat.description}")
            self.line(f"  Private: {chat.pm}")
            self.line(f"  Read Only: {chat.read_only}")
            self.line(f"  Favorite: {chat.is_favorite}")
            self.line(f"  Posts: {chat.posts_count}")
            self.line(f"  Members: {len(chat.member_ids)}")
            self.line(f"  Admins: {len(chat.admin_ids)}")
            if chat.organization_id is not None:
                self.line(f"  Organization ID: {chat.organization_id}")
        self.line()

    def org(self, org: Org) -> None:
        if self.is_json:
            self.emit_json({
                "id": org.id,
                "slug": org.slug,
                "title": org.title,
                "description": org.description,
                "email_domain": org.email_domain,
                "users_count": len(org.users),
                "admins_count": len(org.admins),
                "groups_count": len(org.groups),
                "guests_count": len(org.guests),
                "is_member": org.is_member,
                "is_admin": org.is_admin,
                "state": org.state,
                "default_chat_id": org.default_chat_id,
                "time_created": _iso(org.time_created),
                "time_updated": _iso(org.time_updated),
            })
        else:
            self.line("Organization Information:")
            self.line(f"  ID: {org.id}")
            self.line(f"  Slug: {org.slug}")
            self.line(f"  Title: {org.title}")
            if org.description:
                self.line(f"  Description: {org.description}")
            self.line(f"  Email Domain: {org.email_domain}")
            self.line(f"  Users: {len(org.users)}")
            self.line(f"  Admins: {len(org.admins)}")
            self.line(f"  Groups: {len(org.groups)}")
            self.line(f"  Guests: {len(org.guests)}")
            self.line(f"  Is Member: {org.is_member}")
            self.line(f"  Is Admin: {org.is_admin}")
            self.line(f"  State: {org.state}")
            self.line(f"  Default Chat ID: {org.default_chat_id}")
        self.line()

    def chats(self, chats: list[Chat]) -> None:
        if not chats:
            self.line("No chats found")
            return
        if self.is_json:
            self.emit_json({"total": len(chats), "chats": [chat.model_dump(mode="json") for chat in chats]})
        else:
            self.line(format_chats(chats))
        self.line()

    def orgs(self, orgs: list[Org]) -> None:
        if not orgs:
            self.line("No organizations found")
            return
        if self.is_json:
            self.emit_json({"total": len(orgs), "orgs": [org.model_dump(mode="json") for org in orgs]})
        else:
            self.line(format_orgs(orgs))
        self.line()

    def member_ids(self, title: str, ids: list[int]) -> None:
        if not ids:
            self.line(f"{title}: (none)")
            return
        if self.is_json:
            self.emit_json({"title": title, "total": len(ids), "ids": ids})
        else:
            self.line(f"{title} ({len(ids)}):")
            self.line(", ".join(str(item) for item in ids))
        self.line()

    def stats(self, stats: dict[str, Any]) -> None:
        self.data(stats)
        self.line()

    def message_response(self, response: MessageResponse) -> None:
        self.data({"post_no": response.post_no})

    def private_message_response(self, response: PrivateMessageResponse) -> None:
        self.data({"chat_id": response.chat_id, "post_no": response.post_no})


def format_chats(chats: list[Chat]) -> str:
    """Читаемый список чатов (блоки, разделённые ``---``)."""
    if not chats:
        return "No chats found"
    blocks = [f"Total chats: {len(chats)}\n"]
    for index, chat in enumerate(chats, start=1):
        lines = [f"Chat #{index}:", f"  ID: {chat.id}", f"  Title: {chat.title}"]
        if chat.description:
            lines.append(f"  Description: {chat.description}")
        lines.append(f"  Members: {len(chat.member_ids)}")
        lines.append(f"  Posts: {chat.posts_count}")
        if chat.organization_id is not None:
            lines.append(f"  Organization ID: {chat.organization_id}")
        lines.append(f"  Private: {chat.pm}")
        blocks.append("\n".join(lines))
    return blocks[0] + "\n---\n".join(blocks[1:])


def format_orgs(orgs: list[Org]) -> str:
    """Читаемый список организаций."""
    if not orgs:
        return "No organizations found"
    blocks = [f"Total organizations: {len(orgs)}\n"]
    for index, org in enumerate(orgs, start=1):
        lines = [f"Organization #{index}:", f"  ID: {org.id}", f"  Slug: {org.slug}", f"  Title: {org.title}"]
        if org.description:
            lines.append(f"  Description: {org.description}")
        lines.append(f"  Users: {len(org.users)}")
        lines.append(f"  Is Member: {org.is_member}")
        lines.append(f"  Is Admin: {org.is_admin}")
        blocks.append("\n".join(lines))
    return blocks[0] + "\n---\n".join(blocks[1:])
