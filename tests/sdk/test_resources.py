from __future__ import annotations

import sys
from pathlib import Path

import httpx
import pytest


ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "sdk"))

from verbosity_client import (  # noqa: E402
    InvalidArgumentError,
    NotFoundError,
    VerbosityAPI,
    is_not_found_error,
)

TOKEN = "0123456789abcdef0123botsecret"

CHATS = [
    {"id": 1, "title": "General", "member_ids": [1, 2, 3], "admin_ids": [1], "posts_count": 10, "organization_id": 7},
    {"id": 2, "title": "Random", "member_ids": [1, 2, 3], "posts_count": 40, "is_favorite": True},
    {"id": 3, "title": "Ann & Bob", "member_ids": [1, 2], "posts_count": 5, "pm": True, "organization_id": None},
    {"id": 4, "title": "Big", "member_ids": [1, 2, 3, 4, 5], "posts_count": 40, "organization_id": 8},
]

ORGS = [
    {"id": 7, "slug": "acme", "title": "Acme", "users": [1, 2], "admins": [1], "groups": [10], "is_member": True},
    {"id": 8, "slug": "globex", "title": "Globex", "users": [1, 2, 3], "is_admin": True, "is_member": True},
    {"id": 9, "slug": "initech", "title": "Initech", "users": [4, 5, 6], "guests": [1]},
]


class FakeServer:
    def __init__(self, chats: list[dict] | None = None, orgs: list[dict] | None = None):
        self.chats = CHATS if chats is None else chats
        self.orgs = ORGS if orgs is None else orgs
        self.requests: list[httpx.Request] = []

    def _pick(self, items: list[dict], request: httpx.Request) -> list[dict]:
        wanted = [int(item) for item in request.url.params["ids"].split(",")]
        return [item for item in items if item["id"] in wanted]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/core/chat/sync":
            return httpx.Response(200, json={"chats": [chat["id"] for chat in self.chats]})
        if path == "/core/chat":
            return httpx.Response(200, json={"chats": self._pick(self.chats, request)})
        if path == "/core/org/sync":
            return httpx.Response(200, json={"ids": [org["id"] for org in self.orgs]})
        if path == "/core/org":
            return httpx.Response(200, json={"orgs": self._pick(self.orgs, request)})
        if path == "/core/user":
            if "unames" in request.url.params:
                names = request.url.params["unames"].split(",")
                return httpx.Response(200, json={"users": [{"id": 5, "unique_name": n} for n in names if n != "ghost"]})
            ids = [int(item) for item in request.url.params["ids"].split(",")]
            return httpx.Response(200, json={"users": [{"id": i, "name": f"user{i}"} for i in ids if i != 99]})
        if path.startswith("/core/chat/pm/"):
            return httpx.Response(200, json={"id": 50, "pm": True, "member_ids": [1, int(path.rsplit("/", 1)[1])]})
        return httpx.Response(404, json={"code": "not_found", "message": f"{path} not found"})


def make_api(server: FakeServer, bot_user_id: int | None = None) -> VerbosityAPI:
    return VerbosityAPI(
        "http://api.test",
        "http://file.test",
        TOKEN,
        bot_user_id=bot_user_id,
        transport=httpx.MockTransport(server),
    )


# --- Пользователи ---


def test_get_user_by_id_and_missing_user() -> None:
    api = make_api(FakeServer())
    assert api.get_user_by_id(3).name == "user3"

    with pytest.raises(NotFoundError, match="user with id 99 not found"):
        api.get_user_by_id(99)


def test_get_users_by_unique_names_joins_names() -> None:
    server = FakeServer()
    users = make_api(server).get_users_by_unique_names(["ann", "bob"])

    assert [user.unique_name for user in users] == ["ann", "bob"]
    assert server.requests[0].url.params["unames"] == "ann,bob"


def test_get_user_by_unique_name_not_found() -> None:
    with pytest.raises(NotFoundError):
        make_api(FakeServer()).get_user_by_unique_name("ghost")


def test_empty_id_lists_are_rejected_without_request() -> None:
    server = FakeServer()
    api = make_api(server)

    for call in (api.get_users_by_ids, api.get_users_by_unique_names, api.get_chats_by_ids, api.get_organizations_by_ids):
        with pytest.raises(InvalidArgumentError):
            call([])
    assert server.requests == []


def test_get_bot_info_requires_bot_user_id() -> None:
    server = FakeServer()
    with pytest.raises(InvalidArgumentError):
        make_api(server).get_bot_info()
    assert server.requests == []

    assert make_api(server, bot_user_id=2).get_bot_info().id == 2


# --- Чаты ---


def test_get_all_chats_fetches_ids_then_details() -> None:
    server = FakeServer()
    chats = make_api(server).get_all_chats()

    assert [chat.id for chat in chats] == [1, 2, 3, 4]
    assert [request.url.path for request in server.requests] == ["/core/chat/sync", "/core/chat"]
    assert server.requests[1].url.params["ids"] == "1,2,3,4"


def test_get_all_chats_with_no_ids_skips_second_request() -> None:
    server = FakeServer(chats=[])
    assert make_api(server).get_all_chats() == []
    assert len(server.requests) == 1


def test_chat_filters() -> None:
    api = make_api(FakeServer())
    assert [chat.id for chat in api.get_favorite_chats()] == [2]
    assert [chat.id for chat in api.get_public_chats()] == [1, 2, 4]
    assert [chat.id for chat in api.get_private_chats()] == [3]
    assert [chat.id for chat in api.user_chats(4)] == [4]


def test_find_chat_by_title() -> None:
    api = make_api(FakeServer())
    assert api.find_chat_by_title("Random").id == 2

    with pytest.raises(NotFoundError) as exc_info:
        api.find_chat_by_title("random")
    assert is_not_found_error(exc_info.value)


def test_chat_membership_helpers() -> None:
    api = make_api(FakeServer())
    assert api.chat_member_ids(3) == [1, 2]
    assert api.chat_admin_ids(1) == [1]
    assert api.is_chat_member(4, 5)
    assert not api.is_chat_member(3, 5)
    assert api.is_chat_admin(1, 1)
    assert not api.is_chat_admin(2, 1)


def test_get_chat_by_id_missing() -> None:
    with pytest.raises(NotFoundError, match="chat with id 42 not found"):
        make_api(FakeServer()).get_chat_by_id(42)


def test_top_chats_by_members_keeps_order_of_ties() -> None:
    api = make_api(FakeServer())
    assert [chat.id for chat in api.get_top_chats_by_members(3)] == [4, 1, 2]
    assert [chat.id for chat in api.get_top_chats_by_members(0)] == [4, 1, 2, 3]
    assert [chat.id for chat in api.get_top_chats_by_members(100)] == [4, 1, 2, 3]


def test_top_chats_by_posts() -> None:
    api = make_api(FakeServer())
    assert [chat.id for chat in api.get_top_chats_by_posts(2)] == [2, 4]
    assert [chat.id for chat in api.get_top_chats_by_posts(-1)] == [2, 4, 1, 3]


def test_get_chat_stats() -> None:
    stats = make_api(FakeServer()).get_chat_stats(1)
    assert stats["title"] == "General"
    assert stats["members_count"] == 3
    assert stats["admins_count"] == 1
    assert stats["posts_count"] == 10
    assert stats["is_private"] is False


def test_get_my_chats_uses_bot_user_id() -> None:
    server = FakeServer()
    with pytest.raises(InvalidArgumentError):
        make_api(server).get_my_chats()
    assert server.requests == []

    assert [chat.id for chat in make_api(server, bot_user_id=5).get_my_chats()] == [4]
    assert [chat.id for chat in make_api(server).get_my_chats(bot_user_id=3)] == [1, 2, 4]


def test_get_or_create_private_chat_posts_to_pm_endpoint() -> None:
    server = FakeServer()
    chat = make_api(server).get_or_create_private_chat(12)

    assert chat.pm is True
    assert server.requests[0].method == "POST"
    assert server.requests[0].url.path == "/core/chat/pm/12"


# --- Организации ---


def test_get_all_organizations_and_filters() -> None:
    api = make_api(FakeServer())
    assert [org.id for org in api.get_all_organizations()] == [7, 8, 9]
    assert [org.id for org in api.get_my_organizations()] == [7, 8]
    assert [org.id for org in api.get_admin_organizations()] == [8]


def test_find_organization_by_title_and_slug() -> None:
    api = make_api(FakeServer())
    assert api.find_organization_by_title("Globex").id == 8
    assert api.find_organization_by_slug("initech").id == 9

    with pytest.raises(NotFoundError):
        api.find_organization_by_slug("umbrella")


def test_organization_members_and_counts() -> None:
    api = make_api(FakeServer())
    assert api.organization_members(7) == [1, 2]
    assert api.organization_admins(7) == [1]
    assert api.organization_user_count(9) == 3
    assert api.organization_group_count(7) == 1
    assert api.is_org_member(8, 3)
    assert not api.is_org_admin(8, 3)


def test_get_organization_stats() -> None:
    stats = make_api(FakeServer()).get_organization_stats(9)
    assert stats["slug"] == "initech"
    assert stats["users_count"] == 3
    assert stats["guests_count"] == 1
    assert stats["is_member"] is False


def test_get_organization_chats_skips_chats_without_org() -> None:
    api = make_api(FakeServer())
    assert [chat.id for chat in api.get_organization_chats(7)] == [1]
    assert [chat.id for chat in api.get_organization_chats(8)] == [4]


def test_top_orgs_by_users_keeps_order_of_ties() -> None:
    api = make_api(FakeServer())
    assert [org.id for org in api.get_top_orgs_by_users(2)] == [8, 9]


def test_get_organization_by_id_missing() -> None:
    with pytest.raises(NotFoundError, match="organization with id 1 not found"):
        make_api(FakeServer()).get_organization_by_id(1)
