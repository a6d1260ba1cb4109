from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import httpx
import pytest


ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "sdk"))

from verbosity_client.cli import main  # noqa: E402
from verbosity_client.output import format_chats  # noqa: E402
from verbosity_client.models import Chat  # noqa: E402

TOKEN = "0123456789abcdef0123botsecret"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("API_URL", "FILE_URL", "API_TOKEN", "BOT_USER_ID", "OUTPUT_MODE"):
        monkeypatch.delenv(f"VERBOSITY_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


def api_handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/core/chat/sync":
        return httpx.Response(200, json={"chats": [1, 2]})
    if path == "/core/chat":
        return httpx.Response(
            200,
            json={
                "chats": [
                    {"id": 1, "title": "General", "member_ids": [1, 2], "posts_count": 3},
                    {"id": 2, "title": "Random", "member_ids": [1, 2, 3], "posts_count": 1, "pm": True},
                ]
            },
        )
    if path == "/core/user":
        if request.url.params.get("ids") == "99":
            return httpx.Response(200, json={"users": []})
        return httpx.Response(200, json={"users": [{"id": 5, "name": "Ann", "unique_name": "ann"}]})
    if path == "/bot/message":
        return httpx.Response(200, json={"post_no": 11})
    return httpx.Response(404, text="not found")


def run(argv: list[str], handler=api_handler) -> tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    code = main(argv, transport=httpx.MockTransport(handler), out=out, err=err)
    return code, out.getvalue(), err.getvalue()


def test_missing_token_fails_with_usage() -> None:
    code, out, err = run(["--list-chats"])
    assert code == 1
    assert "Error: API token is required" in err
    assert "usage: verbosity-info" in err
    assert out == ""


def test_no_operations_prints_overview_without_network() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    code, out, _ = run(["--token", TOKEN], handler)
    assert code == 0
    assert "Available Commands:" in out
    assert calls == []


def test_connection_probe_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"code": "unauthorized", "message": "bad token"})

    code, _, err = run(["--token", TOKEN, "--list-chats"], handler)
    assert code == 1
    assert "Error: Failed to connect to Verbosity API: API error (code=unauthorized)" in err


def test_list_chats_text_output() -> None:
    code, out, err = run(["--token", TOKEN, "--list-chats"])
    assert code == 0
    assert "Total chats: 2" in out
    assert "Chat #2:" in out
    assert "Executed in" in err


def test_failed_operation_does_not_stop_others() -> None:
    code, out, err = run(["--token", TOKEN, "--user-id", "99", "--chat-id", "1"])
    assert code == 0
    assert "Error getting user by ID: user with id 99 not found" in err
    assert "Chat Information:" in out
    assert "Title: General" in out


def test_json_output_for_user() -> None:
    code, out, _ = run(["--token", TOKEN, "--output", "json", "--user-name", "ann"])
    assert code == 0
    payload = json.loads(out.strip().splitlines()[0])
    assert payload["unique_name"] == "ann"
    assert payload["is_bot"] is False


def test_top_chats_and_send_public() -> None:
    code, out, _ = run(
        ["--token", TOKEN, "--top-chats-members", "1", "--send-public", "1", "--message", "hi"]
    )
    assert code == 0
    assert "Top 1 chats by members:" in out
    assert "Random" in out
    assert "Message sent to chat 1:" in out
    assert "post_no: 11" in out


def test_send_without_message_is_not_an_operation() -> None:
    code, out, _ = run(["--token", TOKEN, "--send-public", "1"])
    assert code == 0
    assert "Available Commands:" in out


def test_format_chats_separates_blocks() -> None:
    text = format_chats([Chat(id=1, title="A"), Chat(id=2, title="B", organization_id=7)])
    assert text.startswith("Total chats: 2\n")
    assert "\n---\n" in text
    assert "Organization ID: 7" in text
    assert format_chats([]) == "No chats found"


@pytest.mark.parametrize("name, value", [("VERBOSITY_OUTPUT_MODE", "xml"), ("VERBOSITY_BOT_USER_ID", "abc")])
def test_invalid_environment_is_reported_not_raised(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    code, out, err = run(["--token", TOKEN, "--list-chats"])
    assert code == 1
    assert err.startswith("Error: invalid configuration:")
    assert name.removeprefix("VERBOSITY_").lower() in err
    assert "usage: verbosity-info" in err
    assert out == ""
