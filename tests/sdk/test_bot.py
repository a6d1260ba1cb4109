from __future__ import annotations

import base64
import hashlib
import hmac
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "sdk"))

from verbosity_client import (  # noqa: E402
    BotRequest,
    ParseError,
    SignatureError,
    VerbosityAPI,
    compute_signature,
    create_action_url,
    parse_action_request,
    parse_bot_request,
    split_bot_token,
    verify_signature,
)
from verbosity_client.bot import signature_key  # noqa: E402

TOKEN = "0123456789abcdef0123botsecret"
BODY = b'{"user_id": 1, "chat_id": 5, "post_no": 7, "text": "/start"}'


def _reference_signature(key: bytes, body: bytes) -> str:
    return base64.b64encode(hmac.new(key, body, hashlib.sha256).digest()).decode()


# --- Подпись ---


def test_signature_matches_reference_hmac() -> None:
    expected = _reference_signature(bytes.fromhex("0123456789abcdef0123"), BODY)
    assert compute_signature(TOKEN, BODY) == expected
    assert verify_signature(TOKEN, BODY, expected)
    assert verify_signature(TOKEN, BODY.decode(), expected)


def test_signature_key_drops_leading_zero_bytes() -> None:
    assert signature_key("0000000000000000abcd" + "tail") == b"\xab\xcd"
    assert signature_key("00000000000000000000") == b""


def test_signature_rejects_tampering() -> None:
    signature = compute_signature(TOKEN, BODY)
    tampered = ("A" if signature[0] != "A" else "B") + signature[1:]

    assert not verify_signature(TOKEN, BODY, tampered)
    assert not verify_signature(TOKEN, BODY + b" ", signature)
    assert not verify_signature(TOKEN, BODY, "")
    assert not verify_signature("1123456789abcdef0123botsecret", BODY, signature)


def test_signature_requires_long_enough_token() -> None:
    with pytest.raises(SignatureError, match="too short"):
        verify_signature("0123456789", BODY, "sig")


@pytest.mark.parametrize("token", ["zz23456789abcdef0123rest", "0x23456789abcdef0123rest", "0123456789_bcdef0123rest"])
def test_signature_rejects_non_hex_prefix(token: str) -> None:
    with pytest.raises(SignatureError, match="failed to parse"):
        compute_signature(token, BODY)


def test_client_verify_signature_uses_its_token() -> None:
    api = VerbosityAPI(api_token=TOKEN)
    try:
        assert api.verify_signature(BODY, compute_signature(TOKEN, BODY))
    finally:
        api.close()


# --- Токен бота ---


@pytest.mark.parametrize(
    "token, expected",
    [
        ("", ""),
        ("0123456789abcdef0123", ""),
        ("0123456789abcdef0123X", "X"),
        (TOKEN, "botsecret"),
    ],
)
def test_split_bot_token(token: str, expected: str) -> None:
    assert split_bot_token(token) == expected


# --- Разбор запросов ---


def test_parse_bot_request() -> None:
    request = parse_bot_request(
        '{"user_id": 1, "chat_id": 5, "post_no": 7, "text": "hi @bot",'
        ' "text_parsed": [{"type": "text", "value": "hi "}, {"type": "mention", "value": "bot"}],'
        ' "reply_no": null, "file_guid": "g-1", "file_name": "a.txt", "organization_id": 3}'
    )
    assert request.chat_id == 5
    assert request.organization_id == 3
    assert request.is_user_mentioned()
    assert not request.has_reply()
    assert request.has_file()
    assert request.file_name_or_empty == "a.txt"
    assert request.reply_text_or_empty == ""


@pytest.mark.parametrize("data", ["", "   ", "not json", "null", "[1, 2]", '{"user_id": "abc"}'])
def test_parse_bot_request_rejects_bad_input(data: str) -> None:
    with pytest.raises(ParseError):
        parse_bot_request(data)


def test_parse_action_request() -> None:
    request = parse_action_request(b'{"user_id": 1, "chat_id": 5, "post_no": 7, "action": "vote", "params": {"poll": "7"}}')
    assert request.action == "vote"
    assert request.params == {"poll": "7"}
    assert request.organization_id is None

    with pytest.raises(ParseError):
        parse_action_request(b"")


# --- Команды ---


@pytest.mark.parametrize(
    "text, expected",
    [
        ("/start", ("/start", [])),
        ("/stats 42", ("/stats", ["42"])),
        ("/say  hello\tbig\nworld ", ("/say", ["hello", "big", "world"])),
        ("hello /start", ("", [])),
        ("", ("", [])),
    ],
)
def test_get_command(text: str, expected: tuple[str, list[str]]) -> None:
    assert BotRequest(text=text).get_command() == expected


def test_is_command() -> None:
    assert BotRequest(text="/help").is_command()
    assert not BotRequest(text=" /help").is_command()


@pytest.mark.parametrize("text", ["", "hi"])
@pytest.mark.parametrize("file_guid", [None, "g-1"])
@pytest.mark.parametrize("attachments", [[], ["a-1"]])
def test_message_is_empty(text: str, file_guid: str | None, attachments: list[str]) -> None:
    request = BotRequest(text=text, file_guid=file_guid, attachments=attachments)
    expected = text == "" and file_guid is None and not attachments
    assert request.message_is_empty() is expected


def test_mention_of_someone_else_is_not_bot_mention() -> None:
    request = BotRequest(text="hi", text_parsed=[{"type": "mention", "value": "ann"}])
    assert not request.is_user_mentioned()


# --- Action-ссылки ---


def test_create_action_url() -> None:
    assert create_action_url("vote", "Да", {"poll": "7"}) == "bot://vote?title=%D0%94%D0%B0&poll=7"
    assert create_action_url("echo", "Hi") == "bot://echo?title=Hi"


def test_create_action_url_escapes_reserved_characters() -> None:
    url = create_action_url("a/b", "x y", {"q&a": "1=2", "path": "/tmp"})
    assert url == "bot://a%2Fb?title=x%20y&q%26a=1%3D2&path=%2Ftmp"
