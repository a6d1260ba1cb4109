#!/usr/bin/env python3
"""
Смоук-скрипт: отправка, ответ, редактирование сообщения и загрузка файла.

Использование:
    python scripts/smoke_send.py --chat-id 456
    python scripts/smoke_send.py --chat-id 456 --skip-upload
    python scripts/smoke_send.py --chat-id 456 --api-url http://localhost:8080

Переменные окружения:
    VERBOSITY_API_TOKEN — токен бота (обязателен)
    VERBOSITY_API_URL   — базовый URL API
    TEST_CHAT_ID        — chat_id для тестов (вместо --chat-id)
"""

from __future__ import annotations

import argparse
import os
import sys

# SDK может быть установлен через pip или лежать рядом
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "sdk"))

from verbosity_client import (  # noqa: E402
    UpdateMessageRequest,
    VerbosityAPI,
    VerbosityError,
    create_action_url,
    load_settings,
)


def main(api: VerbosityAPI, chat_id: int, skip_upload: bool = False) -> None:
    # 1. Проверка подключения
    print("1. Проверка /core/chat/sync ...")
    ids = api.get_chat_ids()
    print(f"   Доступно чатов: {len(ids)}")

    # 2. Информация о чате
    print(f"\n2. Статистика чата {chat_id} ...")
    try:
        for key, value in api.get_chat_stats(chat_id).items():
            print(f"   {key}: {value}")
    except VerbosityError as e:
        print(f"   Ошибка: {e}")

    # 3. Отправка сообщения
    print(f"\n3. Отправка сообщения в {chat_id} ...")
    try:
        msg = api.send_message(chat_id, "Тест verbosity-client\n\nЭто тестовое сообщение, отправленное через SDK.")
        print(f"   Сообщение создано: post_no={msg.post_no}")
    except VerbosityError as e:
        print(f"   Ошибка отправки: {e}")
        return

    # 4. Ответ на сообщение
    print(f"\n4. Ответ на post_no={msg.post_no} ...")
    try:
        reply = api.send_reply(chat_id, msg.post_no, "Ответ через SDK")
        print(f"   post_no={reply.post_no}")
    except VerbosityError as e:
        print(f"   Ошибка ответа: {e}")

    # 5. Редактирование сообщения
    print(f"\n5. Редактирование сообщения post_no={msg.post_no} ...")
    try:
        edited = api.update_message(
            chat_id,
            msg.post_no,
            UpdateMessageRequest(text="Тест verbosity-client\n\nСообщение отредактировано через SDK."),
        )
        print(f"   uuid={edited.uuid}, ver={edited.version}")
    except VerbosityError as e:
        print(f"   Ошибка редактирования: {e}")

    # 6. Сообщение с action-ссылкой
    print("\n6. Отправка сообщения с action-ссылкой ...")
    try:
        url = create_action_url("echo", "Нажми меня", {"text": "hello"})
        msg2 = api.send_message(chat_id, f"Кнопка: {url}")
        print(f"   post_no={msg2.post_no}")
    except VerbosityError as e:
        print(f"   Ошибка: {e}")

    # 7. Загрузка файла
    if not skip_upload:
        print("\n7. Загрузка текстового файла ...")
        try:
            uploaded = api.upload_text_file(chat_id, "Файл из смоук-теста verbosity-client\n", "smoke.txt")
            print(f"   guid={uploaded.guid}")
            api.update_message_with_attachments(
                chat_id, msg.post_no, "Сообщение с вложением", [uploaded.guid]
            )
            print("   вложение прикреплено к первому сообщению")
        except VerbosityError as e:
            print(f"   Ошибка загрузки: {e}")

    print("\nГотово.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Смоук-тест отправки сообщений через verbosity-client")
    parser.add_argument(
        "--chat-id",
        type=int,
        default=int(os.environ.get("TEST_CHAT_ID") or 0),
        help="chat_id для отправки (или TEST_CHAT_ID из окружения)",
    )
    parser.add_argument("--api-url", help="Базовый URL API (или VERBOSITY_API_URL)")
    parser.add_argument("--token", help="API-токен (или VERBOSITY_API_TOKEN)")
    parser.add_argument("--skip-upload", action="store_true", help="Не загружать файл")
    args = parser.parse_args()

    if not args.chat_id:
        parser.error("Укажите --chat-id или TEST_CHAT_ID")

    settings = load_settings(api_url=args.api_url, api_token=args.token)
    try:
        settings.require_token()
    except VerbosityError as e:
        parser.error(str(e))

    with VerbosityAPI.from_settings(settings) as client:
        main(client, args.chat_id, args.skip_upload)
