from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from adapters.calculator.keypad_machine import build_keypad
from adapters.telegram.bot_api import TelegramApiError, TelegramBotApi, keypad_markup
from contracts import InlineArticle


def _api(handler) -> tuple[TelegramBotApi, list[tuple[str, dict]]]:
    seen: list[tuple[str, dict]] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, json.loads(request.content)))
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    api = TelegramBotApi("123:abc", base_url="https://tg.example.test", client=client)
    return api, seen


def _ok(result) -> httpx.Response:
    return httpx.Response(200, json={"ok": True, "result": result})


def _error(code: int, description: str) -> httpx.Response:
    return httpx.Response(code, json={"ok": False, "error_code": code, "description": description})


def test_missing_token_is_rejected():
    with pytest.raises(ValueError):
        TelegramBotApi("")


def test_send_text_posts_keypad_and_returns_message_id():
    api, seen = _api(lambda request: _ok({"message_id": 321}))

    message_id = asyncio.run(api.send_text(5, "hi", keypad=build_keypad(), parse_mode="Markdown"))

    path, body = seen[0]
    assert message_id == 321
    assert path.endswith("/sendMessage")
    assert body["chat_id"] == 5
    assert body["parse_mode"] == "Markdown"
    assert body["reply_markup"]["inline_keyboard"][4][3] == {"text": "=", "callback_data": "k:="}


def test_send_text_without_keypad_has_no_markup():
    api, seen = _api(lambda request: _ok({"message_id": 1}))

    asyncio.run(api.send_text(5, "plain"))

    assert seen[0][1] == {"chat_id": 5, "text": "plain"}


def test_send_text_raises_api_error():
    api, _ = _api(lambda request: _error(403, "Forbidden: bot was blocked by the user"))

    with pytest.raises(TelegramApiError) as exc_info:
        asyncio.run(api.send_text(5, "hi"))

    assert exc_info.value.error_code == 403
    assert exc_info.value.method == "sendMessage"


def test_edit_text_success():
    api, seen = _api(lambda request: _ok({"message_id": 9}))

    assert asyncio.run(api.edit_text(5, 9, "Expr: 1")) is True
    assert seen[0][0].endswith("/editMessageText")
    assert seen[0][1]["message_id"] == 9


def test_edit_text_not_modified_counts_as_success():
    api, _ = _api(lambda request: _error(400, "Bad Request: message is not modified: specified new message content"))

    assert asyncio.run(api.edit_text(5, 9, "same")) is True


def test_edit_text_refused_returns_false():
    api, _ = _api(lambda request: _error(400, "Bad Request: message to edit not found"))

    assert asyncio.run(api.edit_text(5, 9, "gone")) is False


def test_edit_text_network_error_returns_false():
    def _boom(request):
        raise httpx.ConnectError("connection refused")

    api, _ = _api(_boom)

    assert asyncio.run(api.edit_text(5, 9, "x")) is False


def test_answer_search_query_payload():
    api, seen = _api(lambda request: _ok(True))
    article = InlineArticle(
        id="hint", title="T", description="D", message_text="M", parse_mode="Markdown"
    )

    asyncio.run(api.answer_search_query("iq", [article], cache_time=1))

    body = seen[0][1]
    assert body["inline_query_id"] == "iq"
    assert body["cache_time"] == 1
    assert body["results"] == [
        {
            "type": "article",
            "id": "hint",
            "title": "T",
            "description": "D",
            "input_message_content": {"message_text": "M", "parse_mode": "Markdown"},
        }
    ]


def test_get_chat_member_returns_status():
    api, seen = _api(lambda request: _ok({"status": "administrator", "user": {"id": 1}}))

    assert asyncio.run(api.get_chat_member(-100, 1)) == "administrator"
    assert seen[0][1] == {"chat_id": -100, "user_id": 1}


def test_set_webhook_sends_secret_and_allowed_updates():
    api, seen = _api(lambda request: _ok(True))

    asyncio.run(api.set_webhook("https://calc.example.test/telegram", secret_token="s3cret"))

    body = seen[0][1]
    assert body["url"] == "https://calc.example.test/telegram"
    assert body["secret_token"] == "s3cret"
    assert "callback_query" in body["allowed_updates"]


def test_get_updates_passes_offset():
    api, seen = _api(lambda request: _ok([{"update_id": 7}]))

    updates = asyncio.run(api.get_updates(offset=7, timeout_s=0))

    assert updates == [{"update_id": 7}]
    assert seen[0][1] == {"timeout": 0, "offset": 7}


def test_keypad_markup_none():
    assert keypad_markup(None) is None
