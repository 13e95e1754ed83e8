from __future__ import annotations

import asyncio

import pytest

from bot.dispatcher import UpdateDispatcher, parse_command
from contracts import ChatType


class _RecordingBot:
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.tracked: list[tuple] = []

    def track_context_async(self, user, group) -> None:
        self.tracked.append((user, group))

    async def start(self, chat_id):
        self.calls.append(("start", chat_id))

    async def open_calculator(self, chat_id):
        self.calls.append(("open_calculator", chat_id))

    async def quick_evaluate(self, chat_id, expression):
        self.calls.append(("quick_evaluate", chat_id, expression))

    async def plain_text_evaluate(self, chat_id, chat_type, text):
        self.calls.append(("plain_text_evaluate", chat_id, chat_type, text))

    async def key_press(self, chat_id, action_id, callback_data):
        self.calls.append(("key_press", chat_id, action_id, callback_data))

    async def acknowledge(self, action_id):
        self.calls.append(("acknowledge", action_id))

    async def search_query(self, query_id, query):
        self.calls.append(("search_query", query_id, query))

    async def admin_report(self, chat_id, caller_id):
        self.calls.append(("admin_report", chat_id, caller_id))

    async def broadcast(self, chat_id, caller_id, message):
        self.calls.append(("broadcast", chat_id, caller_id, message))

    async def membership_changed(self, group, status):
        self.calls.append(("membership_changed", group.chat_id, status))


def _message(text, chat_id=10, chat_type="private", user_id=10, title=None):
    chat = {"id": chat_id, "type": chat_type}
    if title is not None:
        chat["title"] = title
    return {
        "update_id": 1,
        "message": {
            "message_id": 5,
            "chat": chat,
            "from": {"id": user_id, "is_bot": False, "first_name": "Ala", "username": "ala"},
            "text": text,
        },
    }


def _dispatch(payload, username="CalcBot"):
    bot = _RecordingBot()
    asyncio.run(UpdateDispatcher(bot, bot_username=username).dispatch(payload))
    return bot


@pytest.mark.parametrize(
    "text, expected",
    [
        ("/calc 1+2", ("calc", None, "1+2")),
        ("/calc@CalcBot  12*(3+4) ", ("calc", "CalcBot", "12*(3+4)")),
        ("/START", ("start", None, "")),
        ("/broadcast line one\nline two", ("broadcast", None, "line one\nline two")),
    ],
)
def test_parse_command(text, expected):
    assert parse_command(text) == expected


@pytest.mark.parametrize("text", ["1+2", "hello /calc", "/", "/ calc"])
def test_parse_command_rejects_plain_text(text):
    assert parse_command(text) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("/start", ("start", 10)),
        ("/help", ("start", 10)),
        ("/calculator", ("open_calculator", 10)),
        ("/calc 2^10", ("quick_evaluate", 10, "2^10")),
        ("/admin", ("admin_report", 10, 10)),
        ("/broadcast Hello all", ("broadcast", 10, 10, "Hello all")),
    ],
)
def test_commands_are_routed(text, expected):
    bot = _dispatch(_message(text))

    assert bot.calls == [expected]


def test_plain_text_goes_to_evaluation_with_chat_type():
    bot = _dispatch(_message("4*5", chat_id=-100, chat_type="supergroup", title="Team"))

    assert bot.calls == [("plain_text_evaluate", -100, ChatType.SUPERGROUP, "4*5")]


def test_message_context_is_tracked():
    bot = _dispatch(_message("/start", chat_id=-100, chat_type="group", title="Team"))

    user, group = bot.tracked[0]
    assert user.user_id == 10
    assert user.username == "ala"
    assert group.chat_id == -100
    assert group.title == "Team"


def test_command_for_this_bot_is_handled():
    bot = _dispatch(_message("/calc@calcbot 1+1"))

    assert bot.calls == [("quick_evaluate", 10, "1+1")]


def test_command_for_another_bot_is_ignored():
    bot = _dispatch(_message("/calc@OtherBot 1+1"))

    assert bot.calls == []


def test_unknown_command_is_ignored():
    bot = _dispatch(_message("/settings"))

    assert bot.calls == []


def test_message_without_text_is_only_tracked():
    payload = _message("x")
    del payload["message"]["text"]

    bot = _dispatch(payload)

    assert bot.calls == []
    assert len(bot.tracked) == 1


def test_callback_query_routes_to_key_press():
    payload = {
        "update_id": 2,
        "callback_query": {
            "id": "cb-1",
            "from": {"id": 10, "first_name": "Ala"},
            "message": {"message_id": 77, "chat": {"id": 10, "type": "private"}},
            "data": "k:7",
        },
    }

    bot = _dispatch(payload)

    assert bot.calls == [("key_press", 10, "cb-1", "k:7")]


def test_callback_without_message_is_acknowledged():
    payload = {
        "update_id": 3,
        "callback_query": {"id": "cb-2", "from": {"id": 10, "first_name": "Ala"}, "data": "k:7"},
    }

    bot = _dispatch(payload)

    assert bot.calls == [("acknowledge", "cb-2")]


def test_inline_query_routes_to_search():
    payload = {
        "update_id": 4,
        "inline_query": {"id": "iq-1", "from": {"id": 10, "first_name": "Ala"}, "query": "5+6", "offset": ""},
    }

    bot = _dispatch(payload)

    assert bot.calls == [("search_query", "iq-1", "5+6")]


@pytest.mark.parametrize("status", ["member", "kicked"])
def test_my_chat_member_routes_to_membership(status):
    payload = {
        "update_id": 5,
        "my_chat_member": {
            "chat": {"id": -100, "type": "group", "title": "Team"},
            "from": {"id": 10, "first_name": "Ala"},
            "date": 0,
            "old_chat_member": {"status": "left", "user": {"id": 99, "is_bot": True, "first_name": "Calc"}},
            "new_chat_member": {"status": status, "user": {"id": 99, "is_bot": True, "first_name": "Calc"}},
        },
    }

    bot = _dispatch(payload)

    assert bot.calls == [("membership_changed", -100, status)]


def test_unhandled_update_type_is_ignored():
    bot = _dispatch({"update_id": 6, "edited_message": {"message_id": 1}})

    assert bot.calls == []
