"""
UpdateDispatcher — kieruje aktualizację Telegrama do odpowiedniej komendy CalculatorBot.

Ta sama ścieżka obsługuje webhook (api/routers/webhook.py) i long polling (calcbot.py poll).
"""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

from adapters.telegram.models import (
    TgCallbackQuery,
    TgChatMemberUpdated,
    TgInlineQuery,
    TgMessage,
    TgUpdate,
)
from bot.calculator_bot import CalculatorBot

logger = logging.getLogger("calc_bot.dispatcher")

# /komenda[@NazwaBota] [argumenty]
_COMMAND_RE = re.compile(r"^/([A-Za-z0-9_]+)(?:@([A-Za-z0-9_]+))?(?:\s+(.*))?$", re.DOTALL)


def parse_command(text: str) -> Optional[tuple[str, Optional[str], str]]:
    """'/calc@Bot 1+2' → ('calc', 'Bot', '1+2'); None jeśli to nie komenda."""
    m = _COMMAND_RE.match(text.strip())
    if m is None:
        return None
    return m.group(1).lower(), m.group(2), (m.group(3) or "").strip()


class UpdateDispatcher:
    def __init__(self, bot: CalculatorBot, bot_username: str = "") -> None:
        self._bot = bot
        self._bot_username = bot_username.lower()

    async def dispatch(self, payload: dict[str, Any]) -> None:
        update = TgUpdate.model_validate(payload)

        if update.message is not None:
            await self._on_message(update.message)
        elif update.callback_query is not None:
            await self._on_callback(update.callback_query)
        elif update.inline_query is not None:
            await self._on_inline(update.inline_query)
        elif update.my_chat_member is not None:
            await self._on_my_chat_member(update.my_chat_member)
        else:
            logger.debug("Ignoring update %s without a handled type", update.update_id)

    # -- Prywatne -----------------------------------------------------------

    async def _on_message(self, message: TgMessage) -> None:
        user = message.from_user.to_record() if message.from_user else None
        self._bot.track_context_async(user, message.chat.to_record())

        if not message.text:
            return
        chat_id = message.chat.id
        caller_id = message.from_user.id if message.from_user else None

        command = parse_command(message.text)
        if command is None:
            await self._bot.plain_text_evaluate(chat_id, message.chat.type, message.text)
            return

        name, mention, args = command
        if mention and self._bot_username and mention.lower() != self._bot_username:
            return

        if name in ("start", "help"):
            await self._bot.start(chat_id)
        elif name == "calculator":
            await self._bot.open_calculator(chat_id)
        elif name == "calc":
            await self._bot.quick_evaluate(chat_id, args)
        elif name == "admin":
            await self._bot.admin_report(chat_id, caller_id)
        elif name == "broadcast":
            await self._bot.broadcast(chat_id, caller_id, args)

    async def _on_callback(self, query: TgCallbackQuery) -> None:
        if query.message is None:
            # przycisk pod wiadomością inline — brak czatu, brak sesji
            await self._bot.acknowledge(query.id)
            return
        await self._bot.key_press(query.message.chat.id, query.id, query.data or "")

    async def _on_inline(self, query: TgInlineQuery) -> None:
        await self._bot.search_query(query.id, query.query)

    async def _on_my_chat_member(self, event: TgChatMemberUpdated) -> None:
        await self._bot.membership_changed(event.chat.to_record(), event.new_chat_member.status)
