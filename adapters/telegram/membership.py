"""
Adapter: TelegramMembership
Implementuje port MembershipChecker — czy bot jest adminem grupy (getChatMember).

Wynik trzymany w cache na czas życia procesu; błąd zapytania zapisywany jako False.
Cache czyszczony tylko przez forget() (bot opuścił grupę).
"""
from __future__ import annotations

import logging

import httpx

from adapters.telegram.bot_api import TelegramApiError, TelegramBotApi

logger = logging.getLogger("calc_bot.membership")

_ADMIN_STATUSES = {"administrator", "creator"}


class TelegramMembership:
    def __init__(self, api: TelegramBotApi, bot_id: int) -> None:
        self._api = api
        self._bot_id = bot_id
        self._cache: dict[int, bool] = {}

    # -- MembershipChecker protocol -----------------------------------------

    async def is_caller_administrator(self, chat_id: int) -> bool:
        cached = self._cache.get(chat_id)
        if cached is not None:
            return cached

        try:
            status = await self._api.get_chat_member(chat_id, self._bot_id)
            is_admin = status in _ADMIN_STATUSES
        except (TelegramApiError, httpx.HTTPError) as exc:
            logger.warning("getChatMember failed for chat %s: %s", chat_id, exc)
            is_admin = False

        self._cache[chat_id] = is_admin
        return is_admin

    def forget(self, chat_id: int) -> None:
        self._cache.pop(chat_id, None)
