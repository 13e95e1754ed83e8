"""
runtime.py — Składanie adapterów w działającego bota.

Wspólne dla serwera FastAPI (webhook) i CLI (long polling):
  Settings → katalog (Postgres lub pamięć) → klient Bot API → getMe
           → ArithEvaluator + KeypadCalculator + sesje + membership
           → CalculatorBot + UpdateDispatcher
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from adapters.calculator.keypad_machine import KeypadCalculator
from adapters.directory.memory_directory import InMemoryDirectory
from adapters.directory.postgres_directory import PostgresDirectory
from adapters.evaluator.arith_evaluator import ArithEvaluator
from adapters.session_store.memory_session_store import InMemorySessionStore
from adapters.telegram.bot_api import TelegramBotApi
from adapters.telegram.membership import TelegramMembership
from bot.calculator_bot import CalculatorBot
from bot.dispatcher import UpdateDispatcher
from config import Settings

logger = logging.getLogger("calc_bot")

AnyDirectory = Union[PostgresDirectory, InMemoryDirectory]


def asyncpg_dsn(url: str) -> str:
    """Konwertuje 'postgresql+asyncpg://...' → 'postgresql://...'."""
    return url.replace("postgresql+asyncpg://", "postgresql://", 1)


async def open_directory(settings: Settings) -> AnyDirectory:
    if not settings.db_url:
        logger.warning("CALC_BOT_DB_URL not set — using in-memory directory (data lost on restart).")
        return InMemoryDirectory()
    logger.info("Connecting to PostgreSQL...")
    return await PostgresDirectory.create(asyncpg_dsn(settings.db_url))


@dataclass
class Runtime:
    settings: Settings
    api: TelegramBotApi
    directory: AnyDirectory
    bot: CalculatorBot
    dispatcher: UpdateDispatcher
    bot_username: str

    async def close(self) -> None:
        await self.bot.drain()
        await self.api.close()
        await self.directory.close()


async def build_runtime(settings: Settings) -> Runtime:
    if not settings.bot_token:
        raise RuntimeError("Missing CALC_BOT_BOT_TOKEN")

    directory = await open_directory(settings)
    api = TelegramBotApi(
        token=settings.bot_token,
        base_url=settings.telegram_api_url,
        timeout_ms=settings.telegram_timeout_ms,
    )
    try:
        me = await api.get_me()
    except Exception:
        await api.close()
        await directory.close()
        raise
    bot_username = me.get("username", "")
    logger.info("Logged in as @%s", bot_username)

    evaluator = ArithEvaluator()
    bot = CalculatorBot(
        evaluator=evaluator,
        calculator=KeypadCalculator(evaluator, title=settings.bot_title, bot_username=bot_username),
        sessions=InMemorySessionStore(),
        reply=api,
        directory=directory,
        membership=TelegramMembership(api, bot_id=int(me["id"])),
        owner_id=settings.owner_id,
        title=settings.bot_title,
        bot_username=bot_username,
        admin_group_list_limit=settings.admin_group_list_limit,
    )
    return Runtime(
        settings=settings,
        api=api,
        directory=directory,
        bot=bot,
        dispatcher=UpdateDispatcher(bot, bot_username=bot_username),
        bot_username=bot_username,
    )
