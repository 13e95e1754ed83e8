#!/usr/bin/env python3
"""
calcbot.py — CLI narzędzie CalcBot.

Konfiguracja: zmienne środowiskowe z prefiksem CALC_BOT_
lub plik .env (np. CALC_BOT_BOT_TOKEN=123:abc, CALC_BOT_DB_URL=postgresql://...).

Podkomendy:
    eval         — policz wyrażenie lokalnie (bez Telegrama)
    serve        — uruchom serwer FastAPI (tryb webhook)
    poll         — uruchom bota przez long polling (usuwa webhook)
    set-webhook  — zarejestruj webhook w Telegramie
    stats        — użytkownicy i grupy z katalogu
    health       — sprawdź bazę danych i token bota

Użycie:
    python calcbot.py eval "12×(3+4)"
    python calcbot.py serve --port 8080
    python calcbot.py poll
    python calcbot.py set-webhook --url https://calc.example.com
    python calcbot.py stats --limit 10
    python calcbot.py health
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table

logger = logging.getLogger("calc_bot.cli")

_POLL_RETRY_DELAY_S = 3.0


# -- helpers ---------------------------------------------------------------

_CONSOLE: Console | None = None


def _console() -> Console:
    global _CONSOLE
    if _CONSOLE is None:
        _CONSOLE = Console(highlight=False)
    return _CONSOLE


def _print_kv_table(title: str, rows: list[tuple[str, Any]]) -> None:
    table = Table(title=title, box=box.ASCII, show_header=False, pad_edge=False)
    table.add_column("Key", no_wrap=True, style="bold cyan")
    table.add_column("Value")
    for key, value in rows:
        table.add_row(str(key), str(value))
    _console().print(table)


def _print_groups_table(groups: list[Any]) -> None:
    table = Table(title=f"Active groups [{len(groups)}]", box=box.ASCII)
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("Chat ID", no_wrap=True, style="cyan")
    table.add_column("Title")
    table.add_column("Type", no_wrap=True)
    table.add_column("Updated", no_wrap=True)
    for idx, g in enumerate(groups, start=1):
        table.add_row(
            str(idx),
            str(g.chat_id),
            g.title or "(no title)",
            g.chat_type.value,
            g.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    _console().print(table)


def _settings():
    from config import Settings

    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper())
    return settings


# -- podkomendy sync -------------------------------------------------------

def _eval(args: argparse.Namespace) -> None:
    from adapters.evaluator.arith_evaluator import ArithEvaluator

    outcome = ArithEvaluator().evaluate(args.expression)
    if outcome.ok:
        _print_kv_table("Result", [("expression", args.expression), ("value", outcome.value)])
        return
    _print_kv_table(
        "Rejected",
        [("expression", args.expression), ("error", outcome.error.value), ("message", outcome.message)],
    )
    sys.exit(1)


def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    settings = _settings()
    uvicorn.run(
        "api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )


# -- podkomendy async ------------------------------------------------------

async def _poll(args: argparse.Namespace) -> None:
    import httpx

    from adapters.telegram.bot_api import TelegramApiError
    from bot.runtime import build_runtime

    settings = _settings()
    runtime = await build_runtime(settings)
    try:
        await runtime.api.delete_webhook()
        logger.info("Started with long polling as @%s", runtime.bot_username)

        offset: int | None = None
        while True:
            try:
                updates = await runtime.api.get_updates(offset=offset, timeout_s=settings.poll_timeout_s)
            except (TelegramApiError, httpx.HTTPError) as exc:
                logger.warning("getUpdates failed: %s", exc)
                await asyncio.sleep(_POLL_RETRY_DELAY_S)
                continue

            for payload in updates:
                offset = int(payload["update_id"]) + 1
                try:
                    await runtime.dispatcher.dispatch(payload)
                except Exception:
                    logger.exception("Failed to handle update %s", payload.get("update_id"))
    finally:
        await runtime.close()


async def _set_webhook(args: argparse.Namespace) -> None:
    from adapters.telegram.bot_api import TelegramBotApi

    settings = _settings()
    base = args.url or settings.webhook_url
    if not base:
        print("Błąd: podaj --url lub ustaw CALC_BOT_WEBHOOK_URL", file=sys.stderr)
        sys.exit(1)

    api = TelegramBotApi(settings.bot_token, settings.telegram_api_url, settings.telegram_timeout_ms)
    url = f"{base.rstrip('/')}{settings.webhook_path}"
    try:
        await api.set_webhook(url, secret_token=settings.webhook_secret)
    finally:
        await api.close()
    print(f"webhook: {url}")


async def _stats(args: argparse.Namespace) -> None:
    from bot.runtime import open_directory

    directory = await open_directory(_settings())
    try:
        total_users = await directory.count_users()
        total_groups = await directory.count_groups()
        groups = await directory.list_active_groups(limit=args.limit)
    finally:
        await directory.close()

    _print_kv_table("Directory", [
        ("users", total_users),
        ("groups (all-time)", total_groups),
        ("groups (active, shown)", len(groups)),
    ])
    if groups:
        _print_groups_table(groups)


async def _health(args: argparse.Namespace) -> None:
    from adapters.telegram.bot_api import TelegramBotApi
    from bot.runtime import open_directory

    settings = _settings()
    rows: list[tuple[str, Any]] = []
    failed = False

    try:
        directory = await open_directory(settings)
        try:
            await directory.ping()
        finally:
            await directory.close()
        rows.append(("db", "ok" if settings.db_url else "memory"))
    except Exception as exc:
        rows.append(("db", f"error: {exc}"))
        failed = True

    if settings.bot_token:
        api = TelegramBotApi(settings.bot_token, settings.telegram_api_url, settings.telegram_timeout_ms)
        try:
            me = await api.get_me()
            rows.append(("bot", f"@{me.get('username', '?')}"))
        except Exception as exc:
            rows.append(("bot", f"error: {exc}"))
            failed = True
        finally:
            await api.close()
    else:
        rows.append(("bot", "no token"))
        failed = True

    rows.insert(0, ("status", "error" if failed else "ok"))
    _print_kv_table("Health", rows)
    if failed:
        sys.exit(1)


# -- main ------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(
        prog="calcbot",
        description="CalcBot — kalkulator dla Telegrama (CLI)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # eval
    p = sub.add_parser("eval", help="Policz wyrażenie lokalnie")
    p.add_argument("expression", help="Wyrażenie, np. '12*(3+4)'")

    # serve
    p = sub.add_parser("serve", help="Uruchom serwer HTTP (webhook)")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    # poll
    sub.add_parser("poll", help="Uruchom bota przez long polling")

    # set-webhook
    p = sub.add_parser("set-webhook", help="Zarejestruj webhook w Telegramie")
    p.add_argument("--url", help="Publiczny adres serwera (bez ścieżki)")

    # stats
    p = sub.add_parser("stats", help="Użytkownicy i grupy z katalogu")
    p.add_argument("--limit", type=int, default=30, metavar="N")

    # health
    sub.add_parser("health", help="Sprawdź bazę danych i token bota")

    args = parser.parse_args()

    async_cmds = {
        "poll":        _poll,
        "set-webhook": _set_webhook,
        "stats":       _stats,
        "health":      _health,
    }

    if args.command in async_cmds:
        try:
            asyncio.run(async_cmds[args.command](args))
        except KeyboardInterrupt:
            pass
    elif args.command == "eval":
        _eval(args)
    elif args.command == "serve":
        _serve(args)


if __name__ == "__main__":
    main()
