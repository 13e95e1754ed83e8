"""
api/main.py — punkt wejścia FastAPI (tryb webhook).

Lifespan:
  - Składa runtime (katalog, klient Bot API, CalculatorBot, dispatcher)
  - Rejestruje webhook, jeśli ustawiono CALC_BOT_WEBHOOK_URL
  - Przy zamknięciu czeka na zadania w tle i zamyka połączenia

Uruchomienie: uvicorn api.main:app  (albo: python calcbot.py serve)
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from adapters.evaluator.arith_evaluator import ArithEvaluator
from api.routers import evaluate, webhook
from api.schemas import HealthResponse
from bot.runtime import build_runtime
from bot.texts import format_uptime
from config import Settings

logger = logging.getLogger("calc_bot")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    runtime = await build_runtime(settings)

    app.state.runtime = runtime
    app.state.directory = runtime.directory
    app.state.bot = runtime.bot
    app.state.dispatcher = runtime.dispatcher

    if settings.webhook_url:
        url = f"{settings.webhook_url.rstrip('/')}{settings.webhook_path}"
        await runtime.api.set_webhook(url, secret_token=settings.webhook_secret)
        logger.info("Webhook set to %s", url)
    else:
        logger.warning("CALC_BOT_WEBHOOK_URL not set — no updates will arrive; use `calcbot.py poll`.")

    logger.info("%s ready.", settings.app_title)
    yield

    logger.info("Shutting down — closing connections.")
    await runtime.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    # ArithEvaluator jest bezstanowy — dostępny także bez startu bota
    app.state.evaluator = ArithEvaluator()

    # Routers
    app.include_router(evaluate.router)
    app.include_router(webhook.build_router(settings.webhook_path))

    @app.get("/", response_class=PlainTextResponse, tags=["health"])
    async def root() -> str:
        return f"OK - {settings.bot_title} Bot"

    # Health
    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(request: Request):
        db_status = "ok"
        directory = getattr(request.app.state, "directory", None)
        if directory is None:
            db_status = "not connected"
        else:
            try:
                await directory.ping()
            except Exception as e:
                db_status = f"error: {e}"

        return HealthResponse(
            status="ok" if db_status == "ok" else "degraded",
            db=db_status,
            version=settings.app_version,
            uptime=format_uptime(time.monotonic() - request.app.state.started_at),
        )

    return app


app = create_app()
