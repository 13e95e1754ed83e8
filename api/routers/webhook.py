"""
Router: POST {webhook_path}
Przyjmuje aktualizacje od Telegrama i przekazuje je do UpdateDispatcher.

Jeśli skonfigurowano webhook_secret, nagłówek X-Telegram-Bot-Api-Secret-Token
musi się zgadzać (inaczej 403). Błąd obsługi jest logowany, a Telegram i tak
dostaje 200 — inaczej ponawiałby tę samą aktualizację w nieskończoność.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException

from api.dependencies import get_dispatcher, get_settings
from api.schemas import WebhookAck
from config import Settings

logger = logging.getLogger("calc_bot.webhook")


def build_router(path: str) -> APIRouter:
    router = APIRouter(tags=["telegram"])

    @router.post(path, response_model=WebhookAck)
    async def receive_update(
        payload: dict[str, Any] = Body(...),
        secret: Optional[str] = Header(default=None, alias="X-Telegram-Bot-Api-Secret-Token"),
        settings: Settings = Depends(get_settings),
        dispatcher=Depends(get_dispatcher),
    ) -> WebhookAck:
        if settings.webhook_secret and secret != settings.webhook_secret:
            raise HTTPException(status_code=403, detail="Invalid secret token")

        try:
            await dispatcher.dispatch(payload)
        except Exception:
            logger.exception("Failed to handle update %s", payload.get("update_id"))
        return WebhookAck()

    return router
