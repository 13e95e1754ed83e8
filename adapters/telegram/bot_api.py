"""
Adapter: TelegramBotApi
Klient HTTP Telegram Bot API (httpx, async). Implementuje port ReplyPort
oraz metody potrzebne do startu bota (getMe, setWebhook, getUpdates, getChatMember).

Każda odpowiedź Bot API ma kształt {"ok": bool, "result": ..., "description": ...};
ok=false → TelegramApiError (także dla HTTP 4xx z poprawnym JSON).
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from contracts import InlineArticle, KeypadButton

logger = logging.getLogger("calc_bot.telegram")

# Telegram odrzuca edycję identycznej treści — dla nas to sukces
_NOT_MODIFIED = "message is not modified"


class TelegramApiError(Exception):
    def __init__(self, method: str, error_code: int, description: str) -> None:
        super().__init__(f"{method} failed: [{error_code}] {description}")
        self.method = method
        self.error_code = error_code
        self.description = description


def keypad_markup(keypad: Optional[list[list[KeypadButton]]]) -> Optional[dict[str, Any]]:
    if keypad is None:
        return None
    return {
        "inline_keyboard": [
            [{"text": b.label, "callback_data": b.callback_data} for b in row]
            for row in keypad
        ]
    }


class TelegramBotApi:
    """Async klient Bot API; jeden httpx.AsyncClient na proces."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.telegram.org",
        timeout_ms: int = 10_000,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not token:
            raise ValueError("Missing bot token")
        self._base = f"{base_url.rstrip('/')}/bot{token}"
        self._timeout = timeout_ms / 1000.0
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    async def close(self) -> None:
        await self._client.aclose()

    # -- ReplyPort protocol -------------------------------------------------

    async def send_text(
        self,
        chat_id: int,
        text: str,
        keypad: Optional[list[list[KeypadButton]]] = None,
        parse_mode: Optional[str] = None,
    ) -> int:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        markup = keypad_markup(keypad)
        if markup is not None:
            payload["reply_markup"] = markup
        if parse_mode:
            payload["parse_mode"] = parse_mode
        result = await self._call("sendMessage", payload)
        return int(result["message_id"])

    async def edit_text(
        self,
        chat_id: int,
        message_ref: int,
        text: str,
        keypad: Optional[list[list[KeypadButton]]] = None,
    ) -> bool:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "message_id": message_ref,
            "text": text,
        }
        markup = keypad_markup(keypad)
        if markup is not None:
            payload["reply_markup"] = markup
        try:
            await self._call("editMessageText", payload)
        except TelegramApiError as exc:
            if _NOT_MODIFIED in exc.description.lower():
                return True
            logger.info("Edit of message %s in chat %s refused: %s", message_ref, chat_id, exc)
            return False
        except httpx.HTTPError as exc:
            logger.warning("Edit of message %s in chat %s failed: %s", message_ref, chat_id, exc)
            return False
        return True

    async def answer_quick_action(self, action_id: str) -> None:
        await self._call("answerCallbackQuery", {"callback_query_id": action_id})

    async def answer_search_query(
        self,
        query_id: str,
        results: Sequence[InlineArticle],
        cache_time: int = 1,
    ) -> None:
        await self._call(
            "answerInlineQuery",
            {
                "inline_query_id": query_id,
                "results": [_article_payload(a) for a in results],
                "cache_time": cache_time,
            },
        )

    # -- Pozostałe metody Bot API -------------------------------------------

    async def get_me(self) -> dict[str, Any]:
        return await self._call("getMe", {})

    async def get_chat_member(self, chat_id: int, user_id: int) -> str:
        """Zwraca status członka czatu (creator/administrator/member/...)."""
        result = await self._call("getChatMember", {"chat_id": chat_id, "user_id": user_id})
        return str(result.get("status", ""))

    async def set_webhook(self, url: str, secret_token: str = "") -> None:
        payload: dict[str, Any] = {
            "url": url,
            "allowed_updates": ["message", "callback_query", "inline_query", "my_chat_member"],
        }
        if secret_token:
            payload["secret_token"] = secret_token
        await self._call("setWebhook", payload)

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook", {"drop_pending_updates": False})

    async def get_updates(self, offset: Optional[int] = None, timeout_s: int = 30) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout_s}
        if offset is not None:
            payload["offset"] = offset
        # long polling — limit czasu HTTP musi przekraczać timeout Telegrama
        return await self._call("getUpdates", payload, timeout=timeout_s + self._timeout)

    # -- Prywatne -----------------------------------------------------------

    async def _call(self, method: str, payload: dict[str, Any], timeout: float | None = None) -> Any:
        response = await self._client.post(
            f"{self._base}/{method}",
            json=payload,
            timeout=timeout if timeout is not None else self._timeout,
        )
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise TelegramApiError(method, response.status_code, "Malformed response body")

        if not isinstance(body, dict) or not body.get("ok"):
            error_code = body.get("error_code", response.status_code) if isinstance(body, dict) else response.status_code
            description = body.get("description", "") if isinstance(body, dict) else ""
            raise TelegramApiError(method, int(error_code), str(description))
        return body.get("result")


def _article_payload(article: InlineArticle) -> dict[str, Any]:
    content: dict[str, Any] = {"message_text": article.message_text}
    if article.parse_mode:
        content["parse_mode"] = article.parse_mode
    return {
        "type": "article",
        "id": article.id,
        "title": article.title,
        "description": article.description,
        "input_message_content": content,
    }
