"""
CalculatorBot — serwis aplikacyjny: wszystkie komendy obserwowalne dla użytkownika.

Zależy wyłącznie od portów (ewaluator, maszyna kalkulatora, sesje, reply,
katalog, membership); konkretne adaptery wstrzykuje api/main.py lub CLI.

Komendy:
  start                — /start, /help
  open_calculator      — /calculator: nowa sesja + wiadomość z klawiaturą
  quick_evaluate       — /calc <wyrażenie>
  plain_text_evaluate  — zwykły tekst (prywatnie zawsze, w grupie tylko gdy bot jest adminem)
  key_press            — przycisk klawiatury (callback query)
  search_query         — tryb inline
  admin_report         — /admin (tylko właściciel)
  broadcast            — /broadcast <tekst> (tylko właściciel)
  membership_changed   — bot dodany/usunięty z grupy
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from bot import texts
from contracts import (
    AdminReport,
    BroadcastReport,
    CalculatorSession,
    ChatType,
    GroupRecord,
    InlineArticle,
    Render,
    UserRecord,
)
from ports.calculator import CalculatorMachine
from ports.directory import Directory
from ports.evaluator import ExpressionEvaluator
from ports.membership import MembershipChecker
from ports.reply import ReplyPort
from ports.session_store import SessionStore

logger = logging.getLogger("calc_bot.bot")

_LEFT_STATUSES = {"left", "kicked"}
_JOINED_STATUSES = {"member", "administrator"}


class CalculatorBot:
    def __init__(
        self,
        evaluator: ExpressionEvaluator,
        calculator: CalculatorMachine,
        sessions: SessionStore,
        reply: ReplyPort,
        directory: Directory,
        membership: MembershipChecker,
        owner_id: int = 0,
        title: str = "BIKA Calculator",
        bot_username: str = "YourBot",
        admin_group_list_limit: int = 30,
    ) -> None:
        self._evaluator = evaluator
        self._calculator = calculator
        self._sessions = sessions
        self._reply = reply
        self._directory = directory
        self._membership = membership
        self._owner_id = owner_id
        self._title = title
        self._bot_username = bot_username
        self._group_list_limit = admin_group_list_limit
        self._started_at = time.monotonic()
        self._background: set[asyncio.Task] = set()

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_at

    def is_owner(self, caller_id: Optional[int]) -> bool:
        return bool(self._owner_id) and caller_id == self._owner_id

    # ──────────────────────── Śledzenie kontekstu ────────────────────────

    async def track_context(
        self,
        user: Optional[UserRecord],
        group: Optional[GroupRecord],
    ) -> None:
        """Upsert użytkownika i grupy. Błędy bazy logowane, nigdy nie propagowane."""
        ops = []
        if user is not None:
            ops.append(self._directory.upsert_user(user))
        if group is not None and group.chat_type.is_group:
            ops.append(self._directory.upsert_group(group))
        if not ops:
            return
        results = await asyncio.gather(*ops, return_exceptions=True)
        for res in results:
            if isinstance(res, Exception):
                logger.warning("track_context failed: %s", res)

    def track_context_async(
        self,
        user: Optional[UserRecord],
        group: Optional[GroupRecord],
    ) -> None:
        """Jak track_context, ale nie blokuje odpowiedzi użytkownikowi."""
        task = asyncio.create_task(self.track_context(user, group))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """Czeka na zadania w tle (zamknięcie aplikacji, testy)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ──────────────────────── Komendy ────────────────────────────────────

    async def start(self, chat_id: int) -> None:
        await self._reply.send_text(
            chat_id, texts.start_text(self._title, self._bot_username), parse_mode="Markdown"
        )

    async def open_calculator(self, chat_id: int) -> CalculatorSession:
        async with self._sessions.replace(chat_id) as session:
            await self._deliver(chat_id, session, self._calculator.render(session))
            return session

    async def quick_evaluate(self, chat_id: int, expression: str) -> None:
        expression = expression.strip()
        if not expression:
            await self._reply.send_text(chat_id, texts.CALC_USAGE)
            return
        await self._reply.send_text(chat_id, self._private_answer(expression))

    async def plain_text_evaluate(self, chat_id: int, chat_type: ChatType, text: str) -> None:
        text = text.strip()
        if not text or text.startswith("/"):
            return

        if chat_type.is_group:
            # W grupie: tylko gdy bot jest adminem, błędy po cichu ignorowane
            if not await self._membership.is_caller_administrator(chat_id):
                return
            outcome = self._evaluator.evaluate(text)
            if not outcome.ok:
                return
            await self._reply.send_text(chat_id, f"{texts.pretty_expression(text)} = {outcome.value}")
            return

        if chat_type is ChatType.PRIVATE:
            await self._reply.send_text(chat_id, self._private_answer(text))

    async def key_press(self, chat_id: int, action_id: str, callback_data: str) -> Optional[Render]:
        key = self._calculator.parse_key(callback_data)
        if key is None:
            await self._answer(action_id)
            return None

        async with self._sessions.session(chat_id) as session:
            render = self._calculator.press(session, key)
            await self._deliver(chat_id, session, render)

        await self._answer(action_id)
        return render

    async def acknowledge(self, action_id: str) -> None:
        """Odpowiedź na przycisk bez zmiany stanu (np. brak czatu)."""
        await self._answer(action_id)

    async def search_query(self, query_id: str, query: str) -> InlineArticle:
        article = self.build_search_article(query)
        await self._reply.answer_search_query(query_id, [article], cache_time=1)
        return article

    def build_search_article(self, query: str) -> InlineArticle:
        q = (query or "").strip()
        if not q:
            return InlineArticle(
                id="hint",
                title=f"{self._title} Inline",
                description="Example: 12*(3+4) or 5+6",
                message_text=(
                    f"🧮 {self._title} Inline Mode\n\n"
                    f"Type something like `12*(3+4)` after @{self._bot_username} to calculate."
                ),
                parse_mode="Markdown",
            )

        outcome = self._evaluator.evaluate(q)
        article_id = f"calc_{int(time.time() * 1000)}"
        if outcome.ok:
            return InlineArticle(
                id=article_id,
                title=f"🧮 {q} = {outcome.value}",
                description="Tap to send this result",
                message_text=f"🧮 {self._title}\n\n{q} = {outcome.value}",
            )
        description = outcome.message or "Error while calculating"
        return InlineArticle(
            id=article_id,
            title="❌ Invalid expression",
            description=description,
            message_text=f"❌ {self._title}\n\nExpression: {q}\nError: {description}",
        )

    # ──────────────────────── Admin (tylko właściciel) ────────────────────

    async def build_admin_report(self) -> AdminReport:
        total_users, total_groups, active_groups = await asyncio.gather(
            self._directory.count_users(),
            self._directory.count_groups(),
            self._directory.list_active_groups(limit=self._group_list_limit),
        )
        return AdminReport(
            total_users=total_users,
            total_groups=total_groups,
            active_groups=active_groups,
            uptime_seconds=self.uptime_seconds,
        )

    async def admin_report(self, chat_id: int, caller_id: Optional[int]) -> None:
        if not self.is_owner(caller_id):
            await self._reply.send_text(chat_id, texts.OWNER_ONLY)
            return
        report = await self.build_admin_report()
        await self._reply.send_text(chat_id, texts.admin_report_text(self._title, report))

    async def broadcast(
        self,
        chat_id: int,
        caller_id: Optional[int],
        message: str,
    ) -> Optional[BroadcastReport]:
        if not self.is_owner(caller_id):
            await self._reply.send_text(chat_id, texts.OWNER_ONLY)
            return None
        message = message.strip()
        if not message:
            await self._reply.send_text(chat_id, texts.BROADCAST_USAGE)
            return None

        report = await self.fan_out(texts.broadcast_text(self._title, message))
        await self._reply.send_text(chat_id, texts.broadcast_summary(report))
        return report

    async def fan_out(self, text: str) -> BroadcastReport:
        """Jedna próba wysyłki na odbiorcę, bez ponowień; wynik liczony per odbiorca."""
        users, groups = await asyncio.gather(
            self._directory.list_users(),
            self._directory.list_active_groups(),
        )
        report = BroadcastReport()

        for user in users:
            if await self._try_send(user.user_id, text):
                report.user_ok += 1
            else:
                report.user_fail += 1

        for group in groups:
            if await self._try_send(group.chat_id, text):
                report.group_ok += 1
            else:
                report.group_fail += 1

        logger.info(
            "Broadcast done: users %d/%d, groups %d/%d",
            report.user_ok, report.users_total, report.group_ok, report.groups_total,
        )
        return report

    # ──────────────────────── Członkostwo w grupach ──────────────────────

    async def membership_changed(self, group: GroupRecord, status: str) -> None:
        if not group.chat_type.is_group:
            return
        try:
            if status in _LEFT_STATUSES:
                await self._directory.deactivate_group(group.chat_id)
                self._membership.forget(group.chat_id)
            elif status in _JOINED_STATUSES:
                await self._directory.upsert_group(group)
        except Exception as exc:
            logger.warning("membership update failed for chat %s: %s", group.chat_id, exc)

    # ──────────────────────── Prywatne ───────────────────────────────────

    def _private_answer(self, expression: str) -> str:
        outcome = self._evaluator.evaluate(expression)
        if outcome.ok:
            return f"🧮 {expression}\n= {outcome.value}"
        return f"❌ {outcome.message}"

    async def _deliver(self, chat_id: int, session: CalculatorSession, render: Render) -> None:
        """Edycja w miejscu; gdy brak wiadomości lub edycja nieudana — nowa wiadomość."""
        if session.rendered_message_ref is not None:
            try:
                edited = await self._reply.edit_text(
                    chat_id, session.rendered_message_ref, render.text, render.keypad
                )
            except Exception as exc:
                logger.warning("Edit failed in chat %s: %s", chat_id, exc)
                edited = False
            if edited:
                return

        try:
            session.rendered_message_ref = await self._reply.send_text(
                chat_id, render.text, render.keypad
            )
        except Exception as exc:
            logger.warning("Could not deliver calculator to chat %s: %s", chat_id, exc)

    async def _answer(self, action_id: str) -> None:
        try:
            await self._reply.answer_quick_action(action_id)
        except Exception as exc:
            logger.info("answerCallbackQuery failed: %s", exc)

    async def _try_send(self, chat_id: int, text: str) -> bool:
        try:
            await self._reply.send_text(chat_id, text)
        except Exception as exc:
            logger.debug("Broadcast to %s failed: %s", chat_id, exc)
            return False
        return True
