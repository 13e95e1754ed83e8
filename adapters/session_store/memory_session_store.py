"""
InMemorySessionStore — implementacja portu SessionStore w pamięci procesu.

Jedna sesja na chat_id, jeden asyncio.Lock na chat_id (tworzony leniwie).
Sesje nie są usuwane — żyją tyle co proces.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from contracts import CalculatorSession


class InMemorySessionStore:
    """Mapa chat_id → CalculatorSession z wyłącznym dostępem per klucz."""

    def __init__(self) -> None:
        self._sessions: dict[int, CalculatorSession] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    # -- SessionStore protocol ---------------------------------------------

    @asynccontextmanager
    async def session(self, chat_id: int) -> AsyncIterator[CalculatorSession]:
        async with self._lock(chat_id):
            current = self._sessions.get(chat_id)
            if current is None:
                current = CalculatorSession(chat_id=chat_id)
                self._sessions[chat_id] = current
            yield current

    @asynccontextmanager
    async def replace(self, chat_id: int) -> AsyncIterator[CalculatorSession]:
        async with self._lock(chat_id):
            fresh = CalculatorSession(chat_id=chat_id)
            self._sessions[chat_id] = fresh
            yield fresh

    def get(self, chat_id: int) -> Optional[CalculatorSession]:
        return self._sessions.get(chat_id)

    # -- Prywatne -----------------------------------------------------------

    def _lock(self, chat_id: int) -> asyncio.Lock:
        # bez await pomiędzy sprawdzeniem a wstawieniem — atomowe w pętli zdarzeń
        lock = self._locks.get(chat_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[chat_id] = lock
        return lock
