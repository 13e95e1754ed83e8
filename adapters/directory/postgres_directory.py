"""
PostgresDirectory — implementacja portu Directory na PostgreSQL.

Schemat:
  - bot_users   — użytkownicy, którzy pisali do bota (is_blocked zachowywany przy upsert)
  - bot_groups  — grupy, w których bot był; is_active=false po usunięciu bota

Unikalność:
  - bot_users:  PRIMARY KEY(user_id)  → upsert idempotentny
  - bot_groups: PRIMARY KEY(chat_id)  → upsert idempotentny
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import asyncpg

from contracts import ChatType, GroupRecord, UserRecord

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS bot_users (
    user_id       BIGINT PRIMARY KEY,
    first_name    TEXT NOT NULL DEFAULT '',
    last_name     TEXT NOT NULL DEFAULT '',
    username      TEXT NOT NULL DEFAULT '',
    language_code TEXT NOT NULL DEFAULT '',
    is_bot        BOOLEAN NOT NULL DEFAULT false,
    is_blocked    BOOLEAN NOT NULL DEFAULT false,
    last_seen_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    created_at    TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at    TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS bot_groups (
    chat_id      BIGINT PRIMARY KEY,
    title        TEXT NOT NULL DEFAULT '',
    chat_type    TEXT NOT NULL DEFAULT 'group',
    is_active    BOOLEAN NOT NULL DEFAULT true,
    last_seen_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_bot_groups_active  ON bot_groups(is_active);
CREATE INDEX IF NOT EXISTS idx_bot_groups_updated ON bot_groups(updated_at DESC);
"""


class PostgresDirectory:
    """Implementacja Directory na PostgreSQL + asyncpg."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    # ──────────────────────── Lifecycle ──────────────────────────────────

    @classmethod
    async def create(cls, dsn: str) -> "PostgresDirectory":
        """Factory: tworzy pool połączeń i aplikuje schemat."""
        pool = await asyncpg.create_pool(dsn, min_size=1, max_size=10)
        directory = cls(pool)
        await directory._apply_schema()
        return directory

    async def _apply_schema(self) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(_SCHEMA_SQL)

    async def close(self) -> None:
        await self._pool.close()

    async def ping(self) -> None:
        """SELECT 1 — rzuca wyjątek asyncpg jeśli baza niedostępna."""
        await self._pool.fetchval("SELECT 1")

    # ──────────────────────── Users ──────────────────────────────────────

    async def upsert_user(self, user: UserRecord) -> None:
        """
        INSERT … ON CONFLICT (user_id) DO UPDATE.
        is_blocked ustawiany tylko przy insercie.
        """
        now = datetime.now(tz=timezone.utc)
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO bot_users
                    (user_id, first_name, last_name, username, language_code,
                     is_bot, is_blocked, last_seen_at, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, false, $7, $7, $7)
                ON CONFLICT (user_id) DO UPDATE
                    SET first_name    = EXCLUDED.first_name,
                        last_name     = EXCLUDED.last_name,
                        username      = EXCLUDED.username,
                        language_code = EXCLUDED.language_code,
                        is_bot        = EXCLUDED.is_bot,
                        last_seen_at  = EXCLUDED.last_seen_at,
                        updated_at    = EXCLUDED.updated_at
                """,
                user.user_id,
                user.first_name,
                user.last_name,
                user.username,
                user.language_code,
                user.is_bot,
                now,
            )

    async def list_users(self) -> list[UserRecord]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM bot_users WHERE is_blocked IS NOT true ORDER BY user_id"
            )
        return [_row_to_user(r) for r in rows]

    async def count_users(self) -> int:
        async with self._pool.acquire() as conn:
            return int(await conn.fetchval("SELECT COUNT(*) FROM bot_users"))

    # ──────────────────────── Groups ─────────────────────────────────────

    async def upsert_group(self, group: GroupRecord) -> None:
        now = datetime.now(tz=timezone.utc)
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO bot_groups
                    (chat_id, title, chat_type, is_active, last_seen_at, created_at, updated_at)
                VALUES ($1, $2, $3, true, $4, $4, $4)
                ON CONFLICT (chat_id) DO UPDATE
                    SET title        = EXCLUDED.title,
                        chat_type    = EXCLUDED.chat_type,
                        is_active    = true,
                        last_seen_at = EXCLUDED.last_seen_at,
                        updated_at   = EXCLUDED.updated_at
                """,
                group.chat_id,
                group.title,
                group.chat_type.value,
                now,
            )

    async def deactivate_group(self, chat_id: int) -> None:
        now = datetime.now(tz=timezone.utc)
        async with self._pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE bot_groups
                   SET is_active = false, last_seen_at = $2, updated_at = $2
                 WHERE chat_id = $1
                """,
                chat_id,
                now,
            )

    async def list_active_groups(self, limit: Optional[int] = None) -> list[GroupRecord]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM bot_groups
                 WHERE is_active = true
                 ORDER BY updated_at DESC
                 LIMIT $1
                """,
                limit,
            )
        return [_row_to_group(r) for r in rows]

    async def count_groups(self) -> int:
        async with self._pool.acquire() as conn:
            return int(await conn.fetchval("SELECT COUNT(*) FROM bot_groups"))


# ──────────────────────── Helpers ────────────────────────────────────────

def _row_to_user(row: asyncpg.Record) -> UserRecord:
    return UserRecord(
        user_id=row["user_id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        username=row["username"],
        language_code=row["language_code"],
        is_bot=row["is_bot"],
        is_blocked=row["is_blocked"],
        last_seen_at=row["last_seen_at"],
    )


def _row_to_group(row: asyncpg.Record) -> GroupRecord:
    return GroupRecord(
        chat_id=row["chat_id"],
        title=row["title"],
        chat_type=ChatType(row["chat_type"]),
        is_active=row["is_active"],
        last_seen_at=row["last_seen_at"],
        updated_at=row["updated_at"],
    )
