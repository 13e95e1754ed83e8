"""
InMemoryDirectory — implementacja portu Directory w pamięci procesu.
Używana gdy nie skonfigurowano CALC_BOT_DB_URL (dev) oraz w testach.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from contracts import GroupRecord, UserRecord


class InMemoryDirectory:
    def __init__(self) -> None:
        self.users: dict[int, UserRecord] = {}
        self.groups: dict[int, GroupRecord] = {}

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None

    # -- Directory protocol ------------------------------------------------

    async def upsert_user(self, user: UserRecord) -> None:
        existing = self.users.get(user.user_id)
        is_blocked = existing.is_blocked if existing is not None else False
        self.users[user.user_id] = user.model_copy(
            update={"is_blocked": is_blocked, "last_seen_at": _now()}
        )

    async def upsert_group(self, group: GroupRecord) -> None:
        now = _now()
        self.groups[group.chat_id] = group.model_copy(
            update={"is_active": True, "last_seen_at": now, "updated_at": now}
        )

    async def deactivate_group(self, chat_id: int) -> None:
        existing = self.groups.get(chat_id)
        if existing is None:
            return
        now = _now()
        self.groups[chat_id] = existing.model_copy(
            update={"is_active": False, "last_seen_at": now, "updated_at": now}
        )

    async def list_users(self) -> list[UserRecord]:
        return [u for _, u in sorted(self.users.items()) if not u.is_blocked]

    async def list_active_groups(self, limit: Optional[int] = None) -> list[GroupRecord]:
        active = [g for g in self.groups.values() if g.is_active]
        active.sort(key=lambda g: g.updated_at, reverse=True)
        return active if limit is None else active[:limit]

    async def count_users(self) -> int:
        return len(self.users)

    async def count_groups(self) -> int:
        return len(self.groups)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)
