"""
Port: Directory
Odpowiedzialność: katalog użytkowników i grup, w których bot jest obecny.
"""
from typing import Optional, Protocol, runtime_checkable

from contracts import GroupRecord, UserRecord


@runtime_checkable
class Directory(Protocol):
    async def upsert_user(self, user: UserRecord) -> None:
        """
        Inserts or updates a user by user_id.
        Profile fields and last_seen_at are overwritten; is_blocked is kept.
        """
        ...

    async def upsert_group(self, group: GroupRecord) -> None:
        """Inserts or updates a group by chat_id, marking it active."""
        ...

    async def deactivate_group(self, chat_id: int) -> None:
        """Marks a group inactive (bot left or was removed). No-op if unknown."""
        ...

    async def list_users(self) -> list[UserRecord]:
        """Returns all users that are not blocked."""
        ...

    async def list_active_groups(self, limit: Optional[int] = None) -> list[GroupRecord]:
        """Returns active groups, most recently updated first."""
        ...

    async def count_users(self) -> int:
        ...

    async def count_groups(self) -> int:
        """Counts all groups ever seen, active or not."""
        ...
