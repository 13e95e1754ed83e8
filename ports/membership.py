"""
Port: MembershipChecker
Odpowiedzialność: czy bot ma uprawnienia administratora w danym czacie (z cache).
"""
from typing import Protocol, runtime_checkable


@runtime_checkable
class MembershipChecker(Protocol):
    async def is_caller_administrator(self, chat_id: int) -> bool:
        """
        True if the bot is an administrator (or creator) of chat_id.
        The answer is cached for the process lifetime; lookup failures
        are cached as False.
        """
        ...

    def forget(self, chat_id: int) -> None:
        """Drops the cached answer (bot left the group)."""
        ...
