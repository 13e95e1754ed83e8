"""
Port: SessionStore
Odpowiedzialność: przechowywanie sesji kalkulatora, wyłączny dostęp per czat.
"""
from typing import AsyncContextManager, Optional, Protocol, runtime_checkable

from contracts import CalculatorSession


@runtime_checkable
class SessionStore(Protocol):
    def session(self, chat_id: int) -> AsyncContextManager[CalculatorSession]:
        """
        Async context manager yielding the live session for chat_id,
        creating an empty one if absent. Holds the chat's lock for the whole
        block: events of one chat are applied one at a time, other chats
        are not blocked.
        """
        ...

    def replace(self, chat_id: int) -> AsyncContextManager[CalculatorSession]:
        """
        Like session(), but first replaces the stored session with a fresh one
        (expression="", last_result="", no rendered message).
        """
        ...

    def get(self, chat_id: int) -> Optional[CalculatorSession]:
        """Returns the session without locking, or None."""
        ...
