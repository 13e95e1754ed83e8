"""
Port: ReplyPort
Odpowiedzialność: wysyłanie i edycja wiadomości, odpowiedzi na przyciski i zapytania inline.
"""
from typing import Optional, Protocol, Sequence, runtime_checkable

from contracts import InlineArticle, KeypadButton


@runtime_checkable
class ReplyPort(Protocol):
    async def send_text(
        self,
        chat_id: int,
        text: str,
        keypad: Optional[list[list[KeypadButton]]] = None,
        parse_mode: Optional[str] = None,
    ) -> int:
        """Sends a message. Returns its message reference. Raises on transport failure."""
        ...

    async def edit_text(
        self,
        chat_id: int,
        message_ref: int,
        text: str,
        keypad: Optional[list[list[KeypadButton]]] = None,
    ) -> bool:
        """
        Edits a previously sent message in place.
        Returns False if the platform refused the edit (deleted, too old, ...).
        An edit with unchanged content counts as success.
        """
        ...

    async def answer_quick_action(self, action_id: str) -> None:
        """Acknowledges a button press."""
        ...

    async def answer_search_query(
        self,
        query_id: str,
        results: Sequence[InlineArticle],
        cache_time: int = 1,
    ) -> None:
        """Answers an inline search query with selectable articles."""
        ...
