"""
Port: CalculatorMachine
Odpowiedzialność: maszyna stanów kalkulatora z klawiaturą (jedna sesja na czat).
"""
from typing import Optional, Protocol, runtime_checkable

from contracts import CalculatorKey, CalculatorSession, Render


@runtime_checkable
class CalculatorMachine(Protocol):
    def parse_key(self, callback_data: str) -> Optional[CalculatorKey]:
        """
        Decodes keypad callback payload ("k:<key>").
        Returns None for payloads that are not calculator keys.
        """
        ...

    def press(self, session: CalculatorSession, key: CalculatorKey) -> Render:
        """
        Applies a single key event to the session (mutated in place).
        Always returns exactly one Render with the full keypad layout.
        """
        ...

    def render(self, session: CalculatorSession) -> Render:
        """Snapshot of the session without applying any key."""
        ...
