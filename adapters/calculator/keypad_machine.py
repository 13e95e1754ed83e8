"""
Adapter: KeypadCalculator
Implementuje port CalculatorMachine — kalkulator na klawiaturze inline.

Stan sesji to tylko dwa pola: expression (bufor klawiszy) i last_result.
  cyfra/operator/nawias/kropka → dopisz do expression
  C   → wyczyść oba pola
  BS  → usuń ostatni znak expression (pusty bufor: bez zmian)
  =   → last_result = wynik ewaluatora | "Error: <powód>" | "" (pusty bufor)

Po każdym klawiszu zwracany jest dokładnie jeden Render (tekst + pełna klawiatura).
Dostarczenie (edycja w miejscu / nowa wiadomość) należy do wywołującego.
"""
from __future__ import annotations

from typing import Optional

from contracts import CalculatorKey, CalculatorSession, KeypadButton, Render
from ports.evaluator import ExpressionEvaluator

_CALLBACK_PREFIX = "k:"

# Pusty bufor wyświetlany jako spacja — wymiary wiadomości się nie zmieniają
_PLACEHOLDER = " "

# 4 kolumny × 5 wierszy
_LAYOUT: list[list[tuple[str, CalculatorKey]]] = [
    [("7", CalculatorKey.D7), ("8", CalculatorKey.D8), ("9", CalculatorKey.D9), ("÷", CalculatorKey.DIVIDE)],
    [("4", CalculatorKey.D4), ("5", CalculatorKey.D5), ("6", CalculatorKey.D6), ("×", CalculatorKey.TIMES)],
    [("1", CalculatorKey.D1), ("2", CalculatorKey.D2), ("3", CalculatorKey.D3), ("−", CalculatorKey.MINUS)],
    [("0", CalculatorKey.D0), (".", CalculatorKey.DOT), ("(", CalculatorKey.LPAREN), (")", CalculatorKey.RPAREN)],
    [("C", CalculatorKey.CLEAR), ("⌫", CalculatorKey.BACKSPACE), ("+", CalculatorKey.PLUS), ("=", CalculatorKey.EQUALS)],
]


def build_keypad() -> list[list[KeypadButton]]:
    return [[KeypadButton(label=label, key=key) for label, key in row] for row in _LAYOUT]


class KeypadCalculator:
    """Maszyna stanów kalkulatora; jedna instancja obsługuje wszystkie sesje."""

    def __init__(
        self,
        evaluator: ExpressionEvaluator,
        title: str = "BIKA Calculator",
        bot_username: str = "YourBot",
    ) -> None:
        self._evaluator = evaluator
        self._title = title
        self.bot_username = bot_username

    # -- CalculatorMachine protocol -----------------------------------------

    def parse_key(self, callback_data: str) -> Optional[CalculatorKey]:
        if not callback_data or not callback_data.startswith(_CALLBACK_PREFIX):
            return None
        try:
            return CalculatorKey(callback_data[len(_CALLBACK_PREFIX):])
        except ValueError:
            return None

    def press(self, session: CalculatorSession, key: CalculatorKey) -> Render:
        if key is CalculatorKey.CLEAR:
            session.expression = ""
            session.last_result = ""
        elif key is CalculatorKey.BACKSPACE:
            session.expression = session.expression[:-1]
        elif key is CalculatorKey.EQUALS:
            session.last_result = self._compute(session.expression)
        elif key.is_literal:
            session.expression += key.value
        return self.render(session)

    def render(self, session: CalculatorSession) -> Render:
        expr = session.expression or _PLACEHOLDER
        result = session.last_result or _PLACEHOLDER
        text = (
            f"🧮 {self._title}\n\n"
            f"Expr: {expr}\n"
            f"Result: {result}\n\n"
            f"Tip: Inline → @{self.bot_username} 12*(3+4)"
        )
        return Render(text=text, keypad=build_keypad())

    # -- Prywatne -----------------------------------------------------------

    def _compute(self, expression: str) -> str:
        if not expression:
            return ""
        outcome = self._evaluator.evaluate(expression)
        if outcome.ok:
            return outcome.value or ""
        return f"Error: {outcome.message}"
