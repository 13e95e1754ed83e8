"""
Port: ExpressionEvaluator
Odpowiedzialność: bezpieczne liczenie wyrażeń arytmetycznych z niezaufanego tekstu.
"""
from typing import Protocol, runtime_checkable

from contracts import EvaluationOutcome


@runtime_checkable
class ExpressionEvaluator(Protocol):
    def evaluate(self, raw: str) -> EvaluationOutcome:
        """
        Normalizes and evaluates an untrusted arithmetic expression.

        Supported: + - * / ^ %, parentheses, unary minus, constants pi and e.
        Returns EvaluationOutcome.success(value) with a canonical decimal string,
        or EvaluationOutcome.rejected(kind, message).
        Never raises for user input; errors are encoded in the returned object.
        """
        ...
