"""
contracts.py — Jedyne źródło prawdy dla wszystkich typów danych w CalcBot.
Wszystkie moduły importują WYŁĄCZNIE stąd. Nie modyfikować bez versioning.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

CONTRACTS_VERSION = "1.0.0"


# ─────────────────────────── Helpers ─────────────────────────────────────

def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


# ─────────────────────────── Evaluator ───────────────────────────────────

class ExpressionErrorKind(str, Enum):
    EMPTY_EXPRESSION = "empty_expression"
    UNSUPPORTED_CONSTRUCT = "unsupported_construct"   # słowo z denylisty
    INVALID_CHARACTERS = "invalid_characters"         # znak spoza allowlisty
    EVALUATION_FAILURE = "evaluation_failure"         # błąd składni
    NON_FINITE = "non_finite"                         # inf / nan


class EvaluationOutcome(BaseModel):
    ok: bool
    value: Optional[str] = None                  # kanoniczny zapis dziesiętny
    error: Optional[ExpressionErrorKind] = None
    message: Optional[str] = None                # czytelny powód odrzucenia

    @model_validator(mode="after")
    def _exactly_one(self) -> "EvaluationOutcome":
        if self.ok and (self.value is None or self.error is not None):
            raise ValueError("Ok outcome requires a value and no error")
        if not self.ok and (self.error is None or self.value is not None):
            raise ValueError("Rejected outcome requires an error and no value")
        return self

    @classmethod
    def success(cls, value: str) -> "EvaluationOutcome":
        return cls(ok=True, value=value)

    @classmethod
    def rejected(cls, kind: ExpressionErrorKind, message: str) -> "EvaluationOutcome":
        return cls(ok=False, error=kind, message=message)


# ─────────────────────────── Calculator ──────────────────────────────────

class CalculatorKey(str, Enum):
    D0 = "0"
    D1 = "1"
    D2 = "2"
    D3 = "3"
    D4 = "4"
    D5 = "5"
    D6 = "6"
    D7 = "7"
    D8 = "8"
    D9 = "9"
    DOT = "."
    LPAREN = "("
    RPAREN = ")"
    PLUS = "+"
    MINUS = "-"
    TIMES = "*"
    DIVIDE = "/"
    CLEAR = "C"
    BACKSPACE = "BS"
    EQUALS = "="

    @property
    def is_literal(self) -> bool:
        """True dla klawiszy dopisywanych do wyrażenia."""
        return self not in (CalculatorKey.CLEAR, CalculatorKey.BACKSPACE, CalculatorKey.EQUALS)


class KeypadButton(BaseModel):
    label: str
    key: CalculatorKey

    @property
    def callback_data(self) -> str:
        return f"k:{self.key.value}"


class CalculatorSession(BaseModel):
    chat_id: int
    expression: str = ""
    last_result: str = ""
    rendered_message_ref: Optional[int] = None   # message_id wiadomości z klawiaturą


class Render(BaseModel):
    text: str
    keypad: list[list[KeypadButton]]


# ─────────────────────────── Directory ───────────────────────────────────

class ChatType(str, Enum):
    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"

    @property
    def is_group(self) -> bool:
        return self in (ChatType.GROUP, ChatType.SUPERGROUP)


class UserRecord(BaseModel):
    user_id: int
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language_code: str = ""
    is_bot: bool = False
    is_blocked: bool = False
    last_seen_at: datetime = Field(default_factory=_now)


class GroupRecord(BaseModel):
    chat_id: int
    title: str = ""
    chat_type: ChatType = ChatType.GROUP
    is_active: bool = True
    last_seen_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


# ─────────────────────────── Reply ───────────────────────────────────────

class InlineArticle(BaseModel):
    id: str
    title: str
    description: str
    message_text: str
    parse_mode: Optional[str] = None


# ─────────────────────────── Admin ───────────────────────────────────────

class BroadcastReport(BaseModel):
    user_ok: int = 0
    user_fail: int = 0
    group_ok: int = 0
    group_fail: int = 0

    @property
    def users_total(self) -> int:
        return self.user_ok + self.user_fail

    @property
    def groups_total(self) -> int:
        return self.group_ok + self.group_fail


class AdminReport(BaseModel):
    total_users: int
    total_groups: int
    active_groups: list[GroupRecord]
    uptime_seconds: float
