"""
Adapter: ArithEvaluator
Implementuje port ExpressionEvaluator — bezpieczne liczenie wyrażeń z tekstu użytkownika.

Pipeline (każdy krok może zakończyć się odrzuceniem):
  1. normalizacja   — ×→*, ÷→/, —/–/−→-, usunięcie przecinków, trim
  2. denylista      — słowa ogólnego silnika matematycznego (import, matrix, ...)
  3. allowlista     — tylko cyfry, + - * / ( ) . ^ %, białe znaki, litery p i e
  4. parser         — własna gramatyka, nic poza arytmetyką nie da się wyrazić
  5. post-processing — odrzucenie inf/nan, zaokrąglenie do 12 miejsc,
                       zapis jak Number#toString w JS ("4", "0.3", "1e-7")

Gramatyka (precedence climbing):
  expr    = term (('+'|'-') term)*
  term    = unary (('*'|'/'|'%') unary | unary)*     # drugi wariant: mnożenie niejawne, 2pi, 2(3), (2)3
  unary   = ('-'|'+') unary | power
  power   = primary ('^' unary)?                     # prawostronne: 2^3^2 = 512
  primary = NUMBER | 'pi' | 'e' | '(' expr ')'

Zagnieżdżenie (nawiasy, znaki unarne, potęgi) ograniczone do _MAX_DEPTH poziomów;
głębiej → EVALUATION_FAILURE zamiast RecursionError.
"""
from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Context, Decimal

from contracts import EvaluationOutcome, ExpressionErrorKind

# ──────────────────────────────────────────────────────────────────────────────
# Filtry wejścia
# ──────────────────────────────────────────────────────────────────────────────

_GLYPHS = {
    "×": "*",
    "÷": "/",
    "—": "-",
    "–": "-",
    "−": "-",
    ",": "",
}

_BLOCKED_RE = re.compile(
    r"(import|createUnit|evaluate|parse|simplify|derivative|compile|help|unit|"
    r"format|typed|reviver|json|chain|matrix|ones|zeros|range|index|subset|"
    r"concat|resize)",
    re.IGNORECASE,
)

_ALLOWED_RE = re.compile(r"^[0-9+\-*/().\s^%piePIE]*$")

_MESSAGES = {
    ExpressionErrorKind.EMPTY_EXPRESSION: "Empty expression.",
    ExpressionErrorKind.UNSUPPORTED_CONSTRUCT: "Unsupported expression.",
    ExpressionErrorKind.INVALID_CHARACTERS: "Invalid characters.",
    ExpressionErrorKind.NON_FINITE: "Result is not finite.",
}

# Zaokrąglenie do 12 miejsc liczone dziesiętnie na najkrótszym repr floata;
# precyzja kontekstu mieści 1.8e308 z 12 miejscami po przecinku
_TWELVE_PLACES = Decimal("1e-12")
_ROUNDING_CONTEXT = Context(prec=400)

# Limit zagnieżdżenia nawiasów, znaków unarnych i potęg
_MAX_DEPTH = 100


def normalize(raw: str) -> str:
    """Podmienia alternatywne glify operatorów i usuwa separatory tysięcy."""
    s = str(raw or "").strip()
    for glyph, ascii_op in _GLYPHS.items():
        s = s.replace(glyph, ascii_op)
    return s


# ──────────────────────────────────────────────────────────────────────────────
# Tokenizer
# ──────────────────────────────────────────────────────────────────────────────

_TOKEN_RE = re.compile(
    r"(\d+(?:\.\d*)?(?:[eE][+\-]?\d+)?|\.\d+(?:[eE][+\-]?\d+)?)"   # liczba
    r"|([A-Za-z]+)"                                                # stała
    r"|([+\-*/^%()])"                                              # operator lub nawias
    r"|\s+"                                                        # białe znaki (pominięte)
)

_CONSTANTS = {"pi": math.pi, "e": math.e}


class _Token:
    __slots__ = ("kind", "text", "pos")

    def __init__(self, kind: str, text: str, pos: int) -> None:
        self.kind = kind    # "num" | "name" | sam operator
        self.text = text
        self.pos = pos


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None or m.end() == pos:
            raise SyntaxError(f"Unexpected character {text[pos]!r} (char {pos + 1})")
        num, name, op = m.group(1), m.group(2), m.group(3)
        if num:
            tokens.append(_Token("num", num, pos))
        elif name:
            tokens.append(_Token("name", name, pos))
        elif op:
            tokens.append(_Token(op, op, pos))
        pos = m.end()
    return tokens


# ──────────────────────────────────────────────────────────────────────────────
# Arytmetyka float (semantyka IEEE, bez wyjątków)
# ──────────────────────────────────────────────────────────────────────────────

def _div(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _mod(a: float, b: float) -> float:
    # x % 0 = x; znak wyniku jak dzielnika
    if b == 0:
        return a
    return a % b


def _pow(a: float, b: float) -> float:
    try:
        result = a ** b
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        negative = a < 0 and b == int(b) and int(b) % 2 == 1
        return -math.inf if negative else math.inf
    if isinstance(result, complex):
        return math.nan
    return result


_BINARY = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _div,
    "%": _mod,
}

# Lewy binding power operatorów binarnych
_LEFT_BP: dict[str, int] = {"+": 10, "-": 10, "*": 20, "/": 20, "%": 20}
_IMPLICIT_BP = 20


# ──────────────────────────────────────────────────────────────────────────────
# Precedence climbing parser (liczy wartość w trakcie parsowania)
# ──────────────────────────────────────────────────────────────────────────────

class _Parser:
    def __init__(self, tokens: list[_Token]) -> None:
        self._tokens = tokens
        self._pos = 0
        self._depth = 0

    def _peek(self) -> _Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _consume(self) -> _Token:
        t = self._tokens[self._pos]
        self._pos += 1
        return t

    def parse(self) -> float:
        value = self._expr(0)
        tok = self._peek()
        if tok is not None:
            raise SyntaxError(f"Unexpected {tok.text!r} (char {tok.pos + 1})")
        return value

    def _expr(self, min_bp: int) -> float:
        left = self._unary()
        while True:
            tok = self._peek()
            if tok is None:
                break
            if tok.kind in _LEFT_BP:
                bp = _LEFT_BP[tok.kind]
                if bp <= min_bp:
                    break
                self._consume()
                right = self._expr(bp)
                left = _BINARY[tok.kind](left, right)
            elif tok.kind in ("name", "(") or (tok.kind == "num" and self._after_group()):
                # Mnożenie niejawne: 2pi, 3(4+1), (1+1)(2), (2)3
                if _IMPLICIT_BP <= min_bp:
                    break
                right = self._expr(_IMPLICIT_BP)
                left = left * right
            else:
                break
        return left

    def _after_group(self) -> bool:
        return self._pos > 0 and self._tokens[self._pos - 1].kind == ")"

    def _unary(self) -> float:
        # każdy poziom rekursji parsera przechodzi przez _unary
        self._depth += 1
        if self._depth > _MAX_DEPTH:
            raise SyntaxError("Expression too deeply nested")
        try:
            tok = self._peek()
            if tok is not None and tok.kind in ("-", "+"):
                self._consume()
                operand = self._unary()
                return -operand if tok.kind == "-" else operand
            return self._power()
        finally:
            self._depth -= 1

    def _power(self) -> float:
        base = self._primary()
        tok = self._peek()
        if tok is not None and tok.kind == "^":
            self._consume()
            exponent = self._unary()
            return _pow(base, exponent)
        return base

    def _primary(self) -> float:
        tok = self._peek()
        if tok is None:
            raise SyntaxError("Unexpected end of expression")
        if tok.kind == "(":
            self._consume()
            value = self._expr(0)
            closing = self._peek()
            if closing is None or closing.kind != ")":
                where = f"char {closing.pos + 1}" if closing else "end of expression"
                raise SyntaxError(f"Parenthesis ) expected ({where})")
            self._consume()
            return value
        if tok.kind == "num":
            self._consume()
            return float(tok.text)
        if tok.kind == "name":
            self._consume()
            const = _CONSTANTS.get(tok.text.lower())
            if const is None:
                raise SyntaxError(f"Undefined symbol {tok.text}")
            return const
        raise SyntaxError(f"Unexpected {tok.text!r} (char {tok.pos + 1})")


# ──────────────────────────────────────────────────────────────────────────────
# Formatowanie wyniku
# ──────────────────────────────────────────────────────────────────────────────

def round12(value: float) -> float:
    """
    Zaokrągla do 12 miejsc po przecinku (połówki od zera).
    Wynik jest punktem stałym: round12(float(format_number(x))) == x.
    """
    if not math.isfinite(value):
        return value
    rounded = Decimal(repr(value)).quantize(
        _TWELVE_PLACES, rounding=ROUND_HALF_UP, context=_ROUNDING_CONTEXT
    )
    return float(rounded)


def format_number(value: float) -> str:
    """
    Najkrótszy zapis dziesiętny, reguły jak Number#toString w JS:
    4.0 → "4", 1e-7 → "1e-7", 1e21 → "1e+21", -0.0 → "0".
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    dec = Decimal(repr(abs(value))).normalize()
    _, digit_tuple, exp = dec.as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = k + exp   # pozycja przecinka względem pierwszej cyfry

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        body = "0." + "0" * (-n) + digits
    else:
        e = n - 1
        mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + body


# ──────────────────────────────────────────────────────────────────────────────
# Adapter
# ──────────────────────────────────────────────────────────────────────────────

class ArithEvaluator:
    """
    Liczy wyrażenia arytmetyczne z niezaufanego tekstu.
    Nigdy nie rzuca wyjątku — błędy enkodowane są w EvaluationOutcome.
    """

    # -- ExpressionEvaluator protocol --------------------------------------

    def evaluate(self, raw: str) -> EvaluationOutcome:
        s = normalize(raw)

        if not s:
            return self._reject(ExpressionErrorKind.EMPTY_EXPRESSION)
        if _BLOCKED_RE.search(s):
            return self._reject(ExpressionErrorKind.UNSUPPORTED_CONSTRUCT)
        if not _ALLOWED_RE.match(s):
            return self._reject(ExpressionErrorKind.INVALID_CHARACTERS)

        try:
            value = _Parser(_tokenize(s)).parse()
        except SyntaxError as exc:
            return EvaluationOutcome.rejected(ExpressionErrorKind.EVALUATION_FAILURE, str(exc))

        if not math.isfinite(value):
            return self._reject(ExpressionErrorKind.NON_FINITE)
        return EvaluationOutcome.success(format_number(round12(value)))

    # -- Prywatne -----------------------------------------------------------

    @staticmethod
    def _reject(kind: ExpressionErrorKind) -> EvaluationOutcome:
        return EvaluationOutcome.rejected(kind, _MESSAGES[kind])
