from __future__ import annotations

import pytest

from adapters.calculator.keypad_machine import KeypadCalculator, build_keypad
from adapters.evaluator.arith_evaluator import ArithEvaluator
from contracts import CalculatorKey, CalculatorSession


def _machine() -> KeypadCalculator:
    return KeypadCalculator(ArithEvaluator(), title="BIKA Calculator", bot_username="CalcBot")


def _press_all(machine: KeypadCalculator, session: CalculatorSession, keys: list[str]):
    renders = []
    for raw in keys:
        renders.append(machine.press(session, CalculatorKey(raw)))
    return renders


def test_sequence_evaluates_on_equals():
    machine = _machine()
    session = CalculatorSession(chat_id=1)

    _press_all(machine, session, ["1", "2", "+", "3", "="])

    assert session.expression == "12+3"
    assert session.last_result == "15"


def test_clear_resets_expression_and_result():
    machine = _machine()
    session = CalculatorSession(chat_id=1)
    _press_all(machine, session, ["1", "2", "+", "3", "="])

    machine.press(session, CalculatorKey.CLEAR)

    assert session.expression == ""
    assert session.last_result == ""


def test_backspace_on_empty_expression_is_a_noop():
    machine = _machine()
    session = CalculatorSession(chat_id=1)

    render = machine.press(session, CalculatorKey.BACKSPACE)

    assert session.expression == ""
    assert session.last_result == ""
    assert render == machine.render(session)


def test_backspace_drops_last_character_and_keeps_result():
    machine = _machine()
    session = CalculatorSession(chat_id=1, expression="12+", last_result="7")

    machine.press(session, CalculatorKey.BACKSPACE)

    assert session.expression == "12"
    assert session.last_result == "7"


def test_equals_on_empty_expression_clears_result():
    machine = _machine()
    session = CalculatorSession(chat_id=1, last_result="42")

    machine.press(session, CalculatorKey.EQUALS)

    assert session.last_result == ""


def test_equals_reports_rejection_as_error_text():
    machine = _machine()
    session = CalculatorSession(chat_id=1, expression="1/0")

    machine.press(session, CalculatorKey.EQUALS)

    assert session.last_result == "Error: Result is not finite."
    assert session.expression == "1/0"


def test_equals_reports_syntax_error():
    machine = _machine()
    session = CalculatorSession(chat_id=1)
    _press_all(machine, session, ["(", "1", "="])

    assert session.last_result.startswith("Error: Parenthesis")


def test_every_press_returns_full_keypad():
    machine = _machine()
    session = CalculatorSession(chat_id=1)

    renders = _press_all(machine, session, ["7", ".", "5", "*", "2", "=", "BS", "C"])

    assert len(renders) == 8
    for render in renders:
        assert len(render.keypad) == 5
        assert all(len(row) == 4 for row in render.keypad)


def test_render_shows_expression_result_and_placeholders():
    machine = _machine()
    session = CalculatorSession(chat_id=1)

    empty = machine.render(session)
    _press_all(machine, session, ["6", "*", "7", "="])
    filled = machine.render(session)

    assert "Expr:  \n" in empty.text
    assert "Result:  \n" in empty.text
    assert "Expr: 6*7\n" in filled.text
    assert "Result: 42\n" in filled.text
    assert filled.text.startswith("🧮 BIKA Calculator")
    assert "@CalcBot" in filled.text


def test_keypad_layout():
    keypad = build_keypad()

    assert [[b.label for b in row] for row in keypad] == [
        ["7", "8", "9", "÷"],
        ["4", "5", "6", "×"],
        ["1", "2", "3", "−"],
        ["0", ".", "(", ")"],
        ["C", "⌫", "+", "="],
    ]
    assert [b.callback_data for b in keypad[0]] == ["k:7", "k:8", "k:9", "k:/"]
    assert [b.callback_data for b in keypad[4]] == ["k:C", "k:BS", "k:+", "k:="]


@pytest.mark.parametrize(
    "data, expected",
    [
        ("k:7", CalculatorKey.D7),
        ("k:BS", CalculatorKey.BACKSPACE),
        ("k:=", CalculatorKey.EQUALS),
        ("k:/", CalculatorKey.DIVIDE),
        ("k:^", None),
        ("k:", None),
        ("7", None),
        ("", None),
    ],
)
def test_parse_key(data, expected):
    assert _machine().parse_key(data) == expected


@pytest.mark.parametrize(
    "key, literal",
    [
        (CalculatorKey.D0, True),
        (CalculatorKey.DOT, True),
        (CalculatorKey.RPAREN, True),
        (CalculatorKey.DIVIDE, True),
        (CalculatorKey.CLEAR, False),
        (CalculatorKey.BACKSPACE, False),
        (CalculatorKey.EQUALS, False),
    ],
)
def test_only_literal_keys_extend_expression(key, literal):
    machine = _machine()
    session = CalculatorSession(chat_id=1, expression="12")

    machine.press(session, key)

    assert key.is_literal is literal
    assert session.expression.startswith("12" + key.value) is literal


def test_group_followed_by_digit_multiplies():
    machine = _machine()
    session = CalculatorSession(chat_id=1)

    _press_all(machine, session, ["(", "1", "+", "2", ")", "3", "="])

    assert session.last_result == "9"
