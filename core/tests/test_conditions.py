"""
Tests for ifCondition evaluation.
"""

import pytest

from nodeflow.graph.conditions import OPERATORS, evaluate_condition, resolve_field


@pytest.mark.parametrize(
    "field_value, operator, compare_value, expected",
    [
        ("Hello", "equals", "hello", True),
        ("  hello ", "equals", "hello", True),
        ("10", "equals", "10.0", True),
        ("10", "not_equals", "10.0", False),
        ("abc", "not_equals", "abd", True),
        ("hello there", "contains", "HELLO", True),
        ("hello there", "not_contains", "bye", True),
        ("5", "greater", "3", True),
        ("5", "less", "3", False),
        ("five", "greater", "3", False),
        ("Workflow run", "starts_with", "work", True),
        ("Workflow run", "ends_with", "RUN", True),
        ("   ", "is_empty", "", True),
        ("x", "is_not_empty", "", True),
        ("order #1234", "regex", r"#\d+", True),
        ("ORDER", "regex", "^order$", True),
        ("NaN", "equals", "nan", True),
        ("1_000", "equals", "1000", False),
        ("inf", "greater", "5", False),
        ("1e999", "greater", "5", False),
        ("1e3", "equals", "1000", True),
        (".5", "less", "1", True),
    ],
)
def test_operators(field_value, operator, compare_value, expected):
    assert evaluate_condition(field_value, operator, compare_value) is expected


def test_empty_compare_value_is_not_zero():
    assert evaluate_condition("0", "equals", "") is False
    assert evaluate_condition("", "equals", "") is True


def test_invalid_regex_is_false(caplog):
    assert evaluate_condition("abc", "regex", "([") is False
    assert "Invalid regex" in caplog.text


def test_unknown_operator_is_false():
    assert evaluate_condition("abc", "sounds_like", "abc") is False


def test_every_operator_is_handled():
    # None of the declared operators should fall through to the unknown branch
    for operator in OPERATORS:
        evaluate_condition("1", operator, "1")


def test_resolve_field_message():
    assert resolve_field("message", "hi there") == "hi there"
    assert resolve_field("unknown", "hi there") == "hi there"


def test_resolve_field_message_length():
    assert resolve_field("message.length", "hello") == "5"


def test_resolve_field_output():
    assert resolve_field("output", "msg", {"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'
    assert resolve_field("output", "msg", {}) == "{}"
    assert resolve_field("output", "msg", None) == ""


def test_output_field_contains_compact_json():
    actual = resolve_field("output", "msg", {"a": 1})

    assert evaluate_condition(actual, "contains", '"a":1') is True
