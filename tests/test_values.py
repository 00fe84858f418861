"""Tests for the value model: UNDEFINED, property access, string conversion."""

import math
import pickle
from collections import OrderedDict

import pytest

from esbind import UNDEFINED, evaluate, is_nullish, parse_expression, to_string
from esbind.evaluate import to_number
from esbind.values import get_property, iterate, own_fields


def test_undefined_is_singleton():
    assert type(UNDEFINED)() is UNDEFINED
    assert pickle.loads(pickle.dumps(UNDEFINED)) is UNDEFINED
    assert not UNDEFINED
    assert repr(UNDEFINED) == "undefined"


@pytest.mark.parametrize(
    "value, nullish",
    [(None, True), (UNDEFINED, True), (0, False), ("", False), (False, False), ([], False)],
)
def test_is_nullish(value, nullish):
    assert is_nullish(value) is nullish


@pytest.mark.parametrize(
    "value, text",
    [
        (None, "null"),
        (UNDEFINED, "undefined"),
        (True, "true"),
        (False, "false"),
        (42, "42"),
        (1.0, "1"),
        (-0.0, "0"),
        (0.1, "0.1"),
        (2.5, "2.5"),
        (100.0, "100"),
        (1e21, "1e+21"),
        (1.5e-7, "1.5e-7"),
        (0.000001, "0.000001"),
        (123456789012345680000.0, "123456789012345680000"),
        (math.nan, "NaN"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
        ("text", "text"),
        ([1, None, [2, UNDEFINED], "x"], "1,,2,,x"),
        ({"a": 1}, "[object Object]"),
    ],
)
def test_to_string(value, text):
    assert to_string(value) == text


def test_get_property_on_mappings():
    assert get_property({"a": 1}, "a") == 1
    assert get_property({"a": 1}, "b") is UNDEFINED
    assert get_property({"a": None}, "a") is None
    assert get_property({"1": "one"}, 1) == "one"
    assert get_property(OrderedDict([(2, "two")]), "2") == "two"
    assert get_property({"01": "x"}, 1) is UNDEFINED


def test_get_property_on_sequences():
    assert get_property([10, 20], "1") == 20
    assert get_property([10, 20], 2) is UNDEFINED
    assert get_property([10, 20], "length") == 2
    assert get_property("abc", "0") == "a"
    assert get_property((1,), "-1") is UNDEFINED


def test_get_property_on_objects():
    class Point:
        def __init__(self):
            self.x = 1
            self._hidden = 2

    p = Point()
    assert get_property(p, "x") == 1
    assert get_property(p, "y") is UNDEFINED
    assert get_property(p, "_hidden") is UNDEFINED
    assert own_fields(p) == {"x": 1}


def test_own_fields_of_sequence():
    assert own_fields(["a", "b"]) == {"0": "a", "1": "b"}


def test_iterate():
    assert iterate({"a": 1}) is None
    assert iterate(5) is None
    assert list(iterate("ab")) == ["a", "b"]
    assert list(iterate(range(2))) == [0, 1]


@pytest.mark.parametrize(
    "text, number",
    [
        ("", 0),
        ("  12  ", 12),
        ("-5", -5),
        ("+1.5", 1.5),
        (".5", 0.5),
        ("1.", 1),
        ("1e3", 1000),
        ("0x10", 16),
        ("0b101", 5),
        ("0o17", 15),
        ("Infinity", math.inf),
        ("+Infinity", math.inf),
        ("-Infinity", -math.inf),
    ],
)
def test_to_number_accepts_numeric_strings(text, number):
    assert to_number(text) == number


@pytest.mark.parametrize(
    "text",
    [
        "1_000",
        "inf",
        "infinity",
        "INFINITY",
        "-inf",
        "nan",
        "NaN",
        "0x1_0",
        "-0x10",
        "1e",
        "12px",
        "\u0661",
    ],
)
def test_to_number_rejects_other_spellings(text):
    assert math.isnan(to_number(text))


def test_to_number_through_expressions():
    assert math.isnan(evaluate(parse_expression("'1_000' * 1")))
    assert math.isnan(evaluate(parse_expression("'inf' * 1")))
    assert evaluate(parse_expression("'Infinity' * -1")) == -math.inf
