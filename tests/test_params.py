"""Pytest-based parameter binding tests."""

import pytest

from esbind import (
    UNDEFINED,
    ForwardReference,
    NullishSource,
    bind_arguments,
    destructure,
    parse_params,
)


def test_missing_arguments_take_defaults():
    params = "url, timeout = 2000, callback = noop"
    scope = {"noop": print}
    assert bind_arguments(params, ["/a"], scope) == {
        "url": "/a",
        "timeout": 2000,
        "callback": print,
    }


def test_undefined_argument_takes_default_but_null_does_not():
    assert bind_arguments("a = 1", [UNDEFINED]) == {"a": 1}
    assert bind_arguments("a = 1", [None]) == {"a": None}


def test_default_reads_earlier_parameter():
    assert bind_arguments("first, second = first", [3]) == {"first": 3, "second": 3}
    assert bind_arguments("first, second = first", [3, 4]) == {"first": 3, "second": 4}


def test_default_reading_later_parameter_is_rejected():
    with pytest.raises(ForwardReference):
        parse_params("first = second, second")


def test_rest_parameter_collects_extra_arguments():
    assert bind_arguments("first, ...rest", [1, 2, 3]) == {"first": 1, "rest": [2, 3]}
    assert bind_arguments("first, ...rest", []) == {"first": UNDEFINED, "rest": []}


def test_destructured_parameter_with_default():
    params = "name, value, {secure, path, domain, expires} = {}"
    assert bind_arguments(params, ["n", "v"]) == {
        "name": "n",
        "value": "v",
        "secure": UNDEFINED,
        "path": UNDEFINED,
        "domain": UNDEFINED,
        "expires": UNDEFINED,
    }
    bindings = bind_arguments(params, ["n", "v", {"secure": True}])
    assert bindings["secure"] is True


def test_destructured_parameter_without_default_requires_argument():
    with pytest.raises(NullishSource):
        bind_arguments("name, {secure}", ["n"])


def test_args_accepts_any_sequence():
    assert bind_arguments(parse_params("a, b"), (1, 2)) == {"a": 1, "b": 2}


def test_destructure_decorator():
    @destructure("first, second = first")
    def add(first, second):
        return first + second

    assert add(2) == 4
    assert add(2, 3) == 5
    assert add.__name__ == "add"


def test_destructure_decorator_with_scope():
    calls = []

    def make_id():
        calls.append(1)
        return len(calls)

    @destructure("label, id = makeId()", {"makeId": make_id})
    def node(label, id):
        return label, id

    assert node("a") == ("a", 1)
    assert node("b", 9) == ("b", 9)
    assert node("c") == ("c", 2)
    assert len(calls) == 2


def test_destructure_decorator_with_rest():
    @destructure("head, ...tail")
    def split(head, tail):
        return head, tail

    assert split(1, 2, 3) == (1, [2, 3])
