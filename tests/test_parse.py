"""Pytest-based pattern and parameter parser tests."""

import pytest

from esbind import (
    UNDEFINED,
    ArrayPattern,
    ComputedKey,
    Default,
    EsbindError,
    Hole,
    Name,
    Nested,
    ObjectPattern,
    ParseError,
    Rename,
    RestCapture,
    check,
    evaluate,
    parse_expression,
    parse_params,
    parse_pattern,
)
from esbind.ast import Binary, Lit, Member, Pos, TaggedTemplate, Var, free_names
from esbind.tokens import TokenizeError

from conftest import discover_tests


def pytest_generate_tests(metafunc):
    """Parametrize tests over parse test files."""
    if "pattern_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_tests("parse")
            if test_id.startswith("patterns/")
        ]
        metafunc.parametrize("pattern_input,pattern_expected", params)
    elif "params_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_tests("parse")
            if test_id.startswith("params/")
        ]
        metafunc.parametrize("params_input,params_expected", params)


def _check_outcome(parse, source: str, expected: str) -> None:
    try:
        parse(source)
    except EsbindError as e:
        if expected.startswith("error:"):
            want = expected[6:].strip().lower()
            assert want in str(e).lower(), f"expected {want!r} in {str(e)!r}"
            return
        pytest.fail(f"Unexpected error: {e}")
    if expected != "ok":
        pytest.fail(f"Expected {expected}, but parse succeeded")


def test_pattern(pattern_input: str, pattern_expected: str):
    """Verify pattern sources parse or fail with the expected message."""
    _check_outcome(parse_pattern, pattern_input, pattern_expected)


def test_params(params_input: str, params_expected: str):
    """Verify parameter lists parse or fail with the expected message."""
    _check_outcome(parse_params, params_input, params_expected)


# ---------------------------------------------------------------------------
# Tree shape
# ---------------------------------------------------------------------------


def test_object_pattern_shape():
    pattern = parse_pattern("{a, b: c, d: {e}, ...rest}")
    assert isinstance(pattern, ObjectPattern)
    a, b, d, rest = pattern.elements
    assert a == Name("a")
    assert b == Rename("b", "c")
    assert isinstance(d, Nested) and d.key == "d"
    assert d.pattern == ObjectPattern((Name("e"),))
    assert rest == RestCapture("rest")
    assert pattern.keys() == ["a", "b", "d"]


def test_array_pattern_shape():
    pattern = parse_pattern("[, first, [inner], ...rest]")
    assert isinstance(pattern, ArrayPattern)
    hole, first, inner, rest = pattern.elements
    assert isinstance(hole, Hole)
    assert first == Name("first")
    assert isinstance(inner, Nested) and inner.key is None
    assert rest == RestCapture("rest")


def test_trailing_elision_keeps_holes():
    pattern = parse_pattern("[a, , ,]")
    assert len(pattern.elements) == 3
    assert isinstance(pattern.elements[-1], Hole)


def test_string_and_number_keys():
    pattern = parse_pattern("{'my-key': a, 0: b, 1.5: c}")
    assert [e.key for e in pattern.elements] == ["my-key", "0", "1.5"]


def test_positions_are_recorded():
    pattern = parse_pattern("{\n  a,\n  b\n}")
    assert pattern.pos.line == 1
    assert pattern.elements[1].pos.line == 3
    assert pattern.elements[1].pos.col == 3


def test_parse_error_position():
    with pytest.raises(ParseError) as exc:
        parse_pattern("{a,\n  1}")
    assert exc.value.line == 2
    assert exc.value.col == 3


def test_front_end_errors_are_esbind_errors():
    with pytest.raises(EsbindError) as exc:
        parse_pattern("{a")
    assert isinstance(exc.value, ParseError)
    assert exc.value.pos == Pos(1, 3)
    assert (exc.value.line, exc.value.col) == (1, 3)
    assert exc.value.msg == "expected ',', got end of input"


def test_tokenize_errors_are_esbind_errors():
    assert issubclass(TokenizeError, EsbindError)
    with pytest.raises(EsbindError, match="unterminated string"):
        parse_pattern("{a = 'open}")


def test_computed_key_shape():
    pattern = parse_pattern("{[prefix + 'Name']: name = 1, [key]: {inner}}")
    rename, nested = pattern.elements
    assert isinstance(rename, Rename) and isinstance(rename.key, ComputedKey)
    assert rename.key.source == "prefix + 'Name'"
    assert rename.key.refs == ("prefix",)
    assert rename.target == "name"
    assert isinstance(nested, Nested) and isinstance(nested.key, ComputedKey)
    assert pattern.keys() == []


def test_computed_key_in_array_pattern_is_rejected():
    with pytest.raises(EsbindError):
        parse_pattern("[[key]: value]")


def test_default_keeps_source_and_refs():
    pattern = parse_params("a, b = a + offset")
    default = pattern.elements[1].default
    assert isinstance(default, Default)
    assert default.source == "a + offset"
    assert set(default.refs) == {"a", "offset"}


def test_default_is_deferred():
    pattern = parse_pattern("{a = explode()}")
    default = pattern.elements[0].default

    def explode():
        raise RuntimeError("evaluated")

    with pytest.raises(RuntimeError):
        default.compute({"explode": explode})


def test_params_are_array_patterns():
    pattern = parse_params("(url, timeout = 2000, ...rest)")
    assert isinstance(pattern, ArrayPattern)
    assert [type(e).__name__ for e in pattern.elements] == ["Name", "Name", "RestCapture"]


def test_check_reports_all_errors():
    pattern = ArrayPattern(
        (
            Name("a", Default.ref("b")),
            Name("b"),
            Name("b"),
        )
    )
    errors = check(pattern)
    assert [type(e).__name__ for e in errors] == ["ForwardReference", "DuplicateBinding"]


def test_check_free_names_allowed():
    pattern = ObjectPattern((Name("a", Default(lambda b: b["outside"], ("outside",))),))
    assert check(pattern) == []


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def test_expression_precedence():
    expr = parse_expression("1 + 2 * 3")
    assert isinstance(expr, Binary) and expr.op == "+"
    assert isinstance(expr.right, Binary) and expr.right.op == "*"
    assert evaluate(expr) == 7


def test_member_and_call_chain():
    expr = parse_expression("config.get('a')[0]")
    assert isinstance(expr, Member)
    assert free_names(expr) == ["config"]
    config = {"get": lambda key: [key * 2]}
    assert evaluate(expr, {"config": config}) == "aa"


def test_literal_names():
    assert evaluate(parse_expression("undefined")) is UNDEFINED
    assert evaluate(parse_expression("null")) is None
    assert isinstance(parse_expression("true"), Lit)
    assert isinstance(parse_expression("value"), Var)


def test_tagged_template_expression():
    expr = parse_expression("tag`a${x}b`")
    assert isinstance(expr, TaggedTemplate)
    result = evaluate(expr, {"tag": lambda s, *v: (list(s), v), "x": 1})
    assert result == (["a", "b"], (1,))


@pytest.mark.parametrize(
    "source, value",
    [
        ("'a' + 1", "a1"),
        ("1 + '2'", "12"),
        ("'3' * '4'", 12),
        ("-'5'", -5),
        ("[1, 2] + ''", "1,2"),
        ("7 % 3", 1),
        ("-7 % 3", -1),
        ("!0", True),
        ("!'x'", False),
        ("[...[1, 2], 3]", [1, 2, 3]),
        ("({...{a: 1}, b: 2})", {"a": 1, "b": 2}),
        ("0x10 + 1", 17),
        ("({['a' + 1]: 2, b: 3})", {"a1": 2, "b": 3}),
        ("({[1 + 1]: 'two'})[2]", "two"),
    ],
)
def test_expression_values(source, value):
    assert evaluate(parse_expression(source)) == value
