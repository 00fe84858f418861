"""Expression evaluator for parsed defaults and template substitutions.

Evaluation happens against a read-only environment: the bindings produced
so far layered over the caller's scope.
"""

from __future__ import annotations

from collections.abc import Mapping
import math
import re
from typing import Any

from .ast import (
    ArrayLit,
    Binary,
    Call,
    Expr,
    Lit,
    Member,
    ObjectLit,
    Spread,
    TaggedTemplate,
    TemplateLit,
    Unary,
    Var,
)
from .errors import EvaluationError, UnboundName
from .template import TemplateInvocation, TemplateStrings, interpolate
from .values import (
    UNDEFINED,
    get_property,
    is_nullish,
    iterate,
    own_fields,
    property_key,
    to_string,
)


# ============================================================
# Conversions
# ============================================================


INFINITIES: dict[str, float] = {
    "Infinity": math.inf,
    "+Infinity": math.inf,
    "-Infinity": -math.inf,
}

DECIMAL_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
INTEGER_RE = re.compile(r"[0-9]+")
RADIX_RE = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")


def _string_to_number(text: str) -> int | float:
    text = text.strip()
    if text == "":
        return 0
    if text in INFINITIES:
        return INFINITIES[text]
    if RADIX_RE.fullmatch(text):
        return int(text, 0)
    if INTEGER_RE.fullmatch(text):
        return int(text)
    if DECIMAL_RE.fullmatch(text):
        return float(text)
    return math.nan


def to_number(value: Any) -> int | float:
    """Numeric value the way unary ``+`` computes it."""
    if value is None:
        return 0
    if value is UNDEFINED:
        return math.nan
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        return _string_to_number(value)
    if isinstance(value, (list, tuple)):
        return to_number(to_string(value))
    return math.nan


def truthy(value: Any) -> bool:
    if is_nullish(value) or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def _is_primitive(value: Any) -> bool:
    if value is None or value is UNDEFINED:
        return True
    return isinstance(value, (bool, int, float, str))


def _add(left: Any, right: Any) -> Any:
    if not _is_primitive(left):
        left = to_string(left)
    if not _is_primitive(right):
        right = to_string(right)
    if isinstance(left, str) or isinstance(right, str):
        return to_string(left) + to_string(right)
    return to_number(left) + to_number(right)


def _divide(a: int | float, b: int | float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        negative = (a < 0) != (math.copysign(1.0, b) < 0)
        return -math.inf if negative else math.inf
    return a / b


def _remainder(a: int | float, b: int | float) -> int | float:
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    if isinstance(a, int) and isinstance(b, int):
        r = abs(a) % abs(b)
        return -r if a < 0 else r
    return math.fmod(a, b)


# ============================================================
# Evaluator
# ============================================================


class Evaluator:
    def __init__(self, env: Mapping[str, Any]):
        self.env = env

    def eval(self, expr: Expr) -> Any:
        if isinstance(expr, Lit):
            return expr.value

        if isinstance(expr, Var):
            if expr.name in self.env:
                return self.env[expr.name]
            raise UnboundName(expr.name, expr.pos)

        if isinstance(expr, ArrayLit):
            items: list[Any] = []
            for elem in expr.elements:
                if isinstance(elem, Spread):
                    items.extend(self._spread_items(elem))
                else:
                    items.append(self.eval(elem))
            return items

        if isinstance(expr, ObjectLit):
            obj: dict[str, Any] = {}
            for prop in expr.props:
                if prop.computed is not None:
                    key = property_key(self.eval(prop.computed))
                    obj[key] = self.eval(prop.value)
                elif prop.key is None:
                    source = self.eval(prop.value)
                    if not is_nullish(source):
                        obj.update(own_fields(source))
                else:
                    obj[prop.key] = self.eval(prop.value)
            return obj

        if isinstance(expr, Member):
            target = self.eval(expr.obj)
            key = self.eval(expr.key)
            if is_nullish(target):
                raise EvaluationError(
                    f"cannot read property '{to_string(key)}' of {to_string(target)}",
                    expr.pos,
                )
            if not isinstance(key, (str, int)) or isinstance(key, bool):
                key = to_string(key)
            return get_property(target, key)

        if isinstance(expr, Call):
            func = self.eval(expr.func)
            if not callable(func):
                raise EvaluationError(f"{to_string(func)} is not a function", expr.pos)
            args: list[Any] = []
            for arg in expr.args:
                if isinstance(arg, Spread):
                    args.extend(self._spread_items(arg))
                else:
                    args.append(self.eval(arg))
            return func(*args)

        if isinstance(expr, Unary):
            operand = self.eval(expr.operand)
            if expr.op == "!":
                return not truthy(operand)
            if expr.op == "-":
                return -to_number(operand)
            if expr.op == "+":
                return to_number(operand)
            raise EvaluationError("unknown unary operator " + expr.op, expr.pos)

        if isinstance(expr, Binary):
            left = self.eval(expr.left)
            right = self.eval(expr.right)
            if expr.op == "+":
                return _add(left, right)
            a = to_number(left)
            b = to_number(right)
            if expr.op == "-":
                return a - b
            if expr.op == "*":
                return a * b
            if expr.op == "/":
                return _divide(a, b)
            if expr.op == "%":
                return _remainder(a, b)
            raise EvaluationError("unknown binary operator " + expr.op, expr.pos)

        if isinstance(expr, TemplateLit):
            subs = [self.eval(e) for e in expr.exprs]
            return interpolate(self._strings(expr), *subs)

        if isinstance(expr, TaggedTemplate):
            tag = self.eval(expr.tag)
            if not callable(tag):
                raise EvaluationError(f"{to_string(tag)} is not a function", expr.pos)
            subs = [self.eval(e) for e in expr.template.exprs]
            return TemplateInvocation(self._strings(expr.template), tuple(subs)).call(
                tag
            )

        if isinstance(expr, Spread):
            raise EvaluationError("spread is not allowed here", expr.pos)

        raise EvaluationError(f"unknown expression {type(expr).__name__}", expr.pos)

    def _spread_items(self, spread: Spread) -> list[Any]:
        value = self.eval(spread.operand)
        it = iterate(value) if not is_nullish(value) else None
        if it is None:
            raise EvaluationError(f"{to_string(value)} is not iterable", spread.pos)
        return list(it)

    def _strings(self, lit: TemplateLit) -> TemplateStrings:
        # one strings object per template site, reused across evaluations
        if lit.strings is None:
            lit.strings = TemplateStrings(lit.cooked, lit.raw)
        return lit.strings


def evaluate(expr: Expr, env: Mapping[str, Any] | None = None) -> Any:
    """Evaluate ``expr`` with names resolved from ``env``."""
    return Evaluator(env if env is not None else {}).eval(expr)
