"""esbind parser — recursive descent, one method per grammar production.

Grammar (informal):

    pattern     := object | array
    object      := "{" [prop ("," prop)* [","]] "}"
    prop        := "..." IDENT
                 | key [":" target] ["=" expr]       -- shorthand needs IDENT key
    key         := IDENT | STRING | NUMBER
    array       := "[" (elem | <hole>) ("," (elem | <hole>))* "]"
    elem        := "..." IDENT | target ["=" expr]
    target      := IDENT | pattern
    params      := ["("] [elem ("," elem)*] [")"]
    expr        := additive
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .ast import (
    ArrayLit,
    ArrayPattern,
    Binary,
    Call,
    ComputedKey,
    Default,
    Element,
    Expr,
    Hole,
    Lit,
    Member,
    Name,
    Nested,
    ObjectLit,
    ObjectPattern,
    Pattern,
    Pos,
    Prop,
    Rename,
    RestCapture,
    Spread,
    TaggedTemplate,
    TemplateLit,
    Unary,
    Var,
    free_names,
)
from .check import validate
from .errors import EsbindError, PatternError
from .evaluate import evaluate
from .tokens import (
    TK_EOF,
    TK_IDENT,
    TK_NUMBER,
    TK_OP,
    TK_STRING,
    TK_TEMPLATE,
    Token,
    TokenizeError,
    scan_template,
    tokenize,
)
from .values import UNDEFINED

LITERAL_NAMES: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": UNDEFINED,
}

RESERVED: set[str] = {"true", "false", "null", "this", "new", "function", "class"}


class ParseError(EsbindError):
    """Parse error with location info."""

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(msg, Pos(line, col))
        self.line: int = line
        self.col: int = col


def _compile_default(expr: Expr, source: str) -> Default:
    def compute(env: Mapping[str, Any]) -> Any:
        return evaluate(expr, env)

    return Default(compute, tuple(free_names(expr)), source)


def _compile_key(expr: Expr, source: str) -> ComputedKey:
    def compute(env: Mapping[str, Any]) -> Any:
        return evaluate(expr, env)

    return ComputedKey(compute, tuple(free_names(expr)), source)


class Parser:
    """Recursive descent parser for patterns, parameter lists and expressions."""

    def __init__(self, tokens: list[Token], source: str = ""):
        self.tokens: list[Token] = tokens
        self.source: str = source
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.type == TK_OP and tok.value == value

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def expect(self, value: str) -> Token:
        tok = self.current()
        if not self.at(value):
            raise self.error("expected '" + value + "', got " + self._describe(tok))
        return self.advance()

    def expect_binding_ident(self) -> Token:
        tok = self.current()
        if tok.type != TK_IDENT:
            raise self.error("expected identifier, got " + self._describe(tok))
        if tok.value in RESERVED:
            raise self.error("'" + tok.value + "' cannot be used as a binding name")
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def _describe(self, tok: Token) -> str:
        if tok.type == TK_EOF:
            return "end of input"
        return "'" + tok.value + "'"

    def _pos(self) -> Pos:
        tok = self.current()
        return Pos(tok.line, tok.col)

    def _tok_pos(self, tok: Token) -> Pos:
        return Pos(tok.line, tok.col)

    def expect_end(self) -> None:
        if not self.at_type(TK_EOF):
            raise self.error("unexpected " + self._describe(self.current()))

    # ── Patterns ─────────────────────────────────────────────

    def parse_pattern(self) -> Pattern:
        if self.at("{"):
            return self.parse_object_pattern()
        if self.at("["):
            return self.parse_array_pattern()
        raise self.error("expected '{' or '[' to start a pattern")

    def parse_object_pattern(self) -> ObjectPattern:
        pos = self._pos()
        self.expect("{")
        elements: list[Element] = []
        while not self.at("}"):
            elem = self.parse_object_prop()
            elements.append(elem)
            if self.at("}"):
                break
            comma = self.expect(",")
            if isinstance(elem, RestCapture):
                raise ParseError(
                    "rest element may not have a trailing comma", comma.line, comma.col
                )
        self.expect("}")
        return self._build(ObjectPattern, elements, pos)

    def parse_object_prop(self) -> Element:
        pos = self._pos()
        if self.at("..."):
            self.advance()
            name = self.expect_binding_ident()
            return RestCapture(name.value, pos)
        if self.at("["):
            return self.parse_computed_prop(pos)
        key_tok = self.current()
        if key_tok.type == TK_IDENT:
            key = key_tok.value
        elif key_tok.type == TK_STRING:
            key = key_tok.value
        elif key_tok.type == TK_NUMBER:
            key = self._number_key(key_tok)
        else:
            raise self.error("expected property name, got " + self._describe(key_tok))
        self.advance()
        if self.at(":"):
            self.advance()
            if self.at("{") or self.at("["):
                sub = self.parse_pattern()
                default = self.parse_default()
                return Nested(sub, key, default, pos)
            target = self.expect_binding_ident()
            default = self.parse_default()
            return Rename(key, target.value, default, pos)
        if key_tok.type != TK_IDENT:
            raise ParseError(
                "shorthand property needs an identifier", key_tok.line, key_tok.col
            )
        if key in RESERVED:
            raise ParseError(
                "'" + key + "' cannot be used as a binding name",
                key_tok.line,
                key_tok.col,
            )
        default = self.parse_default()
        return Name(key, default, pos)

    def parse_computed_prop(self, pos: Pos) -> Element:
        expr, source = self.parse_computed_key()
        key = _compile_key(expr, source)
        self.expect(":")
        if self.at("{") or self.at("["):
            sub = self.parse_pattern()
            return Nested(sub, key, self.parse_default(), pos)
        target = self.expect_binding_ident()
        return Rename(key, target.value, self.parse_default(), pos)

    def parse_computed_key(self) -> tuple[Expr, str]:
        """[expr] in a property position. Returns the expression and its source."""
        self.expect("[")
        start = self.current().start
        expr = self.parse_expr()
        end = self.tokens[self.pos - 1].end
        self.expect("]")
        return expr, self.source[start:end]

    def _number_key(self, tok: Token) -> str:
        value = self._number_value(tok)
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

    def parse_array_pattern(self) -> ArrayPattern:
        pos = self._pos()
        self.expect("[")
        elements: list[Element] = []
        while not self.at("]"):
            if self.at(","):
                elements.append(Hole(self._pos()))
                self.advance()
                continue
            elem = self.parse_binding_element()
            elements.append(elem)
            if self.at("]"):
                break
            comma = self.expect(",")
            if isinstance(elem, RestCapture):
                raise ParseError(
                    "rest element may not have a trailing comma", comma.line, comma.col
                )
        self.expect("]")
        return self._build(ArrayPattern, elements, pos)

    def parse_binding_element(self) -> Element:
        pos = self._pos()
        if self.at("..."):
            self.advance()
            name = self.expect_binding_ident()
            return RestCapture(name.value, pos)
        if self.at("{") or self.at("["):
            sub = self.parse_pattern()
            return Nested(sub, None, self.parse_default(), pos)
        name = self.expect_binding_ident()
        return Name(name.value, self.parse_default(), pos)

    def parse_default(self) -> Default | None:
        if not self.at("="):
            return None
        self.advance()
        start = self.current().start
        expr = self.parse_expr()
        end = self.tokens[self.pos - 1].end
        return _compile_default(expr, self.source[start:end])

    def parse_params(self) -> ArrayPattern:
        pos = self._pos()
        parens = self.at("(")
        if parens:
            self.advance()
        closing = ")" if parens else ""
        elements: list[Element] = []
        while not self._at_params_end(closing):
            elem = self.parse_binding_element()
            elements.append(elem)
            if self._at_params_end(closing):
                break
            comma = self.expect(",")
            if isinstance(elem, RestCapture):
                raise ParseError(
                    "rest parameter must be last formal parameter",
                    comma.line,
                    comma.col,
                )
        if parens:
            self.expect(")")
        return self._build(ArrayPattern, elements, pos)

    def _at_params_end(self, closing: str) -> bool:
        if closing:
            return self.at(closing)
        return self.at_type(TK_EOF)

    def _build(self, kind: type[Pattern], elements: list[Element], pos: Pos) -> Any:
        try:
            return kind(tuple(elements), pos)
        except PatternError as e:
            if e.pos is not None:
                raise
            raise type(e)(e.msg, pos) from None

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_additive()

    def parse_additive(self) -> Expr:
        left = self.parse_multiplicative()
        while self.at("+") or self.at("-"):
            op = self.advance()
            right = self.parse_multiplicative()
            left = Binary(self._tok_pos(op), op.value, left, right)
        return left

    def parse_multiplicative(self) -> Expr:
        left = self.parse_unary()
        while self.at("*") or self.at("/") or self.at("%"):
            op = self.advance()
            right = self.parse_unary()
            left = Binary(self._tok_pos(op), op.value, left, right)
        return left

    def parse_unary(self) -> Expr:
        if self.at("-") or self.at("+") or self.at("!"):
            op = self.advance()
            operand = self.parse_unary()
            return Unary(self._tok_pos(op), op.value, operand)
        return self.parse_postfix()

    def parse_postfix(self) -> Expr:
        expr = self.parse_primary()
        while True:
            if self.at("."):
                self.advance()
                name = self.current()
                if name.type != TK_IDENT:
                    raise self.error("expected property name after '.'")
                self.advance()
                expr = Member(expr.pos, expr, Lit(self._tok_pos(name), name.value))
            elif self.at("["):
                self.advance()
                index = self.parse_expr()
                self.expect("]")
                expr = Member(expr.pos, expr, index)
            elif self.at("("):
                self.advance()
                args = self.parse_list_items(")")
                expr = Call(expr.pos, expr, args)
            elif self.at_type(TK_TEMPLATE):
                tok = self.advance()
                expr = TaggedTemplate(expr.pos, expr, self._template(tok, tagged=True))
            else:
                return expr

    def parse_list_items(self, closing: str) -> list[Expr]:
        """Comma-separated expressions with optional spread, closing consumed."""
        items: list[Expr] = []
        while not self.at(closing):
            if self.at("..."):
                tok = self.advance()
                items.append(Spread(self._tok_pos(tok), self.parse_expr()))
            else:
                items.append(self.parse_expr())
            if self.at(closing):
                break
            self.expect(",")
        self.expect(closing)
        return items

    def parse_primary(self) -> Expr:
        tok = self.current()
        pos = self._tok_pos(tok)
        if tok.type == TK_NUMBER:
            self.advance()
            return Lit(pos, self._number_value(tok))
        if tok.type == TK_STRING:
            self.advance()
            return Lit(pos, tok.value)
        if tok.type == TK_TEMPLATE:
            self.advance()
            return self._template(tok, tagged=False)
        if tok.type == TK_IDENT:
            self.advance()
            if tok.value in LITERAL_NAMES:
                return Lit(pos, LITERAL_NAMES[tok.value])
            return Var(pos, tok.value)
        if self.at("("):
            self.advance()
            inner = self.parse_expr()
            self.expect(")")
            return inner
        if self.at("["):
            return self.parse_array_lit()
        if self.at("{"):
            return self.parse_object_lit()
        raise self.error("expected expression, got " + self._describe(tok))

    def parse_array_lit(self) -> ArrayLit:
        pos = self._pos()
        self.expect("[")
        elements: list[Expr] = []
        while not self.at("]"):
            if self.at(","):
                elements.append(Lit(self._pos(), UNDEFINED))
                self.advance()
                continue
            if self.at("..."):
                tok = self.advance()
                elements.append(Spread(self._tok_pos(tok), self.parse_expr()))
            else:
                elements.append(self.parse_expr())
            if self.at("]"):
                break
            self.expect(",")
        self.expect("]")
        return ArrayLit(pos, elements)

    def parse_object_lit(self) -> ObjectLit:
        pos = self._pos()
        self.expect("{")
        props: list[Prop] = []
        while not self.at("}"):
            prop_pos = self._pos()
            if self.at("..."):
                self.advance()
                props.append(Prop(prop_pos, None, self.parse_expr()))
            elif self.at("["):
                computed, _ = self.parse_computed_key()
                self.expect(":")
                props.append(Prop(prop_pos, None, self.parse_expr(), computed))
            else:
                key_tok = self.current()
                if key_tok.type == TK_IDENT or key_tok.type == TK_STRING:
                    key = key_tok.value
                elif key_tok.type == TK_NUMBER:
                    key = self._number_key(key_tok)
                else:
                    raise self.error(
                        "expected property name, got " + self._describe(key_tok)
                    )
                self.advance()
                if self.at(":"):
                    self.advance()
                    props.append(Prop(prop_pos, key, self.parse_expr()))
                elif key_tok.type == TK_IDENT:
                    value: Expr = Var(prop_pos, key)
                    if key in LITERAL_NAMES:
                        value = Lit(prop_pos, LITERAL_NAMES[key])
                    props.append(Prop(prop_pos, key, value))
                else:
                    raise self.error("expected ':' after property name")
            if self.at("}"):
                break
            self.expect(",")
        self.expect("}")
        return ObjectLit(pos, props)

    def _number_value(self, tok: Token) -> int | float:
        text = tok.value.replace("_", "")
        try:
            if text[:2].lower() in ("0x", "0o", "0b"):
                return int(text, 0)
            if "." in text or "e" in text or "E" in text:
                return float(text)
            return int(text)
        except ValueError:
            raise ParseError(
                "invalid number '" + tok.value + "'", tok.line, tok.col
            ) from None

    def _template(self, tok: Token, tagged: bool) -> TemplateLit:
        parts = tok.template
        assert parts is not None
        if not tagged and UNDEFINED in parts.cooked:
            raise ParseError("invalid escape sequence in template", tok.line, tok.col)
        exprs: list[Expr] = []
        for sub_tokens in parts.substitutions:
            sub = Parser(sub_tokens, self.source)
            exprs.append(sub.parse_expr())
            sub.expect_end()
        pos = self._tok_pos(tok)
        return TemplateLit(pos, list(parts.cooked), list(parts.raw), exprs)


# ============================================================
# ENTRY POINTS
# ============================================================


def _tokens(source: str) -> list[Token]:
    try:
        return tokenize(source)
    except TokenizeError as e:
        raise ParseError(e.msg, e.line, e.col) from e


def parse_pattern(source: str) -> Pattern:
    """Parse and check pattern source such as ``{a, b: c = 1, ...rest}``."""
    parser = Parser(_tokens(source), source)
    pattern = parser.parse_pattern()
    parser.expect_end()
    validate(pattern)
    return pattern


def parse_params(source: str) -> ArrayPattern:
    """Parse a parameter list such as ``url, timeout = 2000, ...rest``."""
    parser = Parser(_tokens(source), source)
    pattern = parser.parse_params()
    parser.expect_end()
    validate(pattern)
    return pattern


def parse_expression(source: str) -> Expr:
    """Parse a single default or substitution expression."""
    parser = Parser(_tokens(source), source)
    expr = parser.parse_expr()
    parser.expect_end()
    return expr


def parse_template(source: str) -> TemplateLit:
    """Parse template text.

    Source wrapped in backticks is read as a template literal; anything else
    is taken as the bare text between the backticks.
    """
    if len(source) >= 2 and source.startswith("`") and source.endswith("`"):
        parser = Parser(_tokens(source), source)
        tok = parser.current()
        if tok.type == TK_TEMPLATE and parser.peek(1).type == TK_EOF:
            return parser._template(tok, tagged=True)
    try:
        parts = scan_template(source)
    except TokenizeError as e:
        raise ParseError(e.msg, e.line, e.col) from e
    exprs: list[Expr] = []
    for sub_tokens in parts.substitutions:
        sub = Parser(sub_tokens, source)
        exprs.append(sub.parse_expr())
        sub.expect_end()
    return TemplateLit(Pos(1, 1), list(parts.cooked), list(parts.raw), exprs)
