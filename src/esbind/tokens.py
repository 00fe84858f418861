"""esbind tokenizer — lexes pattern, parameter and expression source.

Template literals are scanned here as well: a TEMPLATE token carries its
cooked and raw segments plus one token list per substitution.
"""

from __future__ import annotations

from typing import Any

from .ast import Pos
from .errors import EsbindError
from .values import UNDEFINED


# Token type constants
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_TEMPLATE = "TEMPLATE"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

# Multi-character operators, sorted by length descending for greedy matching
MULTI_OPS: list[str] = [
    "...",
]

SINGLE_OPS: set[str] = {
    "+",
    "-",
    "*",
    "/",
    "%",
    "!",
    "=",
    "(",
    ")",
    "[",
    "]",
    "{",
    "}",
    ",",
    ":",
    ".",
}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}

LINE_TERMINATORS: set[str] = {"\n", "\r", "\u2028", "\u2029"}


class TokenizeError(EsbindError):
    """Error during tokenization."""

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(msg, Pos(line, col))
        self.line: int = line
        self.col: int = col


class TemplateParts:
    """Segments of one template literal.

    ``cooked[i]`` is UNDEFINED when segment i holds an invalid escape.
    """

    def __init__(self) -> None:
        self.cooked: list[Any] = []
        self.raw: list[str] = []
        self.substitutions: list[list[Token]] = []


class Token:
    """A token with type, value, position and source offsets."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col
        self.start: int = 0
        self.end: int = 0
        self.template: TemplateParts | None = None

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_hex(c: str) -> bool:
    return (c >= "0" and c <= "9") or (c >= "a" and c <= "f") or (c >= "A" and c <= "F")


def _is_ident_start(c: str) -> bool:
    return c.isalpha() or c == "_" or c == "$"


def _is_ident_part(c: str) -> bool:
    return _is_ident_start(c) or c.isdigit()


def _join_surrogates(s: str) -> str:
    """Merge \\uD83D\\uDE00-style pairs into one code point."""
    if not any("\ud800" <= ch <= "\udfff" for ch in s):
        return s
    return s.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def _read_escape(src: str, pos: int) -> tuple[str | None, int]:
    """Resolve the escape whose body starts at src[pos] (after the backslash).

    Returns (cooked, new_pos); cooked is None for an invalid escape, in which
    case only the escape letter is consumed.
    """
    c = src[pos]
    if c in ESCAPE_MAP:
        return ESCAPE_MAP[c], pos + 1
    if c == "0":
        if pos + 1 < len(src) and _is_digit(src[pos + 1]):
            return None, pos + 1
        return "\0", pos + 1
    if _is_digit(c):
        return None, pos + 1
    if c == "x":
        if pos + 2 < len(src) and _is_hex(src[pos + 1]) and _is_hex(src[pos + 2]):
            return chr(int(src[pos + 1 : pos + 3], 16)), pos + 3
        return None, pos + 1
    if c == "u":
        if pos + 1 < len(src) and src[pos + 1] == "{":
            end = src.find("}", pos + 2)
            digits = src[pos + 2 : end] if end != -1 else ""
            if digits and all(_is_hex(d) for d in digits):
                val = int(digits, 16)
                if val <= 0x10FFFF:
                    return chr(val), end + 1
            return None, pos + 1
        digits = src[pos + 1 : pos + 5]
        if len(digits) == 4 and all(_is_hex(d) for d in digits):
            return chr(int(digits, 16)), pos + 5
        return None, pos + 1
    if c == "\r":
        if pos + 1 < len(src) and src[pos + 1] == "\n":
            return "", pos + 2
        return "", pos + 1
    if c in LINE_TERMINATORS:
        return "", pos + 1
    return c, pos + 1


class _Scanner:
    """Position-tracking scanner over one source string."""

    def __init__(self, source: str):
        self.src: str = source
        self.pos: int = 0
        self.line: int = 1
        self.col: int = 1

    def error(
        self, msg: str, line: int | None = None, col: int | None = None
    ) -> TokenizeError:
        return TokenizeError(
            msg, self.line if line is None else line, self.col if col is None else col
        )

    def bump(self, n: int = 1) -> None:
        for _ in range(n):
            c = self.src[self.pos]
            self.pos += 1
            if c == "\n" or (
                c == "\r" and (self.pos >= len(self.src) or self.src[self.pos] != "\n")
            ):
                self.line += 1
                self.col = 1
            else:
                self.col += 1

    def peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= len(self.src):
            return ""
        return self.src[idx]

    # ── Tokens ───────────────────────────────────────────────

    def tokens(self, until_brace: bool) -> list[Token]:
        """Tokenize until EOF, or until the '}' closing a substitution."""
        out: list[Token] = []
        depth = 0
        start_line = self.line
        start_col = self.col
        while True:
            c = self.peek()
            if c == "":
                if until_brace:
                    raise self.error(
                        "unterminated template substitution", start_line, start_col
                    )
                break
            if c in " \t\n\r\u2028\u2029\ufeff":
                self.bump()
                continue
            if c == "/" and self.peek(1) == "/":
                while self.peek() != "" and self.peek() not in LINE_TERMINATORS:
                    self.bump()
                continue
            if c == "/" and self.peek(1) == "*":
                line, col = self.line, self.col
                end = self.src.find("*/", self.pos + 2)
                if end == -1:
                    raise self.error("unterminated comment", line, col)
                self.bump(end + 2 - self.pos)
                continue
            if until_brace and c == "}" and depth == 0:
                self.bump()
                break
            if c == "{":
                depth += 1
            elif c == "}":
                depth -= 1
            out.append(self.token())
        eof = Token(TK_EOF, "", self.line, self.col)
        eof.start = eof.end = self.pos
        out.append(eof)
        return out

    def token(self) -> Token:
        start = self.pos
        line = self.line
        col = self.col
        c = self.peek()
        if _is_digit(c) or (c == "." and _is_digit(self.peek(1))):
            tok = Token(TK_NUMBER, self.number(), line, col)
        elif c == '"' or c == "'":
            tok = Token(TK_STRING, self.string(c), line, col)
        elif c == "`":
            self.bump()
            parts = self.template_body(closing=True)
            tok = Token(TK_TEMPLATE, self.src[start : self.pos], line, col)
            tok.template = parts
        elif _is_ident_start(c):
            while self.peek() != "" and _is_ident_part(self.peek()):
                self.bump()
            tok = Token(TK_IDENT, self.src[start : self.pos], line, col)
        else:
            op = ""
            for mop in MULTI_OPS:
                if self.src.startswith(mop, self.pos):
                    op = mop
                    break
            if op == "" and c in SINGLE_OPS:
                op = c
            if op == "":
                raise self.error("unexpected character '" + c + "'")
            self.bump(len(op))
            tok = Token(TK_OP, op, line, col)
        tok.start = start
        tok.end = self.pos
        return tok

    def number(self) -> str:
        start = self.pos
        line, col = self.line, self.col
        if self.peek() == "0" and self.peek(1) in ("x", "X", "o", "O", "b", "B"):
            self.bump(2)
            digits_start = self.pos
            while self.peek() != "" and (_is_hex(self.peek()) or self.peek() == "_"):
                self.bump()
            if self.pos == digits_start:
                raise self.error("missing digits after radix prefix", line, col)
            return self.src[start : self.pos]
        while _is_digit(self.peek()) or self.peek() == "_":
            self.bump()
        if self.peek() == "." and _is_digit(self.peek(1)):
            self.bump()
            while _is_digit(self.peek()) or self.peek() == "_":
                self.bump()
        if self.peek() in ("e", "E"):
            self.bump()
            if self.peek() in ("+", "-"):
                self.bump()
            if not _is_digit(self.peek()):
                raise self.error("invalid number exponent", line, col)
            while _is_digit(self.peek()):
                self.bump()
        if _is_ident_start(self.peek()):
            raise self.error("identifier directly after number", line, col)
        return self.src[start : self.pos]

    def string(self, quote: str) -> str:
        line, col = self.line, self.col
        self.bump()
        chars: list[str] = []
        while True:
            c = self.peek()
            if c == "" or c == "\n" or c == "\r":
                raise self.error("unterminated string literal", line, col)
            if c == quote:
                self.bump()
                break
            if c == "\\":
                esc_line, esc_col = self.line, self.col
                self.bump()
                if self.peek() == "":
                    raise self.error("unterminated string literal", line, col)
                cooked, new_pos = _read_escape(self.src, self.pos)
                if cooked is None:
                    raise self.error(
                        "invalid escape: \\" + self.src[self.pos], esc_line, esc_col
                    )
                self.bump(new_pos - self.pos)
                chars.append(cooked)
                continue
            chars.append(c)
            self.bump()
        return _join_surrogates("".join(chars))

    # ── Templates ────────────────────────────────────────────

    def template_body(self, closing: bool) -> TemplateParts:
        """Scan template text up to the closing backtick (or EOF).

        The opening backtick, if any, has already been consumed.
        """
        parts = TemplateParts()
        line, col = self.line, self.col
        cooked: list[str] = []
        raw: list[str] = []
        valid = True

        def finish() -> None:
            parts.raw.append("".join(raw))
            if valid:
                parts.cooked.append(_join_surrogates("".join(cooked)))
            else:
                parts.cooked.append(UNDEFINED)

        while True:
            c = self.peek()
            if c == "":
                if closing:
                    raise self.error("unterminated template literal", line, col)
                finish()
                return parts
            if closing and c == "`":
                self.bump()
                finish()
                return parts
            if c == "$" and self.peek(1) == "{":
                finish()
                cooked, raw, valid = [], [], True
                self.bump(2)
                sub = self.tokens(until_brace=True)
                if len(sub) == 1:
                    raise self.error("empty template substitution")
                parts.substitutions.append(sub)
                continue
            if c == "\r":
                self.bump()
                if self.peek() == "\n":
                    self.bump()
                cooked.append("\n")
                raw.append("\n")
                continue
            if c == "\\":
                self.bump()
                if self.peek() == "":
                    raise self.error("unterminated template literal", line, col)
                value, new_pos = _read_escape(self.src, self.pos)
                text = self.src[self.pos : new_pos]
                raw.append("\\" + text.replace("\r\n", "\n").replace("\r", "\n"))
                if value is None:
                    valid = False
                else:
                    cooked.append(value)
                self.bump(new_pos - self.pos)
                continue
            cooked.append(c)
            raw.append(c)
            self.bump()


def tokenize(source: str) -> list[Token]:
    """Tokenize source into a flat list ending with TK_EOF."""
    return _Scanner(source).tokens(until_brace=False)


def scan_template(source: str) -> TemplateParts:
    """Scan bare template text (no enclosing backticks) into its parts."""
    return _Scanner(source).template_body(closing=False)
