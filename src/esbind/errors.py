"""esbind error taxonomy — construction errors vs evaluation errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .ast import Pos


class EsbindError(Exception):
    """Base error for pattern matching and template invocation."""

    def __init__(self, msg: str, pos: Pos | None = None):
        if pos is None:
            super().__init__(msg)
        else:
            super().__init__(f"{msg} at line {pos.line} col {pos.col}")
        self.msg = msg
        self.pos = pos


# ============================================================
# PATTERNS
# ============================================================


class MatchError(EsbindError):
    """Base for everything the pattern matcher can raise."""


class PatternError(MatchError):
    """Malformed pattern, detected before any value is read."""


class MisplacedRest(PatternError):
    """Rest capture that is not the last element of its pattern list."""


class DuplicateRest(PatternError):
    """More than one rest capture in a single pattern list."""


class InvalidElement(PatternError):
    """Element kind not allowed in this pattern list (e.g. a hole in an object)."""


class ForwardReference(PatternError):
    """Default or computed key reads a name bound at or after its own position."""

    def __init__(self, name: str, pos: Pos | None = None):
        super().__init__(f"'{name}' is read before it is bound", pos)
        self.name = name


class DuplicateBinding(PatternError):
    """Same identifier bound twice in one pattern tree."""

    def __init__(self, name: str, pos: Pos | None = None):
        super().__init__(f"'{name}' is bound more than once", pos)
        self.name = name


class NullishSource(MatchError):
    """Attempt to destructure null or undefined."""


class NotIterable(MatchError):
    """Array pattern applied to a value that cannot be iterated."""


class DepthExceeded(MatchError):
    """Nested matching went deeper than the matcher allows."""


# ============================================================
# EXPRESSIONS
# ============================================================


class EvaluationError(EsbindError):
    """Fault while evaluating a default or substitution expression."""


class UnboundName(EvaluationError):
    """Free name that is neither bound by the pattern nor in scope."""

    def __init__(self, name: str, pos: Pos | None = None):
        super().__init__(f"'{name}' is not defined", pos)
        self.name = name


# ============================================================
# TEMPLATES
# ============================================================


class TemplateError(EsbindError):
    """Base for template invocation errors."""


class TemplateShapeError(TemplateError):
    """Literal and substitution counts do not line up."""


class TemplateSyntaxError(TemplateError):
    """Invalid escape in a template that is rendered without a tag."""
