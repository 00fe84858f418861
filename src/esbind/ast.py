"""esbind AST — pattern nodes, defaults and expression nodes.

Pattern nodes are frozen and hold their children in tuples, so a pattern is
immutable once built. Structural rules that only concern one pattern list
(rest placement, element kinds) are enforced on construction; rules that
span the whole tree live in ``check``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .errors import DuplicateRest, InvalidElement, MisplacedRest, UnboundName

if TYPE_CHECKING:
    from .template import TemplateStrings


# ============================================================
# POSITION
# ============================================================


@dataclass(frozen=True)
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


# ============================================================
# DEFAULTS
# ============================================================


@dataclass(frozen=True)
class Default:
    """Deferred default value.

    ``compute`` receives a read-only mapping of the bindings produced so far
    (layered over the matcher's scope). ``refs`` lists the identifiers it
    reads, so that forward references can be rejected before matching.
    """

    compute: Callable[[Mapping[str, Any]], Any]
    refs: tuple[str, ...] = ()
    source: str | None = None

    @classmethod
    def value(cls, constant: Any) -> Default:
        """Default that always yields ``constant``."""
        return cls(lambda _bindings: constant, (), repr(constant))

    @classmethod
    def ref(cls, name: str) -> Default:
        """Default that copies an earlier binding, like ``second = first``."""

        def compute(bindings: Mapping[str, Any]) -> Any:
            if name not in bindings:
                raise UnboundName(name)
            return bindings[name]

        return cls(compute, (name,), name)


@dataclass(frozen=True)
class ComputedKey:
    """Deferred property key, like ``[prefix + 'Name']``.

    Evaluated at match time against the same view a default sees, then
    converted to a property key string.
    """

    compute: Callable[[Mapping[str, Any]], Any]
    refs: tuple[str, ...] = ()
    source: str | None = None


# ============================================================
# PATTERN ELEMENTS
# ============================================================


@dataclass(frozen=True)
class Element:
    """Base for pattern list elements."""


@dataclass(frozen=True)
class Name(Element):
    """Bind by key (object) or index (array) to the identifier itself."""

    name: str
    default: Default | None = None
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Rename(Element):
    """Read ``key`` and bind it to ``target``. Object patterns only."""

    key: str | ComputedKey
    target: str
    default: Default | None = None
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Nested(Element):
    """Apply a sub-pattern to a field (object) or element (array)."""

    pattern: Pattern
    key: str | ComputedKey | None = None
    default: Default | None = None
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True)
class RestCapture(Element):
    """Collect remaining elements or fields. Must come last."""

    name: str
    pos: Pos | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Hole(Element):
    """Skipped array position (elision). Array patterns only."""

    pos: Pos | None = field(default=None, compare=False)


# ============================================================
# PATTERNS
# ============================================================


def _check_rest(elements: tuple[Element, ...]) -> None:
    rests = [e for e in elements if isinstance(e, RestCapture)]
    if len(rests) > 1:
        raise DuplicateRest("only one rest element allowed", rests[1].pos)
    if rests and elements[-1] is not rests[0]:
        raise MisplacedRest("rest element must be last", rests[0].pos)


@dataclass(frozen=True)
class Pattern:
    """Base for the two pattern list kinds."""

    elements: tuple[Element, ...]
    pos: Pos | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))
        _check_rest(self.elements)


@dataclass(frozen=True)
class ObjectPattern(Pattern):
    """{a, b: c = 1, ...rest}."""

    def __post_init__(self) -> None:
        super().__post_init__()
        for elem in self.elements:
            if isinstance(elem, Hole):
                raise InvalidElement("elision in object pattern", elem.pos)
            if isinstance(elem, Nested) and elem.key is None:
                raise InvalidElement("nested object element needs a key", elem.pos)

    def keys(self) -> list[str]:
        """Static field keys read by this level, in order.

        Computed keys are only known at match time and are skipped.
        """
        out: list[str] = []
        for elem in self.elements:
            if isinstance(elem, Name):
                out.append(elem.name)
            elif isinstance(elem, (Rename, Nested)) and isinstance(elem.key, str):
                out.append(elem.key)
        return out


@dataclass(frozen=True)
class ArrayPattern(Pattern):
    """[a, , b = 2, ...rest]."""

    def __post_init__(self) -> None:
        super().__post_init__()
        for elem in self.elements:
            if isinstance(elem, Rename):
                raise InvalidElement("rename in array pattern", elem.pos)
            if isinstance(elem, Nested) and elem.key is not None:
                raise InvalidElement("keyed element in array pattern", elem.pos)


def binding_names(pattern: Pattern) -> list[str]:
    """All identifiers a pattern binds, in traversal order."""
    names: list[str] = []
    for elem in pattern.elements:
        if isinstance(elem, Name):
            names.append(elem.name)
        elif isinstance(elem, Rename):
            names.append(elem.target)
        elif isinstance(elem, RestCapture):
            names.append(elem.name)
        elif isinstance(elem, Nested):
            names.extend(binding_names(elem.pattern))
    return names


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for default and substitution expressions."""

    pos: Pos


@dataclass
class Lit(Expr):
    """Number, string, true, false, null or undefined."""

    value: Any


@dataclass
class Var(Expr):
    name: str


@dataclass
class Spread(Expr):
    """...expr inside an array literal, object literal or call."""

    operand: Expr


@dataclass
class ArrayLit(Expr):
    elements: list[Expr]


@dataclass
class Prop:
    """Object literal entry.

    ``key`` is None for a spread entry and for a computed key, which is held
    in ``computed``.
    """

    pos: Pos
    key: str | None
    value: Expr
    computed: Expr | None = None


@dataclass
class ObjectLit(Expr):
    props: list[Prop]


@dataclass
class Member(Expr):
    """obj.name or obj[index]."""

    obj: Expr
    key: Expr


@dataclass
class Call(Expr):
    func: Expr
    args: list[Expr]


@dataclass
class Unary(Expr):
    op: str
    operand: Expr


@dataclass
class Binary(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass
class TemplateLit(Expr):
    """`...${expr}...` — cooked segments may be UNDEFINED for bad escapes."""

    cooked: list[Any]
    raw: list[str]
    exprs: list[Expr]
    strings: TemplateStrings | None = field(default=None, repr=False, compare=False)


@dataclass
class TaggedTemplate(Expr):
    tag: Expr
    template: TemplateLit


def free_names(expr: Expr) -> list[str]:
    """Identifiers read by an expression, first occurrence order."""
    out: list[str] = []

    def visit(e: Expr) -> None:
        if isinstance(e, Var):
            if e.name not in out:
                out.append(e.name)
        elif isinstance(e, Spread):
            visit(e.operand)
        elif isinstance(e, ArrayLit):
            for item in e.elements:
                visit(item)
        elif isinstance(e, ObjectLit):
            for prop in e.props:
                if prop.computed is not None:
                    visit(prop.computed)
                visit(prop.value)
        elif isinstance(e, Member):
            visit(e.obj)
            visit(e.key)
        elif isinstance(e, Call):
            visit(e.func)
            for arg in e.args:
                visit(arg)
        elif isinstance(e, Unary):
            visit(e.operand)
        elif isinstance(e, Binary):
            visit(e.left)
            visit(e.right)
        elif isinstance(e, TemplateLit):
            for sub in e.exprs:
                visit(sub)
        elif isinstance(e, TaggedTemplate):
            visit(e.tag)
            visit(e.template)

    visit(expr)
    return out
