"""esbind checker — whole-tree validation of a constructed pattern.

Per-list rules (rest placement, element kinds) are enforced when the pattern
nodes are built. What remains spans the tree: a default or computed key may
only read names bound before it in traversal order, and each name is bound
once.
"""

from __future__ import annotations

from .ast import (
    ComputedKey,
    Default,
    Hole,
    Name,
    Nested,
    Pattern,
    Pos,
    Rename,
    RestCapture,
    binding_names,
)
from .errors import DuplicateBinding, ForwardReference, PatternError


class Checker:
    def __init__(self, pattern: Pattern) -> None:
        self.errors: list[PatternError] = []
        self.declared: set[str] = set(binding_names(pattern))
        self.bound: set[str] = set()

    def check_pattern(self, pattern: Pattern) -> None:
        for elem in pattern.elements:
            if isinstance(elem, Name):
                self.check_default(elem.default, elem.pos)
                self.bind(elem.name, elem.pos)
            elif isinstance(elem, Rename):
                self.check_key(elem.key, elem.pos)
                self.check_default(elem.default, elem.pos)
                self.bind(elem.target, elem.pos)
            elif isinstance(elem, Nested):
                self.check_key(elem.key, elem.pos)
                self.check_default(elem.default, elem.pos)
                self.check_pattern(elem.pattern)
            elif isinstance(elem, RestCapture):
                self.bind(elem.name, elem.pos)
            elif isinstance(elem, Hole):
                continue

    def check_key(self, key: str | ComputedKey | None, pos: Pos | None) -> None:
        if isinstance(key, ComputedKey):
            self.check_refs(key.refs, pos)

    def check_default(self, default: Default | None, pos: Pos | None) -> None:
        if default is not None:
            self.check_refs(default.refs, pos)

    def check_refs(self, refs: tuple[str, ...], pos: Pos | None) -> None:
        for ref in refs:
            # names the pattern never binds are free and come from scope
            if ref in self.declared and ref not in self.bound:
                self.errors.append(ForwardReference(ref, pos))

    def bind(self, name: str, pos: Pos | None) -> None:
        if name in self.bound:
            self.errors.append(DuplicateBinding(name, pos))
        self.bound.add(name)


def check(pattern: Pattern) -> list[PatternError]:
    """Check a pattern tree. Returns a list of errors (empty = ok)."""
    checker = Checker(pattern)
    checker.check_pattern(pattern)
    return checker.errors


def validate(pattern: Pattern) -> None:
    """Raise the first error ``check`` reports."""
    errors = check(pattern)
    if errors:
        raise errors[0]
