"""Compiled templates — parse template text once, render or tag it many times."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import functools
import logging
from typing import Any

from .ast import Expr
from .evaluate import Evaluator
from .parse import parse_template
from .template import Tag, TemplateInvocation, TemplateStrings, interpolate

logger = logging.getLogger(__name__)

CACHE_SIZE = 256


@dataclass(frozen=True, eq=False)
class Template:
    """A parsed template: literal segments plus substitution expressions."""

    source: str
    strings: TemplateStrings
    expressions: tuple[Expr, ...]

    def substitutions(self, scope: Mapping[str, Any] | None = None) -> list[Any]:
        evaluator = Evaluator(scope if scope is not None else {})
        return [evaluator.eval(e) for e in self.expressions]

    def invocation(self, scope: Mapping[str, Any] | None = None) -> TemplateInvocation:
        return TemplateInvocation(self.strings, tuple(self.substitutions(scope)))

    def render(self, scope: Mapping[str, Any] | None = None) -> str:
        """Untagged interpolation."""
        return interpolate(self.strings, *self.substitutions(scope))

    def tag(self, tag: Tag, scope: Mapping[str, Any] | None = None) -> Any:
        """Evaluate substitutions and hand everything to ``tag``."""
        return self.invocation(scope).call(tag)


@functools.lru_cache(maxsize=CACHE_SIZE)
def compile_template(source: str) -> Template:
    """Parse template text, cached per source so tags see a stable strings object."""
    logger.debug("compiling template %r", source)
    lit = parse_template(source)
    strings = TemplateStrings(lit.cooked, lit.raw)
    return Template(source, strings, tuple(lit.exprs))


def render(source: str, scope: Mapping[str, Any] | None = None) -> str:
    return compile_template(source).render(scope)


def tagged(tag: Tag, source: str, scope: Mapping[str, Any] | None = None) -> Any:
    return compile_template(source).tag(tag, scope)
