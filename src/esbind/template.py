"""Template tag invoker — call a tag with cooked/raw literals and substitutions."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
import logging
from typing import Any

from .errors import TemplateShapeError, TemplateSyntaxError
from .values import UNDEFINED, to_string

logger = logging.getLogger(__name__)

Tag = Callable[..., Any]


class TemplateStrings(tuple):
    """Literal segments of a template.

    Iterating or indexing yields the cooked segments; ``raw`` holds the same
    segments with escapes left verbatim. A cooked segment is UNDEFINED when
    its source holds an invalid escape.
    """

    def __new__(cls, cooked: Iterable[Any], raw: Iterable[str]) -> TemplateStrings:
        self = super().__new__(cls, tuple(cooked))
        self._raw = tuple(raw)
        if len(self._raw) != len(self):
            raise TemplateShapeError(
                f"{len(self)} cooked segments but {len(self._raw)} raw segments"
            )
        return self

    @property
    def raw(self) -> tuple[str, ...]:
        return self._raw

    def __repr__(self) -> str:
        return f"TemplateStrings({list(self)!r}, raw={list(self._raw)!r})"

    def __reduce__(self) -> tuple[Any, ...]:
        return (TemplateStrings, (tuple(self), self._raw))


@dataclass(frozen=True)
class TemplateInvocation:
    """One tagged call: N+1 literal segments around N substitutions."""

    strings: TemplateStrings
    substitutions: tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "substitutions", tuple(self.substitutions))
        if len(self.strings) != len(self.substitutions) + 1:
            raise TemplateShapeError(
                f"{len(self.substitutions)} substitutions need "
                f"{len(self.substitutions) + 1} literal segments, "
                f"got {len(self.strings)}"
            )

    def call(self, tag: Tag) -> Any:
        logger.debug(
            "invoking tag %s with %d substitutions",
            getattr(tag, "__name__", repr(tag)),
            len(self.substitutions),
        )
        return tag(self.strings, *self.substitutions)


def invoke(
    raw_literals: Sequence[str],
    cooked_literals: Sequence[Any],
    substitutions: Sequence[Any],
    tag: Tag,
) -> Any:
    """Call ``tag(strings, *substitutions)`` and return its result unchanged.

    Both literal sequences must be one longer than ``substitutions``.
    """
    raw = tuple(raw_literals)
    cooked = tuple(cooked_literals)
    subs = tuple(substitutions)
    if not len(cooked) == len(raw) == len(subs) + 1:
        raise TemplateShapeError(
            f"{len(subs)} substitutions need {len(subs) + 1} literal segments, "
            f"got {len(cooked)} cooked and {len(raw)} raw"
        )
    return TemplateInvocation(TemplateStrings(cooked, raw), subs).call(tag)


# ============================================================
# BUILT-IN TAGS
# ============================================================


def _cooked(strings: Sequence[Any], i: int) -> str:
    segment = strings[i]
    if segment is UNDEFINED:
        raw = getattr(strings, "raw", None)
        shown = repr(raw[i]) if raw is not None else "segment " + str(i)
        raise TemplateSyntaxError("invalid escape sequence in template " + shown)
    return segment


def interpolate(strings: Sequence[Any], *substitutions: Any) -> str:
    """Untagged template behaviour: cooked text with substitutions stringified."""
    out = [_cooked(strings, 0)]
    for i, sub in enumerate(substitutions):
        out.append(to_string(sub))
        out.append(_cooked(strings, i + 1))
    return "".join(out)


def raw(strings: TemplateStrings, *substitutions: Any) -> str:
    """Raw text with substitutions stringified, escapes left as written."""
    segments = strings.raw
    out: list[str] = []
    for i, segment in enumerate(segments):
        out.append(segment)
        if i + 1 < len(segments) and i < len(substitutions):
            out.append(to_string(substitutions[i]))
    return "".join(out)
