"""Pattern matcher — decompose a value into named bindings.

Object patterns read fields by key, array patterns consume an iterator by
position. Missing fields resolve through defaults or bind UNDEFINED; the
only evaluation failures are destructuring a nullish value, applying an
array pattern to something that cannot be iterated, and runaway depth.
"""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Iterator, Mapping
import logging
from types import MappingProxyType
from typing import Any

from .ast import (
    ArrayPattern,
    ComputedKey,
    Default,
    Hole,
    Name,
    Nested,
    ObjectPattern,
    Pattern,
    Rename,
    RestCapture,
)
from .check import validate
from .errors import DepthExceeded, NotIterable, NullishSource
from .parse import parse_pattern
from .values import (
    UNDEFINED,
    field_key,
    get_property,
    is_nullish,
    iterate,
    own_fields,
    property_key,
    to_string,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 256


class _Cursor:
    """Pulls array elements on demand; reads past the end yield UNDEFINED."""

    def __init__(self, it: Iterator[Any]):
        self._it = it
        self._done = False

    def next(self) -> Any:
        if self._done:
            return UNDEFINED
        try:
            return next(self._it)
        except StopIteration:
            self._done = True
            return UNDEFINED

    def rest(self) -> list[Any]:
        if self._done:
            return []
        self._done = True
        return list(self._it)


class _Match:
    """State of a single match call."""

    def __init__(self, scope: Mapping[str, Any], max_depth: int):
        self.bindings: dict[str, Any] = {}
        self.view: Mapping[str, Any] = MappingProxyType(ChainMap(self.bindings, scope))
        self.max_depth = max_depth

    def resolve(self, value: Any, default: Default | None, name: str) -> Any:
        if value is UNDEFINED and default is not None:
            logger.debug("default for %r: %s", name, default.source or "<callable>")
            return default.compute(self.view)
        return value

    def bind(self, name: str, value: Any) -> None:
        self.bindings[name] = value

    def key(self, key: str | ComputedKey | None) -> str:
        if isinstance(key, ComputedKey):
            computed = property_key(key.compute(self.view))
            logger.debug("computed key %s -> %r", key.source or "<callable>", computed)
            return computed
        return str(key)

    def pattern(self, pattern: Pattern, value: Any, depth: int) -> None:
        if depth > self.max_depth:
            raise DepthExceeded(
                f"pattern nesting deeper than {self.max_depth}", pattern.pos
            )
        if isinstance(pattern, ObjectPattern):
            self.object_pattern(pattern, value, depth)
        elif isinstance(pattern, ArrayPattern):
            self.array_pattern(pattern, value, depth)
        else:
            raise TypeError(f"not a pattern: {pattern!r}")

    def object_pattern(self, pattern: ObjectPattern, value: Any, depth: int) -> None:
        consumed: set[str] = set()
        for elem in pattern.elements:
            if isinstance(elem, Name):
                consumed.add(field_key(elem.name))
                field = get_property(value, elem.name)
                self.bind(elem.name, self.resolve(field, elem.default, elem.name))
            elif isinstance(elem, Rename):
                key = self.key(elem.key)
                consumed.add(field_key(key))
                field = get_property(value, key)
                self.bind(elem.target, self.resolve(field, elem.default, elem.target))
            elif isinstance(elem, Nested):
                key = self.key(elem.key)
                consumed.add(field_key(key))
                field = self.resolve(get_property(value, key), elem.default, key)
                self.nested(elem, field, "'" + key + "'", depth)
            elif isinstance(elem, RestCapture):
                rest = {
                    k: v
                    for k, v in own_fields(value).items()
                    if field_key(k) not in consumed
                }
                self.bind(elem.name, rest)

    def array_pattern(self, pattern: ArrayPattern, value: Any, depth: int) -> None:
        it = iterate(value)
        if it is None:
            raise NotIterable(f"{_describe(value)} is not iterable", pattern.pos)
        cursor = _Cursor(it)
        for index, elem in enumerate(pattern.elements):
            if isinstance(elem, Hole):
                cursor.next()
            elif isinstance(elem, Name):
                item = self.resolve(cursor.next(), elem.default, elem.name)
                self.bind(elem.name, item)
            elif isinstance(elem, Nested):
                label = "[" + str(index) + "]"
                item = self.resolve(cursor.next(), elem.default, label)
                self.nested(elem, item, "element " + str(index), depth)
            elif isinstance(elem, RestCapture):
                self.bind(elem.name, cursor.rest())

    def nested(self, elem: Nested, value: Any, where: str, depth: int) -> None:
        if is_nullish(value):
            raise NullishSource(
                f"cannot destructure {where} as it is {to_string(value)}", elem.pos
            )
        self.pattern(elem.pattern, value, depth + 1)


def _describe(value: Any) -> str:
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


class Matcher:
    """Reusable matcher.

    ``scope`` supplies free names that defaults may read; bindings produced
    by the pattern shadow it.
    """

    def __init__(
        self,
        scope: Mapping[str, Any] | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.scope: Mapping[str, Any] = scope if scope is not None else {}
        self.max_depth = max_depth

    def match(self, pattern: Pattern | str, value: Any) -> dict[str, Any]:
        """Bind ``value`` against ``pattern``. Returns a fresh dict of bindings."""
        if isinstance(pattern, str):
            pattern = parse_pattern(pattern)
        else:
            validate(pattern)
        if is_nullish(value):
            raise NullishSource(f"cannot destructure {to_string(value)}", pattern.pos)
        state = _Match(self.scope, self.max_depth)
        state.pattern(pattern, value, 0)
        logger.debug("matched %d bindings", len(state.bindings))
        return state.bindings


def match(
    pattern: Pattern | str, value: Any, scope: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Destructure ``value`` with ``pattern`` (a Pattern or pattern source)."""
    return Matcher(scope).match(pattern, value)
