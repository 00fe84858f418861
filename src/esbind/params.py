"""Function parameters with defaults and a rest parameter.

A parameter list is an array pattern over the positional arguments: a
missing or UNDEFINED argument takes its default, ``None`` does not, and a
default may read any parameter to its left.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import functools
from typing import Any

from .ast import ArrayPattern
from .matcher import Matcher
from .parse import parse_params


def bind_arguments(
    params: ArrayPattern | str,
    args: Sequence[Any],
    scope: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Bind positional ``args`` to ``params``. Returns name -> value."""
    if isinstance(params, str):
        params = parse_params(params)
    return Matcher(scope).match(params, list(args))


def destructure(
    params: ArrayPattern | str, scope: Mapping[str, Any] | None = None
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator: bind the call's positional arguments, pass them as keywords.

    >>> @destructure("first, second = first")
    ... def add(first, second):
    ...     return first + second
    >>> add(2)
    4
    """
    pattern = parse_params(params) if isinstance(params, str) else params

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def wrapper(*args: Any) -> Any:
            return fn(**bind_arguments(pattern, args, scope))

        return wrapper

    return decorator
