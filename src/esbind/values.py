"""Value model — the undefined sentinel and property access on Python values.

Python values stand in for script values: ``None`` is ``null``, mappings are
plain objects, lists and tuples are arrays. ``UNDEFINED`` marks a missing
value; reading an absent key or index yields it instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from decimal import Decimal
import math
from typing import Any, cast


class _Undefined:
    """Singleton type of ``UNDEFINED``."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


def is_undefined(value: Any) -> bool:
    return value is UNDEFINED


def is_nullish(value: Any) -> bool:
    """True for ``None`` and ``UNDEFINED``."""
    return value is None or value is UNDEFINED


def _array_index(key: Any) -> int | None:
    """Canonical non-negative integer index for key, or None."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key >= 0 else None
    if isinstance(key, str) and key.isdigit() and key.isascii():
        if key == "0" or not key.startswith("0"):
            return int(key)
    return None


def _is_array_like(value: Any) -> bool:
    return isinstance(value, (str, Sequence)) and not isinstance(
        value, (bytes, bytearray)
    )


# ============================================================
# PROPERTY ACCESS
# ============================================================


def get_property(value: Any, key: str | int) -> Any:
    """Read ``value[key]`` with script semantics. Absent reads as UNDEFINED.

    The caller is responsible for rejecting nullish values first.
    """
    if isinstance(value, Mapping):
        if key in value:
            return value[key]
        idx = _array_index(key)
        if idx is not None:
            alt: Any = idx if isinstance(key, str) else str(idx)
            if alt in value:
                return value[alt]
        return UNDEFINED
    if _is_array_like(value):
        if key == "length":
            return len(value)
        idx = _array_index(key)
        if idx is not None and idx < len(value):
            return value[idx]
        return UNDEFINED
    if isinstance(key, str) and key.isidentifier() and not key.startswith("_"):
        return getattr(value, key, UNDEFINED)
    return UNDEFINED


def own_fields(value: Any) -> dict[str, Any]:
    """Own enumerable fields of value, in insertion order."""
    if isinstance(value, Mapping):
        return dict(value)
    if _is_array_like(value):
        return {str(i): item for i, item in enumerate(value)}
    attrs = getattr(value, "__dict__", None)
    if isinstance(attrs, dict):
        return {k: v for k, v in attrs.items() if not k.startswith("_")}
    return {}


def field_key(key: Any) -> str:
    """Normalised key used to compare consumed and remaining fields."""
    return str(key)


def property_key(value: Any) -> str:
    """Property key for a computed name: strings as-is, anything else stringified."""
    return value if isinstance(value, str) else to_string(value)


def iterate(value: Any) -> Iterator[Any] | None:
    """Iterator over value for array destructuring, or None if not iterable.

    Mappings are plain objects here and are not iterable.
    """
    if isinstance(value, Mapping):
        return None
    try:
        return iter(value)
    except TypeError:
        return None


# ============================================================
# STRING CONVERSION
# ============================================================


def _number_to_string(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"
    sign = "-" if x < 0 else ""
    _, digit_tuple, exp = Decimal(repr(abs(x))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exp = cast(int, exp) + (len(digit_tuple) - len(digits))
    k = len(digits)
    n = exp + k
    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * (-n) + digits
    e = n - 1
    e_str = ("+" if e >= 0 else "-") + str(abs(e))
    if k == 1:
        return sign + digits + "e" + e_str
    return sign + digits[0] + "." + digits[1:] + "e" + e_str


def to_string(value: Any) -> str:
    """Convert a value to text the way ``String(value)`` does."""
    if value is None:
        return "null"
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _number_to_string(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return "[object Object]"
    if isinstance(value, (list, tuple)):
        return ",".join("" if is_nullish(v) else to_string(v) for v in value)
    if callable(value):
        name = getattr(value, "__name__", "")
        return "function " + name + "() { [native code] }"
    return str(value)
