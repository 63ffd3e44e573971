"""Decode helpers shared by every response record.

Poloniex sends precision-sensitive numbers as JSON strings and the rest as
JSON numbers, often for the same logical field on different endpoints. All
numeric fields go through :func:`to_decimal` so both spellings collapse to one
``Decimal``. JSON is parsed with ``parse_float=Decimal``, so JSON numbers
arrive here as ``int`` or ``Decimal`` and never as binary floats.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, TypeVar

from ..errors import DecodeError

T = TypeVar("T")

_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INT_RE = re.compile(r"[+-]?\d+")

_MISSING = object()


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def to_decimal(value: Any, field: str = "value") -> Decimal:
    """Coerce a JSON string or JSON number to ``Decimal``."""
    if isinstance(value, bool):
        raise DecodeError(f"{field}: expected number, got boolean")
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise DecodeError(f"{field}: non-finite number {value}")
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return to_decimal(repr(value), field)
    if isinstance(value, str):
        if not _DECIMAL_RE.fullmatch(value):
            raise DecodeError(f"{field}: cannot parse {value!r} as a decimal number")
        try:
            return Decimal(value)
        except InvalidOperation as exc:
            raise DecodeError(f"{field}: cannot parse {value!r} as a decimal number") from exc
    raise DecodeError(f"{field}: expected number or numeric string, got {_type_name(value)}")


def to_int(value: Any, field: str = "value") -> int:
    """Coerce a JSON integer or an integer string to ``int``."""
    if isinstance(value, bool):
        raise DecodeError(f"{field}: expected integer, got boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        raise DecodeError(f"{field}: expected integer, got {value}")
    if isinstance(value, str) and _INT_RE.fullmatch(value):
        return int(value)
    raise DecodeError(f"{field}: expected integer, got {value!r}")


def to_str(value: Any, field: str = "value") -> str:
    if isinstance(value, str):
        return value
    raise DecodeError(f"{field}: expected string, got {_type_name(value)}")


def to_bool(value: Any, field: str = "value") -> bool:
    """Poloniex flags are 0/1, as numbers or strings."""
    if isinstance(value, bool):
        return value
    return to_int(value, field) != 0


def expect_object(value: Any, what: str = "response") -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"{what}: expected object, got {_type_name(value)}")
    return value


def expect_list(value: Any, what: str = "response") -> list[Any]:
    if not isinstance(value, list):
        raise DecodeError(f"{what}: expected array, got {_type_name(value)}")
    return value


def get_field(
    obj: Mapping[str, Any],
    key: str,
    convert: Callable[[Any, str], T],
    default: Any = _MISSING,
) -> T:
    """Read ``obj[key]`` through ``convert``.

    Missing keys (and JSON nulls) fall back to ``default`` when one is given,
    otherwise they are a :class:`DecodeError`.
    """
    value = obj.get(key)
    if value is None:
        if default is _MISSING:
            raise DecodeError(f"missing field {key!r}")
        return default
    return convert(value, key)
