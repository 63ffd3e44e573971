"""Canonical form encoding of request parameters.

The same string is sent on the wire (query string or POST body) and signed,
so the output must be a pure function of the parameter set.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping
from urllib.parse import urlencode

ParameterSet = dict[str, str]


def format_param(value: Any) -> str:
    """Render a Python value the way the exchange expects it in a form field.

    Decimals and floats are written positionally (never in exponent form),
    booleans as ``1``/``0``.
    """
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # repr() is the shortest string that round-trips the float
        value = Decimal(repr(value))
    if isinstance(value, Decimal):
        text = format(value, "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text or "0"
    return str(value)


def encode_params(params: Mapping[str, str]) -> str:
    """Encode ``params`` as ``application/x-www-form-urlencoded``.

    Keys keep their insertion order. An empty mapping encodes to ``""``.
    """
    if not params:
        return ""
    return urlencode([(key, value) for key, value in params.items()])
