"""Response normalization.

Turns a raw JSON body into the typed shape a caller expects. The decoded
JSON value is inspected at runtime to resolve the polymorphic shapes the
exchange produces:

* single-market vs. all-markets responses (see :func:`detect_market_shape`);
* 24h volume mixing scalar totals with per-market sub-maps
  (see :func:`split_volume`);
* numeric strings vs. JSON numbers (see :mod:`.coerce`);
* tuple-encoded order book levels (see :func:`.models.decode_ladder`).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from ..errors import DecodeError, ExchangeError
from .coerce import expect_list, expect_object, to_bool, to_decimal, to_str
from .models import VolumeSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL_MARKETS = "all"
TOTAL_PREFIX = "total"

_MARKET_RE = re.compile(r"^[A-Za-z0-9]+_[A-Za-z0-9]+$")


class ShapeHint(Enum):
    """Expected response structure for a command."""

    RECORD = "record"
    RECORD_LIST = "record_list"
    MARKET_MAP = "market_map"
    MARKET_RECORD = "market_record"
    MARKET_LIST = "market_list"
    VOLUME_SPLIT = "volume_split"
    DECIMAL_MAP = "decimal_map"
    NESTED_DECIMAL_MAP = "nested_decimal_map"
    STRING_MAP = "string_map"


@dataclass(slots=True, frozen=True)
class Single(Generic[T]):
    """The server returned one bare record for the requested market."""

    value: T

    def as_mapping(self, requested_pair: str) -> dict[str, T]:
        return {requested_pair: self.value}


@dataclass(slots=True, frozen=True)
class Many(Generic[T]):
    """The server returned a mapping of market identifier to record."""

    values: dict[str, T]

    def as_mapping(self, requested_pair: str) -> dict[str, T]:
        return dict(self.values)


def looks_like_market(key: str) -> bool:
    return bool(_MARKET_RE.match(key))


def parse_json(raw: bytes | str) -> Any:
    """Parse ``raw`` keeping every JSON float as ``Decimal``."""
    try:
        return json.loads(raw, parse_float=Decimal)
    except (ValueError, RecursionError) as exc:
        raise DecodeError(f"malformed JSON: {exc}") from exc


def raise_for_exchange_error(payload: Any, command: str | None = None) -> None:
    """Raise :class:`ExchangeError` if ``payload`` reports a rejection.

    A rejection is a non-empty ``error`` field or ``success`` equal to 0.
    The exchange text is passed through verbatim.
    """
    if not isinstance(payload, dict):
        return
    error = payload.get("error")
    if error:
        raise ExchangeError(str(error), command)
    if "success" in payload and not isinstance(payload["success"], (dict, list)):
        try:
            succeeded = to_bool(payload["success"], "success")
        except DecodeError:
            return
        if not succeeded:
            message = payload.get("message") or payload.get("response") or "request was not successful"
            raise ExchangeError(str(message), command)


def detect_market_shape(
    value: Any,
    decoder: Callable[[Any], T],
    record_keys: frozenset[str] = frozenset(),
) -> Single[T] | Many[T]:
    """Classify a mapping-or-record response.

    A JSON object carrying any of ``record_keys`` is a bare record. An object
    whose keys all look like market identifiers (or an empty object) is a
    market mapping. Anything else is decoded as a bare record.
    """
    obj = expect_object(value)
    if record_keys and record_keys & obj.keys():
        return Single(decoder(obj))
    if all(looks_like_market(key) for key in obj):
        return Many({key: decoder(item) for key, item in obj.items()})
    return Single(decoder(obj))


def detect_market_list_shape(value: Any, decoder: Callable[[Any], T]) -> Single[list[T]] | Many[list[T]]:
    """A bare array is one market's records, an object maps markets to arrays."""
    if isinstance(value, list):
        return Single([decoder(item) for item in value])
    obj = expect_object(value)
    return Many({key: [decoder(item) for item in expect_list(items, key)] for key, items in obj.items()})


def split_volume(value: Any) -> VolumeSummary:
    """Split the 24h volume payload into totals and per-market sub-maps.

    The split is decided by each value's JSON type: strings and numbers are
    totals, objects are market entries. Total keys lose their ``total``
    prefix (``totalBTC`` -> ``BTC``).
    """
    obj = expect_object(value, "24h volume")
    totals: dict[str, Decimal] = {}
    markets: dict[str, dict[str, Decimal]] = {}
    for key, item in obj.items():
        if isinstance(item, dict):
            markets[key] = {sub: to_decimal(amount, f"{key}.{sub}") for sub, amount in item.items()}
        elif isinstance(item, (str, int, Decimal)) and not isinstance(item, bool):
            name = key[len(TOTAL_PREFIX):] if key.startswith(TOTAL_PREFIX) and len(key) > len(TOTAL_PREFIX) else key
            totals[name] = to_decimal(item, key)
        else:
            raise DecodeError(f"{key}: expected numeric total or object, got {item!r}")
    return VolumeSummary(totals=totals, markets=markets)


def decode_decimal_map(value: Any) -> dict[str, Decimal]:
    obj = expect_object(value)
    return {key: to_decimal(item, key) for key, item in obj.items()}


def decode_nested_decimal_map(value: Any) -> dict[str, dict[str, Decimal]]:
    obj = expect_object(value)
    return {key: decode_decimal_map(expect_object(item, key)) for key, item in obj.items()}


def normalize(
    raw: bytes | str,
    shape: ShapeHint,
    decoder: Callable[[Any], Any] | None = None,
    *,
    requested_pair: str | None = None,
    record_keys: frozenset[str] = frozenset(),
    command: str | None = None,
) -> Any:
    """Parse ``raw`` and fold it into the typed result for ``shape``.

    Args:
        raw: Response body
        shape: Expected response structure
        decoder: Record decoder (a ``from_json`` classmethod) for record shapes
        requested_pair: Market the caller asked for; keys a bare record
        record_keys: Keys that identify a bare record for MARKET_RECORD
        command: Command name, attached to exchange errors

    Raises:
        DecodeError: Malformed JSON, unexpected shape or bad numeric field
        ExchangeError: The exchange reported an error in the body
    """
    payload = parse_json(raw)
    raise_for_exchange_error(payload, command)

    if shape in _RECORD_SHAPES and decoder is None:
        raise ValueError(f"{shape.name} requires a record decoder")

    if shape is ShapeHint.RECORD:
        return decoder(payload)
    if shape is ShapeHint.RECORD_LIST:
        return [decoder(item) for item in expect_list(payload)]
    if shape is ShapeHint.MARKET_MAP:
        return {key: decoder(item) for key, item in expect_object(payload).items()}
    if shape is ShapeHint.MARKET_RECORD:
        return _uniform(detect_market_shape(payload, decoder, record_keys), requested_pair)
    if shape is ShapeHint.MARKET_LIST:
        return _uniform(detect_market_list_shape(payload, decoder), requested_pair)
    if shape is ShapeHint.VOLUME_SPLIT:
        return split_volume(payload)
    if shape is ShapeHint.DECIMAL_MAP:
        return decode_decimal_map(payload)
    if shape is ShapeHint.NESTED_DECIMAL_MAP:
        return decode_nested_decimal_map(payload)
    if shape is ShapeHint.STRING_MAP:
        return {key: to_str(item, key) for key, item in expect_object(payload).items()}
    raise ValueError(f"Unsupported shape: {shape}")


_RECORD_SHAPES = frozenset({
    ShapeHint.RECORD,
    ShapeHint.RECORD_LIST,
    ShapeHint.MARKET_MAP,
    ShapeHint.MARKET_RECORD,
    ShapeHint.MARKET_LIST,
})


def _uniform(result: Single[T] | Many[T], requested_pair: str | None) -> dict[str, T]:
    if isinstance(result, Single):
        if not requested_pair or requested_pair == ALL_MARKETS:
            # Empty array: no markets have entries
            if isinstance(result.value, list) and not result.value:
                return {}
            raise DecodeError("got a single-market response for an all-markets request")
        return result.as_mapping(requested_pair)
    logger.debug("normalized %d markets", len(result.values))
    return result.as_mapping(requested_pair or ALL_MARKETS)
