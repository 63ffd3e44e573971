"""Typed records for Poloniex responses.

Each record decodes itself from the parsed JSON object via ``from_json``;
numeric fields accept both JSON strings and JSON numbers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, ClassVar

from ..errors import DecodeError
from .coerce import (
    expect_list,
    expect_object,
    get_field,
    to_bool,
    to_decimal,
    to_int,
    to_str,
)


@dataclass(slots=True, frozen=True)
class LadderEntry:
    """One (price, quantity) level of an order book."""

    price: Decimal
    quantity: Decimal

    @classmethod
    def from_json(cls, value: Any) -> LadderEntry:
        if not isinstance(value, list) or len(value) != 2:
            raise DecodeError(f"ladder entry: expected [price, quantity], got {value!r}")
        return cls(to_decimal(value[0], "price"), to_decimal(value[1], "quantity"))


def decode_ladder(value: Any, side: str = "ladder") -> list[LadderEntry]:
    """Decode an asks/bids array. Any bad entry fails the whole ladder."""
    entries = expect_list(value, side)
    try:
        return [LadderEntry.from_json(entry) for entry in entries]
    except DecodeError as exc:
        raise DecodeError(f"{side}: {exc}") from exc


@dataclass(slots=True, frozen=True)
class Ticker:
    last: Decimal
    lowest_ask: Decimal
    highest_bid: Decimal
    percent_change: Decimal
    base_volume: Decimal
    quote_volume: Decimal
    id: int | None = None
    is_frozen: bool = False
    high_24hr: Decimal | None = None
    low_24hr: Decimal | None = None

    @classmethod
    def from_json(cls, value: Any) -> Ticker:
        obj = expect_object(value, "ticker")
        return cls(
            last=get_field(obj, "last", to_decimal),
            lowest_ask=get_field(obj, "lowestAsk", to_decimal),
            highest_bid=get_field(obj, "highestBid", to_decimal),
            percent_change=get_field(obj, "percentChange", to_decimal),
            base_volume=get_field(obj, "baseVolume", to_decimal),
            quote_volume=get_field(obj, "quoteVolume", to_decimal),
            id=get_field(obj, "id", to_int, None),
            is_frozen=get_field(obj, "isFrozen", to_bool, False),
            high_24hr=get_field(obj, "high24hr", to_decimal, None),
            low_24hr=get_field(obj, "low24hr", to_decimal, None),
        )


@dataclass(slots=True, frozen=True)
class OrderBook:
    asks: list[LadderEntry]
    bids: list[LadderEntry]
    is_frozen: bool = False
    seq: int | None = None

    # Keys that identify a bare order book as opposed to a market mapping
    RECORD_KEYS: ClassVar[frozenset[str]] = frozenset({"asks", "bids"})

    @classmethod
    def from_json(cls, value: Any) -> OrderBook:
        obj = expect_object(value, "order book")
        return cls(
            asks=decode_ladder(obj.get("asks"), "asks"),
            bids=decode_ladder(obj.get("bids"), "bids"),
            is_frozen=get_field(obj, "isFrozen", to_bool, False),
            seq=get_field(obj, "seq", to_int, None),
        )

    @property
    def best_ask(self) -> LadderEntry | None:
        return self.asks[0] if self.asks else None

    @property
    def best_bid(self) -> LadderEntry | None:
        return self.bids[0] if self.bids else None


@dataclass(slots=True, frozen=True)
class Trade:
    """A public or private trade.

    Private trade history adds fee, order number and category; trades
    returned by an order placement carry only the core fields.
    """

    date: str
    type: str
    rate: Decimal
    amount: Decimal
    total: Decimal
    trade_id: int | None = None
    global_trade_id: int | None = None
    fee: Decimal | None = None
    order_number: int | None = None
    category: str | None = None
    currency_pair: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> Trade:
        obj = expect_object(value, "trade")
        return cls(
            date=get_field(obj, "date", to_str),
            type=get_field(obj, "type", to_str),
            rate=get_field(obj, "rate", to_decimal),
            amount=get_field(obj, "amount", to_decimal),
            total=get_field(obj, "total", to_decimal),
            trade_id=get_field(obj, "tradeID", to_int, None),
            global_trade_id=get_field(obj, "globalTradeID", to_int, None),
            fee=get_field(obj, "fee", to_decimal, None),
            order_number=get_field(obj, "orderNumber", to_int, None),
            category=get_field(obj, "category", to_str, None),
            currency_pair=get_field(obj, "currencyPair", to_str, None),
        )


@dataclass(slots=True, frozen=True)
class ChartPoint:
    date: int
    high: Decimal
    low: Decimal
    open: Decimal
    close: Decimal
    volume: Decimal
    quote_volume: Decimal
    weighted_average: Decimal

    @classmethod
    def from_json(cls, value: Any) -> ChartPoint:
        obj = expect_object(value, "chart point")
        return cls(
            date=get_field(obj, "date", to_int),
            high=get_field(obj, "high", to_decimal),
            low=get_field(obj, "low", to_decimal),
            open=get_field(obj, "open", to_decimal),
            close=get_field(obj, "close", to_decimal),
            volume=get_field(obj, "volume", to_decimal),
            quote_volume=get_field(obj, "quoteVolume", to_decimal),
            weighted_average=get_field(obj, "weightedAverage", to_decimal),
        )


@dataclass(slots=True, frozen=True)
class Currency:
    tx_fee: Decimal
    min_conf: int
    disabled: bool = False
    delisted: bool = False
    frozen: bool = False
    id: int | None = None
    name: str | None = None
    max_daily_withdrawal: Decimal | None = None
    deposit_address: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> Currency:
        obj = expect_object(value, "currency")
        return cls(
            tx_fee=get_field(obj, "txFee", to_decimal),
            min_conf=get_field(obj, "minConf", to_int),
            disabled=get_field(obj, "disabled", to_bool, False),
            delisted=get_field(obj, "delisted", to_bool, False),
            frozen=get_field(obj, "frozen", to_bool, False),
            id=get_field(obj, "id", to_int, None),
            name=get_field(obj, "name", to_str, None),
            max_daily_withdrawal=get_field(obj, "maxDailyWithdrawal", to_decimal, None),
            deposit_address=get_field(obj, "depositAddress", to_str, None),
        )


@dataclass(slots=True, frozen=True)
class LoanOffer:
    rate: Decimal
    amount: Decimal
    range_min: int
    range_max: int

    @classmethod
    def from_json(cls, value: Any) -> LoanOffer:
        obj = expect_object(value, "loan offer")
        return cls(
            rate=get_field(obj, "rate", to_decimal),
            amount=get_field(obj, "amount", to_decimal),
            range_min=get_field(obj, "rangeMin", to_int),
            range_max=get_field(obj, "rangeMax", to_int),
        )


@dataclass(slots=True, frozen=True)
class LoanOrders:
    offers: list[LoanOffer] = field(default_factory=list)
    demands: list[LoanOffer] = field(default_factory=list)

    @classmethod
    def from_json(cls, value: Any) -> LoanOrders:
        obj = expect_object(value, "loan orders")
        return cls(
            offers=[LoanOffer.from_json(o) for o in expect_list(obj.get("offers", []), "offers")],
            demands=[LoanOffer.from_json(d) for d in expect_list(obj.get("demands", []), "demands")],
        )


@dataclass(slots=True, frozen=True)
class Balance:
    available: Decimal
    on_orders: Decimal
    btc_value: Decimal

    @classmethod
    def from_json(cls, value: Any) -> Balance:
        obj = expect_object(value, "balance")
        return cls(
            available=get_field(obj, "available", to_decimal),
            on_orders=get_field(obj, "onOrders", to_decimal),
            btc_value=get_field(obj, "btcValue", to_decimal),
        )

    @property
    def total(self) -> Decimal:
        return self.available + self.on_orders


@dataclass(slots=True, frozen=True)
class Deposit:
    currency: str
    address: str
    amount: Decimal
    confirmations: int
    txid: str
    timestamp: int
    status: str

    @classmethod
    def from_json(cls, value: Any) -> Deposit:
        obj = expect_object(value, "deposit")
        return cls(
            currency=get_field(obj, "currency", to_str),
            address=get_field(obj, "address", to_str),
            amount=get_field(obj, "amount", to_decimal),
            confirmations=get_field(obj, "confirmations", to_int),
            txid=get_field(obj, "txid", to_str),
            timestamp=get_field(obj, "timestamp", to_int),
            status=get_field(obj, "status", to_str),
        )


@dataclass(slots=True, frozen=True)
class Withdrawal:
    withdrawal_number: int
    currency: str
    address: str
    amount: Decimal
    timestamp: int
    status: str
    ip_address: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> Withdrawal:
        obj = expect_object(value, "withdrawal")
        return cls(
            withdrawal_number=get_field(obj, "withdrawalNumber", to_int),
            currency=get_field(obj, "currency", to_str),
            address=get_field(obj, "address", to_str),
            amount=get_field(obj, "amount", to_decimal),
            timestamp=get_field(obj, "timestamp", to_int),
            status=get_field(obj, "status", to_str),
            ip_address=get_field(obj, "ipAddress", to_str, None),
        )


@dataclass(slots=True, frozen=True)
class DepositsWithdrawals:
    deposits: list[Deposit] = field(default_factory=list)
    withdrawals: list[Withdrawal] = field(default_factory=list)

    @classmethod
    def from_json(cls, value: Any) -> DepositsWithdrawals:
        obj = expect_object(value, "deposits/withdrawals")
        return cls(
            deposits=[Deposit.from_json(d) for d in expect_list(obj.get("deposits", []), "deposits")],
            withdrawals=[
                Withdrawal.from_json(w) for w in expect_list(obj.get("withdrawals", []), "withdrawals")
            ],
        )


@dataclass(slots=True, frozen=True)
class OpenOrder:
    order_number: int
    type: str
    rate: Decimal
    amount: Decimal
    total: Decimal
    starting_amount: Decimal | None = None
    date: str | None = None
    margin: bool = False

    @classmethod
    def from_json(cls, value: Any) -> OpenOrder:
        obj = expect_object(value, "open order")
        return cls(
            order_number=get_field(obj, "orderNumber", to_int),
            type=get_field(obj, "type", to_str),
            rate=get_field(obj, "rate", to_decimal),
            amount=get_field(obj, "amount", to_decimal),
            total=get_field(obj, "total", to_decimal),
            starting_amount=get_field(obj, "startingAmount", to_decimal, None),
            date=get_field(obj, "date", to_str, None),
            margin=get_field(obj, "margin", to_bool, False),
        )


@dataclass(slots=True, frozen=True)
class OrderResult:
    """Result of buy, sell and moveOrder.

    ``resulting_trades`` is always keyed by market. buy/sell return a bare
    list of trades, which is keyed by the market the order was placed in.
    """

    order_number: int
    resulting_trades: dict[str, list[Trade]] = field(default_factory=dict)
    success: bool | None = None

    @classmethod
    def from_json(cls, value: Any, pair: str | None = None) -> OrderResult:
        obj = expect_object(value, "order")
        raw_trades = obj.get("resultingTrades") or []
        trades: dict[str, list[Trade]] = {}
        if isinstance(raw_trades, list):
            if raw_trades:
                trades[pair or ""] = [Trade.from_json(t) for t in raw_trades]
        elif isinstance(raw_trades, dict):
            for market, items in raw_trades.items():
                trades[market] = [Trade.from_json(t) for t in expect_list(items, market)]
        else:
            raise DecodeError("resultingTrades: expected array or object")
        return cls(
            order_number=get_field(obj, "orderNumber", to_int),
            resulting_trades=trades,
            success=get_field(obj, "success", to_bool, None),
        )


@dataclass(slots=True, frozen=True)
class CancelResult:
    success: bool
    amount: Decimal | None = None
    message: str | None = None

    @classmethod
    def from_json(cls, value: Any) -> CancelResult:
        obj = expect_object(value, "cancel result")
        return cls(
            success=get_field(obj, "success", to_bool),
            amount=get_field(obj, "amount", to_decimal, None),
            message=get_field(obj, "message", to_str, None),
        )


@dataclass(slots=True, frozen=True)
class FeeInfo:
    maker_fee: Decimal
    taker_fee: Decimal
    thirty_day_volume: Decimal
    next_tier: Decimal | None = None

    @classmethod
    def from_json(cls, value: Any) -> FeeInfo:
        obj = expect_object(value, "fee info")
        return cls(
            maker_fee=get_field(obj, "makerFee", to_decimal),
            taker_fee=get_field(obj, "takerFee", to_decimal),
            thirty_day_volume=get_field(obj, "thirtyDayVolume", to_decimal),
            next_tier=get_field(obj, "nextTier", to_decimal, None),
        )


@dataclass(slots=True, frozen=True)
class TransferResult:
    success: bool
    message: str

    @classmethod
    def from_json(cls, value: Any) -> TransferResult:
        obj = expect_object(value, "transfer result")
        return cls(
            success=get_field(obj, "success", to_bool),
            message=get_field(obj, "message", to_str, ""),
        )


@dataclass(slots=True, frozen=True)
class VolumeSummary:
    """24h volume: per-currency totals and per-market volumes."""

    totals: dict[str, Decimal] = field(default_factory=dict)
    markets: dict[str, dict[str, Decimal]] = field(default_factory=dict)
