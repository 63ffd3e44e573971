"""Poloniex HTTP API client.

Every call builds an ordered parameter set starting with ``command``. Public
commands are sent as GET with the canonical encoding as query string;
trading commands are signed and sent as POST with the encoding as body.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable

from ..errors import ConfigurationError, DecodeError, TransportError
from .coerce import expect_object, get_field, to_str
from .encoding import ParameterSet, encode_params, format_param
from .models import (
    Balance,
    CancelResult,
    ChartPoint,
    Currency,
    DepositsWithdrawals,
    FeeInfo,
    LoanOrders,
    OpenOrder,
    OrderBook,
    OrderResult,
    Ticker,
    Trade,
    TransferResult,
    VolumeSummary,
)
from .normalize import ALL_MARKETS, ShapeHint, normalize, parse_json, raise_for_exchange_error
from .signing import NonceSource, Signer
from .transport import AiohttpTransport, Transport

logger = logging.getLogger(__name__)

URL_PUBLIC = "https://poloniex.com/public"
URL_PRIVATE = "https://poloniex.com/tradingApi"
DEFAULT_USER_AGENT = "poloniex-api"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

CMD_PUBLIC_TICKER = "returnTicker"
CMD_PUBLIC_24HVOLUME = "return24hVolume"
CMD_PUBLIC_ORDER_BOOK = "returnOrderBook"
CMD_PUBLIC_TRADE_HISTORY = "returnTradeHistory"
CMD_PUBLIC_CHART_DATA = "returnChartData"
CMD_PUBLIC_CURRENCIES = "returnCurrencies"
CMD_PUBLIC_LOAN_ORDERS = "returnLoanOrders"

CMD_PRIVATE_BALANCES = "returnBalances"
CMD_PRIVATE_COMPLETE_BALANCES = "returnCompleteBalances"
CMD_PRIVATE_DEPOSIT_ADDRESSES = "returnDepositAddresses"
CMD_PRIVATE_NEW_ADDRESS = "generateNewAddress"
CMD_PRIVATE_DEPOSITS_WITHDRAWALS = "returnDepositsWithdrawals"
CMD_PRIVATE_OPEN_ORDERS = "returnOpenOrders"
CMD_PRIVATE_TRADE_HISTORY = "returnTradeHistory"
CMD_PRIVATE_ORDER_TRADES = "returnOrderTrades"
CMD_PRIVATE_BUY = "buy"
CMD_PRIVATE_SELL = "sell"
CMD_PRIVATE_CANCEL_ORDER = "cancelOrder"
CMD_PRIVATE_MOVE_ORDER = "moveOrder"
CMD_PRIVATE_WITHDRAW = "withdraw"
CMD_PRIVATE_FEE_INFO = "returnFeeInfo"
CMD_PRIVATE_AVAILABLE_ACCOUNT_BALANCES = "returnAvailableAccountBalances"
CMD_PRIVATE_TRADABLE_BALANCES = "returnTradableBalances"
CMD_PRIVATE_TRANSFER_BALANCE = "transferBalance"

Number = Decimal | float | int | str


def _response_text(value: Any) -> str:
    return get_field(expect_object(value), "response", to_str)


class PoloniexClient:
    """Client for the Poloniex public and trading HTTP API.

    Holds only immutable configuration (credentials, URLs, user agent) plus
    the nonce source and transport. Safe to share between tasks.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        *,
        public_url: str = URL_PUBLIC,
        private_url: str = URL_PRIVATE,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Transport | None = None,
        nonce_source: NonceSource | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: API key; required for trading commands
            api_secret: API secret; required together with ``api_key``
            public_url: Endpoint for public commands
            private_url: Endpoint for trading commands
            user_agent: User-Agent header value
            transport: HTTP transport (defaults to aiohttp)
            nonce_source: Nonce generator for signed requests

        Raises:
            ConfigurationError: If only one of key and secret is given
        """
        if bool(api_key) != bool(api_secret):
            raise ConfigurationError("api_key and api_secret must be configured together")
        self.public_url = public_url
        self.private_url = private_url
        self.user_agent = user_agent
        self.signer = Signer(api_key, api_secret, nonce_source) if api_key and api_secret else None
        self.transport: Transport = transport or AiohttpTransport()

    @property
    def api_key(self) -> str | None:
        return self.signer.api_key if self.signer else None

    @property
    def has_credentials(self) -> bool:
        return self.signer is not None

    async def __aenter__(self) -> PoloniexClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying transport."""
        await self.transport.close()

    @staticmethod
    def _params(command: str, **fields: Any) -> ParameterSet:
        """Build a parameter set; ``None`` fields are left out."""
        params: ParameterSet = {"command": command}
        for key, value in fields.items():
            if value is not None:
                params[key] = format_param(value)
        return params

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": FORM_CONTENT_TYPE}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers

    async def _query(self, params: ParameterSet, *, private: bool) -> bytes:
        command = params["command"]
        headers = self._headers()

        if private:
            if self.signer is None:
                raise ConfigurationError(f"{command} requires api_key and api_secret")
            body, auth_headers = self.signer.prepare(params)
            headers.update(auth_headers)
            method, url = "POST", self.private_url
        else:
            query = encode_params(params)
            method, url, body = "GET", f"{self.public_url}?{query}", None

        logger.debug("%s %s command=%s", method, url.split("?")[0], command)
        response = await self.transport.execute(method, url, headers, body)
        logger.debug("command=%s status=%s bytes=%d", command, response.status, len(response.body))

        if not response.ok:
            try:
                payload = parse_json(response.body)
            except DecodeError:
                payload = None
            raise_for_exchange_error(payload, command)
            raise TransportError(f"{command} failed with HTTP {response.status}", status=response.status)

        return response.body

    async def _call(
        self,
        params: ParameterSet,
        shape: ShapeHint,
        decoder: Callable[[Any], Any] | None = None,
        *,
        private: bool = False,
        requested_pair: str | None = None,
        record_keys: frozenset[str] = frozenset(),
    ) -> Any:
        raw = await self._query(params, private=private)
        return normalize(
            raw,
            shape,
            decoder,
            requested_pair=requested_pair,
            record_keys=record_keys,
            command=params["command"],
        )

    # Public commands

    async def get_ticker(self) -> dict[str, Ticker]:
        """Ticker for all markets, keyed by market."""
        params = self._params(CMD_PUBLIC_TICKER)
        return await self._call(params, ShapeHint.MARKET_MAP, Ticker.from_json)

    async def get_24h_volume(self) -> VolumeSummary:
        """24-hour volume for all markets plus per-currency totals."""
        params = self._params(CMD_PUBLIC_24HVOLUME)
        return await self._call(params, ShapeHint.VOLUME_SPLIT)

    async def get_order_book(self, pair: str = ALL_MARKETS, depth: int | None = None) -> dict[str, OrderBook]:
        """Order book for one market, or every market with ``pair="all"``.

        The result is always keyed by market.
        """
        params = self._params(CMD_PUBLIC_ORDER_BOOK, currencyPair=pair, depth=depth)
        return await self._call(
            params,
            ShapeHint.MARKET_RECORD,
            OrderBook.from_json,
            requested_pair=pair,
            record_keys=OrderBook.RECORD_KEYS,
        )

    async def get_trade_history(self, pair: str, start: int | None = None, end: int | None = None) -> list[Trade]:
        """Public trades for a market, optionally within a UNIX time range."""
        params = self._params(CMD_PUBLIC_TRADE_HISTORY, currencyPair=pair, start=start, end=end)
        return await self._call(params, ShapeHint.RECORD_LIST, Trade.from_json)

    async def get_chart_data(self, pair: str, period: int, start: int, end: int) -> list[ChartPoint]:
        """Candlesticks; ``period`` in seconds (300, 900, 1800, 7200, 14400, 86400)."""
        params = self._params(CMD_PUBLIC_CHART_DATA, currencyPair=pair, start=start, end=end, period=period)
        return await self._call(params, ShapeHint.RECORD_LIST, ChartPoint.from_json)

    async def get_currencies(self) -> dict[str, Currency]:
        params = self._params(CMD_PUBLIC_CURRENCIES)
        return await self._call(params, ShapeHint.MARKET_MAP, Currency.from_json)

    async def get_loan_orders(self, currency: str) -> LoanOrders:
        params = self._params(CMD_PUBLIC_LOAN_ORDERS, currency=currency)
        return await self._call(params, ShapeHint.RECORD, LoanOrders.from_json)

    # Trading commands

    async def get_balances(self) -> dict[str, Decimal]:
        """Available balance per currency."""
        params = self._params(CMD_PRIVATE_BALANCES)
        return await self._call(params, ShapeHint.DECIMAL_MAP, private=True)

    async def get_complete_balances(self, account: str | None = None) -> dict[str, Balance]:
        """Available, on-order and BTC-valued balances.

        Args:
            account: ``"all"`` to include margin and lending accounts
        """
        params = self._params(CMD_PRIVATE_COMPLETE_BALANCES, account=account)
        return await self._call(params, ShapeHint.MARKET_MAP, Balance.from_json, private=True)

    async def get_deposit_addresses(self) -> dict[str, str]:
        params = self._params(CMD_PRIVATE_DEPOSIT_ADDRESSES)
        return await self._call(params, ShapeHint.STRING_MAP, private=True)

    async def generate_new_address(self, currency: str) -> str:
        """Generate a deposit address for ``currency`` and return it."""
        params = self._params(CMD_PRIVATE_NEW_ADDRESS, currency=currency)
        return await self._call(params, ShapeHint.RECORD, _response_text, private=True)

    async def get_deposits_withdrawals(self, start: int, end: int) -> DepositsWithdrawals:
        params = self._params(CMD_PRIVATE_DEPOSITS_WITHDRAWALS, start=start, end=end)
        return await self._call(params, ShapeHint.RECORD, DepositsWithdrawals.from_json, private=True)

    async def get_open_orders(self, pair: str = ALL_MARKETS) -> dict[str, list[OpenOrder]]:
        """Open orders keyed by market, for one market or ``"all"``."""
        params = self._params(CMD_PRIVATE_OPEN_ORDERS, currencyPair=pair)
        return await self._call(
            params, ShapeHint.MARKET_LIST, OpenOrder.from_json, private=True, requested_pair=pair
        )

    async def get_my_trade_history(
        self,
        pair: str = ALL_MARKETS,
        start: int | None = None,
        end: int | None = None,
    ) -> dict[str, list[Trade]]:
        """Own trades keyed by market. Without a range the exchange returns one day."""
        params = self._params(CMD_PRIVATE_TRADE_HISTORY, currencyPair=pair, start=start, end=end)
        return await self._call(
            params, ShapeHint.MARKET_LIST, Trade.from_json, private=True, requested_pair=pair
        )

    async def get_order_trades(self, order_number: int | str) -> list[Trade]:
        params = self._params(CMD_PRIVATE_ORDER_TRADES, orderNumber=order_number)
        return await self._call(params, ShapeHint.RECORD_LIST, Trade.from_json, private=True)

    async def buy(
        self,
        pair: str,
        rate: Number,
        amount: Number,
        *,
        fill_or_kill: bool = False,
        immediate_or_cancel: bool = False,
        post_only: bool = False,
    ) -> OrderResult:
        """Place a limit buy order."""
        return await self._place(CMD_PRIVATE_BUY, pair, rate, amount, fill_or_kill, immediate_or_cancel, post_only)

    async def sell(
        self,
        pair: str,
        rate: Number,
        amount: Number,
        *,
        fill_or_kill: bool = False,
        immediate_or_cancel: bool = False,
        post_only: bool = False,
    ) -> OrderResult:
        """Place a limit sell order."""
        return await self._place(CMD_PRIVATE_SELL, pair, rate, amount, fill_or_kill, immediate_or_cancel, post_only)

    async def _place(
        self,
        command: str,
        pair: str,
        rate: Number,
        amount: Number,
        fill_or_kill: bool,
        immediate_or_cancel: bool,
        post_only: bool,
    ) -> OrderResult:
        params = self._params(
            command,
            currencyPair=pair,
            rate=rate,
            amount=amount,
            fillOrKill=True if fill_or_kill else None,
            immediateOrCancel=True if immediate_or_cancel else None,
            postOnly=True if post_only else None,
        )
        return await self._call(
            params, ShapeHint.RECORD, lambda value: OrderResult.from_json(value, pair), private=True
        )

    async def cancel_order(self, order_number: int | str) -> CancelResult:
        params = self._params(CMD_PRIVATE_CANCEL_ORDER, orderNumber=order_number)
        return await self._call(params, ShapeHint.RECORD, CancelResult.from_json, private=True)

    async def move_order(
        self,
        order_number: int | str,
        rate: Number,
        *,
        amount: Number | None = None,
        immediate_or_cancel: bool = False,
        post_only: bool = False,
    ) -> OrderResult:
        """Atomically cancel an order and place a new one at ``rate``."""
        params = self._params(
            CMD_PRIVATE_MOVE_ORDER,
            orderNumber=order_number,
            rate=rate,
            amount=amount,
            immediateOrCancel=True if immediate_or_cancel else None,
            postOnly=True if post_only else None,
        )
        return await self._call(params, ShapeHint.RECORD, OrderResult.from_json, private=True)

    async def withdraw(
        self,
        currency: str,
        amount: Number,
        address: str,
        *,
        payment_id: str | None = None,
    ) -> str:
        """Withdraw immediately; returns the exchange's confirmation text."""
        params = self._params(
            CMD_PRIVATE_WITHDRAW,
            currency=currency,
            amount=amount,
            address=address,
            paymentId=payment_id,
        )
        return await self._call(params, ShapeHint.RECORD, _response_text, private=True)

    async def get_fee_info(self) -> FeeInfo:
        params = self._params(CMD_PRIVATE_FEE_INFO)
        return await self._call(params, ShapeHint.RECORD, FeeInfo.from_json, private=True)

    async def get_available_account_balances(self, account: str | None = None) -> dict[str, dict[str, Decimal]]:
        """Balances keyed by account (exchange, margin, lending) then currency."""
        params = self._params(CMD_PRIVATE_AVAILABLE_ACCOUNT_BALANCES, account=account)
        return await self._call(params, ShapeHint.NESTED_DECIMAL_MAP, private=True)

    async def get_tradable_balances(self) -> dict[str, dict[str, Decimal]]:
        """Margin-tradable balances keyed by market then currency."""
        params = self._params(CMD_PRIVATE_TRADABLE_BALANCES)
        return await self._call(params, ShapeHint.NESTED_DECIMAL_MAP, private=True)

    async def transfer_balance(
        self,
        currency: str,
        amount: Number,
        from_account: str,
        to_account: str,
    ) -> TransferResult:
        params = self._params(
            CMD_PRIVATE_TRANSFER_BALANCE,
            currency=currency,
            amount=amount,
            fromAccount=from_account,
            toAccount=to_account,
        )
        return await self._call(params, ShapeHint.RECORD, TransferResult.from_json, private=True)
