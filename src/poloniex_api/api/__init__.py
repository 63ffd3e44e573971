"""Poloniex HTTP API: signing, transport, response normalization and endpoints."""

from .client import PoloniexClient
from .encoding import encode_params, format_param
from .factory import create_client
from .models import (
    Balance,
    CancelResult,
    ChartPoint,
    Currency,
    Deposit,
    DepositsWithdrawals,
    FeeInfo,
    LadderEntry,
    LoanOffer,
    LoanOrders,
    OpenOrder,
    OrderBook,
    OrderResult,
    Ticker,
    Trade,
    TransferResult,
    VolumeSummary,
    Withdrawal,
)
from .normalize import ShapeHint, normalize
from .signing import NonceSource, Signer, sign
from .transport import AiohttpTransport, HttpResponse, ProxyConfig, Transport

__all__ = [
    "PoloniexClient",
    "create_client",
    "encode_params",
    "format_param",
    "sign",
    "Signer",
    "NonceSource",
    "normalize",
    "ShapeHint",
    "Transport",
    "AiohttpTransport",
    "HttpResponse",
    "ProxyConfig",
    "Balance",
    "CancelResult",
    "ChartPoint",
    "Currency",
    "Deposit",
    "DepositsWithdrawals",
    "FeeInfo",
    "LadderEntry",
    "LoanOffer",
    "LoanOrders",
    "OpenOrder",
    "OrderBook",
    "OrderResult",
    "Ticker",
    "Trade",
    "TransferResult",
    "VolumeSummary",
    "Withdrawal",
]
