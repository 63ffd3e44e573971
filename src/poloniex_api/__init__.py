"""poloniex_api: typed asyncio client for the Poloniex HTTP API."""

from .settings import Settings
from .api import PoloniexClient, create_client
from .errors import ConfigurationError, DecodeError, ExchangeError, PoloniexError, TransportError

__all__ = [
    "Settings",
    "PoloniexClient",
    "create_client",
    "PoloniexError",
    "ConfigurationError",
    "DecodeError",
    "ExchangeError",
    "TransportError",
]
