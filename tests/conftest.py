"""Pytest configuration and fixtures."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from poloniex_api.api.client import PoloniexClient
from poloniex_api.api.signing import NonceSource
from poloniex_api.api.transport import HttpResponse

FIXED_NONCE = 1500000000000000


def http_response(payload, status=200):
    """Build a transport response from a JSON-able payload or raw bytes."""
    if isinstance(payload, (bytes, str)):
        body = payload.encode() if isinstance(payload, str) else payload
    else:
        body = json.dumps(payload).encode()
    return HttpResponse(status, body)


def make_transport(*responses):
    """Mock transport returning ``responses`` in order."""
    transport = MagicMock()
    transport.execute = AsyncMock(side_effect=list(responses))
    transport.close = AsyncMock(return_value=None)
    return transport


@pytest.fixture
def api_key():
    """Test API key."""
    return "test_api_key_123456"


@pytest.fixture
def api_secret():
    """Test API secret."""
    return "test_api_secret_789012"


@pytest.fixture
def fixed_nonce_source():
    """Nonce source whose clock never moves, so nonces are FIXED_NONCE, +1, ..."""
    return NonceSource(clock=lambda: FIXED_NONCE)


@pytest.fixture
def make_client(api_key, api_secret, fixed_nonce_source):
    """Factory for a credentialed client backed by a mock transport."""

    def _make(*responses):
        transport = make_transport(*responses)
        client = PoloniexClient(
            api_key,
            api_secret,
            transport=transport,
            nonce_source=fixed_nonce_source,
        )
        return client, transport

    return _make


@pytest.fixture
def sample_order_book():
    """Single-market order book as returned by returnOrderBook."""
    return {
        "asks": [["0.00007600", 1164], ["0.00007620", 1300]],
        "bids": [["0.00006901", 200], ["0.00006900", 408]],
        "isFrozen": "0",
        "seq": 18849,
    }


@pytest.fixture
def sample_ticker_response():
    """Ticker for two markets."""
    return {
        "BTC_LTC": {
            "id": 50,
            "last": "0.0251",
            "lowestAsk": "0.02589999",
            "highestBid": "0.0251",
            "percentChange": "0.02390438",
            "baseVolume": "6.16485315",
            "quoteVolume": "245.82513926",
            "isFrozen": "0",
            "high24hr": "0.02600000",
            "low24hr": "0.02400000",
        },
        "BTC_NXT": {
            "last": "0.00005730",
            "lowestAsk": "0.00005710",
            "highestBid": "0.00004903",
            "percentChange": "0.16701570",
            "baseVolume": "0.45347489",
            "quoteVolume": "9094",
        },
    }
