"""Error taxonomy for the Poloniex client."""

from __future__ import annotations


class PoloniexError(Exception):
    """Base class for all client errors."""


class ConfigurationError(PoloniexError):
    """Raised when credentials or other settings are missing or inconsistent."""


class TransportError(PoloniexError):
    """Network failure, or a non-2xx response without a parseable error body."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class DecodeError(PoloniexError):
    """Malformed JSON, unexpected shape or an unparseable numeric field."""


class ExchangeError(PoloniexError):
    """Well-formed response in which the exchange rejected the request.

    The exchange text is kept verbatim in ``message``.
    """

    def __init__(self, message: str, command: str | None = None):
        super().__init__(message)
        self.message = message
        self.command = command
