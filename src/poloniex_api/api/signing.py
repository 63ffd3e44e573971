"""Request signing for privileged (tradingApi) commands."""

from __future__ import annotations

import hashlib
import hmac
import logging
import threading
import time
from typing import Callable, Mapping

from ..errors import ConfigurationError
from .encoding import ParameterSet, encode_params

logger = logging.getLogger(__name__)

NONCE_FIELD = "nonce"


class NonceSource:
    """Thread-safe, strictly increasing nonce generator.

    Values are wall-clock microseconds; when the clock does not advance (or
    goes backwards) the previous value is bumped by one instead.
    """

    def __init__(self, clock: Callable[[], int] | None = None):
        self._clock = clock or (lambda: time.time_ns() // 1000)
        self._lock = threading.Lock()
        self._last = 0

    def next(self) -> int:
        with self._lock:
            candidate = self._clock()
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate


def create_signature(message: str, secret: str) -> str:
    """Lowercase hex HMAC-SHA512 of ``message`` keyed by ``secret``."""
    return hmac.new(secret.encode(), message.encode(), hashlib.sha512).hexdigest()


def sign(
    params: Mapping[str, str],
    secret: str,
    nonce_source: NonceSource | None = None,
) -> tuple[ParameterSet, str]:
    """Add a fresh nonce to ``params`` and sign the canonical encoding.

    The input mapping is left untouched. An existing ``nonce`` entry is
    overwritten in place, otherwise the nonce is appended.

    Returns:
        Tuple of (augmented parameters, hex signature)
    """
    source = nonce_source or _default_nonce_source
    augmented: ParameterSet = dict(params)
    augmented[NONCE_FIELD] = str(source.next())
    return augmented, create_signature(encode_params(augmented), secret)


_default_nonce_source = NonceSource()


class Signer:
    """Signs requests for one API key/secret pair.

    Each signer owns its nonce source, so nonces are monotonic per credential
    pair even when calls run concurrently.
    """

    def __init__(self, api_key: str, api_secret: str, nonce_source: NonceSource | None = None):
        if not api_key or not api_secret:
            raise ConfigurationError("Both api_key and api_secret are required for signed requests")
        self.api_key = api_key
        self._secret = api_secret
        self.nonce_source = nonce_source or NonceSource()

    def __repr__(self) -> str:
        return f"Signer(api_key={self.api_key!r})"

    def sign(self, params: Mapping[str, str]) -> tuple[ParameterSet, str]:
        return sign(params, self._secret, self.nonce_source)

    def prepare(self, params: Mapping[str, str]) -> tuple[str, dict[str, str]]:
        """Sign ``params`` and return the POST body together with auth headers."""
        augmented, signature = self.sign(params)
        logger.debug("signed %s with nonce %s", augmented.get("command"), augmented[NONCE_FIELD])
        return encode_params(augmented), {"Key": self.api_key, "Sign": signature}
