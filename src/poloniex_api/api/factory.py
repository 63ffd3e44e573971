"""Client construction from settings."""

from __future__ import annotations

import logging

from ..settings import Settings
from .client import PoloniexClient
from .transport import AiohttpTransport, ProxyConfig

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> PoloniexClient:
    """Create a client from settings.

    Without configured credentials the client can only issue public commands.
    """
    proxy = None
    if settings.proxy.enabled and settings.proxy.url:
        proxy = ProxyConfig(
            url=settings.proxy.url,
            username=settings.proxy.username,
            password=settings.proxy.password.get_secret_value() if settings.proxy.password else None,
        )

    transport = AiohttpTransport(timeout_seconds=settings.timeout_seconds, proxy=proxy)

    api_key = api_secret = None
    if settings.credentials:
        api_key = settings.credentials.api_key.get_secret_value()
        api_secret = settings.credentials.api_secret.get_secret_value()
    else:
        logger.warning("No credentials configured, trading commands are unavailable")

    client = PoloniexClient(
        api_key,
        api_secret,
        public_url=settings.public_url,
        private_url=settings.private_url,
        user_agent=settings.user_agent,
        transport=transport,
    )
    logger.info("Initialized Poloniex client (credentials=%s)", client.has_credentials)
    return client
