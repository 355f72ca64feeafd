"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from vaultwatch import __version__
from vaultwatch.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings) -> None:
    """
    Initialize Logfire once at application startup.

    Instruments:
    - HTTPX clients (Hyperliquid info API, service-to-service reads)
    - Python logging (bridges to Logfire)

    Without a token this only logs a warning; observability is optional.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="vaultwatch",
            service_version=__version__,
            environment="testnet" if settings.hyperliquid.testnet else "mainnet",
        )

        logfire.instrument_httpx()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
