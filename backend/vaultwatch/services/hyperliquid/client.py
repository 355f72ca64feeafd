from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import HyperliquidConfig
from .exceptions import (
    HyperliquidNetworkError,
    HyperliquidUpstreamError,
)

logger = logging.getLogger(__name__)


class HyperliquidClient:
    """Async client for the read-only Hyperliquid `/info` endpoint."""

    def __init__(
        self,
        config: HyperliquidConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or HyperliquidConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        logger.info(
            f"Initialized HyperliquidClient (base_url={self.config.base_url})"
        )

    async def __aenter__(self) -> HyperliquidClient:
        limits = httpx.Limits(
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
        )
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            limits=limits,
            transport=self._transport,
            headers={"Cache-Control": "no-store"},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Closed HyperliquidClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "HyperliquidClient must be used as async context manager"
            )
        return self._client

    async def info(self, payload: dict[str, Any]) -> Any:
        """POST a query to `/info` and return the decoded body (None when empty)."""
        try:
            response = await self.client.post("/info", json=payload)
        except httpx.RequestError as e:
            logger.error(f"Network error on {payload.get('type')}: {e}")
            raise HyperliquidNetworkError(f"Network error: {e}") from e

        if not response.is_success:
            logger.warning(
                f"Hyperliquid {payload.get('type')} returned {response.status_code}"
            )
            raise HyperliquidUpstreamError(
                f"Hyperliquid API error: {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content.strip():
            return None

        try:
            return response.json()
        except ValueError as e:
            raise HyperliquidNetworkError(
                f"Invalid JSON from Hyperliquid: {e}"
            ) from e

    async def get_vault_details(self, vault_address: str) -> Any:
        return await self.info({"type": "vaultDetails", "vaultAddress": vault_address})

    async def get_clearinghouse_state(self, user: str) -> Any:
        return await self.info({"type": "clearinghouseState", "user": user})


def create_hyperliquid_client(
    config: HyperliquidConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HyperliquidClient:
    """Create a HyperliquidClient instance."""
    return HyperliquidClient(config=config, transport=transport)
