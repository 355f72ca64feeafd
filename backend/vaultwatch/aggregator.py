"""Per-address reads against the Hyperliquid info API.

Both readers parse the upstream payload with total `from_api` constructors:
malformed fields fall back to defaults and only transport or status
failures raise.
"""

import logging

from vaultwatch.services.hyperliquid import (
    AccountSnapshot,
    DepositorAggregationResult,
    HyperliquidClient,
    InvalidRequestError,
)

logger = logging.getLogger(__name__)


async def aggregate_depositors(
    client: HyperliquidClient,
    vault_address: str | None,
) -> DepositorAggregationResult:
    """Fetch a vault's depositor list and derive equity/PnL/ROI per depositor.

    Raises:
        InvalidRequestError: vault_address is missing or blank.
        HyperliquidAPIError: upstream failed or answered with a non-success status.
    """
    if not vault_address or not vault_address.strip():
        raise InvalidRequestError("Missing vault address")

    data = await client.get_vault_details(vault_address)
    if not data:
        logger.info(f"Empty vaultDetails for {vault_address}")
        return DepositorAggregationResult()

    result = DepositorAggregationResult.from_api(data)
    logger.debug(
        f"Aggregated {len(result.followers)} depositors for {vault_address}"
    )
    return result


async def fetch_account_snapshot(
    client: HyperliquidClient,
    address: str | None,
) -> AccountSnapshot:
    """Fetch equity, withdrawable balance and open-position PnL for an address."""
    if not address or not address.strip():
        raise InvalidRequestError("Missing vault address")

    data = await client.get_clearinghouse_state(address)
    return AccountSnapshot.from_api(address, data)
