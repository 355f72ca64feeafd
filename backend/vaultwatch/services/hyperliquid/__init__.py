"""Hyperliquid info API service."""

from .client import HyperliquidClient, create_hyperliquid_client
from .config import HyperliquidConfig
from .exceptions import (
    HyperliquidAPIError,
    HyperliquidNetworkError,
    HyperliquidUpstreamError,
    InvalidRequestError,
)
from .models import (
    LEADER_USER,
    AccountSnapshot,
    DepositorAggregationResult,
    DepositorRecord,
)

__all__ = [
    "HyperliquidClient",
    "create_hyperliquid_client",
    "HyperliquidConfig",
    "HyperliquidAPIError",
    "HyperliquidNetworkError",
    "HyperliquidUpstreamError",
    "InvalidRequestError",
    "LEADER_USER",
    "AccountSnapshot",
    "DepositorAggregationResult",
    "DepositorRecord",
]
