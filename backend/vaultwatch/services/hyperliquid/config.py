from pydantic import BaseModel


class HyperliquidConfig(BaseModel):
    """Configuration for Hyperliquid info API client."""

    production_base_url: str = "https://api.hyperliquid.xyz"
    testnet_base_url: str = "https://api.hyperliquid-testnet.xyz"
    testnet: bool = False
    timeout_seconds: float = 10.0
    max_connections: int = 100
    max_keepalive_connections: int = 20

    @property
    def base_url(self) -> str:
        """Return appropriate base URL based on testnet flag."""
        return self.testnet_base_url if self.testnet else self.production_base_url
