class HyperliquidAPIError(Exception):
    """Base exception for Hyperliquid API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestError(HyperliquidAPIError):
    """Required input missing; no request was sent."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class HyperliquidUpstreamError(HyperliquidAPIError):
    """Upstream answered with a non-success status."""

    pass


class HyperliquidNetworkError(HyperliquidAPIError):
    """Transport failure or unreadable response body."""

    pass
