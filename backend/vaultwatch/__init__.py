"""vaultwatch: follower and leader ROI tracking for Hyperliquid copy-trading vaults."""

__version__ = "0.1.0"
__author__ = "Vaultwatch Team"

__all__ = ["__version__", "__author__"]
