"""
Market data feeds for the signal engine.
"""

from .base import MarketDataProvider, UpstreamFetchError
from .memory_provider import InMemoryMarketDataProvider

__all__ = ["MarketDataProvider", "UpstreamFetchError", "InMemoryMarketDataProvider"]
