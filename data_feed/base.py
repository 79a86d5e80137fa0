"""
Market Data Provider Base

Abstract interface the signal engine consumes for indicator snapshots
and price history. Implementations wrap an exchange or a fixture store.
"""

from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from trading_signals.signal_model import IndicatorSnapshot


class UpstreamFetchError(Exception):
    """Raised when a market-data fetch for one symbol fails or times out."""

    def __init__(self, symbol: str, message: str):
        super().__init__(f"{symbol}: {message}")
        self.symbol = symbol


class MarketDataProvider(ABC):
    """
    Abstract base class for market-data collaborators.

    Both methods may suspend on I/O. Returning None / an empty frame means
    "no data"; raising means the upstream call failed.
    """

    @abstractmethod
    async def fetch_indicator_snapshot(
        self,
        symbol: str,
        timeframe: str,
    ) -> Optional["IndicatorSnapshot"]:
        """
        Fetch the latest indicator snapshot.

        Args:
            symbol: Asset symbol (e.g., BTC)
            timeframe: Engine timeframe (e.g., 1hour)

        Returns:
            IndicatorSnapshot, or None if unavailable
        """
        pass

    @abstractmethod
    async def fetch_price_history(
        self,
        symbol: str,
        timeframe: str,
        min_points: int,
    ) -> pd.DataFrame:
        """
        Fetch recent OHLCV history.

        Args:
            symbol: Asset symbol
            timeframe: Engine timeframe
            min_points: Number of candles requested

        Returns:
            PriceHistory frame, oldest first (empty if unavailable)
        """
        pass
