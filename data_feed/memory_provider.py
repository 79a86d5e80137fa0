"""In-memory market data provider for tests and offline runs."""

import asyncio
from collections import Counter
from typing import Dict, Iterable, Optional

import pandas as pd

from trading_signals.price_history import PRICE_COLUMNS
from trading_signals.signal_model import IndicatorSnapshot

from .base import MarketDataProvider


class InMemoryMarketDataProvider(MarketDataProvider):
    """
    Serves pre-loaded snapshots and histories keyed by symbol.

    Symbols listed in `failing` raise ConnectionError; `delays` adds an
    artificial await (seconds) before answering for a symbol.
    """

    def __init__(
        self,
        snapshots: Optional[Dict[str, IndicatorSnapshot]] = None,
        histories: Optional[Dict[str, pd.DataFrame]] = None,
        failing: Optional[Iterable[str]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.snapshots = {k.upper(): v for k, v in (snapshots or {}).items()}
        self.histories = {k.upper(): v for k, v in (histories or {}).items()}
        self.failing = {s.upper() for s in (failing or [])}
        self.delays = {k.upper(): v for k, v in (delays or {}).items()}
        self.calls: Counter = Counter()

    async def _before_fetch(self, symbol: str, kind: str) -> None:
        key = symbol.upper()
        self.calls[(key, kind)] += 1
        delay = self.delays.get(key)
        if delay:
            await asyncio.sleep(delay)
        if key in self.failing:
            raise ConnectionError(f"upstream unavailable for {key}")

    async def fetch_indicator_snapshot(self, symbol: str, timeframe: str) -> Optional[IndicatorSnapshot]:
        await self._before_fetch(symbol, "snapshot")
        return self.snapshots.get(symbol.upper())

    async def fetch_price_history(self, symbol: str, timeframe: str, min_points: int) -> pd.DataFrame:
        await self._before_fetch(symbol, "history")
        history = self.histories.get(symbol.upper())
        if history is None:
            return pd.DataFrame(columns=PRICE_COLUMNS)
        return history.tail(min_points).reset_index(drop=True)
