"""
CCXT Market Data Provider

Fetches OHLCV candles from an exchange through ccxt and derives indicator
snapshots from them. The synchronous ccxt client runs in a worker thread
so batch fetches do not block the event loop.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import ccxt
import pandas as pd

from trading_signals.price_history import to_price_frame
from trading_signals.signal_model import IndicatorSnapshot
from trading_signals.timeframes import to_exchange_timeframe

from .base import MarketDataProvider
from .indicators import build_indicator_snapshot

logger = logging.getLogger(__name__)

TIMEFRAME_SECONDS = {
    '1m': 60, '3m': 180, '5m': 300, '15m': 900, '30m': 1800,
    '1h': 3600, '4h': 14400, '1d': 86400, '1w': 604800,
}

# Enough bars for a fully-formed 200-period moving average
SNAPSHOT_POINTS = 250


class CcxtMarketDataProvider(MarketDataProvider):
    """
    Exchange-backed market data via ccxt.

    Symbols without a quote (e.g., "BTC") are paired with quote_currency;
    symbols already in pair form ("ETH/USDT") pass through.
    """

    def __init__(
        self,
        exchange_id: str = "binance",
        quote_currency: str = "USDT",
        exchange: Optional[Any] = None,
        max_per_call: int = 300,
        snapshot_points: int = SNAPSHOT_POINTS,
        page_delay: float = 0.1,
    ):
        """
        Initialize provider.

        Args:
            exchange_id: ccxt exchange id (ignored when exchange is given)
            quote_currency: Quote currency for bare symbols
            exchange: Pre-built ccxt exchange instance
            max_per_call: Maximum candles per fetch_ohlcv call
            snapshot_points: Candles used to compute indicator snapshots
            page_delay: Pause between paged calls, in seconds
        """
        if exchange is None:
            exchange_class = getattr(ccxt, exchange_id)
            exchange = exchange_class({'enableRateLimit': True})
        self.exchange = exchange
        self.quote_currency = quote_currency.upper()
        self.max_per_call = max_per_call
        self.snapshot_points = snapshot_points
        self.page_delay = page_delay
        # In-flight snapshot-sized downloads, shared by concurrent callers
        self._inflight: Dict[Tuple[str, str], asyncio.Future] = {}

        logger.info(f"Initialized CcxtMarketDataProvider: {exchange_id}, quote={self.quote_currency}")

    def pair(self, symbol: str) -> str:
        symbol = symbol.upper()
        if "/" in symbol:
            return symbol
        return f"{symbol}/{self.quote_currency}"

    async def fetch_price_history(
        self,
        symbol: str,
        timeframe: str,
        min_points: int,
    ) -> pd.DataFrame:
        if min_points > self.snapshot_points:
            candles = await asyncio.to_thread(self.fetch_ohlcv, symbol, timeframe, min_points)
            return to_price_frame(candles)

        candles = await self._shared_candles(symbol, timeframe)
        return to_price_frame(candles[-min_points:])

    async def fetch_indicator_snapshot(
        self,
        symbol: str,
        timeframe: str,
    ) -> Optional[IndicatorSnapshot]:
        candles = await self._shared_candles(symbol, timeframe)
        snapshot = build_indicator_snapshot(to_price_frame(candles))
        if snapshot is None:
            logger.info(f"Not enough candles for an indicator snapshot of {symbol} {timeframe}")
        return snapshot

    async def _shared_candles(self, symbol: str, timeframe: str) -> List[List[float]]:
        """
        Download the last snapshot_points candles once per (pair, timeframe)
        while a request is in flight.

        A history and a snapshot requested together then come from the same
        download, so the snapshot always describes the history's last candle.
        """
        key = (self.pair(symbol), to_exchange_timeframe(timeframe))
        future = self._inflight.get(key)
        if future is None:
            future = asyncio.ensure_future(
                asyncio.to_thread(self.fetch_ohlcv, symbol, timeframe, self.snapshot_points)
            )
            self._inflight[key] = future
            future.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            logger.debug(f"Joining in-flight candle download for {key[0]} {key[1]}")
        return await asyncio.shield(future)

    def fetch_ohlcv(self, symbol: str, timeframe: str, limit: int) -> List[List[float]]:
        """
        Fetch up to `limit` of the most recent candles, paging forward from
        `limit` bars ago.

        Returns:
            OHLCV rows [[timestamp, o, h, l, c, v], ...], oldest first

        Raises:
            ccxt.BaseError: On exchange/network failure
        """
        pair = self.pair(symbol)
        tf = to_exchange_timeframe(timeframe)
        tf_ms = TIMEFRAME_SECONDS.get(tf, 900) * 1000

        since_ts = int(time.time() * 1000) - (limit * tf_ms)
        all_candles: List[List[float]] = []

        while len(all_candles) < limit:
            batch_limit = min(self.max_per_call, limit - len(all_candles))
            candles = self.exchange.fetch_ohlcv(pair, timeframe=tf, since=since_ts, limit=batch_limit)

            if not candles:
                break

            all_candles.extend(candles)

            # Advance past the last candle to avoid duplicates
            since_ts = candles[-1][0] + 1

            # Fewer than requested: end of available history
            if len(candles) < batch_limit:
                break

            if self.page_delay:
                time.sleep(self.page_delay)

        logger.debug(f"Fetched {len(all_candles)} {tf} candles for {pair}")
        return all_candles[-limit:]
