"""
Trading Signal Engine

Async entry point: fetches market data for a symbol, resolves the caller's
position, runs the synthesizer and memoizes the result. Batch generation
fans out across symbols and isolates per-symbol failures.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

from data_feed.base import MarketDataProvider, UpstreamFetchError

from .cache import SignalCache
from .config import EngineConfig
from .position import Holdings, find_holding, resolve_position, validate_holding
from .price_history import is_empty, latest_close
from .signal_model import SignalResult
from .synthesizer import SignalSynthesizer

logger = logging.getLogger(__name__)


class TradingSignalEngine:
    """
    Signal generation with caching and batch orchestration.

    Workflow per symbol:
    1. Validate the caller's holding for the symbol
    2. Return a cached result if one is still fresh
    3. Fetch indicator snapshot and price history concurrently
    4. Resolve position context at the latest close
    5. Synthesize and cache the SignalResult
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        config: Optional[EngineConfig] = None,
        synthesizer: Optional[SignalSynthesizer] = None,
        cache: Optional[SignalCache] = None,
    ):
        """
        Initialize engine.

        Args:
            provider: Market data collaborator
            config: Engine configuration (defaults if None)
            synthesizer: Decision core (default built from config)
            cache: Signal cache (default in-memory with config TTL)
        """
        self.provider = provider
        self.config = config or EngineConfig()
        self.synthesizer = synthesizer or SignalSynthesizer(
            condition_window=self.config.condition_window,
        )
        self.cache = cache or SignalCache(ttl_seconds=self.config.cache_ttl_seconds)

    async def generate_signal(
        self,
        symbol: str,
        timeframe: Optional[str] = None,
        holdings: Optional[Holdings] = None,
    ) -> Optional[SignalResult]:
        """
        Generate (or reuse) a signal for one symbol.

        Args:
            symbol: Asset symbol (e.g., BTC)
            timeframe: Candle timeframe (config default if None)
            holdings: Caller's holdings; only the entry for `symbol` is used

        Returns:
            SignalResult, or None when there is insufficient data

        Raises:
            InvalidPositionError: If the caller's holding for the symbol is malformed
            UpstreamFetchError: If fetching market data fails or times out
        """
        timeframe = timeframe or self.config.default_timeframe

        holding = find_holding(symbol, holdings)
        if holding is not None:
            validate_holding(holding)

        cached = self.cache.get(symbol, timeframe, holding)
        if cached is not None:
            return cached

        snapshot, history = await self._fetch(symbol, timeframe)

        if snapshot is None or is_empty(history):
            logger.info(f"Insufficient data for {symbol} {timeframe}")
            return None

        position = resolve_position(symbol, latest_close(history), holdings)

        result = self.synthesizer.synthesize(
            symbol=symbol,
            timeframe=timeframe,
            snapshot=snapshot,
            history=history,
            position=position,
        )
        if result is not None:
            self.cache.put(result)
        return result

    async def _fetch(self, symbol: str, timeframe: str):
        """Fetch snapshot and history together under the per-symbol timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.gather(
                    self.provider.fetch_indicator_snapshot(symbol, timeframe),
                    self.provider.fetch_price_history(
                        symbol, timeframe, self.config.history_points
                    ),
                ),
                timeout=self.config.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamFetchError(
                symbol, f"fetch timed out after {self.config.fetch_timeout_seconds}s"
            ) from e
        except UpstreamFetchError:
            raise
        except Exception as e:
            raise UpstreamFetchError(symbol, f"fetch failed: {e}") from e

    async def generate_batch_signals(
        self,
        symbols: Iterable[str],
        timeframe: Optional[str] = None,
        holdings: Optional[Holdings] = None,
        failures: Optional[Dict[str, str]] = None,
    ) -> Dict[str, SignalResult]:
        """
        Generate signals for many symbols concurrently.

        Symbols that fail or have insufficient data are logged and left out
        of the result; they never abort the rest of the batch.

        Args:
            symbols: Asset symbols (duplicates are computed once)
            timeframe: Candle timeframe shared by all symbols
            holdings: Caller's holdings
            failures: If given, filled with {symbol: error message} for symbols
                whose generation raised, so callers can tell them apart from
                symbols with insufficient data

        Returns:
            {symbol: SignalResult} in first-seen input order
        """
        timeframe = timeframe or self.config.default_timeframe
        unique = list(dict.fromkeys(symbols))
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def run_one(symbol: str) -> Optional[SignalResult]:
            async with semaphore:
                try:
                    return await self.generate_signal(symbol, timeframe, holdings)
                except Exception as e:
                    logger.error(f"Error generating signal for {symbol} {timeframe}: {e}")
                    if failures is not None:
                        failures[symbol] = str(e)
                    return None

        results = await asyncio.gather(*(run_one(s) for s in unique))

        signals = {
            symbol: result
            for symbol, result in zip(unique, results)
            if result is not None
        }
        logger.info(f"Generated {len(signals)}/{len(unique)} signals for {timeframe}")
        return signals
