"""Tests for the async signal engine (caching, batching, failure isolation)."""

import asyncio

import pytest

from data_feed import InMemoryMarketDataProvider, UpstreamFetchError
from trading_signals import (
    EngineConfig,
    Holding,
    InvalidPositionError,
    SignalCache,
    TTLCache,
    TradingSignalEngine,
)
from trading_signals.signal_model import SignalType


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TrackingProvider(InMemoryMarketDataProvider):
    """Records how many symbols are being fetched at once."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_indicator_snapshot(self, symbol, timeframe):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            return await super().fetch_indicator_snapshot(symbol, timeframe)
        finally:
            self.in_flight -= 1


@pytest.fixture
def provider(bullish_setup, bearish_setup):
    bull_snapshot, bull_history = bullish_setup
    bear_snapshot, bear_history = bearish_setup
    return InMemoryMarketDataProvider(
        snapshots={
            "BTC": bull_snapshot,
            "ETH": bear_snapshot,
            "SOL": bull_snapshot,
            "ADA": bear_snapshot,
            "XRP": bull_snapshot,
        },
        histories={
            "BTC": bull_history,
            "ETH": bear_history,
            "SOL": bull_history,
            "ADA": bear_history,
            "XRP": bull_history,
        },
    )


# ========== Single symbol ==========

def test_generate_signal_bullish(provider) -> None:
    engine = TradingSignalEngine(provider)

    result = asyncio.run(engine.generate_signal("BTC", "1hour"))

    assert result.symbol == "BTC"
    assert result.timeframe == "1hour"
    assert result.signal == SignalType.STRONG_BUY
    assert result.confidence >= 6
    assert result.position.has_position is False


def test_generate_signal_uses_default_timeframe(provider) -> None:
    engine = TradingSignalEngine(provider, config=EngineConfig(default_timeframe="4hour"))

    result = asyncio.run(engine.generate_signal("BTC"))

    assert result.timeframe == "4hour"


def test_generate_signal_with_profitable_holding(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = [Holding(symbol="ETH", quantity=1.0, average_price=56.25)]

    result = asyncio.run(engine.generate_signal("ETH", "1hour", holdings))

    assert result.position.has_position is True
    assert result.position.current_pnl_percent == pytest.approx(60.0)
    assert result.signal == SignalType.STRONG_SELL


def test_generate_signal_ignores_other_holdings(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = {"BTC": Holding(symbol="BTC", quantity=1.0, average_price=100.0)}

    result = asyncio.run(engine.generate_signal("ETH", "1hour", holdings))

    assert result.position.has_position is False
    assert result.signal == SignalType.HOLD


def test_insufficient_data_returns_none(provider) -> None:
    engine = TradingSignalEngine(provider)

    assert asyncio.run(engine.generate_signal("DOGE", "1hour")) is None


def test_invalid_holding_rejected_before_fetch(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = [Holding(symbol="BTC", quantity=-1.0, average_price=100.0)]

    with pytest.raises(InvalidPositionError):
        asyncio.run(engine.generate_signal("BTC", "1hour", holdings))

    assert sum(provider.calls.values()) == 0


def test_upstream_failure_raises(bullish_setup) -> None:
    snapshot, history = bullish_setup
    provider = InMemoryMarketDataProvider(
        snapshots={"BAD": snapshot}, histories={"BAD": history}, failing=["BAD"]
    )
    engine = TradingSignalEngine(provider)

    with pytest.raises(UpstreamFetchError) as excinfo:
        asyncio.run(engine.generate_signal("BAD", "1hour"))

    assert excinfo.value.symbol == "BAD"


def test_upstream_timeout_raises(bullish_setup) -> None:
    snapshot, history = bullish_setup
    provider = InMemoryMarketDataProvider(
        snapshots={"SLOW": snapshot}, histories={"SLOW": history}, delays={"SLOW": 1.0}
    )
    engine = TradingSignalEngine(provider, config=EngineConfig(fetch_timeout_seconds=0.05))

    with pytest.raises(UpstreamFetchError, match="timed out"):
        asyncio.run(engine.generate_signal("SLOW", "1hour"))


# ========== Caching ==========

def test_second_call_within_ttl_is_served_from_cache(provider) -> None:
    engine = TradingSignalEngine(provider)

    async def twice():
        first = await engine.generate_signal("BTC", "1hour")
        second = await engine.generate_signal("BTC", "1hour")
        return first, second

    first, second = asyncio.run(twice())

    assert second is first
    assert provider.calls[("BTC", "snapshot")] == 1
    assert provider.calls[("BTC", "history")] == 1


def test_cache_is_per_timeframe(provider) -> None:
    engine = TradingSignalEngine(provider)

    async def both():
        await engine.generate_signal("BTC", "1hour")
        await engine.generate_signal("BTC", "4hour")

    asyncio.run(both())

    assert provider.calls[("BTC", "snapshot")] == 2


def test_recomputes_after_ttl(provider) -> None:
    clock = FakeClock()
    cache = SignalCache(store=TTLCache(clock=clock), ttl_seconds=300)
    engine = TradingSignalEngine(provider, cache=cache)

    asyncio.run(engine.generate_signal("BTC", "1hour"))
    clock.now = 299.0
    asyncio.run(engine.generate_signal("BTC", "1hour"))
    assert provider.calls[("BTC", "snapshot")] == 1

    clock.now = 301.0
    asyncio.run(engine.generate_signal("BTC", "1hour"))
    assert provider.calls[("BTC", "snapshot")] == 2


def test_cached_holder_signal_not_served_without_holdings(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = [Holding(symbol="ETH", quantity=1.0, average_price=56.25)]

    async def holder_then_flat():
        held = await engine.generate_signal("ETH", "1hour", holdings)
        flat = await engine.generate_signal("ETH", "1hour")
        return held, flat

    held, flat = asyncio.run(holder_then_flat())

    assert held.signal == SignalType.STRONG_SELL
    assert flat.signal == SignalType.HOLD
    assert flat.position.has_position is False
    assert provider.calls[("ETH", "snapshot")] == 2


def test_cached_flat_signal_not_served_to_holder(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = [Holding(symbol="ETH", quantity=1.0, average_price=56.25)]

    async def flat_then_holder():
        flat = await engine.generate_signal("ETH", "1hour")
        held = await engine.generate_signal("ETH", "1hour", holdings)
        return flat, held

    flat, held = asyncio.run(flat_then_holder())

    assert flat.signal == SignalType.HOLD
    assert held.signal == SignalType.STRONG_SELL
    assert held.position.average_price == 56.25


def test_same_holding_is_served_from_cache(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = [Holding(symbol="ETH", quantity=1.0, average_price=56.25)]

    async def twice():
        first = await engine.generate_signal("ETH", "1hour", holdings)
        second = await engine.generate_signal("ETH", "1hour", holdings)
        return first, second

    first, second = asyncio.run(twice())

    assert second is first
    assert provider.calls[("ETH", "snapshot")] == 1


def test_insufficient_data_is_not_cached(provider) -> None:
    engine = TradingSignalEngine(provider)

    asyncio.run(engine.generate_signal("DOGE", "1hour"))
    asyncio.run(engine.generate_signal("DOGE", "1hour"))

    assert provider.calls[("DOGE", "snapshot")] == 2


# ========== Batch ==========

def test_batch_isolates_failing_symbol(provider) -> None:
    provider.failing = {"ADA"}
    engine = TradingSignalEngine(provider)

    signals = asyncio.run(
        engine.generate_batch_signals(["BTC", "ETH", "SOL", "ADA", "XRP"], "1hour")
    )

    assert list(signals) == ["BTC", "ETH", "SOL", "XRP"]
    assert all(s.timeframe == "1hour" for s in signals.values())


def test_batch_reports_failures_apart_from_missing_data(provider) -> None:
    provider.failing = {"ADA"}
    engine = TradingSignalEngine(provider)
    failures = {}

    signals = asyncio.run(
        engine.generate_batch_signals(["BTC", "ADA", "DOGE"], "1hour", failures=failures)
    )

    assert list(signals) == ["BTC"]
    assert list(failures) == ["ADA"]
    assert "DOGE" not in failures


def test_batch_excludes_timeouts_and_missing_data(provider) -> None:
    provider.delays = {"SOL": 1.0}
    engine = TradingSignalEngine(provider, config=EngineConfig(fetch_timeout_seconds=0.05))

    signals = asyncio.run(engine.generate_batch_signals(["BTC", "SOL", "DOGE", "ETH"], "1hour"))

    assert list(signals) == ["BTC", "ETH"]


def test_batch_excludes_invalid_holding(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = [Holding(symbol="ETH", quantity=1.0, average_price=0.0)]

    signals = asyncio.run(engine.generate_batch_signals(["BTC", "ETH"], "1hour", holdings))

    assert list(signals) == ["BTC"]


def test_batch_deduplicates_symbols(provider) -> None:
    engine = TradingSignalEngine(provider)

    signals = asyncio.run(engine.generate_batch_signals(["BTC", "ETH", "BTC"], "1hour"))

    assert list(signals) == ["BTC", "ETH"]
    assert provider.calls[("BTC", "snapshot")] == 1


def test_batch_applies_holdings_per_symbol(provider) -> None:
    engine = TradingSignalEngine(provider)
    holdings = [Holding(symbol="ETH", quantity=1.0, average_price=56.25)]

    signals = asyncio.run(engine.generate_batch_signals(["BTC", "ETH"], "1hour", holdings))

    assert signals["BTC"].position.has_position is False
    assert signals["ETH"].position.has_position is True


def test_batch_respects_max_concurrency(bullish_setup) -> None:
    snapshot, history = bullish_setup
    symbols = ["A", "B", "C", "D", "E"]
    provider = TrackingProvider(
        snapshots={s: snapshot for s in symbols},
        histories={s: history for s in symbols},
    )
    engine = TradingSignalEngine(provider, config=EngineConfig(max_concurrency=2))

    signals = asyncio.run(engine.generate_batch_signals(symbols, "1hour"))

    assert len(signals) == 5
    assert provider.max_in_flight <= 2


def test_empty_batch() -> None:
    engine = TradingSignalEngine(InMemoryMarketDataProvider())

    assert asyncio.run(engine.generate_batch_signals([], "1hour")) == {}
