import numpy as np
import pandas as pd
import pytest

from trading_signals.market_conditions import analyze_market_conditions, NEUTRAL_CONDITIONS
from trading_signals.signal_model import (
    MarketConditions,
    Volatility,
    Trend,
    Momentum,
    VolumeRegime,
)


def _alternating(low: float, high: float, length: int) -> np.ndarray:
    return np.array([low if i % 2 == 0 else high for i in range(length)])


def test_neutral_defaults_when_history_missing(make_history) -> None:
    expected = MarketConditions(
        volatility=Volatility.MEDIUM,
        trend=Trend.SIDEWAYS,
        momentum=Momentum.NEUTRAL,
        volume=VolumeRegime.AVERAGE,
    )

    assert analyze_market_conditions(None) == expected
    assert analyze_market_conditions(pd.DataFrame()) == expected
    assert analyze_market_conditions(make_history([100.0])) == expected
    assert NEUTRAL_CONDITIONS == expected


def test_missing_close_column_is_neutral() -> None:
    df = pd.DataFrame({"volume": [1.0, 2.0, 3.0]})

    assert analyze_market_conditions(df) == NEUTRAL_CONDITIONS


def test_steady_uptrend(make_history) -> None:
    conditions = analyze_market_conditions(make_history(np.linspace(100.0, 120.0, 30)))

    assert conditions.trend == Trend.BULLISH
    assert conditions.momentum == Momentum.STRONG
    assert conditions.volatility == Volatility.LOW
    assert conditions.volume == VolumeRegime.AVERAGE


def test_sideways_drift(make_history) -> None:
    conditions = analyze_market_conditions(make_history(np.linspace(100.0, 96.0, 30)))

    assert conditions.trend == Trend.SIDEWAYS
    assert conditions.momentum == Momentum.WEAK


def test_downtrend(make_history) -> None:
    conditions = analyze_market_conditions(make_history(np.linspace(100.0, 85.0, 30)))

    assert conditions.trend == Trend.BEARISH
    assert conditions.momentum == Momentum.STRONG


def test_volatility_tiers(make_history) -> None:
    medium = analyze_market_conditions(make_history(_alternating(100.0, 102.0, 30)))
    high = analyze_market_conditions(make_history(_alternating(100.0, 110.0, 30)))

    assert medium.volatility == Volatility.MEDIUM
    assert high.volatility == Volatility.HIGH


def test_volume_regimes(make_history) -> None:
    closes = np.full(30, 100.0)

    surging = analyze_market_conditions(make_history(closes, [100.0] * 25 + [300.0] * 5))
    drying = analyze_market_conditions(make_history(closes, [100.0] * 25 + [10.0] * 5))

    assert surging.volume == VolumeRegime.HIGH
    assert drying.volume == VolumeRegime.LOW


def test_zero_volumes_are_average(make_history) -> None:
    conditions = analyze_market_conditions(make_history(np.full(30, 100.0), np.zeros(30)))

    assert conditions.volume == VolumeRegime.AVERAGE


def test_only_most_recent_window_is_used(make_history) -> None:
    closes = np.concatenate([np.linspace(200.0, 100.0, 70), np.full(30, 100.0)])
    history = make_history(closes)

    assert analyze_market_conditions(history, window=30).trend == Trend.SIDEWAYS
    assert analyze_market_conditions(history, window=100).trend == Trend.BEARISH


def test_zero_first_close_does_not_raise(make_history) -> None:
    closes = np.concatenate([[0.0], np.linspace(100.0, 101.0, 29)])

    conditions = analyze_market_conditions(make_history(closes))

    assert conditions.trend == Trend.SIDEWAYS
    assert conditions.momentum == Momentum.NEUTRAL


@pytest.mark.parametrize("length", [2, 5, 30, 120])
def test_labels_are_always_valid(make_history, length: int) -> None:
    rng = np.random.default_rng(length)
    closes = 100.0 * np.cumprod(1 + rng.normal(0, 0.02, length))
    volumes = rng.uniform(0, 1000, length)

    conditions = analyze_market_conditions(make_history(closes, volumes))

    assert conditions.volatility in Volatility
    assert conditions.trend in Trend
    assert conditions.momentum in Momentum
    assert conditions.volume in VolumeRegime
