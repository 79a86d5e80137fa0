"""pytest configuration: project root on sys.path plus shared signal fixtures."""

import sys
import os

# Add project root to sys.path so local modules can be imported
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from datetime import datetime, timezone

import numpy as np
import pandas as pd
import pytest

from trading_signals.signal_model import (
    IndicatorSnapshot,
    MACDValues,
    BollingerBandValues,
    MovingAverageValues,
)

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def _make_snapshot(
    rsi: float = 50.0,
    macd=(0.0, 0.0, 0.0),
    bands=(110.0, 100.0, 90.0),
    mas=(100.0, 100.0, 100.0),
) -> IndicatorSnapshot:
    return IndicatorSnapshot(
        rsi=rsi,
        macd=MACDValues(*macd),
        bollinger_bands=BollingerBandValues(*bands),
        moving_averages=MovingAverageValues(*mas),
    )


def _make_history(closes, volumes=None) -> pd.DataFrame:
    closes = np.asarray(closes, dtype=float)
    if volumes is None:
        volumes = np.full(len(closes), 100.0)
    return pd.DataFrame(
        {
            "timestamp": np.arange(len(closes), dtype=np.int64) * 60_000,
            "open": closes,
            "high": closes * 1.01,
            "low": closes * 0.99,
            "close": closes,
            "volume": np.asarray(volumes, dtype=float),
        }
    )


@pytest.fixture
def make_snapshot():
    """Factory for IndicatorSnapshot with neutral defaults."""
    return _make_snapshot


@pytest.fixture
def make_history():
    """Factory for PriceHistory frames from closes (and optional volumes)."""
    return _make_history


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def bullish_setup():
    """
    Oversold RSI, bullish MACD, golden MA alignment, rising prices on
    surging volume: technical 8.3, volume 8, trend 8.
    """
    snapshot = _make_snapshot(
        rsi=15.0,
        macd=(1.0, 0.5, 0.5),
        bands=(150.0, 130.0, 109.0),
        mas=(110.0, 105.0, 100.0),
    )
    closes = np.linspace(90.0, 130.0, 50)
    volumes = np.array([100.0] * 40 + [300.0] * 10)
    return snapshot, _make_history(closes, volumes)


@pytest.fixture
def bearish_setup():
    """
    Overbought RSI, bearish MACD, death MA alignment, falling prices on
    drying volume: technical 1.7, volume 3, trend 2.
    """
    snapshot = _make_snapshot(
        rsi=85.0,
        macd=(-1.0, -0.5, -0.5),
        bands=(96.0, 85.0, 74.0),
        mas=(95.0, 100.0, 105.0),
    )
    closes = np.linspace(130.0, 90.0, 50)
    volumes = np.array([100.0] * 40 + [20.0] * 10)
    return snapshot, _make_history(closes, volumes)
