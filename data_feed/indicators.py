"""
Indicator Snapshot Builder

Computes RSI, MACD, Bollinger Bands and simple moving averages from an
OHLCV frame using the `ta` library.
"""

import math
from typing import Optional

import pandas as pd
from ta.momentum import RSIIndicator
from ta.trend import MACD
from ta.volatility import BollingerBands

from trading_signals.signal_model import (
    IndicatorSnapshot,
    MACDValues,
    BollingerBandValues,
    MovingAverageValues,
)

RSI_WINDOW = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
BB_WINDOW = 20
BB_STD = 2
MA_WINDOWS = (20, 50, 200)

# MACD signal line needs slow + signal bars before it is defined
MIN_SNAPSHOT_POINTS = MACD_SLOW + MACD_SIGNAL


def build_indicator_snapshot(df: pd.DataFrame) -> Optional[IndicatorSnapshot]:
    """
    Build an IndicatorSnapshot from the last bar of an OHLCV frame.

    Moving averages use whatever history is available when shorter than
    their window.

    Args:
        df: PriceHistory frame (close column required), oldest first

    Returns:
        IndicatorSnapshot, or None if there is not enough data
    """
    if df is None or len(df) < MIN_SNAPSHOT_POINTS or "close" not in df.columns:
        return None

    close = pd.to_numeric(df["close"], errors="coerce").reset_index(drop=True)

    rsi = RSIIndicator(close=close, window=RSI_WINDOW).rsi()

    macd_indicator = MACD(
        close=close,
        window_slow=MACD_SLOW,
        window_fast=MACD_FAST,
        window_sign=MACD_SIGNAL,
    )
    macd = macd_indicator.macd()
    macd_signal = macd_indicator.macd_signal()
    macd_diff = macd_indicator.macd_diff()

    bands = BollingerBands(close=close, window=BB_WINDOW, window_dev=BB_STD)
    upper = bands.bollinger_hband()
    middle = bands.bollinger_mavg()
    lower = bands.bollinger_lband()

    ma20, ma50, ma200 = (
        close.rolling(window=w, min_periods=1).mean().iloc[-1] for w in MA_WINDOWS
    )

    values = [
        rsi.iloc[-1], macd.iloc[-1], macd_signal.iloc[-1], macd_diff.iloc[-1],
        upper.iloc[-1], middle.iloc[-1], lower.iloc[-1], ma20, ma50, ma200,
    ]
    if any(v is None or not math.isfinite(float(v)) for v in values):
        return None

    return IndicatorSnapshot(
        rsi=float(rsi.iloc[-1]),
        macd=MACDValues(
            macd=float(macd.iloc[-1]),
            signal=float(macd_signal.iloc[-1]),
            histogram=float(macd_diff.iloc[-1]),
        ),
        bollinger_bands=BollingerBandValues(
            upper=float(upper.iloc[-1]),
            middle=float(middle.iloc[-1]),
            lower=float(lower.iloc[-1]),
        ),
        moving_averages=MovingAverageValues(
            ma20=float(ma20),
            ma50=float(ma50),
            ma200=float(ma200),
        ),
    )
