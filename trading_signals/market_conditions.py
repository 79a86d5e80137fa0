"""
Market Condition Analyzer

Classifies recent price/volume history into coarse regime labels:
volatility tier, trend direction, momentum strength and volume regime.
Used by the synthesizer to dampen or boost the fused score.
"""

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd

from .signal_model import MarketConditions, Volatility, Trend, Momentum, VolumeRegime

logger = logging.getLogger(__name__)


# Classification thresholds (module-level constants for easy tuning)

# Annualized volatility of simple returns
HIGH_VOLATILITY = 0.6
MEDIUM_VOLATILITY = 0.3
ANNUALIZATION_PERIODS = 365

# First-to-last close change over the window
TREND_THRESHOLD = 0.05
STRONG_MOMENTUM = 0.10
WEAK_MOMENTUM = 0.03

# Recent volume relative to window mean
RECENT_VOLUME_BARS = 5
HIGH_VOLUME_RATIO = 1.3
LOW_VOLUME_RATIO = 0.7

DEFAULT_WINDOW = 30

NEUTRAL_CONDITIONS = MarketConditions()


def analyze_market_conditions(
    history: Optional[pd.DataFrame],
    window: int = DEFAULT_WINDOW,
) -> MarketConditions:
    """
    Derive market conditions from a PriceHistory frame.

    Args:
        history: OHLCV frame, oldest first (close and volume columns used)
        window: Number of most recent rows to analyze

    Returns:
        MarketConditions; neutral defaults when data is missing or unusable
    """
    if history is None or len(history) < 2 or "close" not in history.columns:
        return NEUTRAL_CONDITIONS

    try:
        recent = history.tail(window)
        closes = recent["close"].astype(float).to_numpy()

        volatility = _classify_volatility(_annualized_volatility(closes))

        first, last = closes[0], closes[-1]
        if first <= 0 or not math.isfinite(first) or not math.isfinite(last):
            change = 0.0
        else:
            change = (last - first) / first

        volumes = (
            recent["volume"].astype(float).to_numpy()
            if "volume" in recent.columns
            else np.array([])
        )

        return MarketConditions(
            volatility=volatility,
            trend=_classify_trend(change),
            momentum=_classify_momentum(change),
            volume=_classify_volume(volumes),
        )

    except Exception as e:
        # Fail gracefully
        logger.warning(f"Market condition analysis failed, using neutral defaults: {e}")
        return NEUTRAL_CONDITIONS


def _annualized_volatility(closes: np.ndarray) -> float:
    """Root-mean-square of simple returns, annualized."""
    prev = closes[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        returns = (closes[1:] - prev) / prev
    returns = returns[np.isfinite(returns)]
    if len(returns) == 0:
        return 0.0
    return float(np.sqrt(np.mean(returns ** 2)) * math.sqrt(ANNUALIZATION_PERIODS))


def _classify_volatility(volatility: float) -> Volatility:
    if volatility > HIGH_VOLATILITY:
        return Volatility.HIGH
    if volatility > MEDIUM_VOLATILITY:
        return Volatility.MEDIUM
    return Volatility.LOW


def _classify_trend(change: float) -> Trend:
    if change > TREND_THRESHOLD:
        return Trend.BULLISH
    if change < -TREND_THRESHOLD:
        return Trend.BEARISH
    return Trend.SIDEWAYS


def _classify_momentum(change: float) -> Momentum:
    if abs(change) > STRONG_MOMENTUM:
        return Momentum.STRONG
    if abs(change) > WEAK_MOMENTUM:
        return Momentum.WEAK
    return Momentum.NEUTRAL


def _classify_volume(volumes: np.ndarray) -> VolumeRegime:
    """Compare mean of the last few positive volumes to the window mean."""
    volumes = volumes[np.isfinite(volumes) & (volumes > 0)]
    if len(volumes) == 0:
        return VolumeRegime.AVERAGE

    average = float(volumes.mean())
    recent = float(volumes[-RECENT_VOLUME_BARS:].mean())

    if recent >= average * HIGH_VOLUME_RATIO:
        return VolumeRegime.HIGH
    if recent <= average * LOW_VOLUME_RATIO:
        return VolumeRegime.LOW
    return VolumeRegime.AVERAGE
