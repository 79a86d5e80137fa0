"""
Factor Scorers

Each scorer maps one aspect of the market onto a 0-10 scale where
5 is neutral, above 5 is bullish and below 5 is bearish:
- Technical: weighted blend of RSI, MACD, moving averages and Bollinger position
- Volume: recent vs. prior volume
- Trend: recent vs. prior closing prices, confirmed by MA ordering

Sentiment is supplied by a pluggable provider (see sentiment.py).
"""

import math
from typing import Dict, Optional

import pandas as pd

from .signal_model import IndicatorSnapshot, MACDValues, BollingerBandValues, MovingAverageValues

NEUTRAL_SCORE = 5.0

# Default weights for the technical blend (need not sum to 1)
TECHNICAL_WEIGHTS: Dict[str, float] = {
    'rsi': 0.25,
    'macd': 0.25,
    'moving_averages': 0.20,
    'bollinger_bands': 0.15,
}

# Fusion weights for the overall score
FACTOR_WEIGHTS: Dict[str, float] = {
    'technical': 0.4,
    'sentiment': 0.2,
    'volume': 0.2,
    'trend': 0.2,
}

RSI_STRONG_OVERSOLD = 20
RSI_OVERSOLD = 30
RSI_OVERBOUGHT = 70
RSI_STRONG_OVERBOUGHT = 80

MACD_MOMENTUM_RATIO = 0.1

BB_LOWER_ZONE = 0.1
BB_UPPER_ZONE = 0.9

VOLUME_LOOKBACK = 10
VOLUME_SURGE_RATIO = 1.5
VOLUME_DRY_RATIO = 0.5

TREND_LOOKBACK = 10
TREND_MIN_POINTS = 20
STRONG_TREND = 0.05
MODERATE_TREND = 0.02


def clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# ============================================================================
# Technical
# ============================================================================

def score_rsi(rsi: float) -> float:
    """Oversold readings score bullish, overbought readings bearish."""
    if rsi < RSI_STRONG_OVERSOLD:
        return 9.0
    if rsi < RSI_OVERSOLD:
        return 7.0
    if rsi > RSI_STRONG_OVERBOUGHT:
        return 1.0
    if rsi > RSI_OVERBOUGHT:
        return 3.0
    return NEUTRAL_SCORE


def score_macd(macd: MACDValues) -> float:
    """
    Score MACD crossover state with a momentum confirmation.

    A bullish crossover (macd above signal, positive histogram) scores 7,
    a bearish one 3. A histogram larger than 10% of |macd| adds one point
    in the histogram's direction.
    """
    score = NEUTRAL_SCORE
    if macd.macd > macd.signal and macd.histogram > 0:
        score = 7.0
    elif macd.macd < macd.signal and macd.histogram < 0:
        score = 3.0

    strong = abs(macd.histogram) > abs(macd.macd) * MACD_MOMENTUM_RATIO
    if strong and macd.histogram > 0:
        score += 1
    elif strong and macd.histogram < 0:
        score -= 1

    return clamp(score)


def score_moving_averages(mas: MovingAverageValues) -> float:
    if mas.ma20 > mas.ma50 > mas.ma200:
        return 8.0  # golden alignment
    if mas.ma20 < mas.ma50 < mas.ma200:
        return 2.0  # death alignment
    if mas.ma20 > mas.ma50:
        return 6.0
    if mas.ma20 < mas.ma50:
        return 4.0
    return NEUTRAL_SCORE


def bollinger_position(price: float, bands: BollingerBandValues) -> Optional[float]:
    """Relative position of price inside the bands (0 = lower, 1 = upper)."""
    width = bands.upper - bands.lower
    if width <= 0:
        return None
    return (price - bands.lower) / width


def score_bollinger(bands: BollingerBandValues, price: float) -> float:
    position = bollinger_position(price, bands)
    if position is None:
        return NEUTRAL_SCORE
    if position < BB_LOWER_ZONE:
        return 8.0
    if position > BB_UPPER_ZONE:
        return 2.0
    return NEUTRAL_SCORE


def score_technical(
    snapshot: IndicatorSnapshot,
    weights: Optional[Dict[str, float]] = None,
) -> float:
    """
    Weighted mean of the four technical sub-factors.

    MA20 stands in for the current price when placing it within the
    Bollinger Bands.

    Args:
        snapshot: Indicator snapshot
        weights: Override TECHNICAL_WEIGHTS

    Returns:
        Score 0-10, rounded to one decimal
    """
    weights = weights or TECHNICAL_WEIGHTS
    factors = {
        'rsi': score_rsi(snapshot.rsi),
        'macd': score_macd(snapshot.macd),
        'moving_averages': score_moving_averages(snapshot.moving_averages),
        'bollinger_bands': score_bollinger(
            snapshot.bollinger_bands, snapshot.moving_averages.ma20
        ),
    }

    total_weight = sum(weights[name] for name in factors)
    weighted = sum(score * weights[name] for name, score in factors.items())
    return round_half_up(clamp(weighted / total_weight), 1)


# ============================================================================
# Volume / Trend
# ============================================================================

def score_volume(history: Optional[pd.DataFrame]) -> float:
    """Compare mean volume of the last 10 bars to the 10 before them."""
    if history is None or len(history) < VOLUME_LOOKBACK * 2 or "volume" not in history.columns:
        return NEUTRAL_SCORE

    volumes = history["volume"].astype(float).fillna(0.0)
    recent_avg = volumes.iloc[-VOLUME_LOOKBACK:].mean()
    earlier_avg = volumes.iloc[-VOLUME_LOOKBACK * 2:-VOLUME_LOOKBACK].mean()

    if earlier_avg <= 0:
        return NEUTRAL_SCORE

    ratio = recent_avg / earlier_avg
    if ratio > VOLUME_SURGE_RATIO:
        return 8.0
    if ratio < VOLUME_DRY_RATIO:
        return 3.0
    return NEUTRAL_SCORE


def score_trend(history: Optional[pd.DataFrame], snapshot: IndicatorSnapshot) -> float:
    """
    Score price trend from recent-vs-prior closing means.

    Strong trends additionally require price, MA20 and MA50 to be stacked
    in the trend's direction.
    """
    if history is None or len(history) < TREND_MIN_POINTS:
        return NEUTRAL_SCORE

    closes = history["close"].astype(float)
    recent_avg = closes.iloc[-TREND_LOOKBACK:].mean()
    earlier_avg = closes.iloc[-TREND_LOOKBACK * 2:-TREND_LOOKBACK].mean()

    if earlier_avg <= 0 or not math.isfinite(earlier_avg):
        return NEUTRAL_SCORE

    strength = (recent_avg - earlier_avg) / earlier_avg
    ma20 = snapshot.moving_averages.ma20
    ma50 = snapshot.moving_averages.ma50

    if strength > STRONG_TREND and recent_avg > ma20 > ma50:
        return 8.0
    if strength < -STRONG_TREND and recent_avg < ma20 < ma50:
        return 2.0
    if strength > MODERATE_TREND:
        return 6.0
    if strength < -MODERATE_TREND:
        return 4.0
    return NEUTRAL_SCORE


def fuse_scores(
    technical: float,
    sentiment: float,
    volume: float,
    trend: float,
    weights: Optional[Dict[str, float]] = None,
) -> float:
    """Fixed linear combination of the four factor scores."""
    weights = weights or FACTOR_WEIGHTS
    return (
        technical * weights['technical'] +
        sentiment * weights['sentiment'] +
        volume * weights['volume'] +
        trend * weights['trend']
    )
