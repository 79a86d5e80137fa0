"""
Signal Synthesizer

Decision core: fuses factor scores, applies the ordered market and
position adjustments, classifies the result, and attaches confidence,
trading levels, reasoning and a validity window.
"""

from typing import Callable, Optional, Sequence
from datetime import datetime, timezone
import logging

import pandas as pd

from .signal_model import (
    FactorScores,
    IndicatorSnapshot,
    MarketConditions,
    Momentum,
    PositionContext,
    NO_POSITION,
    SignalResult,
    Volatility,
)
from .adjustments import ScoreContext, ScoreStage, DEFAULT_PIPELINE, adjust_score, classify_score
from .factors import score_technical, score_volume, score_trend, fuse_scores, clamp, round_half_up
from .levels import calculate_trading_levels
from .market_conditions import analyze_market_conditions, DEFAULT_WINDOW
from .position import validate_position_context
from .price_history import is_empty, latest_close
from .reasoning import build_reasons, render_reasons
from .sentiment import SentimentProvider, NeutralSentimentProvider, resolve_sentiment
from .timeframes import valid_until

logger = logging.getLogger(__name__)

HIGH_VOLATILITY_CONFIDENCE = 0.8
STRONG_MOMENTUM_CONFIDENCE = 1.2


def compute_confidence(score: float, conditions: MarketConditions) -> int:
    """
    Confidence 1-10 from the score's distance to neutral.

    Args:
        score: Fused overall score (0-10)
        conditions: Market conditions (high volatility lowers, strong momentum raises)

    Returns:
        Integer confidence in [1, 10]
    """
    confidence = abs(score - 5) * 2

    if conditions.volatility == Volatility.HIGH:
        confidence *= HIGH_VOLATILITY_CONFIDENCE

    if conditions.momentum == Momentum.STRONG:
        confidence *= STRONG_MOMENTUM_CONFIDENCE

    return int(round_half_up(clamp(confidence, 1, 10)))


class SignalSynthesizer:
    """
    Stateless per-request signal synthesis.

    Workflow:
    1. Derive market conditions from price history
    2. Score technical, sentiment, volume and trend factors
    3. Fuse into the overall score
    4. Run the adjustment pipeline (market, then position)
    5. Classify, compute confidence and trading levels
    6. Generate reasoning and validity window
    """

    def __init__(
        self,
        sentiment_provider: Optional[SentimentProvider] = None,
        condition_window: int = DEFAULT_WINDOW,
        stages: Sequence[ScoreStage] = DEFAULT_PIPELINE,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize synthesizer.

        Args:
            sentiment_provider: Sentiment source (default: neutral constant)
            condition_window: Rows of history used for market conditions
            stages: Score adjustment pipeline, applied in order
            clock: Returns the current UTC time (injectable for tests)
        """
        self.sentiment_provider = sentiment_provider or NeutralSentimentProvider()
        self.condition_window = condition_window
        self.stages = tuple(stages)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def synthesize(
        self,
        symbol: str,
        timeframe: str,
        snapshot: Optional[IndicatorSnapshot],
        history: Optional[pd.DataFrame],
        position: PositionContext = NO_POSITION,
        conditions: Optional[MarketConditions] = None,
    ) -> Optional[SignalResult]:
        """
        Build a SignalResult for one symbol.

        Args:
            symbol: Asset symbol
            timeframe: Candle timeframe
            snapshot: Indicator snapshot
            history: PriceHistory frame, oldest first
            position: Resolved caller position
            conditions: Precomputed market conditions (derived from history if None)

        Returns:
            SignalResult, or None when snapshot or history is missing

        Raises:
            InvalidPositionError: If position has a negative quantity or a
                non-positive average price
        """
        validate_position_context(position)

        if snapshot is None or is_empty(history):
            logger.info(f"Insufficient data for {symbol} {timeframe}: no signal")
            return None

        if conditions is None:
            conditions = analyze_market_conditions(history, window=self.condition_window)

        entry_price = latest_close(history)
        if not entry_price > 0:
            logger.info(f"Invalid latest close for {symbol} {timeframe} ({entry_price}): no signal")
            return None

        scores = self.score_factors(symbol, snapshot, history)

        ctx = ScoreContext(
            overall=scores.overall,
            rsi=snapshot.rsi,
            conditions=conditions,
            position=position,
        )
        adjusted = adjust_score(ctx, self.stages)
        signal = classify_score(adjusted)
        confidence = compute_confidence(scores.overall, conditions)

        levels = calculate_trading_levels(
            entry_price, signal, snapshot.bollinger_bands, conditions
        )

        reasons = build_reasons(signal, snapshot, scores, conditions, position)

        now = self.clock()
        result = SignalResult(
            symbol=symbol,
            signal=signal,
            confidence=confidence,
            entry_price=levels.entry_price,
            stop_loss=levels.stop_loss,
            take_profit=levels.take_profit,
            risk_reward=levels.risk_reward,
            factor_scores=scores,
            adjusted_score=adjusted,
            market_conditions=conditions,
            position=position,
            reasons=reasons,
            reasoning=render_reasons(reasons),
            timeframe=timeframe,
            generated_at=now,
            valid_until=valid_until(timeframe, now),
        )

        logger.debug(f"Synthesized {result}")
        return result

    def score_factors(
        self,
        symbol: str,
        snapshot: IndicatorSnapshot,
        history: pd.DataFrame,
    ) -> FactorScores:
        """Compute the four factor scores and their fused overall score."""
        technical = score_technical(snapshot)
        sentiment = resolve_sentiment(self.sentiment_provider, symbol)
        volume = score_volume(history)
        trend = score_trend(history, snapshot)

        return FactorScores(
            technical=technical,
            sentiment=sentiment,
            volume=volume,
            trend=trend,
            overall=fuse_scores(technical, sentiment, volume, trend),
        )
