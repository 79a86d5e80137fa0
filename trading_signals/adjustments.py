"""
Score Adjustment Pipeline

The fused score is adjusted by an ordered sequence of pure stages:
market-condition stages first, then position-aware stages. Each stage
takes the running score plus an immutable ScoreContext and returns the
new score, so every step can be tested on its own.
"""

from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

from .signal_model import MarketConditions, PositionContext, SignalType, Volatility, Trend

NEUTRAL = 5.0

HIGH_VOLATILITY_DAMPING = 0.9
TREND_BIAS = 0.5

ENTRY_BIAS_THRESHOLD = 5.5
ENTRY_BIAS = 1.0
OVERSOLD_ENTRY_RSI = 35
OVERSOLD_ENTRY_MIN_SCORE = 4.0
OVERSOLD_ENTRY_BOOST = 1.5

PROFIT_TAKING_PNL = 50.0
PROFIT_TAKING_BIAS = 0.5
LOSS_CUTTING_PNL = -20.0
LOSS_CUTTING_BIAS = 0.5
AVERAGING_DOWN_RSI = 25
AVERAGING_DOWN_PNL = -10.0
AVERAGING_DOWN_CAP = 6.0

# Classification thresholds on the adjusted score
STRONG_BUY_THRESHOLD = 8.0
BUY_THRESHOLD = 6.0
STRONG_SELL_THRESHOLD = 2.0
SELL_THRESHOLD = 4.0


@dataclass(frozen=True)
class ScoreContext:
    """Inputs the adjustment stages may consult (never modified)."""
    overall: float
    rsi: float
    conditions: MarketConditions
    position: PositionContext


ScoreStage = Callable[[float, ScoreContext], float]


# ============================================================================
# Market stages
# ============================================================================

def dampen_high_volatility(score: float, ctx: ScoreContext) -> float:
    if ctx.conditions.volatility == Volatility.HIGH:
        return score * HIGH_VOLATILITY_DAMPING
    return score


def apply_trend_bias(score: float, ctx: ScoreContext) -> float:
    """Reinforce scores that agree with the prevailing trend."""
    if ctx.conditions.trend == Trend.BULLISH and ctx.overall > NEUTRAL:
        return score + TREND_BIAS
    if ctx.conditions.trend == Trend.BEARISH and ctx.overall < NEUTRAL:
        return score - TREND_BIAS
    return score


# ============================================================================
# Position stages (no position)
# ============================================================================

def apply_entry_bias(score: float, ctx: ScoreContext) -> float:
    if not ctx.position.has_position and score >= ENTRY_BIAS_THRESHOLD:
        return score + ENTRY_BIAS
    return score


def apply_oversold_entry_boost(score: float, ctx: ScoreContext) -> float:
    if (
        not ctx.position.has_position
        and ctx.rsi < OVERSOLD_ENTRY_RSI
        and score > OVERSOLD_ENTRY_MIN_SCORE
    ):
        return score + OVERSOLD_ENTRY_BOOST
    return score


def floor_without_position(score: float, ctx: ScoreContext) -> float:
    """Nothing to sell without a position: never go below neutral."""
    if not ctx.position.has_position and score < NEUTRAL:
        return NEUTRAL
    return score


# ============================================================================
# Position stages (holding)
# ============================================================================

def apply_profit_taking_bias(score: float, ctx: ScoreContext) -> float:
    if ctx.position.has_position and ctx.position.current_pnl_percent > PROFIT_TAKING_PNL:
        return score - PROFIT_TAKING_BIAS
    return score


def apply_loss_cutting_bias(score: float, ctx: ScoreContext) -> float:
    if (
        ctx.position.has_position
        and ctx.position.current_pnl_percent < LOSS_CUTTING_PNL
        and score < NEUTRAL
    ):
        return score - LOSS_CUTTING_BIAS
    return score


def cap_averaging_down(score: float, ctx: ScoreContext) -> float:
    """Deeply oversold while already underwater: cap at a moderate buy."""
    if (
        ctx.position.has_position
        and ctx.rsi < AVERAGING_DOWN_RSI
        and ctx.position.current_pnl_percent < AVERAGING_DOWN_PNL
    ):
        return min(score, AVERAGING_DOWN_CAP)
    return score


MARKET_STAGES: Tuple[ScoreStage, ...] = (
    dampen_high_volatility,
    apply_trend_bias,
)

POSITION_STAGES: Tuple[ScoreStage, ...] = (
    apply_entry_bias,
    apply_oversold_entry_boost,
    floor_without_position,
    apply_profit_taking_bias,
    apply_loss_cutting_bias,
    cap_averaging_down,
)

DEFAULT_PIPELINE: Tuple[ScoreStage, ...] = MARKET_STAGES + POSITION_STAGES


def adjust_score(ctx: ScoreContext, stages: Sequence[ScoreStage] = DEFAULT_PIPELINE) -> float:
    """Run the fused score through the stages in order."""
    score = ctx.overall
    for stage in stages:
        score = stage(score, ctx)
    return score


def classify_score(score: float) -> SignalType:
    """Map an adjusted score onto a signal class (monotone in score)."""
    if score >= STRONG_BUY_THRESHOLD:
        return SignalType.STRONG_BUY
    if score >= BUY_THRESHOLD:
        return SignalType.BUY
    if score <= STRONG_SELL_THRESHOLD:
        return SignalType.STRONG_SELL
    if score <= SELL_THRESHOLD:
        return SignalType.SELL
    return SignalType.HOLD
