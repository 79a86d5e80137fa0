"""
Signal Reasoning

Decision logic emits tagged reason codes with numeric parameters;
render_reasons turns them into human-readable statements at the boundary.
"""

from typing import List, Sequence, Tuple

from .signal_model import (
    FactorScores,
    IndicatorSnapshot,
    MarketConditions,
    PositionContext,
    Reason,
    ReasonCode,
    SignalType,
    Trend,
    Volatility,
    VolumeRegime,
)

STRONG_TECHNICAL = 6.0
WEAK_TECHNICAL = 4.0
OVERSOLD_ENTRY_RSI = 35
UNDERWATER_PNL = -10.0
TAKE_PROFITS_PNL = 20.0
CUT_LOSSES_PNL = -15.0

TEMPLATES = {
    ReasonCode.TECHNICAL_STRONG: "Strong technical indicators with RSI at {rsi:.1f} and bullish MACD divergence.",
    ReasonCode.TECHNICAL_WEAK: "Weak technical setup with RSI at {rsi:.1f} indicating potential reversal.",
    ReasonCode.TREND_BULLISH: "Price is in a confirmed uptrend with moving averages aligned bullishly.",
    ReasonCode.TREND_BEARISH: "Price is in a downtrend with bearish moving average configuration.",
    ReasonCode.VOLUME_HIGH: "High trading volume confirms the current price movement.",
    ReasonCode.VOLUME_LOW: "Low volume suggests weak conviction in the current move.",
    ReasonCode.VOLATILITY_HIGH: "High volatility increases risk - consider smaller position sizes.",
    ReasonCode.ENTRY_OPPORTUNITY: "No current position detected - good opportunity to start building a position.",
    ReasonCode.OVERSOLD_ENTRY: "RSI indicates oversold conditions - potentially good entry point for new position.",
    ReasonCode.POSITION_SUMMARY: "Current position: {quantity:.4f} units at average price ${average_price:.2f}",
    ReasonCode.POSITION_PROFITABLE: "Position is profitable (+{pnl:.1f}%) - consider profit-taking strategies.",
    ReasonCode.POSITION_UNDERWATER: "Position is underwater ({pnl:.1f}%) - risk management is important.",
    ReasonCode.TAKE_PROFITS: "Strong profit levels reached - taking profits may be wise.",
    ReasonCode.CUT_LOSSES: "Position showing significant losses - consider cutting losses to preserve capital.",
    ReasonCode.CLOSING_STRONG_BUY: "Multiple confluences align for a strong bullish signal.",
    ReasonCode.CLOSING_BUY_ENTRY: "Good entry opportunity identified for building initial position.",
    ReasonCode.CLOSING_STRONG_SELL: "Multiple bearish factors indicate strong selling pressure.",
    ReasonCode.CLOSING_HOLD: "Mixed signals suggest waiting for clearer directional bias.",
    ReasonCode.CLOSING_HOLD_POSITION: "If holding a position, maintain current allocation and monitor closely.",
}


def _reason(code: ReasonCode, **params: float) -> Reason:
    return Reason(code=code, params=tuple(sorted(params.items())))


def build_reasons(
    signal: SignalType,
    snapshot: IndicatorSnapshot,
    scores: FactorScores,
    conditions: MarketConditions,
    position: PositionContext,
) -> Tuple[Reason, ...]:
    """
    Assemble the ordered reason codes for a signal.

    Order: technical band, trend regime, volume regime, volatility warning,
    position commentary, closing statement for the signal class.
    """
    reasons: List[Reason] = []
    rsi = snapshot.rsi

    if scores.technical > STRONG_TECHNICAL:
        reasons.append(_reason(ReasonCode.TECHNICAL_STRONG, rsi=rsi))
    elif scores.technical < WEAK_TECHNICAL:
        reasons.append(_reason(ReasonCode.TECHNICAL_WEAK, rsi=rsi))

    if conditions.trend == Trend.BULLISH:
        reasons.append(_reason(ReasonCode.TREND_BULLISH))
    elif conditions.trend == Trend.BEARISH:
        reasons.append(_reason(ReasonCode.TREND_BEARISH))

    if conditions.volume == VolumeRegime.HIGH:
        reasons.append(_reason(ReasonCode.VOLUME_HIGH))
    elif conditions.volume == VolumeRegime.LOW:
        reasons.append(_reason(ReasonCode.VOLUME_LOW))

    if conditions.volatility == Volatility.HIGH:
        reasons.append(_reason(ReasonCode.VOLATILITY_HIGH))

    reasons.extend(_position_reasons(signal, rsi, position))
    reasons.extend(_closing_reasons(signal, position))

    return tuple(reasons)


def _position_reasons(signal: SignalType, rsi: float, position: PositionContext) -> List[Reason]:
    reasons: List[Reason] = []

    if not position.has_position:
        if signal.is_buy:
            reasons.append(_reason(ReasonCode.ENTRY_OPPORTUNITY))
        if rsi < OVERSOLD_ENTRY_RSI:
            reasons.append(_reason(ReasonCode.OVERSOLD_ENTRY))
        return reasons

    pnl = position.current_pnl_percent
    reasons.append(_reason(
        ReasonCode.POSITION_SUMMARY,
        quantity=position.quantity,
        average_price=position.average_price,
    ))

    if pnl > 0:
        reasons.append(_reason(ReasonCode.POSITION_PROFITABLE, pnl=pnl))
    elif pnl < UNDERWATER_PNL:
        reasons.append(_reason(ReasonCode.POSITION_UNDERWATER, pnl=pnl))

    if signal.is_sell:
        if pnl > TAKE_PROFITS_PNL:
            reasons.append(_reason(ReasonCode.TAKE_PROFITS))
        elif pnl < CUT_LOSSES_PNL:
            reasons.append(_reason(ReasonCode.CUT_LOSSES))

    return reasons


def _closing_reasons(signal: SignalType, position: PositionContext) -> List[Reason]:
    if signal == SignalType.STRONG_BUY:
        return [_reason(ReasonCode.CLOSING_STRONG_BUY)]
    if signal == SignalType.BUY:
        if not position.has_position:
            return [_reason(ReasonCode.CLOSING_BUY_ENTRY)]
        return []
    if signal == SignalType.STRONG_SELL:
        return [_reason(ReasonCode.CLOSING_STRONG_SELL)]
    if signal == SignalType.HOLD:
        closing = [_reason(ReasonCode.CLOSING_HOLD)]
        if position.has_position:
            closing.append(_reason(ReasonCode.CLOSING_HOLD_POSITION))
        return closing
    return []


def render_reason(reason: Reason) -> str:
    return TEMPLATES[reason.code].format(**reason.values)


def render_reasons(reasons: Sequence[Reason]) -> Tuple[str, ...]:
    """Render reason codes to text, preserving order."""
    return tuple(render_reason(r) for r in reasons)
