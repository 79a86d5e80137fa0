"""
Trading Level Calculator

Computes entry, stop-loss and take-profit levels for a signal, scaled by
the volatility regime and anchored to the Bollinger Bands.
"""

from dataclasses import dataclass
from typing import Optional

from .signal_model import SignalType, Volatility, MarketConditions, BollingerBandValues

BASE_RISK_FRACTION = 0.02
REWARD_RISK_RATIO = 2.5

VOLATILITY_MULTIPLIERS = {
    Volatility.HIGH: 1.5,
    Volatility.MEDIUM: 1.0,
    Volatility.LOW: 0.7,
}

# Band anchors: long stops no lower than 95% of the lower band,
# short stops no higher than 105% of the upper band. An anchor on the
# wrong side of entry is ignored.
LOWER_BAND_STOP_FACTOR = 0.95
UPPER_BAND_STOP_FACTOR = 1.05


@dataclass(frozen=True)
class TradingLevels:
    """Entry and exit levels for one signal."""
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None

    @property
    def risk_reward(self) -> Optional[float]:
        """(take_profit - entry) / (entry - stop_loss) when both levels exist."""
        if self.stop_loss is None or self.take_profit is None:
            return None
        risk = self.entry_price - self.stop_loss
        if abs(risk) < 1e-12:
            return None
        return (self.take_profit - self.entry_price) / risk


def risk_fraction(volatility: Volatility) -> float:
    return BASE_RISK_FRACTION * VOLATILITY_MULTIPLIERS.get(volatility, 1.0)


def calculate_trading_levels(
    entry_price: float,
    signal: SignalType,
    bands: BollingerBandValues,
    conditions: MarketConditions,
) -> TradingLevels:
    """
    Calculate stop-loss and take-profit around the entry.

    Args:
        entry_price: Latest close
        signal: Signal class
        bands: Bollinger Bands from the indicator snapshot
        conditions: Market conditions (volatility tier drives the risk fraction)

    Returns:
        TradingLevels; HOLD carries no stop-loss or take-profit

    Raises:
        ValueError: If entry_price is not positive
    """
    if entry_price <= 0:
        raise ValueError(f"Invalid entry_price: {entry_price}. Must be positive.")

    r = risk_fraction(conditions.volatility)

    if signal.is_buy:
        stop_loss = entry_price * (1 - r)
        take_profit = entry_price * (1 + r * REWARD_RISK_RATIO)
        anchor = bands.lower * LOWER_BAND_STOP_FACTOR
        if 0 < anchor < entry_price:
            stop_loss = max(stop_loss, anchor)
        return TradingLevels(entry_price, stop_loss, take_profit)

    if signal.is_sell:
        stop_loss = entry_price * (1 + r)
        take_profit = entry_price * (1 - r * REWARD_RISK_RATIO)
        anchor = bands.upper * UPPER_BAND_STOP_FACTOR
        if anchor > entry_price:
            stop_loss = min(stop_loss, anchor)
        return TradingLevels(entry_price, stop_loss, take_profit)

    return TradingLevels(entry_price)
