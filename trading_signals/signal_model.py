"""
Trading Signal Data Model

Defines the immutable structures that flow through the decision engine:
indicator snapshots, derived market conditions, position context, factor
scores and the final JSON-serializable SignalResult.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Tuple, Mapping
from datetime import datetime, timezone


class SignalType(str, Enum):
    """Discrete recommendation, ordered from most bearish to most bullish."""
    STRONG_SELL = "STRONG_SELL"
    SELL = "SELL"
    HOLD = "HOLD"
    BUY = "BUY"
    STRONG_BUY = "STRONG_BUY"

    @property
    def rank(self) -> int:
        return _SIGNAL_RANK[self]

    @property
    def is_buy(self) -> bool:
        return self in (SignalType.BUY, SignalType.STRONG_BUY)

    @property
    def is_sell(self) -> bool:
        return self in (SignalType.SELL, SignalType.STRONG_SELL)


_SIGNAL_RANK = {
    SignalType.STRONG_SELL: 0,
    SignalType.SELL: 1,
    SignalType.HOLD: 2,
    SignalType.BUY: 3,
    SignalType.STRONG_BUY: 4,
}


class Volatility(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Trend(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    SIDEWAYS = "SIDEWAYS"


class Momentum(str, Enum):
    STRONG = "STRONG"
    WEAK = "WEAK"
    NEUTRAL = "NEUTRAL"


class VolumeRegime(str, Enum):
    HIGH = "HIGH"
    LOW = "LOW"
    AVERAGE = "AVERAGE"


@dataclass(frozen=True)
class MACDValues:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBandValues:
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class MovingAverageValues:
    ma20: float
    ma50: float
    ma200: float


@dataclass(frozen=True)
class IndicatorSnapshot:
    """
    Indicator values for one (symbol, timeframe) at fetch time.

    Attributes:
        rsi: Relative Strength Index, 0-100
        macd: MACD line, signal line and histogram
        bollinger_bands: Upper/middle/lower band (lower <= middle <= upper)
        moving_averages: Simple moving averages over 20/50/200 periods
    """
    rsi: float
    macd: MACDValues
    bollinger_bands: BollingerBandValues
    moving_averages: MovingAverageValues

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IndicatorSnapshot":
        """Build a snapshot from the nested dict layout used by market-data APIs."""
        macd = data["macd"]
        bands = data.get("bollinger_bands", data.get("bollingerBands"))
        mas = data.get("moving_averages", data.get("movingAverages"))
        return cls(
            rsi=float(data["rsi"]),
            macd=MACDValues(
                macd=float(macd["macd"]),
                signal=float(macd["signal"]),
                histogram=float(macd["histogram"]),
            ),
            bollinger_bands=BollingerBandValues(
                upper=float(bands["upper"]),
                middle=float(bands["middle"]),
                lower=float(bands["lower"]),
            ),
            moving_averages=MovingAverageValues(
                ma20=float(mas["ma20"]),
                ma50=float(mas["ma50"]),
                ma200=float(mas["ma200"]),
            ),
        )


@dataclass(frozen=True)
class MarketConditions:
    """Coarse regime labels derived from recent price/volume history."""
    volatility: Volatility = Volatility.MEDIUM
    trend: Trend = Trend.SIDEWAYS
    momentum: Momentum = Momentum.NEUTRAL
    volume: VolumeRegime = VolumeRegime.AVERAGE

    def to_dict(self) -> Dict[str, str]:
        return {
            'volatility': self.volatility.value,
            'trend': self.trend.value,
            'momentum': self.momentum.value,
            'volume': self.volume.value,
        }


@dataclass(frozen=True)
class PositionContext:
    """
    Caller's current exposure to a symbol.

    Attributes:
        has_position: Whether the caller holds the symbol
        quantity: Units held (>= 0)
        average_price: Average entry price (> 0 when has_position)
        current_pnl_percent: (current_price - average_price) / average_price * 100
    """
    has_position: bool = False
    quantity: float = 0.0
    average_price: float = 0.0
    current_pnl_percent: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'has_position': self.has_position,
            'quantity': self.quantity,
            'average_price': self.average_price,
            'current_pnl_percent': round(self.current_pnl_percent, 3),
        }


NO_POSITION = PositionContext()


@dataclass(frozen=True)
class FactorScores:
    """Per-factor sub-scores on a 0-10 scale (5 = neutral)."""
    technical: float
    sentiment: float
    volume: float
    trend: float
    overall: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'technical': round(self.technical, 3),
            'sentiment': round(self.sentiment, 3),
            'volume': round(self.volume, 3),
            'trend': round(self.trend, 3),
            'overall': round(self.overall, 3),
        }


class ReasonCode(str, Enum):
    """Tagged reasoning statements, rendered to text by reasoning.render_reasons."""
    TECHNICAL_STRONG = "TECHNICAL_STRONG"
    TECHNICAL_WEAK = "TECHNICAL_WEAK"
    TREND_BULLISH = "TREND_BULLISH"
    TREND_BEARISH = "TREND_BEARISH"
    VOLUME_HIGH = "VOLUME_HIGH"
    VOLUME_LOW = "VOLUME_LOW"
    VOLATILITY_HIGH = "VOLATILITY_HIGH"
    ENTRY_OPPORTUNITY = "ENTRY_OPPORTUNITY"
    OVERSOLD_ENTRY = "OVERSOLD_ENTRY"
    POSITION_SUMMARY = "POSITION_SUMMARY"
    POSITION_PROFITABLE = "POSITION_PROFITABLE"
    POSITION_UNDERWATER = "POSITION_UNDERWATER"
    TAKE_PROFITS = "TAKE_PROFITS"
    CUT_LOSSES = "CUT_LOSSES"
    CLOSING_STRONG_BUY = "CLOSING_STRONG_BUY"
    CLOSING_BUY_ENTRY = "CLOSING_BUY_ENTRY"
    CLOSING_STRONG_SELL = "CLOSING_STRONG_SELL"
    CLOSING_HOLD = "CLOSING_HOLD"
    CLOSING_HOLD_POSITION = "CLOSING_HOLD_POSITION"


@dataclass(frozen=True)
class Reason:
    """A reason code plus the parameters its text template needs."""
    code: ReasonCode
    params: Tuple[Tuple[str, float], ...] = ()

    @property
    def values(self) -> Dict[str, float]:
        return dict(self.params)


@dataclass(frozen=True)
class SignalResult:
    """
    Explainable trading recommendation for one symbol and timeframe.

    Attributes:
        symbol: Asset symbol (e.g., BTC)
        signal: Discrete recommendation (STRONG_SELL..STRONG_BUY)
        confidence: Integer 1-10
        entry_price: Latest close used as entry
        stop_loss: Protective level (None for HOLD)
        take_profit: Target level (None for HOLD)
        risk_reward: (take_profit - entry) / (entry - stop_loss) when both levels exist
        factor_scores: Technical/sentiment/volume/trend/overall sub-scores
        adjusted_score: Score after market and position adjustments
        market_conditions: Regime labels used for the adjustments
        position: Resolved caller position
        reasons: Tagged reason codes, in presentation order
        reasoning: Rendered reasoning text, one statement per reason
        timeframe: Candle timeframe the signal was built from
        generated_at: UTC creation time
        valid_until: UTC time after which the signal is stale
    """
    symbol: str
    signal: SignalType
    confidence: int
    entry_price: float
    stop_loss: Optional[float]
    take_profit: Optional[float]
    risk_reward: Optional[float]
    factor_scores: FactorScores
    adjusted_score: float
    market_conditions: MarketConditions
    position: PositionContext
    reasons: Tuple[Reason, ...]
    reasoning: Tuple[str, ...]
    timeframe: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    valid_until: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the validity window has elapsed."""
        if self.valid_until is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.valid_until

    def is_actionable(self) -> bool:
        return self.signal != SignalType.HOLD

    def to_dict(self) -> Dict[str, Any]:
        """Export to JSON-serializable dictionary."""
        return {
            'symbol': self.symbol,
            'signal': self.signal.value,
            'confidence': self.confidence,
            'entry_price': self.entry_price,
            'stop_loss': self.stop_loss,
            'take_profit': self.take_profit,
            'risk_reward': round(self.risk_reward, 3) if self.risk_reward is not None else None,
            'analysis': self.factor_scores.to_dict(),
            'adjusted_score': round(self.adjusted_score, 3),
            'market_conditions': self.market_conditions.to_dict(),
            'user_position': self.position.to_dict(),
            'reason_codes': [r.code.value for r in self.reasons],
            'reasoning': list(self.reasoning),
            'timeframe': self.timeframe,
            'generated_at': self.generated_at.isoformat(),
            'valid_until': self.valid_until.isoformat() if self.valid_until else None,
        }

    def __str__(self) -> str:
        return (
            f"SignalResult({self.symbol} {self.timeframe}): "
            f"{self.signal.value} confidence={self.confidence}/10 "
            f"overall={self.factor_scores.overall:.2f} adjusted={self.adjusted_score:.2f}"
        )
