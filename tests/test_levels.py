import pytest

from trading_signals.levels import TradingLevels, calculate_trading_levels, risk_fraction
from trading_signals.signal_model import (
    BollingerBandValues,
    MarketConditions,
    SignalType,
    Volatility,
)

MEDIUM = MarketConditions(volatility=Volatility.MEDIUM)
WIDE_BANDS = BollingerBandValues(upper=200.0, middle=100.0, lower=10.0)


def test_risk_fraction_scales_with_volatility() -> None:
    assert risk_fraction(Volatility.LOW) == pytest.approx(0.014)
    assert risk_fraction(Volatility.MEDIUM) == pytest.approx(0.02)
    assert risk_fraction(Volatility.HIGH) == pytest.approx(0.03)


def test_buy_levels_medium_volatility() -> None:
    levels = calculate_trading_levels(100.0, SignalType.BUY, WIDE_BANDS, MEDIUM)

    assert levels.entry_price == 100.0
    assert levels.stop_loss == pytest.approx(98.0)
    assert levels.take_profit == pytest.approx(105.0)
    assert levels.risk_reward == pytest.approx(2.5)


@pytest.mark.parametrize(
    "volatility, stop, target",
    [(Volatility.LOW, 98.6, 103.5), (Volatility.HIGH, 97.0, 107.5)],
)
def test_buy_levels_by_volatility(volatility: Volatility, stop: float, target: float) -> None:
    conditions = MarketConditions(volatility=volatility)
    levels = calculate_trading_levels(100.0, SignalType.STRONG_BUY, WIDE_BANDS, conditions)

    assert levels.stop_loss == pytest.approx(stop)
    assert levels.take_profit == pytest.approx(target)


def test_buy_stop_tightened_by_lower_band() -> None:
    bands = BollingerBandValues(upper=120.0, middle=110.0, lower=104.0)

    levels = calculate_trading_levels(100.0, SignalType.BUY, bands, MEDIUM)

    # 0.95 * 104 = 98.8 is above the 98.0 volatility stop
    assert levels.stop_loss == pytest.approx(98.8)


def test_buy_band_anchor_above_entry_is_ignored() -> None:
    bands = BollingerBandValues(upper=130.0, middle=120.0, lower=110.0)

    levels = calculate_trading_levels(100.0, SignalType.BUY, bands, MEDIUM)

    assert levels.stop_loss == pytest.approx(98.0)
    assert levels.stop_loss < levels.entry_price < levels.take_profit


def test_sell_levels_medium_volatility() -> None:
    levels = calculate_trading_levels(100.0, SignalType.SELL, WIDE_BANDS, MEDIUM)

    assert levels.stop_loss == pytest.approx(102.0)
    assert levels.take_profit == pytest.approx(95.0)
    assert levels.risk_reward == pytest.approx(2.5)


def test_sell_stop_tightened_by_upper_band() -> None:
    bands = BollingerBandValues(upper=96.0, middle=90.0, lower=84.0)

    levels = calculate_trading_levels(100.0, SignalType.STRONG_SELL, bands, MEDIUM)

    # 1.05 * 96 = 100.8 is below the 102.0 volatility stop
    assert levels.stop_loss == pytest.approx(100.8)
    assert levels.take_profit < levels.entry_price < levels.stop_loss


def test_hold_has_entry_only() -> None:
    levels = calculate_trading_levels(100.0, SignalType.HOLD, WIDE_BANDS, MEDIUM)

    assert levels == TradingLevels(entry_price=100.0)
    assert levels.stop_loss is None
    assert levels.take_profit is None
    assert levels.risk_reward is None


@pytest.mark.parametrize("entry", [0.0, -5.0])
def test_non_positive_entry_rejected(entry: float) -> None:
    with pytest.raises(ValueError, match="entry_price"):
        calculate_trading_levels(entry, SignalType.BUY, WIDE_BANDS, MEDIUM)
