"""
Trading Signals Module

Converts per-symbol indicator snapshots and recent price history into a
discrete, explainable trading recommendation: signal class, confidence,
entry/stop-loss/take-profit levels and human-readable reasoning.

Key Components:
- signal_model: SignalResult and supporting data structures
- market_conditions: Volatility/trend/momentum/volume regime labels
- factors: Technical, volume and trend scorers
- sentiment: Pluggable sentiment providers
- adjustments: Ordered market/position score adjustments and classification
- levels: Stop-loss and take-profit calculation
- reasoning: Reason codes and text rendering
- synthesizer: Decision core
- cache: TTL cache and per-(symbol, timeframe) signal cache
- engine: Async single/batch signal generation

Usage:
    import asyncio

    from data_feed.ccxt_provider import CcxtMarketDataProvider
    from trading_signals import TradingSignalEngine

    engine = TradingSignalEngine(CcxtMarketDataProvider())
    signals = asyncio.run(engine.generate_batch_signals(['BTC', 'ETH'], '1hour'))
    for symbol, result in signals.items():
        print(result.to_dict())
"""

from .signal_model import (
    SignalType,
    SignalResult,
    IndicatorSnapshot,
    MarketConditions,
    PositionContext,
    FactorScores,
)
from .position import Holding, InvalidPositionError, resolve_position
from .sentiment import SentimentProvider, NeutralSentimentProvider, StaticSentimentProvider
from .market_conditions import analyze_market_conditions
from .synthesizer import SignalSynthesizer
from .cache import TTLCache, SignalCache
from .config import EngineConfig, ConfigValidationError
from .engine import TradingSignalEngine

__all__ = [
    'SignalType',
    'SignalResult',
    'IndicatorSnapshot',
    'MarketConditions',
    'PositionContext',
    'FactorScores',
    'Holding',
    'InvalidPositionError',
    'resolve_position',
    'SentimentProvider',
    'NeutralSentimentProvider',
    'StaticSentimentProvider',
    'analyze_market_conditions',
    'SignalSynthesizer',
    'TTLCache',
    'SignalCache',
    'EngineConfig',
    'ConfigValidationError',
    'TradingSignalEngine',
]
