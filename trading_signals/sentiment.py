"""
Sentiment Providers

Sentiment is an explicit input to the engine rather than hidden randomness.
Production wiring uses NeutralSentimentProvider until a real feed exists;
tests pin values with StaticSentimentProvider.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

from .factors import NEUTRAL_SCORE, clamp

logger = logging.getLogger(__name__)


class SentimentProvider(ABC):
    """Supplies a 0-10 sentiment score for a symbol."""

    @abstractmethod
    def score(self, symbol: str) -> float:
        """
        Get the sentiment score for a symbol.

        Args:
            symbol: Asset symbol (e.g., BTC)

        Returns:
            Score 0-10 (5 = neutral)
        """
        pass


class NeutralSentimentProvider(SentimentProvider):
    """Deterministic neutral sentiment."""

    def score(self, symbol: str) -> float:
        return NEUTRAL_SCORE


class StaticSentimentProvider(SentimentProvider):
    """Fixed per-symbol sentiment values with a default for unknown symbols."""

    def __init__(self, scores: Optional[Dict[str, float]] = None, default: float = NEUTRAL_SCORE):
        self.scores = {k.upper(): v for k, v in (scores or {}).items()}
        self.default = default

    def score(self, symbol: str) -> float:
        return self.scores.get(symbol.upper(), self.default)


def resolve_sentiment(provider: SentimentProvider, symbol: str) -> float:
    """
    Query a provider, clamping to [0, 10].

    A failing provider yields the neutral score for this call.
    """
    try:
        value = float(provider.score(symbol))
    except Exception as e:
        logger.warning(f"Sentiment provider failed for {symbol}, using neutral: {e}")
        return NEUTRAL_SCORE

    if value != value:  # NaN
        logger.warning(f"Sentiment provider returned NaN for {symbol}, using neutral")
        return NEUTRAL_SCORE

    return clamp(value)
