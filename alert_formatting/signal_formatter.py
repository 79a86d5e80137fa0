"""Signal formatting logic for converting SignalResult to text/markdown."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from trading_signals import SignalResult


@dataclass
class FormatterConfig:
    """Configuration for alert formatting."""

    # Confidence bar (filled/empty characters, 10 cells)
    confidence_fill: str = "#"
    confidence_empty: str = "."

    # Include fields
    include_scores: bool = True
    include_conditions: bool = True
    include_reasoning: bool = True
    include_validity: bool = True

    # Price precision
    decimal_places: int = 4


class AlertFormatter(ABC):
    """Base class for alert formatters."""

    def __init__(self, config: Optional[FormatterConfig] = None):
        """Initialize formatter with optional configuration."""
        self.config = config or FormatterConfig()

    @abstractmethod
    def format_signal(self, signal: SignalResult) -> str:
        """Format a single signal result.

        Args:
            signal: SignalResult to format

        Returns:
            Formatted string representation
        """
        pass

    @abstractmethod
    def format_signals(self, signals: list[SignalResult]) -> str:
        """Format multiple signal results.

        Args:
            signals: List of SignalResult objects

        Returns:
            Formatted string representation
        """
        pass

    def _format_confidence(self, confidence: int) -> str:
        bar = self.config.confidence_fill * confidence + self.config.confidence_empty * (10 - confidence)
        return f"[{bar}] {confidence}/10"

    def _format_price(self, price: Optional[float]) -> str:
        if price is None:
            return "-"
        return f"{price:.{self.config.decimal_places}f}"

    def _format_levels(self, signal: SignalResult) -> str:
        parts = [f"entry {self._format_price(signal.entry_price)}"]
        if signal.stop_loss is not None:
            parts.append(f"stop {self._format_price(signal.stop_loss)}")
        if signal.take_profit is not None:
            parts.append(f"target {self._format_price(signal.take_profit)}")
        if signal.risk_reward is not None:
            parts.append(f"R:R {signal.risk_reward:.2f}")
        return ", ".join(parts)

    def _format_scores(self, signal: SignalResult) -> str:
        s = signal.factor_scores
        return (
            f"technical {s.technical:.1f} | sentiment {s.sentiment:.1f} | "
            f"volume {s.volume:.1f} | trend {s.trend:.1f} | overall {s.overall:.2f}"
        )

    def _format_conditions(self, signal: SignalResult) -> str:
        c = signal.market_conditions
        return (
            f"volatility {c.volatility.value}, trend {c.trend.value}, "
            f"momentum {c.momentum.value}, volume {c.volume.value}"
        )


class TextAlertFormatter(AlertFormatter):
    """Plain text formatter for signal results."""

    def format_signal(self, signal: SignalResult) -> str:
        lines = []

        lines.append(f"{'='*60}")
        lines.append(f"{signal.signal.value} SIGNAL: {signal.symbol} ({signal.timeframe})")
        lines.append(f"{'='*60}")

        lines.append(f"Confidence: {self._format_confidence(signal.confidence)}")
        lines.append(f"Levels: {self._format_levels(signal)}")

        if self.config.include_scores:
            lines.append(f"Scores: {self._format_scores(signal)}")

        if self.config.include_conditions:
            lines.append(f"Market: {self._format_conditions(signal)}")

        if self.config.include_reasoning and signal.reasoning:
            lines.append("Reasoning:")
            for statement in signal.reasoning:
                lines.append(f"  - {statement}")

        if self.config.include_validity and signal.valid_until is not None:
            lines.append(f"Valid Until: {signal.valid_until.isoformat()}")

        lines.append(f"{'='*60}")

        return "\n".join(lines)

    def format_signals(self, signals: list[SignalResult]) -> str:
        if not signals:
            return "No signals to display."

        formatted = []
        for i, signal in enumerate(signals, 1):
            formatted.append(f"\n[{i}/{len(signals)}]")
            formatted.append(self.format_signal(signal))

        return "\n".join(formatted)


class MarkdownAlertFormatter(AlertFormatter):
    """Markdown formatter for signal results."""

    def format_signal(self, signal: SignalResult) -> str:
        lines = []

        lines.append(f"## {signal.signal.value} - {signal.symbol}/{signal.timeframe}")
        lines.append(f"**Confidence:** {signal.confidence}/10")
        lines.append(f"**Levels:** {self._format_levels(signal)}")

        if self.config.include_scores:
            lines.append(f"**Scores:** `{self._format_scores(signal)}`")

        if self.config.include_conditions:
            lines.append(f"**Market:** {self._format_conditions(signal)}")

        if self.config.include_reasoning:
            for statement in signal.reasoning:
                lines.append(f"> {statement}")

        if self.config.include_validity and signal.valid_until is not None:
            lines.append(f"*Valid until {signal.valid_until.isoformat()}*")

        return "\n".join(lines)

    def format_signals(self, signals: list[SignalResult]) -> str:
        if not signals:
            return "No signals to display."

        lines = []
        lines.append("# Trading Signals Report")
        lines.append(f"*Generated: {signals[0].generated_at.isoformat()}*")
        lines.append("")

        for signal in signals:
            lines.append(self.format_signal(signal))
            lines.append("---")

        return "\n".join(lines)
