"""Alert formatting module for converting SignalResult objects to human-readable formats.

Formatters render trading_signals.SignalResult objects as plain text (CLI)
or markdown (notifications, dashboards). Formatting only; no decision logic.

Main exports:
- AlertFormatter: Base class for formatting signals
- TextAlertFormatter: Plain text format
- MarkdownAlertFormatter: Markdown format
"""

from .signal_formatter import (
    AlertFormatter,
    FormatterConfig,
    TextAlertFormatter,
    MarkdownAlertFormatter,
)

__all__ = [
    "AlertFormatter",
    "FormatterConfig",
    "TextAlertFormatter",
    "MarkdownAlertFormatter",
]
