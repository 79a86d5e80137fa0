"""
Trading Signal CLI

Generates explainable trading signals for one or more symbols using
exchange data fetched through ccxt.

Usage:
    # Single symbol, default timeframe from config/signals.yaml
    python generate_signals.py BTC

    # Batch on the 1-hour timeframe
    python generate_signals.py BTC ETH SOL --timeframe 1hour

    # Position-aware: hold 0.5 BTC bought at 42000
    python generate_signals.py BTC --holding BTC:0.5:42000

    # JSON output for piping into other tools
    python generate_signals.py BTC ETH --json
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from alert_formatting import TextAlertFormatter
from data_feed.ccxt_provider import CcxtMarketDataProvider
from trading_signals import EngineConfig, Holding, TradingSignalEngine
from trading_signals.config import DEFAULT_CONFIG_PATH

logger = logging.getLogger(__name__)


def parse_holding(value: str) -> Holding:
    """Parse SYMBOL:QUANTITY:AVERAGE_PRICE."""
    parts = value.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(
            f"Holding must be SYMBOL:QUANTITY:AVERAGE_PRICE, got: {value}"
        )
    symbol, quantity, average_price = parts
    try:
        return Holding(symbol=symbol.upper(), quantity=float(quantity), average_price=float(average_price))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid holding {value}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate explainable trading signals")
    parser.add_argument("symbols", nargs="+", help="Symbols to analyze (e.g., BTC ETH)")
    parser.add_argument("--timeframe", default=None, help="Candle timeframe (e.g., 15min, 1hour, 1day)")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to signals.yaml")
    parser.add_argument(
        "--holding",
        action="append",
        type=parse_holding,
        default=[],
        help="Current position as SYMBOL:QUANTITY:AVERAGE_PRICE (repeatable)",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


async def run(args: argparse.Namespace) -> int:
    config = EngineConfig.from_file(Path(args.config))
    provider = CcxtMarketDataProvider(
        exchange_id=config.exchange,
        quote_currency=config.quote_currency,
    )
    engine = TradingSignalEngine(provider, config=config)

    timeframe = args.timeframe or config.default_timeframe
    holdings: List[Holding] = args.holding

    failures: Dict[str, str] = {}
    signals = await engine.generate_batch_signals(args.symbols, timeframe, holdings, failures)

    missing = [s for s in dict.fromkeys(args.symbols) if s not in signals]
    for symbol in missing:
        if symbol in failures:
            logger.warning(f"No signal for {symbol}: temporarily unavailable ({failures[symbol]})")
        else:
            logger.warning(f"No signal for {symbol}: insufficient data")

    if args.json:
        print(json.dumps({s: r.to_dict() for s, r in signals.items()}, indent=2))
    else:
        print(TextAlertFormatter().format_signals(list(signals.values())))

    return 0 if signals else 1


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
