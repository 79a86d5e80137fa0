"""Timeframe naming and signal validity windows."""

from datetime import datetime, timedelta, timezone
from typing import Optional

# Validity window per timeframe: short candles go stale in minutes,
# daily/weekly candles stay relevant for days
VALIDITY_DURATIONS = {
    '1min': timedelta(minutes=5),
    '5min': timedelta(minutes=15),
    '15min': timedelta(hours=1),
    '30min': timedelta(hours=2),
    '1hour': timedelta(hours=4),
    '4hour': timedelta(days=1),
    '1day': timedelta(days=7),
    '1week': timedelta(days=28),
}

DEFAULT_VALIDITY = timedelta(hours=1)

# Engine timeframe -> exchange (ccxt) timeframe
EXCHANGE_TIMEFRAMES = {
    '1min': '1m',
    '5min': '5m',
    '15min': '15m',
    '30min': '30m',
    '1hour': '1h',
    '4hour': '4h',
    '1day': '1d',
    '1week': '1w',
}

_ALIASES = {v: k for k, v in EXCHANGE_TIMEFRAMES.items()}


def normalize_timeframe(timeframe: str) -> str:
    """Map exchange-style names (1h, 4h, 1d) onto engine names (1hour, ...)."""
    tf = timeframe.strip().lower()
    return _ALIASES.get(tf, tf)


def to_exchange_timeframe(timeframe: str) -> str:
    tf = normalize_timeframe(timeframe)
    return EXCHANGE_TIMEFRAMES.get(tf, timeframe)


def validity_duration(timeframe: str) -> timedelta:
    """Validity window for a timeframe; unknown timeframes get one hour."""
    return VALIDITY_DURATIONS.get(normalize_timeframe(timeframe), DEFAULT_VALIDITY)


def valid_until(timeframe: str, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + validity_duration(timeframe)
