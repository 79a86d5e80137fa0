"""
PriceHistory helpers.

A PriceHistory is a pandas DataFrame of OHLCV rows, oldest first, with
columns: timestamp, open, high, low, close, volume.
"""

from typing import Any, Iterable, Optional

import pandas as pd

PRICE_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


def to_price_frame(candles: Optional[Iterable[Any]]) -> pd.DataFrame:
    """
    Normalize raw candles into a PriceHistory frame.

    Args:
        candles: ccxt-style rows [ts, o, h, l, c, v], dicts keyed by column
            name, or an existing DataFrame

    Returns:
        DataFrame sorted oldest first; empty frame if nothing usable
    """
    if candles is None:
        return pd.DataFrame(columns=PRICE_COLUMNS)

    if isinstance(candles, pd.DataFrame):
        df = candles.copy()
    else:
        rows = list(candles)
        if not rows:
            return pd.DataFrame(columns=PRICE_COLUMNS)
        if isinstance(rows[0], dict):
            df = pd.DataFrame(rows)
        else:
            df = pd.DataFrame(rows, columns=PRICE_COLUMNS)

    for col in PRICE_COLUMNS:
        if col not in df.columns:
            df[col] = 0.0 if col == "volume" else pd.NA

    for col in ["open", "high", "low", "close", "volume"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    df = df.dropna(subset=["close"])
    df["volume"] = df["volume"].fillna(0.0)

    if df["timestamp"].notna().all() and len(df) > 1:
        df = df.sort_values("timestamp", kind="stable")

    return df[PRICE_COLUMNS].reset_index(drop=True)


def is_empty(history: Optional[pd.DataFrame]) -> bool:
    return history is None or len(history) == 0 or "close" not in history.columns


def latest_close(history: pd.DataFrame) -> float:
    return float(history["close"].iloc[-1])
