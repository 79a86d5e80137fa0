"""
Signal Cache

TTLCache is a small in-memory key/value store with per-entry expiry.
SignalCache keys SignalResults by (symbol, timeframe) on top of it and
also refuses to serve results whose validity window has passed.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional
import logging
import time

from .position import Holding
from .signal_model import PositionContext, SignalResult

logger = logging.getLogger(__name__)

DEFAULT_SIGNAL_TTL_SECONDS = 300


@dataclass(frozen=True)
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """
    Key/value store with per-entry TTL.

    Expired entries are dropped lazily on read or by purge_expired().
    When max_size is set, the oldest-written entry is evicted first.
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.clock = clock
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"Invalid ttl_seconds: {ttl_seconds}. Must be positive.")

        # Re-inserting moves the key to the newest position
        self._entries.pop(key, None)
        self._entries[key] = _Entry(value=value, expires_at=self.clock() + ttl_seconds)

        if self.max_size is not None and len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry {evicted}")

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Remove expired entries; returns how many were removed."""
        now = self.clock()
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class SignalCache:
    """Memoizes SignalResults per (symbol, timeframe)."""

    def __init__(
        self,
        store: Optional[TTLCache] = None,
        ttl_seconds: float = DEFAULT_SIGNAL_TTL_SECONDS,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize signal cache.

        Args:
            store: Backing key/value store (default: new in-memory TTLCache)
            ttl_seconds: Recomputation TTL, independent of SignalResult.valid_until
            now: Returns the current UTC time, used for validity checks
        """
        self.store = store if store is not None else TTLCache()
        self.ttl_seconds = ttl_seconds
        self.now = now or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def key(symbol: str, timeframe: str) -> str:
        return f"ai_signal:{symbol.upper()}:{timeframe}"

    def get(
        self,
        symbol: str,
        timeframe: str,
        holding: Optional[Holding] = None,
    ) -> Optional[SignalResult]:
        """
        Return the cached result for (symbol, timeframe) if still fresh.

        The key carries no position, so an entry is only served to a caller
        whose holding (or lack of one) matches the position it was built for.
        A mismatch is a miss; the next put() overwrites the entry.
        """
        key = self.key(symbol, timeframe)
        result = self.store.get(key)
        if result is None:
            return None

        if not _same_position(result.position, holding):
            logger.debug(f"Cached signal {key} was built for another position, recomputing")
            return None

        if result.is_expired(self.now()):
            logger.debug(f"Cached signal {key} past valid_until, recomputing")
            self.store.delete(key)
            return None

        logger.debug(f"Cache hit for {key}")
        return result

    def put(self, result: SignalResult) -> None:
        self.store.set(self.key(result.symbol, result.timeframe), result, self.ttl_seconds)


def _same_position(position: PositionContext, holding: Optional[Holding]) -> bool:
    if holding is None:
        return not position.has_position
    return (
        position.has_position
        and position.quantity == holding.quantity
        and position.average_price == holding.average_price
    )
