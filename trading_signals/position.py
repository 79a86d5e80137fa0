"""
Position Context Resolver

Turns the caller's holdings into a PositionContext for one symbol.
Holdings are passed in per request and never stored by the engine.
"""

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from .signal_model import PositionContext, NO_POSITION


class InvalidPositionError(ValueError):
    """Raised when a caller-supplied holding is malformed."""
    pass


@dataclass(frozen=True)
class Holding:
    """One portfolio row as supplied by the caller."""
    symbol: str
    quantity: float
    average_price: float


Holdings = Union[Sequence[Holding], Mapping[str, Holding]]


def validate_holding(holding: Holding) -> None:
    """
    Reject malformed holdings before they reach scoring.

    Raises:
        InvalidPositionError: If quantity is negative or average price is not positive
    """
    if holding.quantity < 0:
        raise InvalidPositionError(
            f"Invalid quantity for {holding.symbol}: {holding.quantity}. Must be >= 0."
        )
    if holding.average_price <= 0:
        raise InvalidPositionError(
            f"Invalid average_price for {holding.symbol}: {holding.average_price}. Must be positive."
        )


def validate_position_context(position: PositionContext) -> None:
    """
    Reject position contexts that could not come from a valid holding.

    Raises:
        InvalidPositionError: If quantity is negative, or a held position has
            a non-positive average price
    """
    if position.quantity < 0:
        raise InvalidPositionError(
            f"Invalid position quantity: {position.quantity}. Must be >= 0."
        )
    if position.has_position and position.average_price <= 0:
        raise InvalidPositionError(
            f"Invalid position average_price: {position.average_price}. Must be positive."
        )


def find_holding(symbol: str, holdings: Optional[Holdings]) -> Optional[Holding]:
    """Look up the holding for a symbol (case-insensitive)."""
    if not holdings:
        return None

    key = symbol.upper()
    if isinstance(holdings, Mapping):
        for name, holding in holdings.items():
            if name.upper() == key:
                return holding
        return None

    for holding in holdings:
        if holding.symbol.upper() == key:
            return holding
    return None


def resolve_position(
    symbol: str,
    current_price: float,
    holdings: Optional[Holdings] = None,
) -> PositionContext:
    """
    Resolve the caller's position in a symbol at the current price.

    Args:
        symbol: Asset symbol
        current_price: Latest close
        holdings: Caller's holdings, as a sequence or symbol mapping

    Returns:
        PositionContext (has_position=False when the symbol is not held)

    Raises:
        InvalidPositionError: If the matching holding is malformed
    """
    holding = find_holding(symbol, holdings)
    if holding is None:
        return NO_POSITION

    validate_holding(holding)

    pnl_percent = (current_price - holding.average_price) / holding.average_price * 100
    return PositionContext(
        has_position=True,
        quantity=holding.quantity,
        average_price=holding.average_price,
        current_pnl_percent=pnl_percent,
    )
