"""Emergency reduction sizing (pure functions)."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from arbitrageur.config import DUST_USD_SIZE
from arbitrageur.models.trading import FtxSide, PerpSide
from arbitrageur.strategy.spread import round_down, size_precision


def calc_perp_reduce_amount(
    position_value: Decimal,
    emergency_reduce_amount: Decimal,
    dust_usd_size: Decimal = DUST_USD_SIZE,
) -> Optional[tuple[PerpSide, Decimal]]:
    """Quote amount and side to shrink a perp position, or None if it is dust.

    Example: value 150, dust 100, reduce amount 500 → (SHORT, 150).
    """
    if abs(position_value) <= dust_usd_size:
        return None
    amount = min(emergency_reduce_amount, abs(position_value))
    side = PerpSide.SHORT if position_value > 0 else PerpSide.LONG
    return side, amount


def calc_ftx_reduce_size(
    position_size: Decimal,
    price: Decimal,
    emergency_reduce_amount: Decimal,
    size_increment: Decimal,
) -> Optional[tuple[FtxSide, Decimal]]:
    """Base size and side to shrink an FTX position, or None to skip.

    The size is min(|position|, reduce amount / price), rounded down to the
    increment grid; anything below one increment is skipped.
    """
    if position_size == 0:
        return None
    raw_size = min(abs(position_size), emergency_reduce_amount / price)
    reduce_size = round_down(raw_size, size_precision(size_increment))
    if reduce_size < size_increment:
        return None
    side = FtxSide.SELL if position_size > 0 else FtxSide.BUY
    return side, reduce_size
