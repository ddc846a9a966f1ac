"""Spread detection and order sizing (pure functions).

spread = (perp avg execution price - FTX price) / FTX price

- short trigger: short spread > SHORT_TRIGGER_SPREAD (positive threshold)
  → short perp, buy FTX.
- long trigger: long spread < LONG_TRIGGER_SPREAD (negative threshold)
  → long perp, sell FTX.

Short is checked first, so both can never fire on the same tick.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Optional

from arbitrageur.errors import OpenSizeTooSmallError
from arbitrageur.models.market import Market
from arbitrageur.models.trading import FtxSide, PerpSide


class ArbitrageDirection(Enum):
    SHORT = "short"
    LONG = "long"


@dataclass(frozen=True)
class ArbitrageSignal:
    """A triggered spread opportunity: which side to take on each venue."""

    direction: ArbitrageDirection
    perp_side: PerpSide
    ftx_side: FtxSide
    spread: Decimal

    @property
    def event(self) -> str:
        return "ShortArbitrage" if self.direction is ArbitrageDirection.SHORT else "LongArbitrage"


@dataclass(frozen=True)
class SpreadSnapshot:
    ftx_price: Decimal
    perp_long_avg_price: Decimal
    perp_short_avg_price: Decimal

    @property
    def short_spread(self) -> Decimal:
        return calc_spread(self.perp_short_avg_price, self.ftx_price)

    @property
    def long_spread(self) -> Decimal:
        return calc_spread(self.perp_long_avg_price, self.ftx_price)


def calc_spread(perp_price: Decimal, ftx_price: Decimal) -> Decimal:
    """Relative premium of the perp execution price over the FTX price."""
    return (perp_price - ftx_price) / ftx_price


def decide_arbitrage(market: Market, snapshot: SpreadSnapshot) -> Optional[ArbitrageSignal]:
    """Short-first trigger decision. None = not triggered."""
    short_spread = snapshot.short_spread
    if short_spread > market.short_trigger_spread:
        return ArbitrageSignal(
            direction=ArbitrageDirection.SHORT,
            perp_side=PerpSide.SHORT,
            ftx_side=FtxSide.BUY,
            spread=short_spread,
        )
    long_spread = snapshot.long_spread
    if long_spread < market.long_trigger_spread:
        return ArbitrageSignal(
            direction=ArbitrageDirection.LONG,
            perp_side=PerpSide.LONG,
            ftx_side=FtxSide.SELL,
            spread=long_spread,
        )
    return None


def is_increase(perp_position_size: Decimal, perp_side: PerpSide) -> bool:
    """Whether opening ``perp_side`` grows the perp position's magnitude.

    A flat position always counts as increasing.
    """
    if perp_side is PerpSide.SHORT:
        return perp_position_size <= 0
    return perp_position_size >= 0


def reduce_side(perp_position_size: Decimal) -> PerpSide:
    """Side that would shrink the current perp position (LONG when flat)."""
    return PerpSide.LONG if perp_position_size <= 0 else PerpSide.SHORT


def size_precision(size_increment: Decimal) -> int:
    """Decimal places implied by an increment: floor(-log10(increment))."""
    return math.floor(-size_increment.log10())


def round_down(value: Decimal, precision: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_DOWN)


def calc_open_size(
    market: Market,
    ftx_price: Decimal,
    open_order_amount: Decimal,
    buying_power: Optional[Decimal] = None,
) -> Decimal:
    """Quote order amount → base size on the FTX increment grid.

    ``buying_power`` clamps the quote amount (pass it only for exposure-
    increasing trades). Raises OpenSizeTooSmallError when the rounded size is
    below one increment.
    """
    if buying_power is not None:
        open_order_amount = min(open_order_amount, buying_power)
    precision = size_precision(market.ftx_size_increment)
    base_size = round_down(open_order_amount / ftx_price, precision)
    if base_size < market.ftx_size_increment:
        raise OpenSizeTooSmallError(
            market=market.name,
            open_order_amount=open_order_amount,
            base_size=base_size,
            precision=precision,
            size_increment=market.ftx_size_increment,
        )
    return base_size
