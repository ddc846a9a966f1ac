"""Leg imbalance detection, debounce and correction planning.

The two legs are expected to have opposite signs, so a balanced pair sums to
~0. ``|perp + ftx| >= size_increment`` opens an imbalance episode; a
correction is only issued once the episode has lasted the debounce window,
and exactly once per episode.

Episode state machine (per market)::

    BALANCED --imbalanced--> EPISODE_OPEN (start=now, no action)
    EPISODE_OPEN --imbalanced, age < window--> EPISODE_OPEN (wait)
    EPISODE_OPEN --imbalanced, age >= window--> CORRECT → BALANCED (start cleared)
    any --balanced--> BALANCED (start cleared)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable

from arbitrageur.config import IMBALANCE_DEBOUNCE_SEC
from arbitrageur.models.market import Market
from arbitrageur.models.trading import FtxSide, PerpSide, Venue

logger = logging.getLogger(__name__)


def is_imbalance(market: Market, ftx_position_size: Decimal, perp_position_size: Decimal) -> bool:
    """|ftx + perp| >= size increment."""
    return abs(ftx_position_size + perp_position_size) >= market.ftx_size_increment


class ImbalanceAction(Enum):
    """What the balance routine should do this tick."""

    NONE = "none"  # balanced
    EPISODE_STARTED = "episode_started"
    WAIT = "wait"
    CORRECT = "correct"


@dataclass(frozen=True)
class BalanceCorrection:
    """A planned correction order."""

    venue: Venue
    side: FtxSide | PerpSide
    size: Decimal
    position_size_diff: Decimal
    is_reduce_on_ftx: bool
    is_below_ftx_margin_ratio: bool

    @property
    def event(self) -> str:
        return "BalanceOnFTX" if self.venue is Venue.FTX else "BalanceOnPerp"


def plan_correction(
    ftx_position_size: Decimal,
    perp_position_size: Decimal,
    is_below_ftx_margin_ratio: bool,
) -> BalanceCorrection:
    """Pick venue, side and size that bring ``perp + ftx`` back to zero.

    The FTX leg is corrected when it is strictly larger than the perp leg or
    FTX margin is unhealthy; otherwise the perp leg is reduced. Equal sizes
    with healthy FTX margin therefore correct on perp.
    """
    position_size_diff = ftx_position_size + perp_position_size
    size = abs(position_size_diff)
    is_reduce_on_ftx = abs(ftx_position_size) > abs(perp_position_size)
    if is_reduce_on_ftx or is_below_ftx_margin_ratio:
        side: FtxSide | PerpSide = FtxSide.SELL if position_size_diff > 0 else FtxSide.BUY
        venue = Venue.FTX
    else:
        side = PerpSide.SHORT if position_size_diff > 0 else PerpSide.LONG
        venue = Venue.PERP
    return BalanceCorrection(
        venue=venue,
        side=side,
        size=size,
        position_size_diff=position_size_diff,
        is_reduce_on_ftx=is_reduce_on_ftx,
        is_below_ftx_margin_ratio=is_below_ftx_margin_ratio,
    )


class ImbalanceTracker:
    """Debounce state machine; the only writer of ``Market.imbalance_start_time``.

    Args:
        debounce_sec: How long an episode must last before correcting.
        clock: Time source (epoch seconds).
    """

    def __init__(
        self,
        debounce_sec: float = IMBALANCE_DEBOUNCE_SEC,
        clock: Callable[[], float] = time.time,
    ):
        self.debounce_sec = debounce_sec
        self._clock = clock

    def observe(self, market: Market, imbalanced: bool) -> ImbalanceAction:
        """Advance the market's episode state for one balance tick."""
        if not imbalanced:
            self._clear(market)
            return ImbalanceAction.NONE
        now = self._clock()
        if market.imbalance_start_time is None:
            market._imbalance_start_time = now
            return ImbalanceAction.EPISODE_STARTED
        if market.imbalance_duration(now) >= self.debounce_sec:
            return ImbalanceAction.CORRECT
        return ImbalanceAction.WAIT

    def finish_correction(self, market: Market) -> None:
        """Close the episode after a correction attempt, successful or not."""
        self._clear(market)

    @staticmethod
    def _clear(market: Market) -> None:
        market._imbalance_start_time = None
