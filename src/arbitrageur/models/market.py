"""Market record: one per actively traded asset."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Market:
    """A tradable asset mirrored on the perp pool and an FTX perpetual.

    Everything except the imbalance episode start is fixed at startup.
    ``imbalance_start_time`` is read-only here; the balance routine's
    ImbalanceTracker is its only writer.
    """

    name: str
    base_token: str
    pool_addr: str
    ftx_market_name: str
    ftx_size_increment: Decimal
    order_amount: Decimal
    short_trigger_spread: Decimal
    long_trigger_spread: Decimal
    is_emergency_reduce_mode_enabled: bool = False
    _imbalance_start_time: Optional[float] = field(
        default=None, init=False, repr=False, compare=False,
    )

    @property
    def imbalance_start_time(self) -> Optional[float]:
        """Epoch seconds when the current imbalance episode began, or None."""
        return self._imbalance_start_time

    @property
    def is_imbalance_episode_open(self) -> bool:
        return self._imbalance_start_time is not None

    def imbalance_duration(self, now: float) -> float:
        """Seconds since the open episode started (0.0 when none is open)."""
        if self._imbalance_start_time is None:
            return 0.0
        return now - self._imbalance_start_time
