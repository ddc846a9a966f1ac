"""Margin-ratio risk gate.

A venue is unhealthy only when it reports a margin ratio strictly below the
criterion. An unknown (None) ratio is logged as such and never counts as
unhealthy: it neither blocks trading nor triggers emergency reduction.
Query failures propagate to the caller.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from arbitrageur.execution.ftx_trader import FtxTrader
from arbitrageur.execution.perp_trader import PerpTrader
from arbitrageur.models.trading import Venue
from arbitrageur.monitoring.events import log_event

logger = logging.getLogger(__name__)

_MARGIN_EVENTS = {
    Venue.FTX: "FTXMarginRatio",
    Venue.PERP: "PerpMarginRatio",
}


def is_below_margin_ratio(margin_ratio: Optional[Decimal], criterion: Decimal) -> bool:
    """True iff the ratio is known and strictly below the criterion."""
    return margin_ratio is not None and margin_ratio < criterion


class MarginGate:
    """Fetch each venue's margin ratio and compare it against a criterion."""

    def __init__(self, perp: PerpTrader, ftx: FtxTrader):
        self.perp = perp
        self.ftx = ftx

    async def fetch_margin_ratio(self, venue: Venue) -> Optional[Decimal]:
        if venue is Venue.FTX:
            return await self.ftx.get_margin_ratio()
        return await self.perp.get_margin_ratio()

    async def is_below_margin_ratio(self, venue: Venue, criterion: Decimal) -> bool:
        margin_ratio = await self.fetch_margin_ratio(venue)
        log_event(logger, _MARGIN_EVENTS[venue], marginRatio=margin_ratio, criterion=criterion)
        return is_below_margin_ratio(margin_ratio, criterion)

    async def is_below_ftx_margin_ratio(self, criterion: Decimal) -> bool:
        return await self.is_below_margin_ratio(Venue.FTX, criterion)

    async def is_below_perp_margin_ratio(self, criterion: Decimal) -> bool:
        return await self.is_below_margin_ratio(Venue.PERP, criterion)
