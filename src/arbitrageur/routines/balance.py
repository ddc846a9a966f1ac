"""Balance routine: detect and correct drift between the two legs.

Markets are checked one after another. A correction is issued only after an
imbalance episode has lasted the debounce window, at most once per episode.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from arbitrageur.models.market import Market
from arbitrageur.models.trading import AmountType, Venue
from arbitrageur.monitoring.events import log_event
from arbitrageur.routines.base import Routine
from arbitrageur.strategy.imbalance import (
    BalanceCorrection,
    ImbalanceAction,
    ImbalanceTracker,
    is_imbalance,
    plan_correction,
)

logger = logging.getLogger(__name__)


class BalanceRoutine(Routine):
    name = "BalanceRoutine"

    def __init__(self, *args, tracker: Optional[ImbalanceTracker] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.tracker = tracker or ImbalanceTracker()

    @property
    def interval_sec(self) -> float:
        return self.config.balance_check_interval_sec

    async def tick(self) -> None:
        for market in self.registry:
            try:
                await self.balance(market)
            except Exception as err:
                await self.report_error("BalanceError", err, market=market.name)

    async def balance(self, market: Market) -> ImbalanceAction:
        is_below_ftx_margin_ratio, perp_position_size, ftx_position_size = await asyncio.gather(
            self.margin_gate.is_below_ftx_margin_ratio(self.config.ftx_min_margin_ratio),
            self.perp.get_position_size(market),
            self.ftx.get_position_size(market),
        )
        imbalanced = is_imbalance(market, ftx_position_size, perp_position_size)
        action = self.tracker.observe(market, imbalanced)
        if action is ImbalanceAction.NONE:
            return action

        log_event(
            logger, "Imbalance",
            market=market.name,
            perpPositionSize=perp_position_size,
            ftxPositionSize=ftx_position_size,
            ts=market.imbalance_start_time,
            action=action,
        )
        if action is not ImbalanceAction.CORRECT:
            return action

        correction = plan_correction(ftx_position_size, perp_position_size, is_below_ftx_margin_ratio)
        try:
            await self._correct(market, correction)
        finally:
            self.tracker.finish_correction(market)
        return action

    async def _correct(self, market: Market, correction: BalanceCorrection) -> None:
        log_event(
            logger, correction.event,
            market=market.name,
            positionSizeDiff=correction.position_size_diff,
            side=correction.side,
            size=correction.size,
            isReduceOnFTX=correction.is_reduce_on_ftx,
            isBelowFTXMarginRatio=correction.is_below_ftx_margin_ratio,
        )
        if correction.venue is Venue.FTX:
            await self.ftx.place_market_order(market, correction.side, correction.size)
        else:
            await self.perp.open_position(
                market,
                correction.side,
                AmountType.BASE,
                correction.size,
                max_gas_fee_eth=self.config.balance_max_gas_fee_eth,
            )
