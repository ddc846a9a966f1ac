"""Emergency reduce routine: de-risk both legs when margin gets critical.

If either venue's margin ratio drops below its emergency criterion, every
market with emergency reduce mode enabled shrinks both legs. Each leg is
best-effort: a failure is logged and never blocks or rolls back the other.
After reducing, the routine sleeps a cooldown so the reduction can settle
before margin health is checked again.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Optional

from arbitrageur.models.market import Market
from arbitrageur.models.trading import AmountType
from arbitrageur.monitoring.events import log_error_event, log_event
from arbitrageur.routines.base import Routine
from arbitrageur.strategy.emergency import calc_ftx_reduce_size, calc_perp_reduce_amount

logger = logging.getLogger(__name__)


class EmergencyReduceRoutine(Routine):
    name = "EmergencyReduceRoutine"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def interval_sec(self) -> float:
        return self.config.emergency_reduce_check_interval_sec

    async def run(self, stop_event: asyncio.Event) -> None:
        self._stop_event = stop_event
        await super().run(stop_event)

    async def tick(self) -> None:
        try:
            if await self.should_reduce():
                log_event(
                    logger, "EnterEmergencyReduceMode",
                    perpEmergencyMarginRatio=self.config.perp_emergency_margin_ratio,
                    ftxEmergencyMarginRatio=self.config.ftx_emergency_margin_ratio,
                )
                await self.reduce_all()
                await self._cooldown()
        except Exception as err:
            await self.report_error("EmergencyReduceRoutineError", err)

    async def should_reduce(self) -> bool:
        is_below_ftx_margin_ratio = await self.margin_gate.is_below_ftx_margin_ratio(
            self.config.ftx_emergency_margin_ratio,
        )
        is_below_perp_margin_ratio = await self.margin_gate.is_below_perp_margin_ratio(
            self.config.perp_emergency_margin_ratio,
        )
        return is_below_ftx_margin_ratio or is_below_perp_margin_ratio

    async def reduce_all(self) -> None:
        await asyncio.gather(
            *(self.reduce_market(market) for market in self.registry.emergency_reduce_enabled()),
            return_exceptions=True,
        )

    async def reduce_market(self, market: Market) -> list:
        """Reduce both legs independently; failures are logged, not raised."""
        if not market.is_emergency_reduce_mode_enabled:
            return []
        results = await asyncio.gather(
            self.reduce_perp_position(market),
            self.reduce_ftx_position(market),
            return_exceptions=True,
        )
        for leg, result in zip(("perp", "ftx"), results):
            if isinstance(result, Exception):
                log_error_event(logger, "EmergencyReduceLegError", result, market=market.name, leg=leg)
        return results

    async def reduce_perp_position(self, market: Market) -> Optional[Decimal]:
        """Shrink the perp leg by up to EMERGENCY_REDUCE_AMOUNT quote."""
        position_value = await self.perp.get_position_value(market)
        plan = calc_perp_reduce_amount(position_value, self.config.emergency_reduce_amount)
        if plan is None:
            log_event(
                logger, "EmergencyReducePositionValueIsTooSmall",
                market=market.name, positionValue=position_value,
            )
            return None
        side, reduce_amount = plan
        log_event(
            logger, "EmergencyReducePerpPosition",
            market=market.name, side=side, reduceAmount=reduce_amount, positionValue=position_value,
        )
        await self.perp.open_position(market, side, AmountType.QUOTE, reduce_amount)
        return reduce_amount

    async def reduce_ftx_position(self, market: Market) -> Optional[Decimal]:
        """Shrink the FTX leg by up to EMERGENCY_REDUCE_AMOUNT worth of base."""
        position_size = await self.ftx.get_position_size(market)
        if position_size == 0:
            return None
        price = await self.ftx.get_price(market)
        plan = calc_ftx_reduce_size(
            position_size, price, self.config.emergency_reduce_amount, market.ftx_size_increment,
        )
        if plan is None:
            log_event(
                logger, "EmergencyReduceFTXPositionSizeIsTooSmall",
                market=market.name, positionSize=position_size, price=price,
            )
            return None
        side, reduce_size = plan
        log_event(
            logger, "EmergencyReduceFTXPosition",
            market=market.name, side=side, reduceSize=reduce_size, positionSize=position_size,
        )
        await self.ftx.place_market_order(market, side, reduce_size)
        return reduce_size

    async def _cooldown(self) -> None:
        sleep_sec = self.config.emergency_reduce_sleep_sec
        if self._stop_event is None:
            await asyncio.sleep(sleep_sec)
        else:
            await self.wait(self._stop_event, sleep_sec)
