"""Arbitrage routine: spread-triggered paired orders, all markets in parallel.

Per market, per tick:
1. Skip while the legs are imbalanced (the balance routine owns that).
2. Fetch margin health, positions, FTX price and simulated perp prices at
   the configured order amount, all concurrently.
3. Abort if the gas estimate for a reducing perp trade exceeds the ceiling.
4. Short-first trigger; block exposure-increasing trades on bad margin.
5. Size on the FTX increment grid and fire both legs concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from enum import Enum

from arbitrageur.errors import OpenSizeTooSmallError
from arbitrageur.models.market import Market
from arbitrageur.models.trading import AmountType, PerpSide
from arbitrageur.monitoring.events import log_error_event, log_event
from arbitrageur.routines.base import Routine
from arbitrageur.strategy.imbalance import is_imbalance
from arbitrageur.strategy.spread import (
    ArbitrageDirection,
    SpreadSnapshot,
    calc_open_size,
    decide_arbitrage,
    is_increase,
    reduce_side,
)

logger = logging.getLogger(__name__)


class ArbitrageOutcome(Enum):
    """How a single market's arbitrage tick ended."""

    SKIPPED_IMBALANCE = "skipped_imbalance"
    GAS_FEE_TOO_HIGH = "gas_fee_too_high"
    NOT_TRIGGERED = "not_triggered"
    MARGIN_BLOCKED = "margin_blocked"
    SHORT = "short"
    LONG = "long"


class ArbitrageRoutine(Routine):
    name = "ArbitrageRoutine"

    @property
    def interval_sec(self) -> float:
        return self.config.price_check_interval_sec

    async def tick(self) -> None:
        await asyncio.gather(*(self._arbitrage_isolated(market) for market in self.registry))

    async def _arbitrage_isolated(self, market: Market) -> None:
        try:
            await self.arbitrage(market)
        except Exception as err:
            await self.report_error("ArbitrageError", err, market=market.name)

    async def arbitrage(self, market: Market) -> ArbitrageOutcome:
        if market.imbalance_start_time is not None:
            log_event(
                logger, "SkipArbitrageDueToImbalance",
                market=market.name, imbalanceStartTime=market.imbalance_start_time,
            )
            return ArbitrageOutcome.SKIPPED_IMBALANCE

        order_amount = market.order_amount
        (
            is_below_perp_margin_ratio,
            is_below_ftx_margin_ratio,
            perp_position_size,
            ftx_position_size,
            ftx_price,
            perp_long_avg_price,
            perp_short_avg_price,
        ) = await asyncio.gather(
            self.margin_gate.is_below_perp_margin_ratio(self.config.perp_min_margin_ratio),
            self.margin_gate.is_below_ftx_margin_ratio(self.config.ftx_min_margin_ratio),
            self.perp.get_position_size(market),
            self.ftx.get_position_size(market),
            self.ftx.get_price(market),
            self.perp.get_avg_price(market, PerpSide.LONG, order_amount),
            self.perp.get_avg_price(market, PerpSide.SHORT, order_amount),
        )
        if is_imbalance(market, ftx_position_size, perp_position_size):
            log_event(
                logger, "SkipArbitrageDueToImbalance",
                market=market.name,
                ftxPositionSize=ftx_position_size,
                perpPositionSize=perp_position_size,
            )
            return ArbitrageOutcome.SKIPPED_IMBALANCE

        snapshot = SpreadSnapshot(
            ftx_price=ftx_price,
            perp_long_avg_price=perp_long_avg_price,
            perp_short_avg_price=perp_short_avg_price,
        )
        log_event(
            logger, "Spread",
            market=market.name,
            ftxPrice=ftx_price,
            perpShortAvgPrice=perp_short_avg_price,
            perpLongAvgPrice=perp_long_avg_price,
            shortTriggerSpread=market.short_trigger_spread,
            curShortSpread=snapshot.short_spread,
            curLongSpread=snapshot.long_spread,
            longTriggerSpread=market.long_trigger_spread,
        )
        log_event(
            logger, "PositionSizeBefore",
            market=market.name,
            perpPositionSize=perp_position_size,
            ftxPositionSize=ftx_position_size,
        )

        estimated_gas_fee = await self.perp.estimate_open_position_gas_fee(
            market, reduce_side(perp_position_size), AmountType.QUOTE, order_amount,
        )
        if estimated_gas_fee > self.config.arbitrage_max_gas_fee_eth:
            log_event(
                logger, "GasFeeTooHigh",
                market=market.name,
                estimatedGasFee=estimated_gas_fee,
                arbitrageMaxGasFeeEth=self.config.arbitrage_max_gas_fee_eth,
            )
            return ArbitrageOutcome.GAS_FEE_TOO_HIGH

        signal = decide_arbitrage(market, snapshot)
        if signal is None:
            log_event(logger, "NotTriggered", market=market.name)
            return ArbitrageOutcome.NOT_TRIGGERED

        increase = is_increase(perp_position_size, signal.perp_side)
        if increase and (is_below_perp_margin_ratio or is_below_ftx_margin_ratio):
            log_event(
                logger, "ShouldNotIncreasePerpPosition",
                market=market.name,
                direction=signal.direction,
                isBelowPerpMarginRatio=is_below_perp_margin_ratio,
                isBelowFtxMarginRatio=is_below_ftx_margin_ratio,
                perpMinMarginRatio=self.config.perp_min_margin_ratio,
                ftxMinMarginRatio=self.config.ftx_min_margin_ratio,
            )
            return ArbitrageOutcome.MARGIN_BLOCKED

        size = await self._calc_open_size(market, ftx_price, order_amount, increase)
        log_event(
            logger, signal.event,
            market=market.name,
            size=size,
            spread=signal.spread,
            isIncrease=increase,
            ftxSizeIncrement=market.ftx_size_increment,
        )
        await self._open_both_legs(market, signal.perp_side, signal.ftx_side, size)

        perp_position_size_after, ftx_position_size_after = await asyncio.gather(
            self.perp.get_position_size(market),
            self.ftx.get_position_size(market),
        )
        log_event(
            logger, "PositionSizeAfter",
            market=market.name,
            perpPositionSize=perp_position_size_after,
            ftxPositionSize=ftx_position_size_after,
        )
        if signal.direction is ArbitrageDirection.SHORT:
            return ArbitrageOutcome.SHORT
        return ArbitrageOutcome.LONG

    async def _calc_open_size(
        self,
        market: Market,
        ftx_price: Decimal,
        order_amount: Decimal,
        increase: bool,
    ) -> Decimal:
        buying_power = await self.perp.get_buying_power() if increase else None
        try:
            return calc_open_size(market, ftx_price, order_amount, buying_power)
        except OpenSizeTooSmallError as err:
            log_error_event(
                logger, "OpenSizeSmallerThanFTXSizeIncrementError", err,
                market=err.market,
                openOrderAmount=err.open_order_amount,
                baseSize=err.base_size,
                precision=err.precision,
                ftxSizeIncrement=err.size_increment,
                ftxPrice=ftx_price,
                buyingPower=buying_power,
            )
            raise

    async def _open_both_legs(self, market: Market, perp_side, ftx_side, size: Decimal) -> None:
        """Issue both legs at once. A failed leg does not undo the other."""
        results = await asyncio.gather(
            self.perp.open_position(market, perp_side, AmountType.BASE, size),
            self.ftx.place_market_order(market, ftx_side, size),
            return_exceptions=True,
        )
        errors = [r for r in results if isinstance(r, BaseException)]
        for venue, result in zip(("perp", "ftx"), results):
            if isinstance(result, BaseException):
                log_error_event(
                    logger, "ArbitrageLegError", result,
                    market=market.name, venue=venue, size=size,
                )
        if errors:
            raise errors[0]
