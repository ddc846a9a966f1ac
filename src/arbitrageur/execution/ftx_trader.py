"""FTX leg: market orders with full-context failure logging."""

from __future__ import annotations

import logging
from decimal import Decimal

from arbitrageur.models.market import Market
from arbitrageur.models.trading import FtxOrder, FtxSide, OrderType
from arbitrageur.monitoring.events import log_error_event
from arbitrageur.venues.base import FtxService

logger = logging.getLogger(__name__)


class FtxTrader:
    """Off-chain leg of every market."""

    def __init__(self, ftx_service: FtxService):
        self.ftx_service = ftx_service

    async def get_position_size(self, market: Market) -> Decimal:
        return await self.ftx_service.get_position_size(market.ftx_market_name)

    async def get_price(self, market: Market) -> Decimal:
        return await self.ftx_service.get_price(market.ftx_market_name)

    async def get_margin_ratio(self) -> Decimal | None:
        account = await self.ftx_service.get_account_info()
        return account.margin_fraction

    async def place_market_order(self, market: Market, side: FtxSide, size: Decimal) -> dict:
        """Place a market order. Rejections are logged and re-raised, never retried."""
        order = FtxOrder(
            market=market.ftx_market_name,
            side=side,
            size=size,
            type=OrderType.MARKET,
            price=None,
        )
        try:
            return await self.ftx_service.place_order(order)
        except Exception as err:
            log_error_event(
                logger, "FTXPlaceOrderError", err,
                market=order.market, side=order.side, size=order.size, type=order.type,
            )
            raise
