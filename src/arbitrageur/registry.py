"""Market registry: the set of actively traded markets.

Built once at startup from the enabled MARKET_MAP entries, the perp pool
metadata (base token / pool address by base symbol) and each FTX market's
size increment.
"""

from __future__ import annotations

import logging
from typing import Iterator

from arbitrageur.config import ArbitrageurConfig
from arbitrageur.errors import ConfigError
from arbitrageur.models.market import Market
from arbitrageur.venues.base import FtxService, PerpService

logger = logging.getLogger(__name__)


class MarketRegistry:
    """Ordered name → Market map."""

    def __init__(self, markets: list[Market] | None = None):
        self._markets: dict[str, Market] = {}
        for market in markets or []:
            self.add(market)

    def add(self, market: Market) -> None:
        if market.name in self._markets:
            raise ConfigError(f"Duplicate market {market.name}")
        self._markets[market.name] = market

    def get(self, name: str) -> Market:
        try:
            return self._markets[name]
        except KeyError:
            raise KeyError(f"Unknown market {name}") from None

    def names(self) -> list[str]:
        return list(self._markets)

    def emergency_reduce_enabled(self) -> list[Market]:
        return [m for m in self._markets.values() if m.is_emergency_reduce_mode_enabled]

    def __iter__(self) -> Iterator[Market]:
        return iter(list(self._markets.values()))

    def __len__(self) -> int:
        return len(self._markets)

    def __contains__(self, name: object) -> bool:
        return name in self._markets

    @classmethod
    async def build(
        cls,
        config: ArbitrageurConfig,
        perp_service: PerpService,
        ftx_service: FtxService,
    ) -> MarketRegistry:
        """Create one Market per enabled config entry."""
        pools = {pool.base_symbol: pool for pool in await perp_service.get_pools()}
        registry = cls()
        for name, market_cfg in config.enabled_markets().items():
            pool = pools.get(name)
            if pool is None:
                raise ConfigError(f"No perp pool found for market {name}")
            ftx_market = await ftx_service.get_market(market_cfg.ftx_market_name)
            registry.add(Market(
                name=name,
                base_token=pool.base_address,
                pool_addr=pool.address,
                ftx_market_name=market_cfg.ftx_market_name,
                ftx_size_increment=ftx_market.size_increment,
                order_amount=market_cfg.order_amount,
                short_trigger_spread=market_cfg.short_trigger_spread,
                long_trigger_spread=market_cfg.long_trigger_spread,
                is_emergency_reduce_mode_enabled=market_cfg.is_emergency_reduce_mode_enabled,
            ))
            logger.info(
                "Registered market %s (ftx=%s, sizeIncrement=%s, orderAmount=%s)",
                name, market_cfg.ftx_market_name,
                ftx_market.size_increment, market_cfg.order_amount,
            )
        return registry
