"""Tests for the market registry."""

from __future__ import annotations

from decimal import Decimal

import pytest
from conftest import make_market

from arbitrageur.config import MarketConfig
from arbitrageur.errors import ConfigError
from arbitrageur.registry import MarketRegistry


class TestMarketRegistry:
    def test_iteration_order_and_lookup(self):
        eth = make_market()
        btc = make_market(name="vBTC", base_token="0xbtc", ftx_market_name="BTC-PERP")
        registry = MarketRegistry([eth, btc])
        assert registry.names() == ["vETH", "vBTC"]
        assert list(registry) == [eth, btc]
        assert registry.get("vBTC") is btc
        assert "vETH" in registry
        assert len(registry) == 2

    def test_unknown_market(self):
        with pytest.raises(KeyError, match="vSOL"):
            MarketRegistry().get("vSOL")

    def test_duplicate_rejected(self):
        with pytest.raises(ConfigError, match="Duplicate"):
            MarketRegistry([make_market(), make_market()])

    def test_emergency_reduce_enabled(self):
        eth = make_market()
        btc = make_market(name="vBTC", is_emergency_reduce_mode_enabled=False)
        assert MarketRegistry([eth, btc]).emergency_reduce_enabled() == [eth]


class TestBuild:
    async def test_build_from_config(self, config, perp_service, ftx_service):
        registry = await MarketRegistry.build(config, perp_service, ftx_service)

        market = registry.get("vETH")
        assert market.base_token == "0xeth"
        assert market.pool_addr == "0xpool_eth"
        assert market.ftx_market_name == "ETH-PERP"
        assert market.ftx_size_increment == Decimal("0.001")
        assert market.order_amount == Decimal("300")
        assert market.is_emergency_reduce_mode_enabled is True
        assert market.imbalance_start_time is None
        ftx_service.get_market.assert_awaited_once_with("ETH-PERP")

    async def test_disabled_markets_skipped(self, config, perp_service, ftx_service):
        config.markets["vBTC"] = MarketConfig(
            name="vBTC",
            is_enabled=False,
            ftx_market_name="BTC-PERP",
            order_amount=Decimal("300"),
            short_trigger_spread=Decimal("0.005"),
            long_trigger_spread=Decimal("-0.005"),
            is_emergency_reduce_mode_enabled=True,
        )
        registry = await MarketRegistry.build(config, perp_service, ftx_service)
        assert registry.names() == ["vETH"]

    async def test_missing_pool_is_fatal(self, config, perp_service, ftx_service):
        config.markets["vSOL"] = MarketConfig(
            name="vSOL",
            is_enabled=True,
            ftx_market_name="SOL-PERP",
            order_amount=Decimal("100"),
            short_trigger_spread=Decimal("0.005"),
            long_trigger_spread=Decimal("-0.005"),
            is_emergency_reduce_mode_enabled=False,
        )
        with pytest.raises(ConfigError, match="No perp pool found for market vSOL"):
            await MarketRegistry.build(config, perp_service, ftx_service)
