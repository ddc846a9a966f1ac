"""Tests for the market record and venue value objects."""

from __future__ import annotations

from decimal import Decimal

from conftest import make_market

from arbitrageur.models import FtxOrder, FtxSide, OrderType, SwapQuote


class TestMarket:
    def test_no_episode_by_default(self):
        market = make_market()
        assert market.imbalance_start_time is None
        assert market.is_imbalance_episode_open is False
        assert market.imbalance_duration(5000.0) == 0.0

    def test_episode_duration(self):
        market = make_market()
        market._imbalance_start_time = 1000.0
        assert market.is_imbalance_episode_open is True
        assert market.imbalance_duration(1012.5) == 12.5

    def test_episode_state_not_part_of_equality(self):
        a, b = make_market(), make_market()
        a._imbalance_start_time = 1.0
        assert a == b
        assert "imbalance" not in repr(a)


class TestSwapQuote:
    def test_avg_price(self):
        quote = SwapQuote(delta_available_quote=Decimal("300"), delta_available_base=Decimal("0.15"))
        assert quote.avg_price == Decimal("2000")


class TestFtxOrder:
    def test_market_order_payload(self):
        order = FtxOrder(market="ETH-PERP", side=FtxSide.SELL, size=Decimal("0.125"))
        assert order.type is OrderType.MARKET
        assert order.to_payload() == {
            "market": "ETH-PERP",
            "side": "sell",
            "price": None,
            "size": 0.125,
            "type": "market",
        }
