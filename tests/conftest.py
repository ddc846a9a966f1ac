"""Shared test fixtures for the arbitrageur."""

from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from arbitrageur.config import ArbitrageurConfig, MarketConfig
from arbitrageur.execution.ftx_trader import FtxTrader
from arbitrageur.execution.perp_trader import PerpTrader
from arbitrageur.models.market import Market
from arbitrageur.models.trading import (
    FtxAccountInfo,
    FtxMarketInfo,
    PerpSide,
    PoolMetadata,
    SwapQuote,
)
from arbitrageur.registry import MarketRegistry
from arbitrageur.risk.margin import MarginGate

WALLET_ADDRESS = "0xWallet"


def make_market(**kwargs) -> Market:
    defaults = dict(
        name="vETH",
        base_token="0xeth",
        pool_addr="0xpool_eth",
        ftx_market_name="ETH-PERP",
        ftx_size_increment=Decimal("0.001"),
        order_amount=Decimal("300"),
        short_trigger_spread=Decimal("0.005"),
        long_trigger_spread=Decimal("-0.005"),
        is_emergency_reduce_mode_enabled=True,
    )
    defaults.update(kwargs)
    return Market(**defaults)


def set_perp_prices(perp_service, long_price, short_price) -> None:
    """Make perp_service.quote return the given average prices per side."""

    async def _quote(base_token, side, amount_type, amount, min_output):
        price = Decimal(str(long_price if side is PerpSide.LONG else short_price))
        return SwapQuote(delta_available_quote=price * 2, delta_available_base=Decimal("2"))

    perp_service.quote = AsyncMock(side_effect=_quote)


@pytest.fixture
def market() -> Market:
    return make_market()


@pytest.fixture
def config() -> ArbitrageurConfig:
    return ArbitrageurConfig(
        balance_check_interval_sec=0.01,
        price_check_interval_sec=0.01,
        emergency_reduce_check_interval_sec=0.01,
        emergency_reduce_sleep_sec=0,
        emergency_reduce_amount=Decimal("500"),
        ftx_min_margin_ratio=Decimal("0.2"),
        ftx_emergency_margin_ratio=Decimal("0.1"),
        perp_min_margin_ratio=Decimal("0.2"),
        perp_emergency_margin_ratio=Decimal("0.1"),
        arbitrage_max_gas_fee_eth=Decimal("0.01"),
        balance_max_gas_fee_eth=Decimal("0.02"),
        markets={
            "vETH": MarketConfig(
                name="vETH",
                is_enabled=True,
                ftx_market_name="ETH-PERP",
                order_amount=Decimal("300"),
                short_trigger_spread=Decimal("0.005"),
                long_trigger_spread=Decimal("-0.005"),
                is_emergency_reduce_mode_enabled=True,
            ),
        },
    )


@pytest.fixture
def wallet():
    return SimpleNamespace(address=WALLET_ADDRESS)


@pytest.fixture
def perp_service(wallet):
    """On-chain perp client fake: flat position, unknown margin, no spread."""
    svc = MagicMock()
    svc.private_key_to_wallet.return_value = wallet
    svc.get_pools = AsyncMock(return_value=[
        PoolMetadata(base_symbol="vETH", base_address="0xeth", address="0xpool_eth"),
        PoolMetadata(base_symbol="vBTC", base_address="0xbtc", address="0xpool_btc"),
    ])
    svc.get_total_position_size = AsyncMock(return_value=Decimal("0"))
    svc.get_total_position_value = AsyncMock(return_value=Decimal("0"))
    svc.get_margin_ratio = AsyncMock(return_value=None)
    svc.get_buying_power = AsyncMock(return_value=Decimal("10000"))
    svc.get_usdc_balance = AsyncMock(return_value=Decimal("0"))
    svc.get_referral_code = AsyncMock(return_value="ref-code")
    svc.approve = AsyncMock()
    svc.deposit = AsyncMock()
    svc.open_position = AsyncMock(return_value={"txHash": "0x1"})
    svc.estimate_open_position_gas_fee = AsyncMock(return_value=Decimal("0.001"))
    set_perp_prices(svc, long_price="100.2", short_price="99.8")
    return svc


@pytest.fixture
def ftx_service():
    """FTX client fake: price 100, flat position, unknown margin."""
    svc = MagicMock()
    svc.get_market = AsyncMock(
        side_effect=lambda name: FtxMarketInfo(name=name, size_increment=Decimal("0.001")),
    )
    svc.get_price = AsyncMock(return_value=Decimal("100"))
    svc.get_position_size = AsyncMock(return_value=Decimal("0"))
    svc.get_account_info = AsyncMock(return_value=FtxAccountInfo(margin_fraction=None))
    svc.place_order = AsyncMock(return_value={"id": 1})
    return svc


@pytest.fixture
def perp_trader(perp_service, wallet) -> PerpTrader:
    return PerpTrader(perp_service, wallet, referral_code=None)


@pytest.fixture
def ftx_trader(ftx_service) -> FtxTrader:
    return FtxTrader(ftx_service)


@pytest.fixture
def margin_gate(perp_trader, ftx_trader) -> MarginGate:
    return MarginGate(perp_trader, ftx_trader)


@pytest.fixture
def make_routine(config, market, perp_trader, ftx_trader, margin_gate):
    """Build a routine over the given markets (default: the vETH market)."""

    def _make(cls, markets=None, **kwargs):
        registry = MarketRegistry(markets if markets is not None else [market])
        return cls(config, registry, perp_trader, ftx_trader, margin_gate, **kwargs)

    return _make


def events(caplog, name: str) -> list:
    """Log records for a structured event."""
    return [r for r in caplog.records if getattr(r, "event", None) == name]
