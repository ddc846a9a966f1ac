"""Tests for spread detection and order sizing."""

from __future__ import annotations

from decimal import Decimal

import pytest
from conftest import make_market

from arbitrageur.errors import OpenSizeTooSmallError
from arbitrageur.models.trading import FtxSide, PerpSide
from arbitrageur.strategy.spread import (
    ArbitrageDirection,
    SpreadSnapshot,
    calc_open_size,
    calc_spread,
    decide_arbitrage,
    is_increase,
    reduce_side,
    round_down,
    size_precision,
)


def _snapshot(ftx="100", long="100", short="100") -> SpreadSnapshot:
    return SpreadSnapshot(
        ftx_price=Decimal(ftx),
        perp_long_avg_price=Decimal(long),
        perp_short_avg_price=Decimal(short),
    )


# ---------------------------------------------------------------------------
# calc_spread / SpreadSnapshot
# ---------------------------------------------------------------------------


class TestCalcSpread:
    def test_premium_is_positive(self):
        assert calc_spread(Decimal("101"), Decimal("100")) == Decimal("0.01")

    def test_discount_is_negative(self):
        assert calc_spread(Decimal("99"), Decimal("100")) == Decimal("-0.01")

    def test_snapshot_uses_side_prices(self):
        snap = _snapshot(ftx="100", long="100.5", short="99.5")
        assert snap.short_spread == Decimal("-0.005")
        assert snap.long_spread == Decimal("0.005")


# ---------------------------------------------------------------------------
# decide_arbitrage
# ---------------------------------------------------------------------------


class TestDecideArbitrage:
    def test_short_trigger(self):
        signal = decide_arbitrage(make_market(), _snapshot(short="101"))
        assert signal is not None
        assert signal.direction is ArbitrageDirection.SHORT
        assert signal.perp_side is PerpSide.SHORT
        assert signal.ftx_side is FtxSide.BUY
        assert signal.event == "ShortArbitrage"

    def test_long_trigger(self):
        signal = decide_arbitrage(make_market(), _snapshot(long="99", short="99"))
        assert signal is not None
        assert signal.direction is ArbitrageDirection.LONG
        assert signal.perp_side is PerpSide.LONG
        assert signal.ftx_side is FtxSide.SELL
        assert signal.event == "LongArbitrage"

    def test_not_triggered_inside_band(self):
        assert decide_arbitrage(make_market(), _snapshot(long="100.2", short="99.8")) is None

    def test_short_threshold_is_strict(self):
        """shortSpread == trigger does not fire."""
        assert decide_arbitrage(make_market(), _snapshot(short="100.5")) is None

    def test_long_threshold_is_strict(self):
        assert decide_arbitrage(make_market(), _snapshot(long="99.5")) is None

    def test_short_wins_when_both_trigger(self):
        signal = decide_arbitrage(make_market(), _snapshot(long="98", short="101"))
        assert signal.direction is ArbitrageDirection.SHORT


# ---------------------------------------------------------------------------
# Exposure direction
# ---------------------------------------------------------------------------


class TestIsIncrease:
    @pytest.mark.parametrize("position,side,expected", [
        ("0", PerpSide.SHORT, True),
        ("0", PerpSide.LONG, True),
        ("-1", PerpSide.SHORT, True),
        ("1", PerpSide.LONG, True),
        ("1", PerpSide.SHORT, False),
        ("-1", PerpSide.LONG, False),
    ])
    def test_is_increase(self, position, side, expected):
        assert is_increase(Decimal(position), side) is expected

    def test_reduce_side(self):
        assert reduce_side(Decimal("0")) is PerpSide.LONG
        assert reduce_side(Decimal("-2")) is PerpSide.LONG
        assert reduce_side(Decimal("2")) is PerpSide.SHORT


# ---------------------------------------------------------------------------
# Sizing
# ---------------------------------------------------------------------------


class TestSizePrecision:
    @pytest.mark.parametrize("increment,precision", [
        ("0.001", 3),
        ("0.0001", 4),
        ("0.01", 2),
        ("0.5", 0),
        ("1", 0),
    ])
    def test_precision(self, increment, precision):
        assert size_precision(Decimal(increment)) == precision

    def test_round_down_never_rounds_up(self):
        assert round_down(Decimal("1.23999"), 3) == Decimal("1.239")
        assert round_down(Decimal("0.0009"), 3) == Decimal("0")


class TestCalcOpenSize:
    def test_order_amount_300_at_price_100(self):
        market = make_market(order_amount=Decimal("300"))
        size = calc_open_size(market, Decimal("100"), market.order_amount)
        assert size == Decimal("3.000")
        assert str(size) == "3.000"

    def test_rounds_down_to_increment(self):
        market = make_market()
        size = calc_open_size(market, Decimal("1800"), Decimal("300"))
        assert size == Decimal("0.166")

    def test_clamped_by_buying_power(self):
        market = make_market()
        size = calc_open_size(market, Decimal("100"), Decimal("300"), buying_power=Decimal("150"))
        assert size == Decimal("1.5")

    def test_buying_power_above_amount_does_not_grow(self):
        market = make_market()
        size = calc_open_size(market, Decimal("100"), Decimal("300"), buying_power=Decimal("1e6"))
        assert size == Decimal("3")

    def test_too_small_raises(self):
        market = make_market(order_amount=Decimal("0.05"))
        with pytest.raises(OpenSizeTooSmallError) as exc_info:
            calc_open_size(market, Decimal("50000"), market.order_amount)
        err = exc_info.value
        assert err.base_size == Decimal("0")
        assert err.precision == 3
        assert err.size_increment == Decimal("0.001")
        assert err.market == "vETH"

    def test_zero_buying_power_raises(self):
        market = make_market()
        with pytest.raises(OpenSizeTooSmallError):
            calc_open_size(market, Decimal("100"), Decimal("300"), buying_power=Decimal("0"))
