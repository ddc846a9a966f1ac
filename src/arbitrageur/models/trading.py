"""Venue-level enums and value objects shared by both legs."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class PerpSide(Enum):
    """On-chain perp position side."""

    LONG = "long"
    SHORT = "short"


class AmountType(Enum):
    """Whether an on-chain amount is denominated in base or quote."""

    BASE = "base"
    QUOTE = "quote"


class FtxSide(Enum):
    """FTX order side."""

    BUY = "buy"
    SELL = "sell"


class OrderType(Enum):
    """FTX order type. Only market orders are ever placed."""

    MARKET = "market"
    LIMIT = "limit"


class Venue(Enum):
    """The two venues a market is traded on."""

    PERP = "perp"
    FTX = "ftx"


@dataclass(frozen=True)
class SwapQuote:
    """Result of a simulated on-chain swap."""

    delta_available_quote: Decimal
    delta_available_base: Decimal

    @property
    def avg_price(self) -> Decimal:
        """Average execution price = quote / base."""
        return self.delta_available_quote / self.delta_available_base


@dataclass(frozen=True)
class PoolMetadata:
    """Perp pool metadata for one base token."""

    base_symbol: str
    base_address: str
    address: str


@dataclass(frozen=True)
class FtxMarketInfo:
    """Subset of FTX market metadata the bot needs."""

    name: str
    size_increment: Decimal


@dataclass(frozen=True)
class FtxAccountInfo:
    """FTX account summary. margin_fraction is None when the account has no positions."""

    margin_fraction: Optional[Decimal]


@dataclass(frozen=True)
class FtxOrder:
    """A market order request for FTX."""

    market: str
    side: FtxSide
    size: Decimal
    type: OrderType = OrderType.MARKET
    price: Optional[Decimal] = None

    def to_payload(self) -> dict:
        """REST body for POST /orders."""
        return {
            "market": self.market,
            "side": self.side.value,
            "price": float(self.price) if self.price is not None else None,
            "size": float(self.size),
            "type": self.type.value,
        }
