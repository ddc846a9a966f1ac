"""Data models for the arbitrageur."""

from arbitrageur.models.market import Market
from arbitrageur.models.trading import (
    AmountType,
    FtxAccountInfo,
    FtxMarketInfo,
    FtxOrder,
    FtxSide,
    OrderType,
    PerpSide,
    PoolMetadata,
    SwapQuote,
    Venue,
)

__all__ = [
    "Market",
    "AmountType",
    "FtxAccountInfo",
    "FtxMarketInfo",
    "FtxOrder",
    "FtxSide",
    "OrderType",
    "PerpSide",
    "PoolMetadata",
    "SwapQuote",
    "Venue",
]
