"""Contracts the core consumes from venue collaborators.

The on-chain perp client and the wallet/signing layer are supplied by the
deployment (see ``arbitrageur.main.load_perp_service``); the FTX side has a
concrete implementation in ``arbitrageur.venues.ftx_client``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Protocol

from arbitrageur.models.trading import (
    AmountType,
    FtxAccountInfo,
    FtxMarketInfo,
    FtxOrder,
    PerpSide,
    PoolMetadata,
    SwapQuote,
)


class Wallet(Protocol):
    """Signing wallet. Nonce sequencing is the implementation's job."""

    @property
    def address(self) -> str: ...


class PerpService(Protocol):
    """On-chain perpetual market client."""

    def private_key_to_wallet(self, private_key: str) -> Wallet: ...

    async def get_pools(self) -> list[PoolMetadata]: ...

    async def get_total_position_size(self, address: str, base_token: str) -> Decimal:
        """Signed base-denominated position size."""

    async def get_total_position_value(self, address: str, base_token: str) -> Decimal:
        """Signed quote-denominated position value."""

    async def get_margin_ratio(self, address: str) -> Optional[Decimal]:
        """Account margin ratio, None when unknown (e.g. no positions)."""

    async def get_buying_power(self, address: str) -> Decimal: ...

    async def get_usdc_balance(self, address: str) -> Decimal: ...

    async def get_referral_code(self, address: str) -> Optional[str]: ...

    async def quote(
        self,
        base_token: str,
        side: PerpSide,
        amount_type: AmountType,
        amount: Decimal,
        min_output: Decimal,
    ) -> SwapQuote: ...

    async def approve(self, wallet: Wallet, amount: Decimal) -> Any: ...

    async def deposit(self, wallet: Wallet, amount: Decimal) -> Any: ...

    async def open_position(
        self,
        wallet: Wallet,
        base_token: str,
        side: PerpSide,
        amount_type: AmountType,
        amount: Decimal,
        limit: Optional[Decimal] = None,
        max_gas_fee_eth: Optional[Decimal] = None,
        referral_code: Optional[str] = None,
    ) -> Any:
        """Submit a position change. Must fail if gas exceeds max_gas_fee_eth."""

    async def estimate_open_position_gas_fee(
        self,
        wallet: Wallet,
        base_token: str,
        side: PerpSide,
        amount_type: AmountType,
        amount: Decimal,
        limit: Optional[Decimal] = None,
        referral_code: Optional[str] = None,
    ) -> Decimal:
        """Estimated gas fee in ETH."""


class FtxService(Protocol):
    """Centralized exchange REST client."""

    async def get_market(self, market_name: str) -> FtxMarketInfo: ...

    async def get_price(self, market_name: str) -> Decimal: ...

    async def get_position_size(self, market_name: str) -> Decimal:
        """Signed base-denominated position size (short is negative)."""

    async def get_account_info(self) -> FtxAccountInfo: ...

    async def place_order(self, order: FtxOrder) -> dict:
        """Place an order; raises on venue rejection."""
