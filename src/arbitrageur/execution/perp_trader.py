"""Wallet-bound on-chain trader.

Owns the wallet and referral code, and serialises every transaction it
submits through one lock so two position changes from the same wallet are
never signed concurrently (nonce ordering).
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Optional

from arbitrageur.models.market import Market
from arbitrageur.models.trading import AmountType, PerpSide, SwapQuote
from arbitrageur.monitoring.events import log_event
from arbitrageur.venues.base import PerpService, Wallet

logger = logging.getLogger(__name__)


class PerpTrader:
    """On-chain leg of every market, bound to a single wallet.

    Args:
        perp_service: On-chain perp client.
        wallet: Signing wallet.
        referral_code: Forwarded with every position change (may be None).
    """

    def __init__(
        self,
        perp_service: PerpService,
        wallet: Wallet,
        referral_code: Optional[str] = None,
    ):
        self.perp_service = perp_service
        self.wallet = wallet
        self.referral_code = referral_code
        self._tx_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self.wallet.address

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_position_size(self, market: Market) -> Decimal:
        return await self.perp_service.get_total_position_size(self.address, market.base_token)

    async def get_position_value(self, market: Market) -> Decimal:
        return await self.perp_service.get_total_position_value(self.address, market.base_token)

    async def get_margin_ratio(self) -> Optional[Decimal]:
        return await self.perp_service.get_margin_ratio(self.address)

    async def get_buying_power(self) -> Decimal:
        return await self.perp_service.get_buying_power(self.address)

    async def quote(self, market: Market, side: PerpSide, quote_amount: Decimal) -> SwapQuote:
        return await self.perp_service.quote(
            market.base_token, side, AmountType.QUOTE, quote_amount, Decimal("0"),
        )

    async def get_avg_price(self, market: Market, side: PerpSide, quote_amount: Decimal) -> Decimal:
        """Simulated average execution price for opening ``quote_amount``."""
        swap = await self.quote(market, side, quote_amount)
        return swap.avg_price

    async def estimate_open_position_gas_fee(
        self,
        market: Market,
        side: PerpSide,
        amount_type: AmountType,
        amount: Decimal,
    ) -> Decimal:
        return await self.perp_service.estimate_open_position_gas_fee(
            self.wallet,
            market.base_token,
            side,
            amount_type,
            amount,
            None,
            self.referral_code,
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def open_position(
        self,
        market: Market,
        side: PerpSide,
        amount_type: AmountType,
        amount: Decimal,
        max_gas_fee_eth: Optional[Decimal] = None,
    ) -> Any:
        """Submit a position change. Fails (raises) if gas exceeds max_gas_fee_eth."""
        async with self._tx_lock:
            return await self.perp_service.open_position(
                self.wallet,
                market.base_token,
                side,
                amount_type,
                amount,
                None,
                max_gas_fee_eth,
                self.referral_code,
            )

    async def deposit_idle_collateral(self) -> Decimal:
        """Approve and deposit any USDC held by the wallet into the vault.

        Returns:
            The deposited amount (0 when the wallet holds nothing).
        """
        balance = await self.perp_service.get_usdc_balance(self.address)
        log_event(logger, "CheckUSDCBalance", balance=balance)
        if balance <= 0:
            return Decimal("0")
        async with self._tx_lock:
            await self.perp_service.approve(self.wallet, balance)
            await self.perp_service.deposit(self.wallet, balance)
        log_event(logger, "DepositCollateral", amount=balance)
        return balance
