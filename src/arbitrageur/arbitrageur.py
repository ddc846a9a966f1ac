"""Arbitrageur: wires venues, markets and the three routines together.

Lifecycle::

    arb = Arbitrageur(config, perp_service, ftx_service, private_key)
    await arb.setup()   # wallet, market registry, referral code
    await arb.run()     # deposit idle collateral, run routines until stop()

The routines run as independent tasks. A routine only ends on its own when
something escaped its per-market failure boundary; that is fatal and makes
``run`` raise after the remaining routines are cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from arbitrageur.config import ArbitrageurConfig, current_stage
from arbitrageur.execution.ftx_trader import FtxTrader
from arbitrageur.execution.perp_trader import PerpTrader
from arbitrageur.monitoring.events import log_error_event, log_event
from arbitrageur.monitoring.heartbeat import RoutineHeartbeat
from arbitrageur.monitoring.telegram import TelegramAlerter
from arbitrageur.registry import MarketRegistry
from arbitrageur.risk.margin import MarginGate
from arbitrageur.routines import (
    ArbitrageRoutine,
    BalanceRoutine,
    EmergencyReduceRoutine,
    Routine,
)
from arbitrageur.venues.base import FtxService, PerpService

logger = logging.getLogger(__name__)

NO_REFERRAL_CODE_MESSAGE = "You do not have a referral code"


class Arbitrageur:
    """Perp ↔ FTX arbitrage bot.

    Args:
        config: Static configuration.
        perp_service: On-chain perp client.
        ftx_service: FTX REST client.
        private_key: Wallet signing key.
        stage: Deployment stage; referral-code errors are only reported in production.
        heartbeat: Liveness markers for the routines.
        alerter: Error alert sink.
    """

    def __init__(
        self,
        config: ArbitrageurConfig,
        perp_service: PerpService,
        ftx_service: FtxService,
        private_key: str,
        stage: Optional[str] = None,
        heartbeat: Optional[RoutineHeartbeat] = None,
        alerter: Optional[TelegramAlerter] = None,
    ):
        self.config = config
        self.perp_service = perp_service
        self.ftx_service = ftx_service
        self._private_key = private_key
        self.stage = stage or current_stage()
        self.heartbeat = heartbeat or RoutineHeartbeat()
        self.alerter = alerter or TelegramAlerter()

        self.registry: Optional[MarketRegistry] = None
        self.perp: Optional[PerpTrader] = None
        self.ftx: Optional[FtxTrader] = None
        self.routines: list[Routine] = []

        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        self._fatal_error: Optional[BaseException] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    async def setup(self) -> None:
        log_event(logger, "SetupArbitrageur", stage=self.stage)
        wallet = self.perp_service.private_key_to_wallet(self._private_key)
        self.registry = await MarketRegistry.build(self.config, self.perp_service, self.ftx_service)
        referral_code = await self.fetch_referral_code(wallet.address)

        self.perp = PerpTrader(self.perp_service, wallet, referral_code)
        self.ftx = FtxTrader(self.ftx_service)
        margin_gate = MarginGate(self.perp, self.ftx)
        deps = (self.config, self.registry, self.perp, self.ftx, margin_gate)
        self.routines = [
            EmergencyReduceRoutine(*deps, heartbeat=self.heartbeat, alerter=self.alerter),
            BalanceRoutine(*deps, heartbeat=self.heartbeat, alerter=self.alerter),
            ArbitrageRoutine(*deps, heartbeat=self.heartbeat, alerter=self.alerter),
        ]
        log_event(
            logger, "Arbitrageur",
            address=wallet.address,
            referralCode=referral_code,
            markets=",".join(self.registry.names()),
        )

    async def fetch_referral_code(self, address: str) -> Optional[str]:
        """Best-effort referral code lookup; never aborts startup."""
        try:
            return await self.perp_service.get_referral_code(address)
        except Exception as err:
            if self.stage == "production":
                if NO_REFERRAL_CODE_MESSAGE in str(err):
                    log_event(logger, "NoReferralCode", address=address)
                else:
                    log_error_event(logger, "GetReferralCodeError", err, address=address)
            else:
                logger.debug("Referral code lookup failed on %s: %s", self.stage, err)
            return None

    # ------------------------------------------------------------------
    # Run / stop
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Deposit idle collateral and launch the routines as tasks."""
        if self.perp is None:
            raise RuntimeError("setup() must be called before start()")
        await self.perp.deposit_idle_collateral()
        self._tasks = [
            asyncio.create_task(routine.run(self._stop_event), name=routine.name)
            for routine in self.routines
        ]

    async def run(self) -> None:
        """Start and block until stop() or a fatal routine error."""
        await self.start()
        try:
            done, _ = await asyncio.wait(self._tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    self._fatal_error = self._fatal_error or task.exception()
        finally:
            await self.shutdown()
        if self._fatal_error is not None:
            raise self._fatal_error

    def stop(self) -> None:
        """Request a graceful stop at the routines' next tick boundary."""
        self._stop_event.set()

    def fail(self, err: BaseException) -> None:
        """Record a fatal error raised outside the routines and stop."""
        if self._fatal_error is None:
            self._fatal_error = err
        self.stop()
        for task in self._tasks:
            task.cancel()

    @property
    def is_stopping(self) -> bool:
        return self._stop_event.is_set()

    async def shutdown(self) -> None:
        self.stop()
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Arbitrageur stopped")
