"""Shared plumbing for the indefinitely running routines."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from arbitrageur.config import ArbitrageurConfig
from arbitrageur.execution.ftx_trader import FtxTrader
from arbitrageur.execution.perp_trader import PerpTrader
from arbitrageur.monitoring.events import log_error_event
from arbitrageur.monitoring.heartbeat import RoutineHeartbeat
from arbitrageur.monitoring.telegram import TelegramAlerter
from arbitrageur.registry import MarketRegistry
from arbitrageur.risk.margin import MarginGate

logger = logging.getLogger(__name__)


class Routine:
    """One control loop: heartbeat → tick → wait interval, until stopped.

    Ticks of the same routine never overlap. Subclasses isolate failures per
    market inside ``tick``; anything escaping it ends the routine and is
    treated as fatal by the orchestrator.
    """

    name: str = "Routine"

    def __init__(
        self,
        config: ArbitrageurConfig,
        registry: MarketRegistry,
        perp: PerpTrader,
        ftx: FtxTrader,
        margin_gate: MarginGate,
        heartbeat: Optional[RoutineHeartbeat] = None,
        alerter: Optional[TelegramAlerter] = None,
    ):
        self.config = config
        self.registry = registry
        self.perp = perp
        self.ftx = ftx
        self.margin_gate = margin_gate
        self.heartbeat = heartbeat or RoutineHeartbeat()
        self.alerter = alerter or TelegramAlerter()

    @property
    def interval_sec(self) -> float:
        raise NotImplementedError

    async def tick(self) -> None:
        raise NotImplementedError

    async def run(self, stop_event: asyncio.Event) -> None:
        logger.info("%s started (interval=%.1fs)", self.name, self.interval_sec)
        while not stop_event.is_set():
            self.heartbeat.mark_alive(self.name)
            await self.tick()
            if await self.wait(stop_event, self.interval_sec):
                break
        logger.info("%s stopped", self.name)

    @staticmethod
    async def wait(stop_event: asyncio.Event, timeout: float) -> bool:
        """Sleep up to ``timeout``; True if a stop was requested meanwhile."""
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def report_error(self, event: str, err: BaseException, **params) -> None:
        log_error_event(logging.getLogger(type(self).__module__), event, err, **params)
        await self.alerter.alert_event(event, err=repr(err), **params)
