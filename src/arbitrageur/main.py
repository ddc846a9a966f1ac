"""CLI entry point.

Usage:
    python -m arbitrageur
    python -m arbitrageur --config configs/config.json --log-level DEBUG

Required environment:
    PRIVATE_KEY, FTX_API_KEY, FTX_API_SECRET, FTX_SUBACCOUNT
    PERP_SERVICE_FACTORY  "package.module:callable" returning the on-chain perp client

Optional:
    STAGE (default production), ARBITRAGEUR_CONFIG_PATH, ARBITRAGEUR_HEARTBEAT_DIR,
    TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
import logging
import os
import signal
import sys
from typing import Optional

from dotenv import load_dotenv

from arbitrageur.arbitrageur import Arbitrageur
from arbitrageur.config import ArbitrageurConfig, Secrets, current_stage
from arbitrageur.errors import ConfigError
from arbitrageur.monitoring.events import log_error_event
from arbitrageur.monitoring.heartbeat import RoutineHeartbeat
from arbitrageur.monitoring.telegram import TelegramAlerter
from arbitrageur.venues.base import PerpService
from arbitrageur.venues.ftx_client import FtxClient

logger = logging.getLogger(__name__)

BANNER = r"""
╔══════════════════════════════════════════════╗
║   arbitrageur : Perp ↔ FTX Spread Arbitrage   ║
║   arbitrage · balance · emergency reduce      ║
╚══════════════════════════════════════════════╝
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="arbitrageur",
        description="Perpetual Protocol <-> FTX arbitrage bot",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.json (default: $ARBITRAGEUR_CONFIG_PATH or configs/config.json)",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def load_perp_service(factory_path: Optional[str]) -> PerpService:
    """Resolve ``"module:callable"`` and call it to build the perp client."""
    if not factory_path:
        raise ConfigError("PERP_SERVICE_FACTORY is not set")
    module_name, _, attr = factory_path.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"PERP_SERVICE_FACTORY must look like 'module:callable', got {factory_path!r}")
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise ConfigError(f"Cannot load PERP_SERVICE_FACTORY {factory_path!r}: {exc}") from exc
    return factory()


async def main(args: argparse.Namespace) -> None:
    config = ArbitrageurConfig.from_file(args.config)
    secrets = Secrets.from_env()
    perp_service = load_perp_service(os.environ.get("PERP_SERVICE_FACTORY"))

    print(BANNER)
    print(f"Stage: {current_stage()}")
    print(f"Enabled markets: {', '.join(config.enabled_markets())}")
    print("-" * 60)

    async with FtxClient(
        api_key=secrets.ftx_api_key,
        api_secret=secrets.ftx_api_secret,
        subaccount=secrets.ftx_subaccount,
    ) as ftx_client:
        arbitrageur = Arbitrageur(
            config=config,
            perp_service=perp_service,
            ftx_service=ftx_client,
            private_key=secrets.private_key,
            heartbeat=RoutineHeartbeat(os.environ.get("ARBITRAGEUR_HEARTBEAT_DIR")),
            alerter=TelegramAlerter.from_env(),
        )

        loop = asyncio.get_running_loop()

        def _handle_signal():
            print("\n⚡ Shutting down gracefully...")
            arbitrageur.stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _handle_signal)
            except NotImplementedError:
                pass  # Windows

        # crash fast on errors from stray tasks
        def _handle_exception(_loop, context):
            err = context.get("exception") or RuntimeError(context.get("message", "unknown"))
            arbitrageur.fail(err)

        loop.set_exception_handler(_handle_exception)

        await arbitrageur.setup()
        await arbitrageur.run()

    print("Goodbye! 🤙")


def cli_main(argv: list[str] | None = None) -> None:
    """CLI entry point. Any uncaught error exits with status 1."""
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        asyncio.run(main(args))
    except KeyboardInterrupt:
        pass
    except Exception as err:
        log_error_event(logger, "UncaughtException", err)
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
