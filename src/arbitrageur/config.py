"""Bot configuration: static JSON config file plus env-based secrets."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from arbitrageur.errors import ConfigError, MissingSecretsError

DEFAULT_CONFIG_PATH = "configs/config.json"

# ---------------------------------------------------------------------------
# Fixed policy constants
# ---------------------------------------------------------------------------

# Seconds an imbalance must persist before the balance routine corrects it.
IMBALANCE_DEBOUNCE_SEC = 30.0

# Perp positions worth this much quote or less are not emergency-reduced.
DUST_USD_SIZE = Decimal("100")

REQUIRED_SECRETS = ("PRIVATE_KEY", "FTX_API_KEY", "FTX_API_SECRET", "FTX_SUBACCOUNT")


def _decimal(raw: dict, key: str, where: str) -> Decimal:
    if key not in raw:
        raise ConfigError(f"{where}: missing key {key}")
    try:
        return Decimal(str(raw[key]))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ConfigError(f"{where}: {key}={raw[key]!r} is not a number") from exc


def _float(raw: dict, key: str, where: str) -> float:
    return float(_decimal(raw, key, where))


def _bool(raw: dict, key: str, where: str) -> bool:
    if key not in raw:
        raise ConfigError(f"{where}: missing key {key}")
    value = raw[key]
    if not isinstance(value, bool):
        raise ConfigError(f"{where}: {key}={value!r} is not a boolean")
    return value


# ---------------------------------------------------------------------------
# MarketConfig / ArbitrageurConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarketConfig:
    """Per-market entry of MARKET_MAP."""

    name: str
    is_enabled: bool
    ftx_market_name: str
    order_amount: Decimal
    short_trigger_spread: Decimal
    long_trigger_spread: Decimal
    is_emergency_reduce_mode_enabled: bool

    @classmethod
    def from_dict(cls, name: str, raw: dict) -> MarketConfig:
        where = f"MARKET_MAP.{name}"
        if not isinstance(raw, dict):
            raise ConfigError(f"{where}: expected an object")
        ftx_market_name = raw.get("FTX_MARKET_NAME")
        if not ftx_market_name:
            raise ConfigError(f"{where}: missing key FTX_MARKET_NAME")
        return cls(
            name=name,
            is_enabled=_bool(raw, "IS_ENABLED", where),
            ftx_market_name=str(ftx_market_name),
            order_amount=_decimal(raw, "ORDER_AMOUNT", where),
            short_trigger_spread=_decimal(raw, "SHORT_TRIGGER_SPREAD", where),
            long_trigger_spread=_decimal(raw, "LONG_TRIGGER_SPREAD", where),
            is_emergency_reduce_mode_enabled=_bool(
                raw, "IS_EMERGENCY_REDUCE_MODE_ENABLED", where,
            ),
        )


@dataclass
class ArbitrageurConfig:
    """봇 전체 설정. Loaded once at startup, never mutated afterwards."""

    balance_check_interval_sec: float = 10.0
    price_check_interval_sec: float = 5.0
    emergency_reduce_check_interval_sec: float = 10.0
    emergency_reduce_sleep_sec: float = 60.0
    emergency_reduce_amount: Decimal = Decimal("1000")
    ftx_min_margin_ratio: Decimal = Decimal("0.2")
    ftx_emergency_margin_ratio: Decimal = Decimal("0.1")
    perp_min_margin_ratio: Decimal = Decimal("0.2")
    perp_emergency_margin_ratio: Decimal = Decimal("0.1")
    arbitrage_max_gas_fee_eth: Decimal = Decimal("0.01")
    balance_max_gas_fee_eth: Decimal = Decimal("0.01")
    markets: dict[str, MarketConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> ArbitrageurConfig:
        """Parse the raw config.json object. Every key is required."""
        where = "config"
        market_map = raw.get("MARKET_MAP")
        if not isinstance(market_map, dict):
            raise ConfigError("config: missing or invalid MARKET_MAP")
        return cls(
            balance_check_interval_sec=_float(raw, "BALANCE_CHECK_INTERVAL_SEC", where),
            price_check_interval_sec=_float(raw, "PRICE_CHECK_INTERVAL_SEC", where),
            emergency_reduce_check_interval_sec=_float(
                raw, "EMERGENCY_REDUCE_CHECK_INTERVAL_SEC", where,
            ),
            emergency_reduce_sleep_sec=_float(raw, "EMERGENCY_REDUCE_SLEEP_SEC", where),
            emergency_reduce_amount=_decimal(raw, "EMERGENCY_REDUCE_AMOUNT", where),
            ftx_min_margin_ratio=_decimal(raw, "FTX_MIN_MARGIN_RATIO", where),
            ftx_emergency_margin_ratio=_decimal(raw, "FTX_EMERGENCY_MARGIN_RATIO", where),
            perp_min_margin_ratio=_decimal(raw, "PERP_MIN_MARGIN_RATIO", where),
            perp_emergency_margin_ratio=_decimal(raw, "PERP_EMERGENCY_MARGIN_RATIO", where),
            arbitrage_max_gas_fee_eth=_decimal(raw, "ARBITRAGE_MAX_GAS_FEE_ETH", where),
            balance_max_gas_fee_eth=_decimal(raw, "BALANCE_MAX_GAS_FEE_ETH", where),
            markets={
                name: MarketConfig.from_dict(name, cfg)
                for name, cfg in market_map.items()
            },
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike | None = None) -> ArbitrageurConfig:
        """Load config.json. Path: argument > ARBITRAGEUR_CONFIG_PATH > default."""
        path = Path(path or os.environ.get("ARBITRAGEUR_CONFIG_PATH", DEFAULT_CONFIG_PATH))
        try:
            raw = json.loads(path.read_text())
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        return cls.from_dict(raw)

    def enabled_markets(self) -> dict[str, MarketConfig]:
        """활성화된 마켓만 반환."""
        return {name: cfg for name, cfg in self.markets.items() if cfg.is_enabled}


# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Secrets:
    """Runtime secrets. Never logged."""

    private_key: str = field(repr=False)
    ftx_api_key: str = field(repr=False)
    ftx_api_secret: str = field(repr=False)
    ftx_subaccount: str

    @classmethod
    def from_env(cls, environ: dict | None = None) -> Secrets:
        """Read secrets from the environment; any missing one is fatal."""
        env = os.environ if environ is None else environ
        missing = [key for key in REQUIRED_SECRETS if not env.get(key)]
        if missing:
            raise MissingSecretsError(missing)
        return cls(
            private_key=env["PRIVATE_KEY"],
            ftx_api_key=env["FTX_API_KEY"],
            ftx_api_secret=env["FTX_API_SECRET"],
            ftx_subaccount=env["FTX_SUBACCOUNT"],
        )


def current_stage(environ: dict | None = None) -> str:
    """Deployment stage (production / staging / test)."""
    env = os.environ if environ is None else environ
    return env.get("STAGE", "production").lower()
